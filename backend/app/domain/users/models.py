"""Agency (tenant), user and audit domain models."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel

from app.domain.identifiers import generate_id


class UserRole(str, Enum):
    """Ruoli applicativi. Un ADMIN dell'agenzia HQ è super-admin."""
    admin = "ADMIN"
    agent = "AGENT"


class AgencyBase(SQLModel):
    name: str
    vat_number: str = Field(default="", description="Partita IVA dell'agenzia")


class Agency(AgencyBase, table=True):
    """Agenzia: confine multi-tenant di clienti, offerte e utenti."""
    __tablename__ = "agency"

    id: str = Field(default_factory=lambda: generate_id("ag"), primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class AgencyRead(AgencyBase):
    id: str
    created_at: datetime


class User(SQLModel, table=True):
    """Utente del portale, sempre associato a una agenzia."""
    __tablename__ = "app_user"

    id: str = Field(default_factory=lambda: generate_id("u"), primary_key=True)
    username: str = Field(index=True, unique=True)
    hashed_password: str
    full_name: str = ""
    agency_id: str = Field(foreign_key="agency.id", index=True)
    role: UserRole = Field(default=UserRole.agent)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class AuditLog(SQLModel, table=True):
    """Registro append-only delle operazioni sensibili."""
    __tablename__ = "audit_log"

    id: Optional[int] = Field(default=None, primary_key=True)
    timestamp: datetime = Field(default_factory=datetime.utcnow, index=True)
    user_id: Optional[str] = Field(default=None, index=True)
    username: Optional[str] = None
    agency_id: Optional[str] = Field(default=None, index=True)
    action: str
    details: str = ""
    method: Optional[str] = None
    endpoint: Optional[str] = None
    ip_address: Optional[str] = None
    payload_hash: Optional[str] = None
    outcome: Optional[str] = Field(
        default=None, description="success|failure in base alle risposte HTTP"
    )
