"""Telephony domain models: operatori e listini canvas (offerte mobile/fisso)."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel

from app.domain.identifiers import generate_id

UNLIMITED = "UNLIMITED"


class CanvasOfferType(str, Enum):
    mobile = "MOBILE"
    fixed = "FIXED"
    fwa = "FWA"
    convergence = "CONVERGENCE"
    smartphone = "SMARTPHONE"


class CanvasStatus(str, Enum):
    active = "ACTIVE"
    ceased = "CEASED"


class TargetSegment(str, Enum):
    consumer = "CONSUMER"
    business = "BUSINESS"


class TelephonyLineType(str, Enum):
    mobile = "MOBILE"
    fixed = "FIXED"
    fwa = "FWA"


class TelephonyOperator(SQLModel, table=True):
    __tablename__ = "telephony_operator"

    id: str = Field(default_factory=lambda: generate_id("op"), primary_key=True)
    name: str = Field(index=True)
    color_hex: str = "#333333"
    logo_url: Optional[str] = None
    is_active: bool = True


class CanvasOfferBase(SQLModel):
    """Voce di listino di un operatore telefonico."""
    operator_id: str = Field(index=True)
    operator_name: str = ""
    name: str
    type: CanvasOfferType
    status: CanvasStatus = Field(default=CanvasStatus.active)
    target_segment: TargetSegment = Field(default=TargetSegment.consumer)
    monthly_price: float
    # numero oppure "UNLIMITED"
    data_gb: Optional[str] = None
    minutes: Optional[str] = None
    technology: Optional[str] = None
    min_contract_months: Optional[int] = None
    activation_fee: Optional[float] = None
    device_model: Optional[str] = None
    upfront_cost: Optional[float] = None
    installment_amount: Optional[float] = None
    installment_count: Optional[int] = None
    convergence_requirements: Optional[str] = None
    valid_until: Optional[str] = None


class CanvasOffer(CanvasOfferBase, table=True):
    __tablename__ = "canvas_offer"

    id: str = Field(default_factory=lambda: generate_id("cvs"), primary_key=True)
    visible_to_agency_ids: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)


class CanvasOfferRead(CanvasOfferBase):
    id: str
    visible_to_agency_ids: list[str]
    created_at: datetime


class ExtractedTelephonyBill(BaseModel):
    """Dati estratti da una bolletta telefonica (linea mobile, fissa o FWA)."""
    fiscal_code: Optional[str] = None
    client_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    operator: str = ""
    type: TelephonyLineType = TelephonyLineType.mobile
    number: Optional[str] = None
    monthly_cost: float = 0.0
    plan_name: Optional[str] = None
    contract_end_date: Optional[str] = None
    migration_code: Optional[str] = None

    @property
    def is_mobile(self) -> bool:
        return self.type in (TelephonyLineType.mobile, TelephonyLineType.fwa)


class CanvasOfferDraft(BaseModel):
    """Offerta letta da un listino, prima dell'associazione all'operatore."""
    name: str
    type: CanvasOfferType
    target_segment: TargetSegment = TargetSegment.consumer
    monthly_price: float
    data_gb: Optional[str] = None
    minutes: Optional[str] = None
    technology: Optional[str] = None
    activation_fee: Optional[float] = None
    device_model: Optional[str] = None
    upfront_cost: Optional[float] = None
    installment_amount: Optional[float] = None
    installment_count: Optional[int] = None
    convergence_requirements: Optional[str] = None


class CanvasExtraction(BaseModel):
    """Listino estratto da documento: operatore e offerte non ancora salvate."""
    operator_name: str
    offers: list[CanvasOfferDraft] = []

