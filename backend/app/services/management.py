"""Agenzie, utenti ed export dati, con visibilità limitata all'agenzia del chiamante.

Gli amministratori dell'agenzia HQ (``settings.super_agency_id``) vedono e
gestiscono tutte le agenzie; gli altri amministratori solo la propria.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from sqlalchemy import func
from sqlmodel import Session, select

from app.core.security import hash_password, verify_password
from app.db.models import Agency, AuditLog, Cte, Customer, User, UserRole
from app.schemas import AgencyCreate, UserCreate
from app.services.audit import record_audit_log
from app.services.tenancy import TenantContext

logger = logging.getLogger(__name__)

LOGIN_ACTION = "LOGIN"
USER_CREATE_ACTION = "USER_CREATE"


class ManagementError(Exception):
    """Errore base della gestione agenzie/utenti."""


class AgencyNotFoundError(ManagementError):
    pass


class UserNotFoundError(ManagementError):
    pass


class DuplicateUserError(ManagementError):
    pass


class PermissionDeniedError(ManagementError):
    pass


def _user_export(user: User) -> dict[str, Any]:
    return user.model_dump(mode="json", exclude={"hashed_password"})


class ManagementService:

    @staticmethod
    def tenant_for(user: User) -> TenantContext:
        return TenantContext(
            agency_id=user.agency_id,
            user_id=user.id,
            username=user.username,
            is_admin=user.role == UserRole.admin,
        )

    @staticmethod
    def login(
        session: Session,
        username: str,
        password: str,
        *,
        ip_address: Optional[str] = None,
        endpoint: Optional[str] = None,
    ) -> Optional[User]:
        """Restituisce l'utente attivo con le credenziali indicate, altrimenti ``None``."""
        statement = select(User).where(func.lower(User.username) == username.strip().lower())
        user = session.exec(statement).first()
        if not user or not user.is_active or not verify_password(password, user.hashed_password):
            record_audit_log(
                session,
                action=LOGIN_ACTION,
                details=f"Tentativo di accesso fallito per {username}",
                user_id=user.id if user else None,
                username=user.username if user else username,
                agency_id=user.agency_id if user else None,
                endpoint=endpoint,
                ip_address=ip_address,
                method="POST",
                outcome="failure",
            )
            logger.warning("Login fallito per '%s'", username)
            return None

        record_audit_log(
            session,
            action=LOGIN_ACTION,
            details="Accesso al portale eseguito.",
            user_id=user.id,
            username=user.username,
            agency_id=user.agency_id,
            endpoint=endpoint,
            ip_address=ip_address,
            method="POST",
            outcome="success",
        )
        return user

    @staticmethod
    def list_agencies(session: Session, tenant: TenantContext) -> Sequence[Agency]:
        statement = select(Agency).order_by(Agency.created_at)
        if not tenant.is_super_admin:
            statement = statement.where(Agency.id == tenant.agency_id)
        return session.exec(statement).all()

    @staticmethod
    def create_agency(session: Session, tenant: TenantContext, payload: AgencyCreate) -> Agency:
        if not tenant.is_super_admin:
            raise PermissionDeniedError("Solo l'amministrazione centrale può creare agenzie")
        agency = Agency(name=payload.name.strip(), vat_number=payload.vat_number.strip())
        session.add(agency)
        session.commit()
        session.refresh(agency)
        logger.info("Agenzia %s creata (%s)", agency.id, agency.name)
        return agency

    @staticmethod
    def list_users(session: Session, tenant: TenantContext) -> Sequence[User]:
        statement = select(User).order_by(User.created_at)
        if not tenant.is_super_admin:
            statement = statement.where(User.agency_id == tenant.agency_id)
        return session.exec(statement).all()

    @staticmethod
    def create_user(session: Session, tenant: TenantContext, payload: UserCreate) -> User:
        # Gli admin di agenzia creano utenti solo nella propria agenzia
        agency_id = tenant.agency_id
        if tenant.is_super_admin and payload.agency_id:
            agency_id = payload.agency_id
        if session.get(Agency, agency_id) is None:
            raise AgencyNotFoundError(f"Agenzia {agency_id} non trovata")
        existing = session.exec(
            select(User).where(func.lower(User.username) == payload.username)
        ).first()
        if existing:
            raise DuplicateUserError(f"Username {payload.username} già in uso")

        user = User(
            username=payload.username,
            hashed_password=hash_password(payload.password),
            full_name=payload.full_name,
            agency_id=agency_id,
            role=payload.role,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        record_audit_log(
            session,
            tenant=tenant,
            action=USER_CREATE_ACTION,
            details=f"Creato nuovo utente: {user.username}",
        )
        return user

    @staticmethod
    def toggle_user_status(session: Session, tenant: TenantContext, user_id: str) -> User:
        user = session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(f"Utente {user_id} non trovato")
        if not tenant.is_super_admin and user.agency_id != tenant.agency_id:
            raise PermissionDeniedError("Utente di un'altra agenzia")
        user.is_active = not user.is_active
        session.add(user)
        session.commit()
        session.refresh(user)
        logger.info("Utente %s %s", user.username, "attivato" if user.is_active else "disattivato")
        return user

    @staticmethod
    def export_tenant(session: Session, tenant: TenantContext) -> dict[str, Any]:
        """Dump JSON-serializzabile dei dati: completo per l'HQ, altrimenti della sola agenzia."""
        if tenant.is_super_admin:
            return {
                "agencies": [
                    agency.model_dump(mode="json")
                    for agency in session.exec(select(Agency)).all()
                ],
                "users": [_user_export(user) for user in session.exec(select(User)).all()],
                "customers": [
                    customer.model_dump(mode="json")
                    for customer in session.exec(select(Customer)).all()
                ],
                "ctes": [cte.model_dump(mode="json") for cte in session.exec(select(Cte)).all()],
                "audit_logs": [
                    log.model_dump(mode="json")
                    for log in session.exec(
                        select(AuditLog).order_by(AuditLog.timestamp.desc())
                    ).all()
                ],
            }

        agency = session.get(Agency, tenant.agency_id)
        return {
            "agency_info": agency.model_dump(mode="json") if agency else None,
            "users": [
                _user_export(user)
                for user in session.exec(
                    select(User).where(User.agency_id == tenant.agency_id)
                ).all()
            ],
            "customers": [
                customer.model_dump(mode="json")
                for customer in session.exec(
                    select(Customer).where(Customer.agency_id == tenant.agency_id)
                ).all()
            ],
            "audit_logs": [
                log.model_dump(mode="json")
                for log in session.exec(
                    select(AuditLog)
                    .where(AuditLog.agency_id == tenant.agency_id)
                    .order_by(AuditLog.timestamp.desc())
                ).all()
            ],
        }


__all__ = [
    "AgencyNotFoundError",
    "DuplicateUserError",
    "LOGIN_ACTION",
    "ManagementError",
    "ManagementService",
    "PermissionDeniedError",
    "USER_CREATE_ACTION",
    "UserNotFoundError",
]
