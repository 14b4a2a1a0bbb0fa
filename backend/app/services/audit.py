from __future__ import annotations

from typing import Optional, Sequence

from hashlib import sha256

from sqlmodel import Session, select

from app.core import settings
from app.db.models import AuditLog
from app.services.tenancy import TenantContext


def _safe_hash(payload: bytes | str | None) -> Optional[str]:
    if payload is None:
        return None
    if isinstance(payload, str):
        payload = payload.encode("utf-8", "ignore")
    return sha256(payload).hexdigest()


def record_audit_log(
    session: Session,
    *,
    action: str,
    details: str = "",
    tenant: Optional[TenantContext] = None,
    user_id: Optional[str] = None,
    username: Optional[str] = None,
    agency_id: Optional[str] = None,
    endpoint: Optional[str] = None,
    ip_address: Optional[str] = None,
    method: Optional[str] = None,
    payload: bytes | str | None = None,
    outcome: Optional[str] = None,
) -> AuditLog:
    if tenant is not None:
        user_id = user_id or tenant.user_id
        username = username or tenant.username
        agency_id = agency_id or tenant.agency_id
    log = AuditLog(
        user_id=user_id,
        username=username,
        agency_id=agency_id,
        action=action,
        details=details,
        method=method,
        endpoint=endpoint,
        ip_address=ip_address,
        payload_hash=_safe_hash(payload),
        outcome=outcome,
    )
    session.add(log)
    session.commit()
    session.refresh(log)
    return log


def list_audit_logs(
    session: Session,
    tenant: TenantContext,
    *,
    include_api_calls: bool = False,
    limit: Optional[int] = None,
) -> Sequence[AuditLog]:
    """Log più recenti per primi; l'HQ vede tutte le agenzie."""
    statement = select(AuditLog)
    if not tenant.is_super_admin:
        statement = statement.where(AuditLog.agency_id == tenant.agency_id)
    if not include_api_calls:
        statement = statement.where(AuditLog.action != "API_CALL")
    statement = statement.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(
        limit or settings.audit_log_retention
    )
    return session.exec(statement).all()
