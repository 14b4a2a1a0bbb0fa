from fastapi import APIRouter, Query

from app.api.deps import DBSession, Tenant, require_role, UserRole
from app.schemas import AuditLogRead
from app.services import list_audit_logs

router = APIRouter(dependencies=[require_role([UserRole.admin])])


@router.get("", response_model=list[AuditLogRead])
def get_audit_logs(
    session: DBSession,
    tenant: Tenant,
    include_api_calls: bool = Query(default=False),
    limit: int | None = Query(default=None, ge=1, le=5000),
):
    return list_audit_logs(
        session, tenant, include_api_calls=include_api_calls, limit=limit
    )
