from typing import Any

from fastapi import APIRouter, Body, status

from app.api.deps import DBSession, Tenant, require_role, UserRole
from app.api.errors import DOMAIN_ERRORS, to_http_exception
from app.db.models import AgencyRead
from app.schemas import AgencyCreate, UserCreate, UserRead
from app.services import ManagementService

router = APIRouter(dependencies=[require_role([UserRole.admin])])


@router.get("/agencies", response_model=list[AgencyRead])
def list_agencies(session: DBSession, tenant: Tenant):
    return ManagementService.list_agencies(session, tenant)


@router.post("/agencies", response_model=AgencyRead, status_code=status.HTTP_201_CREATED)
def create_agency(session: DBSession, tenant: Tenant, payload: AgencyCreate = Body(...)):
    try:
        return ManagementService.create_agency(session, tenant, payload)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc


@router.get("/users", response_model=list[UserRead])
def list_users(session: DBSession, tenant: Tenant):
    return ManagementService.list_users(session, tenant)


@router.post("/users", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(session: DBSession, tenant: Tenant, payload: UserCreate = Body(...)):
    try:
        return ManagementService.create_user(session, tenant, payload)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc


@router.post("/users/{user_id}/toggle-status", response_model=UserRead)
def toggle_user_status(user_id: str, session: DBSession, tenant: Tenant):
    try:
        return ManagementService.toggle_user_status(session, tenant, user_id)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc


@router.get("/export")
def export_data(session: DBSession, tenant: Tenant) -> dict[str, Any]:
    return ManagementService.export_tenant(session, tenant)
