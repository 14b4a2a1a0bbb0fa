from fastapi import APIRouter, Body, Response, status

from app.api.deps import DBSession, Tenant, require_role, UserRole
from app.api.errors import DOMAIN_ERRORS, to_http_exception
from app.db.models import CustomerRead
from app.schemas import (
    BuildingMergeRequest,
    CustomerCreate,
    CustomerMergeRequest,
    CustomerUpdate,
    FamilySchema,
)
from app.services import CustomersService, reconciliation_service

router = APIRouter(dependencies=[require_role([UserRole.agent, UserRole.admin])])


@router.get("", response_model=list[CustomerRead])
def list_customers(session: DBSession, tenant: Tenant):
    return CustomersService.list_customers(session, tenant)


@router.post("", response_model=CustomerRead, status_code=status.HTTP_201_CREATED)
def create_customer(session: DBSession, tenant: Tenant, payload: CustomerCreate = Body(...)):
    try:
        return CustomersService.create_customer(session, tenant, payload)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc


@router.get("/families", response_model=list[FamilySchema])
def list_families(session: DBSession, tenant: Tenant):
    return [
        FamilySchema(
            family_id=family_id,
            head=CustomerRead.model_validate(head) if head else None,
            members=[CustomerRead.model_validate(member) for member in members],
            addresses=CustomersService.family_addresses(members),
        )
        for family_id, head, members in CustomersService.get_families(session, tenant)
    ]


@router.post("/merge", response_model=CustomerRead)
def merge_customers(
    session: DBSession, tenant: Tenant, payload: CustomerMergeRequest = Body(...)
):
    try:
        return reconciliation_service.merge_customers(
            session, tenant, payload.target_id, payload.source_id
        )
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc


@router.post("/families/{family_id}/merge-buildings", response_model=list[CustomerRead])
def merge_buildings(
    family_id: str,
    session: DBSession,
    tenant: Tenant,
    payload: BuildingMergeRequest = Body(...),
):
    try:
        return reconciliation_service.merge_buildings(
            session, tenant, family_id, payload.target_address, payload.source_address
        )
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc


@router.get("/{customer_id}", response_model=CustomerRead)
def get_customer(customer_id: str, session: DBSession, tenant: Tenant):
    try:
        return CustomersService.get_customer(session, tenant, customer_id)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc


@router.put("/{customer_id}", response_model=CustomerRead)
def update_customer(
    customer_id: str,
    session: DBSession,
    tenant: Tenant,
    payload: CustomerUpdate = Body(...),
):
    try:
        return CustomersService.update_customer(session, tenant, customer_id, payload)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(customer_id: str, session: DBSession, tenant: Tenant):
    try:
        CustomersService.delete_customer(session, tenant, customer_id)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
