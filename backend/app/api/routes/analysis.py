from typing import Annotated

from fastapi import APIRouter, Body, Depends, File, UploadFile

from app.api.deps import DBSession, Tenant, read_document, require_role, UserRole
from app.api.errors import DOMAIN_ERRORS, to_http_exception
from app.db.models import CustomerRead
from app.schemas import BillAnalysisResponse, ConfirmPropertyRequest, TransferRequest
from app.services import (
    ExtractionError,
    ReconciliationResult,
    ReconciliationService,
    reconciliation_service,
)

router = APIRouter(dependencies=[require_role([UserRole.agent, UserRole.admin])])


def get_reconciliation_service() -> ReconciliationService:
    return reconciliation_service


Reconciliation = Annotated[ReconciliationService, Depends(get_reconciliation_service)]


def _to_response(result: ReconciliationResult) -> BillAnalysisResponse:
    return BillAnalysisResponse(
        status=result.status.value,
        extracted=result.extracted,
        customer=CustomerRead.model_validate(result.customer) if result.customer else None,
        existing_customer_id=result.existing_customer_id,
        existing_properties=result.existing_properties,
        conflict_owner=(
            CustomerRead.model_validate(result.conflict_owner)
            if result.conflict_owner
            else None
        ),
        conflict_property=result.conflict_property,
    )


@router.post("/bill", response_model=BillAnalysisResponse)
async def analyze_bill(
    session: DBSession,
    tenant: Tenant,
    service: Reconciliation,
    file: UploadFile = File(...),
):
    document = await read_document(file)
    try:
        result = service.analyze_document(session, tenant, document, file.content_type)
    except ExtractionError as exc:
        raise to_http_exception(exc) from exc
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    return _to_response(result)


@router.post("/bill/confirm-property", response_model=CustomerRead)
def confirm_property(
    session: DBSession,
    tenant: Tenant,
    service: Reconciliation,
    payload: ConfirmPropertyRequest = Body(...),
):
    try:
        return service.save_analyzed_bill(
            session, tenant, payload.extracted, payload.customer_id, payload.property_id
        )
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc


@router.post("/bill/transfer", response_model=CustomerRead)
def transfer_property(
    session: DBSession,
    tenant: Tenant,
    service: Reconciliation,
    payload: TransferRequest = Body(...),
):
    try:
        return service.transfer_property(
            session,
            tenant,
            payload.extracted,
            payload.old_owner_id,
            payload.old_property_id,
        )
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
