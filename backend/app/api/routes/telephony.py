from typing import Annotated, Optional

from fastapi import APIRouter, Body, Depends, File, Query, Response, UploadFile, status

from app.api.deps import DBSession, Tenant, read_document, require_role, UserRole
from app.api.errors import DOMAIN_ERRORS, to_http_exception
from app.db.models import CanvasOfferRead, CanvasOfferType, CustomerRead
from app.domain.telephony import TelephonyOperator
from app.schemas import (
    CanvasImportResponse,
    CanvasOfferCreate,
    OperatorCreate,
    TelephonyBillResponse,
    TelephonyOpportunity,
)
from app.services import (
    CanvasExtractor,
    ExtractionError,
    TelephonyBillExtractor,
    TelephonyService,
    canvas_extractor,
    telephony_bill_extractor,
)

router = APIRouter(dependencies=[require_role([UserRole.agent, UserRole.admin])])
admin_guard = require_role([UserRole.admin])


def get_telephony_bill_extractor() -> TelephonyBillExtractor:
    return telephony_bill_extractor


def get_canvas_extractor() -> CanvasExtractor:
    return canvas_extractor


BillReader = Annotated[TelephonyBillExtractor, Depends(get_telephony_bill_extractor)]
CanvasReader = Annotated[CanvasExtractor, Depends(get_canvas_extractor)]


@router.get("/operators", response_model=list[TelephonyOperator])
def list_operators(session: DBSession):
    return TelephonyService.list_operators(session)


@router.post(
    "/operators",
    response_model=TelephonyOperator,
    status_code=status.HTTP_201_CREATED,
    dependencies=[admin_guard],
)
def create_operator(session: DBSession, payload: OperatorCreate = Body(...)):
    return TelephonyService.create_operator(session, payload)


@router.get("/canvas", response_model=list[CanvasOfferRead])
def list_canvas(
    session: DBSession,
    tenant: Tenant,
    offer_type: Optional[CanvasOfferType] = Query(default=None, alias="type"),
):
    return TelephonyService.list_canvas(session, tenant, offer_type)


@router.post(
    "/canvas",
    response_model=CanvasOfferRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[admin_guard],
)
def create_canvas(session: DBSession, tenant: Tenant, payload: CanvasOfferCreate = Body(...)):
    try:
        return TelephonyService.create_canvas(session, tenant, payload)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc


@router.post(
    "/canvas/upload",
    response_model=CanvasImportResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[admin_guard],
)
async def upload_canvas(
    session: DBSession,
    tenant: Tenant,
    extractor: CanvasReader,
    file: UploadFile = File(...),
):
    document = await read_document(file)
    try:
        extraction = extractor.extract(document, file.content_type)
    except ExtractionError as exc:
        raise to_http_exception(exc) from exc
    count, operator_name = TelephonyService.import_canvas(session, tenant, extraction)
    return CanvasImportResponse(count=count, operator_name=operator_name)


@router.put("/canvas/{canvas_id}", response_model=CanvasOfferRead, dependencies=[admin_guard])
def update_canvas(
    canvas_id: str, session: DBSession, tenant: Tenant, payload: CanvasOfferCreate = Body(...)
):
    try:
        return TelephonyService.update_canvas(session, tenant, canvas_id, payload)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc


@router.post(
    "/canvas/{canvas_id}/cease", response_model=CanvasOfferRead, dependencies=[admin_guard]
)
def cease_canvas(canvas_id: str, session: DBSession, tenant: Tenant):
    try:
        return TelephonyService.cease_canvas(session, tenant, canvas_id)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc


@router.delete(
    "/canvas/{canvas_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[admin_guard]
)
def delete_canvas(canvas_id: str, session: DBSession, tenant: Tenant):
    try:
        TelephonyService.delete_canvas(session, tenant, canvas_id)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/bill", response_model=TelephonyBillResponse)
async def process_telephony_bill(
    session: DBSession,
    tenant: Tenant,
    extractor: BillReader,
    file: UploadFile = File(...),
):
    document = await read_document(file)
    try:
        extracted = extractor.extract(document, file.content_type)
        customer, asset_type = TelephonyService.process_telephony_bill(session, tenant, extracted)
    except ExtractionError as exc:
        raise to_http_exception(exc) from exc
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    return TelephonyBillResponse(
        asset_type=asset_type,
        extracted=extracted,
        customer=CustomerRead.model_validate(customer),
    )


@router.get("/opportunities", response_model=list[TelephonyOpportunity])
def find_opportunities(session: DBSession, tenant: Tenant):
    return TelephonyService.find_opportunities(session, tenant)
