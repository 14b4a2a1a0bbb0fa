from typing import Annotated, Optional

from fastapi import APIRouter, Body, Depends, File, Query, Response, UploadFile, status

from app.api.deps import DBSession, Tenant, read_document, require_role, UserRole
from app.api.errors import DOMAIN_ERRORS, to_http_exception
from app.db.models import CteRead, Segment
from app.schemas import ComparisonRequest, ComparisonResult, CteCreate
from app.services import CteExtractor, ExtractionError, OffersService, cte_extractor

router = APIRouter(dependencies=[require_role([UserRole.agent, UserRole.admin])])
admin_guard = require_role([UserRole.admin])


def get_cte_extractor() -> CteExtractor:
    return cte_extractor


CteReader = Annotated[CteExtractor, Depends(get_cte_extractor)]


@router.get("/cte", response_model=list[CteRead])
def list_ctes(
    session: DBSession,
    tenant: Tenant,
    segment: Optional[Segment] = Query(default=None),
):
    return OffersService.list_ctes(session, tenant, segment)


@router.post(
    "/cte",
    response_model=CteRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[admin_guard],
)
def create_cte(session: DBSession, tenant: Tenant, payload: CteCreate = Body(...)):
    return OffersService.create_cte(session, tenant, payload)


@router.post(
    "/cte/upload",
    response_model=CteRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[admin_guard],
)
async def upload_cte(
    session: DBSession,
    tenant: Tenant,
    extractor: CteReader,
    file: UploadFile = File(...),
):
    document = await read_document(file)
    try:
        payload = extractor.extract(document, file.content_type)
    except ExtractionError as exc:
        raise to_http_exception(exc) from exc
    return OffersService.create_cte(session, tenant, payload)


@router.put("/cte/{cte_id}", response_model=CteRead, dependencies=[admin_guard])
def update_cte(
    cte_id: str, session: DBSession, tenant: Tenant, payload: CteCreate = Body(...)
):
    try:
        return OffersService.update_cte(session, tenant, cte_id, payload)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc


@router.delete(
    "/cte/{cte_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[admin_guard]
)
def delete_cte(cte_id: str, session: DBSession, tenant: Tenant):
    try:
        OffersService.delete_cte(session, tenant, cte_id)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/cte/{cte_id}/default", response_model=CteRead, dependencies=[admin_guard])
def set_default_cte(
    cte_id: str,
    session: DBSession,
    tenant: Tenant,
    segment: Segment = Query(...),
):
    try:
        return OffersService.set_default(session, tenant, segment, cte_id)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc


@router.post("/compare", response_model=ComparisonResult)
def compare_offer(session: DBSession, tenant: Tenant, payload: ComparisonRequest = Body(...)):
    try:
        return OffersService.compare(session, tenant, payload.extracted, payload.cte_id)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
