from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm.attributes import flag_modified
from sqlmodel import Session, select

from app.db.models import Cte, Segment
from app.domain.customers.models import ExtractedBill
from app.schemas import ComparisonResult, CteCreate
from app.services.tenancy import TenantContext

logger = logging.getLogger(__name__)

# Prezzo unitario attuale stimato quando la bolletta non lo riporta (€/kWh o €/Smc)
DEFAULT_CURRENT_UNIT_PRICE = 0.20


class CteNotFoundError(LookupError):
    """Offerta inesistente o non visibile all'agenzia."""


def _is_visible(cte: Cte, tenant: TenantContext) -> bool:
    return tenant.is_super_admin or tenant.agency_id in (cte.visible_to_agency_ids or [])


def compute_comparison(bill: ExtractedBill, cte: Cte) -> ComparisonResult:
    """Confronto materia prima: prezzo attuale in bolletta contro ``cte.f0``."""
    new_price = cte.f0
    current_price = bill.detected_unit_price or DEFAULT_CURRENT_UNIT_PRICE
    delta = (new_price - current_price) * bill.consumption
    convenient = delta < 0
    return ComparisonResult(
        cte_id=cte.id,
        current_cost_est=round(current_price * bill.consumption, 2),
        new_cost_est=round(new_price * bill.consumption, 2),
        delta_value=round(delta, 2),
        verdict="CONVIENE" if convenient else "NON CONVIENE",
        reasons=(
            ["Prezzo materia prima inferiore", "Fissi competitivi"]
            if convenient
            else ["Tariffa attuale molto vantaggiosa"]
        ),
        calculation_details=f"P1: {new_price} vs P0: {current_price}",
    )


class OffersService:

    @staticmethod
    def list_ctes(
        session: Session, tenant: TenantContext, segment: Optional[Segment] = None
    ) -> list[Cte]:
        statement = select(Cte).order_by(Cte.uploaded_at.desc())
        if segment is not None:
            statement = statement.where(Cte.segment == segment)
        # visibilità su colonna JSON: filtro applicato in memoria
        return [cte for cte in session.exec(statement).all() if _is_visible(cte, tenant)]

    @staticmethod
    def get_cte(session: Session, tenant: TenantContext, cte_id: str) -> Cte:
        cte = session.get(Cte, cte_id)
        if cte is None or not _is_visible(cte, tenant):
            raise CteNotFoundError(f"Offerta {cte_id} non trovata")
        return cte

    @staticmethod
    def create_cte(session: Session, tenant: TenantContext, payload: CteCreate) -> Cte:
        visible_to = list(payload.visible_to_agency_ids)
        if tenant.agency_id not in visible_to:
            visible_to.append(tenant.agency_id)
        if not tenant.is_super_admin:
            visible_to = [tenant.agency_id]

        cte = Cte.model_validate(
            payload.model_dump(exclude={"visible_to_agency_ids", "is_default"}),
            update={
                "visible_to_agency_ids": visible_to,
                "uploaded_by_user_id": tenant.user_id,
                "uploaded_at": datetime.utcnow(),
            },
        )
        session.add(cte)
        session.commit()
        session.refresh(cte)
        if payload.is_default:
            cte = OffersService.set_default(session, tenant, cte.segment, cte.id)
        logger.info("Offerta %s (%s) caricata", cte.offer_code, cte.supplier_name)
        return cte

    @staticmethod
    def update_cte(
        session: Session, tenant: TenantContext, cte_id: str, payload: CteCreate
    ) -> Cte:
        cte = OffersService.get_cte(session, tenant, cte_id)
        for field_name, value in payload.model_dump(
            exclude={"visible_to_agency_ids", "is_default"}
        ).items():
            setattr(cte, field_name, value)
        if tenant.is_super_admin and payload.visible_to_agency_ids:
            cte.visible_to_agency_ids = list(payload.visible_to_agency_ids)
            flag_modified(cte, "visible_to_agency_ids")
        session.add(cte)
        session.commit()
        session.refresh(cte)
        return cte

    @staticmethod
    def delete_cte(session: Session, tenant: TenantContext, cte_id: str) -> None:
        cte = OffersService.get_cte(session, tenant, cte_id)
        session.delete(cte)
        session.commit()

    @staticmethod
    def set_default(
        session: Session, tenant: TenantContext, segment: Segment, cte_id: str
    ) -> Cte:
        """Una sola offerta di default per segmento tra quelle visibili all'agenzia."""
        candidates = [
            cte
            for cte in session.exec(select(Cte).where(Cte.segment == segment)).all()
            if tenant.agency_id in (cte.visible_to_agency_ids or [])
        ]
        selected = next((cte for cte in candidates if cte.id == cte_id), None)
        if selected is None:
            raise CteNotFoundError(f"Offerta {cte_id} non trovata nel segmento {segment.value}")
        for cte in candidates:
            cte.is_default = cte.id == cte_id
            session.add(cte)
        session.commit()
        session.refresh(selected)
        return selected

    @staticmethod
    def compare(
        session: Session, tenant: TenantContext, bill: ExtractedBill, cte_id: str
    ) -> ComparisonResult:
        return compute_comparison(bill, OffersService.get_cte(session, tenant, cte_id))


__all__ = [
    "CteNotFoundError",
    "DEFAULT_CURRENT_UNIT_PRICE",
    "OffersService",
    "compute_comparison",
]
