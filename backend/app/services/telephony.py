"""Telefonia: operatori, listini canvas, bollette telefoniche e opportunità di risparmio."""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from sqlalchemy.orm.attributes import flag_modified
from sqlmodel import Session, select

from app.domain.customers.models import (
    ConnectivityDetails,
    Customer,
    MobileLine,
    Property,
    PropertyStatus,
    ServiceStatus,
)
from app.domain.telephony.models import (
    UNLIMITED,
    CanvasExtraction,
    CanvasOffer,
    CanvasOfferRead,
    CanvasOfferType,
    CanvasStatus,
    ExtractedTelephonyBill,
    TelephonyLineType,
    TelephonyOperator,
)
from app.schemas import CanvasOfferCreate, OperatorCreate, TelephonyOpportunity
from app.services.reconciliation.config import UNKNOWN_ADDRESS, UNKNOWN_CITY, UNKNOWN_VALUE
from app.services.reconciliation.fiscal import classify_fiscal_code
from app.services.reconciliation.lookup import list_tenant_customers
from app.services.reconciliation.normalization import addresses_overlap
from app.services.reconciliation.resolver import resolve_or_create
from app.services.tenancy import TenantContext

logger = logging.getLogger(__name__)

IMPORTED_OPERATOR_COLOR = "#333333"
MOBILE_ASSET = "MOBILE"
FIXED_ASSET = "FIXED"


class OperatorNotFoundError(LookupError):
    """Operatore telefonico inesistente."""


class CanvasNotFoundError(LookupError):
    """Offerta canvas inesistente o non visibile all'agenzia."""


def _is_visible(offer: CanvasOffer, tenant: TenantContext) -> bool:
    return tenant.is_super_admin or tenant.agency_id in (offer.visible_to_agency_ids or [])


def _one_year_after(day: date) -> date:
    try:
        return day.replace(year=day.year + 1)
    except ValueError:
        # 29 febbraio
        return day.replace(year=day.year + 1, day=28)


def _same_operator(left: Optional[str], right: Optional[str]) -> bool:
    return (left or "").strip().casefold() == (right or "").strip().casefold()


def find_better_offer(
    offers: Sequence[CanvasOffer],
    offer_type: CanvasOfferType,
    current_cost: float,
    current_operator: Optional[str],
) -> Optional[CanvasOffer]:
    """Offerta ACTIVE più economica del tipo richiesto, di un operatore diverso dall'attuale."""
    candidates = [
        offer
        for offer in offers
        if offer.status == CanvasStatus.active
        and offer.type == offer_type
        and offer.monthly_price < current_cost
        and not _same_operator(offer.operator_name, current_operator)
    ]
    return min(candidates, key=lambda offer: offer.monthly_price, default=None)


class TelephonyService:

    # --- operatori -------------------------------------------------------
    @staticmethod
    def list_operators(session: Session) -> list[TelephonyOperator]:
        statement = (
            select(TelephonyOperator)
            .where(TelephonyOperator.is_active == True)  # noqa: E712
            .order_by(TelephonyOperator.name)
        )
        return list(session.exec(statement).all())

    @staticmethod
    def create_operator(session: Session, payload: OperatorCreate) -> TelephonyOperator:
        operator = TelephonyOperator(
            name=payload.name, color_hex=payload.color_hex, logo_url=payload.logo_url
        )
        session.add(operator)
        session.commit()
        session.refresh(operator)
        logger.info("Operatore %s creato", operator.name)
        return operator

    @staticmethod
    def _get_operator(session: Session, operator_id: str) -> TelephonyOperator:
        operator = session.get(TelephonyOperator, operator_id)
        if operator is None:
            raise OperatorNotFoundError(f"Operatore {operator_id} non trovato")
        return operator

    # --- listini canvas --------------------------------------------------
    @staticmethod
    def list_canvas(
        session: Session,
        tenant: TenantContext,
        offer_type: Optional[CanvasOfferType] = None,
    ) -> list[CanvasOffer]:
        statement = select(CanvasOffer).order_by(CanvasOffer.created_at)
        if offer_type is not None:
            statement = statement.where(CanvasOffer.type == offer_type)
        # visibilità su colonna JSON: filtro applicato in memoria
        return [offer for offer in session.exec(statement).all() if _is_visible(offer, tenant)]

    @staticmethod
    def get_canvas(session: Session, tenant: TenantContext, canvas_id: str) -> CanvasOffer:
        offer = session.get(CanvasOffer, canvas_id)
        if offer is None or not _is_visible(offer, tenant):
            raise CanvasNotFoundError(f"Offerta canvas {canvas_id} non trovata")
        return offer

    @staticmethod
    def create_canvas(
        session: Session, tenant: TenantContext, payload: CanvasOfferCreate
    ) -> CanvasOffer:
        operator = TelephonyService._get_operator(session, payload.operator_id)
        visible_to = list(payload.visible_to_agency_ids)
        if tenant.agency_id not in visible_to:
            visible_to.append(tenant.agency_id)
        if not tenant.is_super_admin:
            visible_to = [tenant.agency_id]

        offer = CanvasOffer.model_validate(
            payload.model_dump(exclude={"visible_to_agency_ids"}),
            update={"operator_name": operator.name, "visible_to_agency_ids": visible_to},
        )
        session.add(offer)
        session.commit()
        session.refresh(offer)
        return offer

    @staticmethod
    def update_canvas(
        session: Session, tenant: TenantContext, canvas_id: str, payload: CanvasOfferCreate
    ) -> CanvasOffer:
        offer = TelephonyService.get_canvas(session, tenant, canvas_id)
        operator = TelephonyService._get_operator(session, payload.operator_id)
        for field_name, value in payload.model_dump(
            exclude={"visible_to_agency_ids", "operator_name"}
        ).items():
            setattr(offer, field_name, value)
        offer.operator_name = operator.name
        if tenant.is_super_admin and payload.visible_to_agency_ids:
            offer.visible_to_agency_ids = list(payload.visible_to_agency_ids)
            flag_modified(offer, "visible_to_agency_ids")
        session.add(offer)
        session.commit()
        session.refresh(offer)
        return offer

    @staticmethod
    def cease_canvas(session: Session, tenant: TenantContext, canvas_id: str) -> CanvasOffer:
        """Offerta non più commercializzata: resta a catalogo ma esce dalle opportunità."""
        offer = TelephonyService.get_canvas(session, tenant, canvas_id)
        offer.status = CanvasStatus.ceased
        session.add(offer)
        session.commit()
        session.refresh(offer)
        return offer

    @staticmethod
    def delete_canvas(session: Session, tenant: TenantContext, canvas_id: str) -> None:
        offer = TelephonyService.get_canvas(session, tenant, canvas_id)
        session.delete(offer)
        session.commit()

    @staticmethod
    def import_canvas(
        session: Session,
        tenant: TenantContext,
        extraction: CanvasExtraction,
        *,
        today: Optional[date] = None,
    ) -> tuple[int, str]:
        """Salva un listino estratto: operatore riconosciuto per nome o creato al volo.

        Le offerte importate sono ACTIVE, visibili alla sola agenzia che le carica
        e valide per un anno.
        """
        wanted = extraction.operator_name.strip().casefold()
        operator = next(
            (
                candidate
                for candidate in session.exec(select(TelephonyOperator)).all()
                if wanted and wanted in candidate.name.casefold()
            ),
            None,
        )
        if operator is None:
            operator = TelephonyOperator(
                name=extraction.operator_name, color_hex=IMPORTED_OPERATOR_COLOR
            )
            session.add(operator)
            logger.info("Operatore %s creato da listino importato", operator.name)

        valid_until = _one_year_after(today or date.today()).isoformat()
        for draft in extraction.offers:
            session.add(
                CanvasOffer.model_validate(
                    draft.model_dump(),
                    update={
                        "operator_id": operator.id,
                        "operator_name": operator.name,
                        "status": CanvasStatus.active,
                        "visible_to_agency_ids": [tenant.agency_id],
                        "valid_until": valid_until,
                    },
                )
            )
        session.commit()
        logger.info(
            "Listino %s importato: %d offerte (agenzia %s)",
            operator.name,
            len(extraction.offers),
            tenant.agency_id,
        )
        return len(extraction.offers), operator.name

    # --- bollette telefoniche --------------------------------------------
    @staticmethod
    def process_telephony_bill(
        session: Session, tenant: TenantContext, bill: ExtractedTelephonyBill
    ) -> tuple[Customer, str]:
        """Registra la linea della bolletta sul cliente (creato se assente).

        Mobile/FWA: linea mobile aggiunta, o aggiornata se il numero è già noto.
        Fisso: connettività dell'immobile all'indirizzo della bolletta, creato se
        manca.
        """
        classification = classify_fiscal_code(bill.fiscal_code, client_name=bill.client_name)
        customer = resolve_or_create(
            session,
            tenant,
            classification.normalized_code,
            classification.type,
            bill.client_name,
        )

        if bill.is_mobile:
            TelephonyService._apply_mobile_line(customer, bill)
            asset_type = MOBILE_ASSET
        else:
            TelephonyService._apply_connectivity(customer, bill)
            asset_type = FIXED_ASSET

        customer.updated_at = datetime.utcnow()
        session.add(customer)
        session.commit()
        session.refresh(customer)
        logger.info(
            "Bolletta telefonica %s (%s) registrata sul cliente %s",
            asset_type,
            bill.operator,
            customer.id,
        )
        return customer, asset_type

    @staticmethod
    def _apply_mobile_line(customer: Customer, bill: ExtractedTelephonyBill) -> None:
        line = MobileLine(
            number=bill.number or UNKNOWN_VALUE,
            operator=bill.operator,
            type="FWA_SIM" if bill.type == TelephonyLineType.fwa else "VOICE_DATA",
            monthly_cost=bill.monthly_cost,
            data_limit_gb=UNLIMITED,
            contract_end_date=bill.contract_end_date,
            migration_code=bill.migration_code,
        )
        lines = customer.get_mobile_lines()
        existing = next(
            (
                index
                for index, current in enumerate(lines)
                if bill.number and current.number == bill.number
            ),
            None,
        )
        if existing is None:
            lines.append(line)
        else:
            lines[existing] = line.model_copy(update={"id": lines[existing].id})
        customer.set_mobile_lines(lines)

    @staticmethod
    def _apply_connectivity(customer: Customer, bill: ExtractedTelephonyBill) -> None:
        properties = customer.get_properties()
        active = [prop for prop in properties if prop.status == PropertyStatus.active]
        if bill.address:
            prop = next((p for p in active if addresses_overlap(p.address, bill.address)), None)
        else:
            prop = active[0] if active else None
        if prop is None:
            prop = Property(
                status=PropertyStatus.active,
                address=bill.address or UNKNOWN_ADDRESS,
                city=bill.city or UNKNOWN_CITY,
                is_resident=True,
            )
            properties.append(prop)
        prop.connectivity = ConnectivityDetails(
            provider=bill.operator or UNKNOWN_VALUE,
            status=ServiceStatus.active,
            technology="FTTH",
            monthly_cost=bill.monthly_cost,
            contract_end_date=bill.contract_end_date,
            migration_code=bill.migration_code,
            phone_number=bill.number,
        )
        customer.set_properties(properties)

    # --- opportunità -----------------------------------------------------
    @staticmethod
    def find_opportunities(session: Session, tenant: TenantContext) -> list[TelephonyOpportunity]:
        """Linee mobili e connettività attive per cui esiste un canvas più economico."""
        offers = TelephonyService.list_canvas(session, tenant)
        opportunities: list[TelephonyOpportunity] = []
        for customer in list_tenant_customers(session, tenant):
            for line in customer.get_mobile_lines():
                better = find_better_offer(
                    offers, CanvasOfferType.mobile, line.monthly_cost, line.operator
                )
                if better is not None:
                    opportunities.append(
                        TelephonyOpportunity(
                            customer_id=customer.id,
                            customer_name=customer.display_name,
                            asset_type=MOBILE_ASSET,
                            current_asset_info=f"{line.operator} - {line.number}",
                            current_cost=line.monthly_cost,
                            penalty_monthly=line.penalty_monthly_cost or 0.0,
                            better_offer=CanvasOfferRead.model_validate(better),
                            estimated_monthly_savings=round(
                                line.monthly_cost - better.monthly_price, 2
                            ),
                        )
                    )
            for prop in customer.get_properties():
                connectivity = prop.connectivity
                if connectivity is None or connectivity.status != ServiceStatus.active:
                    continue
                better = find_better_offer(
                    offers,
                    CanvasOfferType.fixed,
                    connectivity.monthly_cost,
                    connectivity.provider,
                )
                if better is not None:
                    opportunities.append(
                        TelephonyOpportunity(
                            customer_id=customer.id,
                            customer_name=customer.display_name,
                            asset_type=FIXED_ASSET,
                            current_asset_info=f"{connectivity.provider} - {prop.address}",
                            current_cost=connectivity.monthly_cost,
                            penalty_monthly=connectivity.penalty_monthly_cost or 0.0,
                            better_offer=CanvasOfferRead.model_validate(better),
                            estimated_monthly_savings=round(
                                connectivity.monthly_cost - better.monthly_price, 2
                            ),
                        )
                    )
        return opportunities


__all__ = [
    "CanvasNotFoundError",
    "FIXED_ASSET",
    "MOBILE_ASSET",
    "OperatorNotFoundError",
    "TelephonyService",
    "find_better_offer",
]
