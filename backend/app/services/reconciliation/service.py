"""Orchestrazione: estrazione → classificazione → cliente → conflitti → immobile."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Protocol

from sqlmodel import Session

from app.domain.customers.models import Customer, ExtractedBill
from app.services.tenancy import TenantContext

from .config import NEW_PROPERTY_CHOICE
from .conflicts import detect_conflict
from .fiscal import classify_fiscal_code
from .lookup import get_tenant_customer, require_property
from .matcher import apply_bill_to_property, build_new_property, match_or_create
from .merge import merge_buildings, merge_customers
from .resolver import resolve_or_create
from .results import ReconciliationResult
from .transfer import transfer_property

logger = logging.getLogger(__name__)


class DocumentExtractor(Protocol):
    def extract(self, document: bytes, mime_type: str) -> ExtractedBill: ...


class ReconciliationService:
    """Punto di ingresso delle operazioni di riconciliazione.

    Le decisioni dell'operatore (immobile scelto, voltura, unioni) arrivano
    sempre in modo esplicito: il servizio non risolve da solo ambiguità o
    conflitti.
    """

    def __init__(self, extractor: Optional[DocumentExtractor] = None) -> None:
        self.extractor = extractor

    def analyze_document(
        self,
        session: Session,
        tenant: TenantContext,
        document: bytes,
        mime_type: str,
    ) -> ReconciliationResult:
        if self.extractor is None:
            from app.services.extraction import bill_extractor

            self.extractor = bill_extractor
        # In caso di errore di estrazione non viene scritto nulla
        bill = self.extractor.extract(document, mime_type)
        return self.analyze_bill(session, tenant, bill)

    def analyze_bill(
        self,
        session: Session,
        tenant: TenantContext,
        bill: ExtractedBill,
    ) -> ReconciliationResult:
        classification = classify_fiscal_code(
            bill.fiscal_code, ai_hint=bill.ai_customer_type, client_name=bill.client_name
        )
        bill = bill.model_copy(update={"fiscal_code": classification.normalized_code})

        customer = resolve_or_create(
            session,
            tenant,
            classification.normalized_code,
            classification.type,
            bill.client_name,
        )

        conflict = detect_conflict(session, tenant, bill, excluding_customer_id=customer.id)
        if conflict is not None:
            return ReconciliationResult.conflict(bill, conflict.owner, conflict.property)

        match = match_or_create(customer, bill)
        if match.is_ambiguous:
            return ReconciliationResult.ambiguous(bill, customer, match.candidates)

        customer.updated_at = datetime.utcnow()
        session.add(customer)
        session.commit()
        session.refresh(customer)
        return ReconciliationResult.success(bill, customer)

    def save_analyzed_bill(
        self,
        session: Session,
        tenant: TenantContext,
        bill: ExtractedBill,
        customer_id: str,
        property_id: str,
    ) -> Customer:
        """Applica la scelta dell'operatore dopo un esito AMBIGUOUS_PROPERTY."""
        customer = get_tenant_customer(session, tenant, customer_id)
        properties = customer.get_properties()
        if property_id == NEW_PROPERTY_CHOICE:
            new_property = build_new_property(bill, is_resident=True)
            properties.append(new_property)
            logger.info("Nuovo immobile %s scelto per il cliente %s", new_property.id, customer.id)
        else:
            apply_bill_to_property(require_property(customer, properties, property_id), bill)
        customer.set_properties(properties)
        customer.updated_at = datetime.utcnow()
        session.add(customer)
        session.commit()
        session.refresh(customer)
        return customer

    def transfer_property(
        self,
        session: Session,
        tenant: TenantContext,
        bill: ExtractedBill,
        old_owner_id: str,
        old_property_id: str,
    ) -> Customer:
        return transfer_property(session, tenant, bill, old_owner_id, old_property_id)

    def merge_customers(
        self, session: Session, tenant: TenantContext, target_id: str, source_id: str
    ) -> Customer:
        return merge_customers(session, tenant, target_id, source_id)

    def merge_buildings(
        self,
        session: Session,
        tenant: TenantContext,
        family_id: str,
        target_address: str,
        source_address: str,
    ) -> list[Customer]:
        return merge_buildings(session, tenant, family_id, target_address, source_address)


reconciliation_service = ReconciliationService()

__all__ = ["DocumentExtractor", "ReconciliationService", "reconciliation_service"]
