"""Voltura: il POD/PDR passa da un cliente a un nuovo intestatario."""
from __future__ import annotations

import logging
from datetime import datetime

from sqlmodel import Session

from app.domain.customers.models import Customer, ExtractedBill, Property, PropertyStatus
from app.services.audit import record_audit_log
from app.services.tenancy import TenantContext

from .errors import InvalidMergeError, MissingFiscalCodeError
from .fiscal import classify_fiscal_code
from .lookup import get_tenant_customer, require_property
from .matcher import build_commodity_details
from .resolver import resolve_or_create

logger = logging.getLogger(__name__)

PROPERTY_TRANSFER_ACTION = "PROPERTY_TRANSFER"


def transfer_property(
    session: Session,
    tenant: TenantContext,
    bill: ExtractedBill,
    old_owner_id: str,
    old_property_id: str,
) -> Customer:
    """Esegue la voltura confermata dall'operatore.

    L'immobile del vecchio intestatario diventa SOLD (mai cancellato) e il nuovo
    intestatario riceve un immobile nuovo con i dati della bolletta. I due
    clienti vengono salvati in sequenza, senza rollback complessivo.
    """
    old_owner = get_tenant_customer(session, tenant, old_owner_id)
    old_properties = old_owner.get_properties()
    old_property = require_property(old_owner, old_properties, old_property_id)

    classification = classify_fiscal_code(
        bill.fiscal_code, ai_hint=bill.ai_customer_type, client_name=bill.client_name
    )
    if not classification.normalized_code:
        raise MissingFiscalCodeError("Codice fiscale/P.IVA del nuovo intestatario non presente")
    if classification.normalized_code == old_owner.fiscal_code:
        raise InvalidMergeError("Il nuovo intestatario coincide con quello attuale")

    old_property.status = PropertyStatus.sold
    old_owner.set_properties(old_properties)
    old_owner.updated_at = datetime.utcnow()
    session.add(old_owner)
    session.commit()

    new_owner = resolve_or_create(
        session,
        tenant,
        classification.normalized_code,
        classification.type,
        bill.client_name,
    )

    new_property = Property(
        status=PropertyStatus.active,
        address=bill.address or old_property.address,
        city=bill.city or old_property.city,
        zip_code=None if bill.address else old_property.zip_code,
        is_resident=True,
    )
    new_property.set_commodity(bill.commodity, build_commodity_details(bill))
    properties = new_owner.get_properties()
    properties.append(new_property)
    new_owner.set_properties(properties)
    new_owner.updated_at = datetime.utcnow()
    session.add(new_owner)
    session.commit()
    session.refresh(new_owner)

    details = (
        f"POD/PDR {bill.supply_code} trasferito da {old_owner.fiscal_code} "
        f"a {new_owner.fiscal_code}"
    )
    record_audit_log(session, tenant=tenant, action=PROPERTY_TRANSFER_ACTION, details=details)
    logger.info(
        "Voltura %s: %s -> %s (immobile %s)",
        bill.supply_code,
        old_owner.id,
        new_owner.id,
        new_property.id,
    )
    return new_owner


__all__ = ["PROPERTY_TRANSFER_ACTION", "transfer_property"]
