"""Rilevamento di POD/PDR già intestati a un altro cliente dell'agenzia."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlmodel import Session, select

from app.core import settings
from app.domain.customers.models import Customer, ExtractedBill, Property, PropertyStatus
from app.services.tenancy import TenantContext

from .normalization import is_known_code

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OwnershipConflict:
    owner: Customer
    property: Property


def detect_conflict(
    session: Session,
    tenant: TenantContext,
    bill: ExtractedBill,
    excluding_customer_id: Optional[str],
    *,
    include_inactive: Optional[bool] = None,
) -> Optional[OwnershipConflict]:
    """Primo cliente (diverso da quello escluso) con un immobile sullo stesso POD/PDR.

    Viene riportato un solo conflitto anche se ne esistono diversi.
    """
    code = bill.supply_code
    if not bill.is_bill or not is_known_code(code):
        return None
    if include_inactive is None:
        include_inactive = settings.conflict_scan_include_inactive

    statement = (
        select(Customer)
        .where(Customer.agency_id == tenant.agency_id)
        .order_by(Customer.created_at)
    )
    for customer in session.exec(statement):
        if customer.id == excluding_customer_id:
            continue
        for prop in customer.get_properties():
            if not include_inactive and prop.status != PropertyStatus.active:
                continue
            if prop.has_supply_code(code):
                logger.info(
                    "Conflitto POD/PDR %s: già intestato al cliente %s (immobile %s)",
                    code,
                    customer.id,
                    prop.id,
                )
                return OwnershipConflict(owner=customer, property=prop)
    return None


__all__ = ["OwnershipConflict", "detect_conflict"]
