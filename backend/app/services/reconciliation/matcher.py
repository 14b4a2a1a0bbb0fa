"""Abbinamento della bolletta a un immobile del cliente (POD/PDR, poi indirizzo)."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from app.domain.customers.models import (
    CommodityDetails,
    Customer,
    ExtractedBill,
    Property,
    PropertyStatus,
    ServiceStatus,
)

from .config import (
    BILLING_PERIODS_PER_YEAR,
    DEFAULT_FIXED_FEE_YEAR,
    DEFAULT_UNIT_PRICE,
    UNKNOWN_ADDRESS,
    UNKNOWN_CITY,
    UNKNOWN_VALUE,
)
from .normalization import addresses_overlap, is_known_code

logger = logging.getLogger(__name__)


@dataclass
class PropertyMatch:
    property: Optional[Property]
    created: bool = False
    candidates: list[Property] = field(default_factory=list)

    @property
    def is_ambiguous(self) -> bool:
        return self.property is None and len(self.candidates) > 1


def find_by_supply_code(properties: Sequence[Property], code: str | None) -> Optional[Property]:
    if not is_known_code(code):
        return None
    return next((prop for prop in properties if prop.has_supply_code(code)), None)


def find_by_address(properties: Sequence[Property], address: str | None) -> list[Property]:
    return [prop for prop in properties if addresses_overlap(prop.address, address)]


def build_commodity_details(
    bill: ExtractedBill, previous: Optional[CommodityDetails] = None
) -> CommodityDetails:
    """Fornitura aggiornata dai dati della bolletta; lo storico consumi viene mantenuto."""
    code = bill.supply_code
    if not is_known_code(code) and previous is not None:
        code = previous.code
    return CommodityDetails(
        supplier=bill.supplier_name or UNKNOWN_VALUE,
        status=ServiceStatus.active,
        code=code or UNKNOWN_VALUE,
        power_committed=bill.power_committed,
        annual_consumption=bill.consumption * BILLING_PERIODS_PER_YEAR,
        consumption_f1=bill.consumption_f1,
        consumption_f2=bill.consumption_f2,
        consumption_f3=bill.consumption_f3,
        raw_material_cost=bill.detected_unit_price or DEFAULT_UNIT_PRICE,
        fixed_fee_year=bill.detected_fixed_fee or DEFAULT_FIXED_FEE_YEAR,
        last_bill_amount=bill.current_raw_cost,
        history=list(previous.history) if previous is not None else [],
    )


def build_new_property(bill: ExtractedBill, *, is_resident: Optional[bool] = None) -> Property:
    if is_resident is None:
        is_resident = bool(bill.is_resident) or not bill.is_bill
    prop = Property(
        status=PropertyStatus.active,
        address=bill.address or UNKNOWN_ADDRESS,
        city=bill.city or UNKNOWN_CITY,
        is_resident=is_resident,
    )
    if bill.is_bill:
        prop.set_commodity(bill.commodity, build_commodity_details(bill))
    return prop


def apply_bill_to_property(prop: Property, bill: ExtractedBill) -> None:
    """Sovrascrive la fornitura della commodity e completa l'indirizzo placeholder."""
    if bill.is_bill:
        prop.set_commodity(
            bill.commodity, build_commodity_details(bill, prop.commodity(bill.commodity))
        )
    if bill.address and (not prop.address or prop.address == UNKNOWN_ADDRESS):
        prop.address = bill.address
        prop.city = bill.city or prop.city


def match_or_create(customer: Customer, bill: ExtractedBill) -> PropertyMatch:
    """Trova o crea l'immobile della bolletta sul cliente.

    Aggiorna i documenti annidati del cliente ma non esegue il commit. Con più
    immobili compatibili per indirizzo e nessun POD/PDR coincidente non modifica
    nulla e restituisce i candidati.
    """
    properties = customer.get_properties()

    matched = find_by_supply_code(properties, bill.supply_code)
    if matched is None and bill.address:
        candidates = find_by_address(properties, bill.address)
        if len(candidates) > 1:
            logger.info(
                "Immobile ambiguo per cliente %s: %d candidati per indirizzo",
                customer.id,
                len(candidates),
            )
            return PropertyMatch(property=None, candidates=candidates)
        if candidates:
            matched = candidates[0]

    if matched is None:
        new_property = build_new_property(bill)
        properties.append(new_property)
        customer.set_properties(properties)
        logger.info("Nuovo immobile %s sul cliente %s", new_property.id, customer.id)
        return PropertyMatch(property=new_property, created=True)

    apply_bill_to_property(matched, bill)
    customer.set_properties(properties)
    return PropertyMatch(property=matched, created=False)


__all__ = [
    "PropertyMatch",
    "apply_bill_to_property",
    "build_commodity_details",
    "build_new_property",
    "find_by_address",
    "find_by_supply_code",
    "match_or_create",
]
