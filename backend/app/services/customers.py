from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import datetime
from typing import Iterable, Sequence

from sqlmodel import Session

from app.db.models import Customer, CustomerType, Property
from app.schemas import CustomerCreate, CustomerUpdate
from app.services.audit import record_audit_log
from app.services.reconciliation.errors import DuplicateCustomerError, MissingFiscalCodeError
from app.services.reconciliation.lookup import get_tenant_customer, list_tenant_customers
from app.services.reconciliation.normalization import (
    address_key,
    normalize_fiscal_code,
    normalize_supply_code,
)
from app.services.reconciliation.resolver import find_customer_by_fiscal_code
from app.services.tenancy import TenantContext

logger = logging.getLogger(__name__)

CUSTOMER_DELETE_ACTION = "CUSTOMER_DELETE"

_LIST_FIELDS = ("properties", "mobile_lines", "vehicles")


def _with_normalized_codes(properties: Iterable[Property]) -> list[Property]:
    """POD/PDR inseriti a mano nello stesso formato usato dalla riconciliazione."""
    normalized = []
    for prop in properties:
        prop = prop.model_copy(deep=True)
        for details in (prop.electricity, prop.gas):
            if details is not None and details.code:
                details.code = normalize_supply_code(details.code)
        normalized.append(prop)
    return normalized


class CustomersService:

    @staticmethod
    def list_customers(session: Session, tenant: TenantContext) -> Sequence[Customer]:
        return list_tenant_customers(session, tenant)

    @staticmethod
    def get_customer(session: Session, tenant: TenantContext, customer_id: str) -> Customer:
        return get_tenant_customer(session, tenant, customer_id)

    @staticmethod
    def create_customer(
        session: Session, tenant: TenantContext, payload: CustomerCreate
    ) -> Customer:
        fiscal_code = normalize_fiscal_code(payload.fiscal_code)
        if not fiscal_code:
            raise MissingFiscalCodeError("Codice fiscale / P.IVA obbligatorio")
        if find_customer_by_fiscal_code(session, tenant, fiscal_code) is not None:
            raise DuplicateCustomerError(
                f"Esiste già un cliente con codice fiscale {fiscal_code}"
            )

        data = payload.model_dump(exclude=set(_LIST_FIELDS))
        data["fiscal_code"] = fiscal_code
        customer = Customer(agency_id=tenant.agency_id, **data)
        customer.set_properties(_with_normalized_codes(payload.properties))
        customer.set_mobile_lines(payload.mobile_lines)
        customer.set_vehicles(payload.vehicles)
        session.add(customer)
        session.commit()
        session.refresh(customer)
        logger.info("Cliente %s creato manualmente (agenzia %s)", customer.id, tenant.agency_id)
        return customer

    @staticmethod
    def update_customer(
        session: Session,
        tenant: TenantContext,
        customer_id: str,
        payload: CustomerUpdate,
    ) -> Customer:
        customer = get_tenant_customer(session, tenant, customer_id)
        changes = payload.model_dump(exclude_unset=True, exclude=set(_LIST_FIELDS))
        for field_name, value in changes.items():
            setattr(customer, field_name, value)

        if payload.properties is not None:
            customer.set_properties(_with_normalized_codes(payload.properties))
        if payload.mobile_lines is not None:
            customer.set_mobile_lines(payload.mobile_lines)
        if payload.vehicles is not None:
            customer.set_vehicles(payload.vehicles)

        customer.updated_at = datetime.utcnow()
        session.add(customer)
        session.commit()
        session.refresh(customer)
        return customer

    @staticmethod
    def delete_customer(session: Session, tenant: TenantContext, customer_id: str) -> None:
        customer = get_tenant_customer(session, tenant, customer_id)
        details = f"Cliente {customer.display_name} ({customer.fiscal_code}) eliminato"
        session.delete(customer)
        session.commit()
        record_audit_log(
            session, tenant=tenant, action=CUSTOMER_DELETE_ACTION, details=details
        )

    @staticmethod
    def get_families(
        session: Session, tenant: TenantContext
    ) -> list[tuple[str, Customer | None, list[Customer]]]:
        """Raggruppa i clienti privati per nucleo (``family_id`` o id proprio).

        Restituisce ``(family_id, capofamiglia, membri)`` nell'ordine di
        creazione del primo membro.
        """
        groups: "OrderedDict[str, list[Customer]]" = OrderedDict()
        for customer in list_tenant_customers(session, tenant):
            if customer.type != CustomerType.person:
                continue
            groups.setdefault(customer.family_id or customer.id, []).append(customer)

        families = []
        for family_id, members in groups.items():
            head = next(
                (member for member in members if member.id == family_id),
                None,
            ) or next((member for member in members if member.is_family_head), None)
            families.append((family_id, head, members))
        return families

    @staticmethod
    def family_addresses(members: Sequence[Customer]) -> dict[str, str]:
        """Indirizzi distinti del nucleo, indicizzati per chiave normalizzata."""
        addresses: dict[str, str] = {}
        for member in members:
            for prop in member.get_properties():
                key = address_key(prop.address)
                if key and key not in addresses:
                    addresses[key] = prop.address
        return addresses


__all__ = ["CUSTOMER_DELETE_ACTION", "CustomersService"]
