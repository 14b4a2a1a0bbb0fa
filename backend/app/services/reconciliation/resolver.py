"""Ricerca o creazione del cliente per codice fiscale, nel perimetro dell'agenzia."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from app.domain.customers.models import Customer, CustomerType
from app.services.tenancy import TenantContext

from .config import PLACEHOLDER_FIRST_NAME, PLACEHOLDER_LAST_NAME
from .errors import MissingFiscalCodeError
from .normalization import normalize_fiscal_code, split_client_name

logger = logging.getLogger(__name__)

_PLACEHOLDER_FULL_NAME = f"{PLACEHOLDER_FIRST_NAME} {PLACEHOLDER_LAST_NAME}"


def find_customer_by_fiscal_code(
    session: Session, tenant: TenantContext, fiscal_code: str
) -> Optional[Customer]:
    statement = select(Customer).where(
        Customer.agency_id == tenant.agency_id,
        Customer.fiscal_code == normalize_fiscal_code(fiscal_code),
    )
    return session.exec(statement).first()


def _apply_client_name(customer: Customer, client_name: str | None) -> None:
    if customer.type == CustomerType.company:
        customer.company_name = (client_name or "").strip() or _PLACEHOLDER_FULL_NAME
        return
    first, last = split_client_name(client_name)
    customer.first_name = first or PLACEHOLDER_FIRST_NAME
    customer.last_name = last or PLACEHOLDER_LAST_NAME


def _has_placeholder_name(customer: Customer) -> bool:
    if customer.type == CustomerType.company:
        return not customer.company_name or customer.company_name == _PLACEHOLDER_FULL_NAME
    return not customer.first_name or customer.first_name == PLACEHOLDER_FIRST_NAME


def resolve_or_create(
    session: Session,
    tenant: TenantContext,
    fiscal_code: str | None,
    classified_type: CustomerType,
    client_name: str | None = None,
) -> Customer:
    """Restituisce il cliente con quel codice fiscale, creandolo se assente.

    Idempotente: chiamate ripetute con lo stesso codice normalizzato non creano
    duplicati. Sul cliente esistente il tipo viene riallineato alla
    classificazione corrente e i nominativi placeholder vengono completati.
    """
    code = normalize_fiscal_code(fiscal_code)
    if not code:
        raise MissingFiscalCodeError("Codice fiscale/P.IVA non presente nel documento")

    customer = find_customer_by_fiscal_code(session, tenant, code)
    if customer is not None:
        changed = False
        if customer.type != classified_type:
            logger.warning(
                "Tipo cliente riallineato %s -> %s (cliente=%s)",
                customer.type.value,
                classified_type.value,
                customer.id,
            )
            customer.type = classified_type
            changed = True
        if client_name and client_name.strip() and _has_placeholder_name(customer):
            _apply_client_name(customer, client_name)
            changed = True
        if changed:
            customer.updated_at = datetime.utcnow()
            session.add(customer)
            session.commit()
            session.refresh(customer)
        return customer

    customer = Customer(
        agency_id=tenant.agency_id,
        fiscal_code=code,
        type=classified_type,
        properties=[],
        mobile_lines=[],
        vehicles=[],
    )
    _apply_client_name(customer, client_name)
    session.add(customer)
    session.commit()
    session.refresh(customer)
    logger.info(
        "Nuovo cliente %s creato (agenzia=%s, tipo=%s)",
        customer.id,
        tenant.agency_id,
        classified_type.value,
    )
    return customer


__all__ = ["find_customer_by_fiscal_code", "resolve_or_create"]
