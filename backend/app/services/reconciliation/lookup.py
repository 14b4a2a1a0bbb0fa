"""Accesso ai clienti sempre filtrato per agenzia."""
from __future__ import annotations

from typing import Optional, Sequence

from sqlmodel import Session, select

from app.domain.customers.models import Customer, Property
from app.services.tenancy import TenantContext

from .errors import CustomerNotFoundError, PropertyNotFoundError


def get_tenant_customer(session: Session, tenant: TenantContext, customer_id: str) -> Customer:
    customer = session.get(Customer, customer_id)
    if customer is None or customer.agency_id != tenant.agency_id:
        raise CustomerNotFoundError(f"Cliente {customer_id} non trovato")
    return customer


def list_tenant_customers(session: Session, tenant: TenantContext) -> Sequence[Customer]:
    statement = (
        select(Customer)
        .where(Customer.agency_id == tenant.agency_id)
        .order_by(Customer.created_at)
    )
    return session.exec(statement).all()


def find_property(properties: Sequence[Property], property_id: str) -> Optional[Property]:
    return next((prop for prop in properties if prop.id == property_id), None)


def require_property(customer: Customer, properties: Sequence[Property], property_id: str) -> Property:
    prop = find_property(properties, property_id)
    if prop is None:
        raise PropertyNotFoundError(
            f"Immobile {property_id} non trovato sul cliente {customer.id}"
        )
    return prop


__all__ = [
    "find_property",
    "get_tenant_customer",
    "list_tenant_customers",
    "require_property",
]
