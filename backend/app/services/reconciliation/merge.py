"""Unione di clienti duplicati e di indirizzi (edifici) all'interno di un nucleo familiare."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlmodel import Session, select

from app.domain.customers.models import Customer, CustomerType, Property
from app.services.audit import record_audit_log
from app.services.tenancy import TenantContext

from .errors import CustomerNotFoundError, InvalidMergeError
from .lookup import get_tenant_customer
from .normalization import address_key

logger = logging.getLogger(__name__)

CUSTOMER_MERGE_ACTION = "CUSTOMER_MERGE"
BUILDING_MERGE_ACTION = "BUILDING_MERGE"

_BACKFILL_FIELDS = ("email", "phone", "birth_date", "birth_place")
_SUB_RECORDS = ("electricity", "gas", "connectivity")


def merge_customers(
    session: Session,
    tenant: TenantContext,
    target_id: str,
    source_id: str,
) -> Customer:
    """Sposta immobili, linee mobili e veicoli della sorgente sul cliente target.

    I campi anagrafici del target prevalgono; quelli vuoti vengono completati
    dalla sorgente. Il target viene salvato e poi la sorgente eliminata, con due
    commit distinti.
    """
    if target_id == source_id:
        raise InvalidMergeError("Cliente di destinazione e sorgente coincidono")
    target = get_tenant_customer(session, tenant, target_id)
    source = get_tenant_customer(session, tenant, source_id)

    target.set_properties(target.get_properties() + source.get_properties())
    target.set_mobile_lines(target.get_mobile_lines() + source.get_mobile_lines())
    target.set_vehicles(target.get_vehicles() + source.get_vehicles())
    for field_name in _BACKFILL_FIELDS:
        if not getattr(target, field_name) and getattr(source, field_name):
            setattr(target, field_name, getattr(source, field_name))
    target.updated_at = datetime.utcnow()
    session.add(target)
    session.commit()

    source_fiscal_code = source.fiscal_code
    session.delete(source)
    session.commit()
    session.refresh(target)

    record_audit_log(
        session,
        tenant=tenant,
        action=CUSTOMER_MERGE_ACTION,
        details=f"Cliente {source_fiscal_code} unito in {target.fiscal_code}",
    )
    logger.info("Cliente %s unito in %s", source_id, target_id)
    return target


def list_family_members(session: Session, tenant: TenantContext, family_id: str) -> list[Customer]:
    """Membri del nucleo (solo persone fisiche): ``family_id`` uguale, oppure il capofamiglia stesso."""
    statement = (
        select(Customer)
        .where(Customer.agency_id == tenant.agency_id)
        .where(Customer.type == CustomerType.person)
        .where(or_(Customer.family_id == family_id, Customer.id == family_id))
        .order_by(Customer.created_at)
    )
    return list(session.exec(statement).all())


def merge_property_into(target: Property, source: Property) -> None:
    """Completa le forniture mancanti del target con quelle della sorgente."""
    for field_name in _SUB_RECORDS:
        if getattr(target, field_name) is None and getattr(source, field_name) is not None:
            setattr(target, field_name, getattr(source, field_name))
    if not target.efficiency and source.efficiency:
        target.efficiency = list(source.efficiency)
    target.is_resident = target.is_resident or source.is_resident


def _find_template(members: list[Customer], key: str) -> Optional[Property]:
    for member in members:
        for prop in member.get_properties():
            if address_key(prop.address) == key:
                return prop
    return None


def merge_buildings(
    session: Session,
    tenant: TenantContext,
    family_id: str,
    target_address: str,
    source_address: str,
) -> list[Customer]:
    """Riconduce all'indirizzo target gli immobili del nucleo all'indirizzo sorgente.

    Per ogni membro: se possiede già un immobile all'indirizzo target le
    forniture vengono fuse e l'immobile sorgente rimosso, altrimenti l'immobile
    sorgente viene solo rinominato (correzione di indirizzo). Ogni membro
    modificato viene salvato singolarmente.
    """
    target_key = address_key(target_address)
    source_key = address_key(source_address)
    if not target_key or not source_key:
        raise InvalidMergeError("Indirizzi di unione non validi")
    if target_key == source_key:
        raise InvalidMergeError("Indirizzo di destinazione e sorgente coincidono")

    members = list_family_members(session, tenant, family_id)
    if not members:
        raise CustomerNotFoundError(f"Nucleo familiare {family_id} non trovato")
    template = _find_template(members, target_key)
    if template is None:
        raise InvalidMergeError("Indirizzo di destinazione non presente nel nucleo")

    updated: list[Customer] = []
    for member in members:
        properties = member.get_properties()
        sources = [prop for prop in properties if address_key(prop.address) == source_key]
        if not sources:
            continue
        target_prop = next(
            (prop for prop in properties if address_key(prop.address) == target_key), None
        )
        if target_prop is not None:
            for source_prop in sources:
                merge_property_into(target_prop, source_prop)
            source_ids = {prop.id for prop in sources}
            properties = [prop for prop in properties if prop.id not in source_ids]
        else:
            for source_prop in sources:
                source_prop.address = template.address
                source_prop.city = template.city
                source_prop.zip_code = template.zip_code

        member.set_properties(properties)
        member.updated_at = datetime.utcnow()
        session.add(member)
        session.commit()
        session.refresh(member)
        updated.append(member)

    record_audit_log(
        session,
        tenant=tenant,
        action=BUILDING_MERGE_ACTION,
        details=(
            f"Indirizzo '{source_address}' unito in '{template.address}' "
            f"({len(updated)} clienti aggiornati)"
        ),
    )
    logger.info(
        "Unione indirizzi nel nucleo %s: %d clienti aggiornati", family_id, len(updated)
    )
    return updated


__all__ = [
    "BUILDING_MERGE_ACTION",
    "CUSTOMER_MERGE_ACTION",
    "list_family_members",
    "merge_buildings",
    "merge_customers",
    "merge_property_into",
]
