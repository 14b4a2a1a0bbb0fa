"""Esito dell'analisi di una bolletta."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from app.domain.customers.models import Customer, ExtractedBill, Property


class ReconciliationStatus(str, Enum):
    success = "SUCCESS"
    ambiguous_property = "AMBIGUOUS_PROPERTY"
    conflict_existing_owner = "CONFLICT_EXISTING_OWNER"


@dataclass
class ReconciliationResult:
    status: ReconciliationStatus
    extracted: ExtractedBill
    customer: Optional[Customer] = None
    existing_customer_id: Optional[str] = None
    existing_properties: list[Property] = field(default_factory=list)
    conflict_owner: Optional[Customer] = None
    conflict_property: Optional[Property] = None

    @classmethod
    def success(cls, extracted: ExtractedBill, customer: Customer) -> "ReconciliationResult":
        return cls(ReconciliationStatus.success, extracted, customer=customer)

    @classmethod
    def ambiguous(
        cls, extracted: ExtractedBill, customer: Customer, candidates: list[Property]
    ) -> "ReconciliationResult":
        return cls(
            ReconciliationStatus.ambiguous_property,
            extracted,
            existing_customer_id=customer.id,
            existing_properties=list(candidates),
        )

    @classmethod
    def conflict(
        cls, extracted: ExtractedBill, owner: Customer, prop: Property
    ) -> "ReconciliationResult":
        return cls(
            ReconciliationStatus.conflict_existing_owner,
            extracted,
            conflict_owner=owner,
            conflict_property=prop,
        )


__all__ = ["ReconciliationResult", "ReconciliationStatus"]
