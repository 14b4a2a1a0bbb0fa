"""Riconciliazione bollette: clienti, immobili, conflitti di titolarità e unioni."""
from .conflicts import OwnershipConflict, detect_conflict
from .errors import (
    CustomerNotFoundError,
    DuplicateCustomerError,
    InvalidMergeError,
    MissingFiscalCodeError,
    PropertyNotFoundError,
    ReconciliationError,
)
from .fiscal import FiscalClassification, classify_fiscal_code
from .matcher import PropertyMatch, match_or_create
from .merge import merge_buildings, merge_customers
from .resolver import resolve_or_create
from .results import ReconciliationResult, ReconciliationStatus
from .service import ReconciliationService, reconciliation_service
from .transfer import transfer_property

__all__ = [
    "CustomerNotFoundError",
    "DuplicateCustomerError",
    "FiscalClassification",
    "InvalidMergeError",
    "MissingFiscalCodeError",
    "OwnershipConflict",
    "PropertyMatch",
    "PropertyNotFoundError",
    "ReconciliationError",
    "ReconciliationResult",
    "ReconciliationService",
    "ReconciliationStatus",
    "classify_fiscal_code",
    "detect_conflict",
    "match_or_create",
    "merge_buildings",
    "merge_customers",
    "reconciliation_service",
    "resolve_or_create",
    "transfer_property",
]
