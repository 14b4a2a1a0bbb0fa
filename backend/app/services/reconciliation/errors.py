"""Errori applicativi della riconciliazione.

Ambiguità e conflitti di titolarità NON sono errori: vengono restituiti come
varianti di ``ReconciliationResult``.
"""
from __future__ import annotations


class ReconciliationError(Exception):
    """Errore base della riconciliazione."""


class MissingFiscalCodeError(ReconciliationError):
    """Il documento non contiene un codice fiscale/P.IVA utilizzabile."""


class CustomerNotFoundError(ReconciliationError):
    """Cliente inesistente nel perimetro dell'agenzia."""


class PropertyNotFoundError(ReconciliationError):
    """Immobile inesistente sul cliente indicato."""


class DuplicateCustomerError(ReconciliationError):
    """Esiste già un cliente con lo stesso codice fiscale nell'agenzia."""


class InvalidMergeError(ReconciliationError):
    """Richiesta di unione/voltura non applicabile."""


__all__ = [
    "ReconciliationError",
    "MissingFiscalCodeError",
    "CustomerNotFoundError",
    "PropertyNotFoundError",
    "DuplicateCustomerError",
    "InvalidMergeError",
]
