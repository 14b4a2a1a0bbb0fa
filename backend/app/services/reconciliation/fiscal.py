"""Classificazione del codice fiscale: persona fisica o azienda.

Tre livelli, in ordine di priorità:

1. formato del codice fiscale personale (16 caratteri, omocodia ammessa) → PERSON;
2. partita IVA di 11 cifre → COMPANY;
3. solo per codici esteri/malformati: suggerimento dell'AI o forma societaria
   nel nominativo → COMPANY, altrimenti PERSON.

L'evidenza di formato prevale sempre sulle euristiche.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from app.domain.customers.models import CustomerType

from .config import COMPANY_NAME_KEYWORDS, OMOCODIA_LETTERS
from .normalization import normalize_fiscal_code, strip_accents

logger = logging.getLogger(__name__)

_DIGIT = f"[0-9{OMOCODIA_LETTERS}]"
PERSONAL_CODE_PATTERN = re.compile(
    rf"^[A-Z]{{6}}{_DIGIT}{{2}}[A-Z]{_DIGIT}{{2}}[A-Z]{_DIGIT}{{3}}[A-Z]$"
)
COMPANY_CODE_PATTERN = re.compile(r"^[0-9]{11}$")
_COMPANY_KEYWORD_PATTERN = re.compile(
    r"\b(" + "|".join(re.escape(keyword) for keyword in COMPANY_NAME_KEYWORDS) + r")\b"
)


@dataclass(frozen=True)
class FiscalClassification:
    type: CustomerType
    normalized_code: str
    from_format: bool


def has_company_keyword(client_name: str | None) -> bool:
    """Cerca una forma societaria nel nominativo ("S.r.l.", "SAS", "Società"...)."""
    if not client_name:
        return False
    compact = strip_accents(client_name).upper().replace(".", "")
    return bool(_COMPANY_KEYWORD_PATTERN.search(compact))


def classify_fiscal_code(
    raw: str | None,
    *,
    ai_hint: Optional[CustomerType] = None,
    client_name: str | None = None,
) -> FiscalClassification:
    code = normalize_fiscal_code(raw)

    if PERSONAL_CODE_PATTERN.match(code):
        return FiscalClassification(CustomerType.person, code, from_format=True)
    if COMPANY_CODE_PATTERN.match(code):
        return FiscalClassification(CustomerType.company, code, from_format=True)

    if ai_hint == CustomerType.company or has_company_keyword(client_name):
        detected = CustomerType.company
    else:
        detected = CustomerType.person
    logger.debug(
        "Codice fiscale '%s' non riconosciuto dal formato: classificato %s",
        code,
        detected.value,
    )
    return FiscalClassification(detected, code, from_format=False)


__all__ = [
    "FiscalClassification",
    "PERSONAL_CODE_PATTERN",
    "COMPANY_CODE_PATTERN",
    "classify_fiscal_code",
    "has_company_keyword",
]
