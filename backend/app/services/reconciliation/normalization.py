"""
Normalizzazione di codici fiscali, indirizzi e nominativi.
"""
from __future__ import annotations

import re
import unicodedata
from typing import Optional

from .config import UNKNOWN_VALUE

_NON_ALNUM = re.compile(r"[^A-Z0-9]")
_WHITESPACE = re.compile(r"\s+")


def normalize_fiscal_code(value: str | None) -> str:
    """Codice fiscale/P.IVA: solo alfanumerici maiuscoli."""
    if not value:
        return ""
    return _NON_ALNUM.sub("", str(value).upper())


def normalize_supply_code(value: str | None) -> str:
    """POD/PDR: maiuscolo senza spazi."""
    if not value:
        return ""
    return _WHITESPACE.sub("", str(value)).upper()


def is_known_code(code: str | None) -> bool:
    return bool(code) and code != UNKNOWN_VALUE


def address_key(address: str | None) -> str:
    """Chiave di confronto indirizzo: casefold e rimozione degli spazi."""
    if not address:
        return ""
    return _WHITESPACE.sub("", str(address).casefold())


def addresses_overlap(left: str | None, right: str | None) -> bool:
    """True se una chiave indirizzo contiene l'altra (indirizzi OCR parziali)."""
    left_key = address_key(left)
    right_key = address_key(right)
    if not left_key or not right_key:
        return False
    return left_key in right_key or right_key in left_key


def strip_accents(text: str) -> str:
    normalized = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in normalized if not unicodedata.combining(ch))


def split_client_name(client_name: str | None) -> tuple[Optional[str], Optional[str]]:
    """Divide "Mario Rossi Bianchi" in ("Mario", "Rossi Bianchi")."""
    if not client_name or not client_name.strip():
        return None, None
    parts = client_name.split()
    first = parts[0]
    last = " ".join(parts[1:]) or None
    return first, last


__all__ = [
    "normalize_fiscal_code",
    "normalize_supply_code",
    "is_known_code",
    "address_key",
    "addresses_overlap",
    "strip_accents",
    "split_client_name",
]
