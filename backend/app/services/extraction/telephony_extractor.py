"""Estrazione di bollette telefoniche e listini canvas degli operatori."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from app.domain.telephony.models import (
    UNLIMITED,
    CanvasExtraction,
    ExtractedTelephonyBill,
)

from .base import JsonDocumentExtractor
from .gemini_client import ExtractionError
from .prompting import (
    CANVAS_PROMPT,
    CANVAS_RESPONSE_SCHEMA,
    TELEPHONY_BILL_PROMPT,
    TELEPHONY_BILL_RESPONSE_SCHEMA,
)

LOGGER = logging.getLogger(__name__)

UNKNOWN_OPERATOR = "Gestore Sconosciuto"


def normalize_allowance(value: Any) -> Optional[str]:
    """GB o minuti: ``UNLIMITED`` se illimitati, altrimenti il numero (0 se illeggibile)."""
    if value is None:
        return None
    if isinstance(value, str) and UNLIMITED in value.upper():
        return UNLIMITED
    try:
        number = float(str(value).replace(",", ".").split()[0])
    except (ValueError, IndexError):
        number = 0.0
    return f"{number:g}"


def normalize_canvas_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    offers = data.get("offers")
    cleaned = []
    for offer in offers if isinstance(offers, list) else []:
        if not isinstance(offer, dict):
            continue
        offer = {key: value for key, value in offer.items() if value is not None}
        for key in ("data_gb", "minutes"):
            if key in offer:
                offer[key] = normalize_allowance(offer[key])
        cleaned.append(offer)
    return {"operator_name": data.get("operator_name") or UNKNOWN_OPERATOR, "offers": cleaned}


class TelephonyBillExtractor(JsonDocumentExtractor):
    """Bolletta telefonica → ``ExtractedTelephonyBill``."""

    prompt = TELEPHONY_BILL_PROMPT.strip()
    response_schema = TELEPHONY_BILL_RESPONSE_SCHEMA

    def extract(self, document: bytes, mime_type: str) -> ExtractedTelephonyBill:
        data = self.extract_payload(document, mime_type)
        payload = {key: value for key, value in data.items() if value is not None}
        try:
            bill = ExtractedTelephonyBill.model_validate(payload)
        except ValidationError as exc:
            LOGGER.error("telephony_extraction_invalid_payload", extra={"error": str(exc)})
            raise ExtractionError("Dati estratti non validi") from exc
        LOGGER.info("Bolletta telefonica estratta: tipo=%s operatore=%s", bill.type.value, bill.operator)
        return bill


class CanvasExtractor(JsonDocumentExtractor):
    """Listino canvas (PDF/immagine) → operatore e offerte."""

    prompt = CANVAS_PROMPT.strip()
    response_schema = CANVAS_RESPONSE_SCHEMA

    def extract(self, document: bytes, mime_type: str) -> CanvasExtraction:
        data = self.extract_payload(document, mime_type)
        try:
            extraction = CanvasExtraction.model_validate(normalize_canvas_payload(data))
        except ValidationError as exc:
            LOGGER.error("canvas_extraction_invalid_payload", extra={"error": str(exc)})
            raise ExtractionError("Listino estratto non valido") from exc
        LOGGER.info(
            "Listino %s estratto: %d offerte", extraction.operator_name, len(extraction.offers)
        )
        return extraction


telephony_bill_extractor = TelephonyBillExtractor()
canvas_extractor = CanvasExtractor()

__all__ = [
    "CanvasExtractor",
    "TelephonyBillExtractor",
    "UNKNOWN_OPERATOR",
    "canvas_extractor",
    "normalize_allowance",
    "normalize_canvas_payload",
    "telephony_bill_extractor",
]
