"""Estrazione strutturata di bollette e carte d'identità tramite Gemini."""
from __future__ import annotations

import logging
from typing import Any, Dict

from pydantic import ValidationError

from app.domain.customers.models import ExtractedBill

from .base import JsonDocumentExtractor, clean_json
from .gemini_client import ExtractionError
from .prompting import BILL_RESPONSE_SCHEMA, build_bill_prompt

LOGGER = logging.getLogger(__name__)

# Ripartizione di default del consumo sulle fasce F1/F2/F3
DEFAULT_BAND_SPLIT = (0.35, 0.30, 0.35)
DEFAULT_UNIT_PRICE_FOR_COST = 0.15


def normalize_bill_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    """Completa i campi numerici mancanti e ripartisce il consumo per fasce."""
    payload = dict(data)
    consumption = payload.get("consumption") or 0
    if not payload.get("consumption_f1") and consumption:
        f1, f2, f3 = DEFAULT_BAND_SPLIT
        payload["consumption_f1"] = consumption * f1
        payload["consumption_f2"] = consumption * f2
        payload["consumption_f3"] = consumption * f3
    payload["consumption"] = consumption
    for key in ("consumption_f1", "consumption_f2", "consumption_f3"):
        payload[key] = payload.get(key) or 0
    payload["current_raw_cost"] = consumption * (
        payload.get("detected_unit_price") or DEFAULT_UNIT_PRICE_FOR_COST
    )
    if payload.get("pod_pdr"):
        payload["pod_pdr"] = "".join(str(payload["pod_pdr"]).split()).upper()
    customer_type = payload.pop("customer_type", None)
    if customer_type in ("PERSON", "COMPANY"):
        payload["ai_customer_type"] = customer_type
    payload.setdefault("confidence_map", {"supplier": "high", "consumption": "high"})
    return {key: value for key, value in payload.items() if value is not None}


class BillExtractor(JsonDocumentExtractor):
    """Documento (PDF/immagine) → ``ExtractedBill``."""

    prompt = build_bill_prompt()
    response_schema = BILL_RESPONSE_SCHEMA

    def extract(self, document: bytes, mime_type: str) -> ExtractedBill:
        data = self.extract_payload(document, mime_type)
        try:
            bill = ExtractedBill.model_validate(normalize_bill_payload(data))
        except ValidationError as exc:
            LOGGER.error("bill_extraction_invalid_payload", extra={"error": str(exc)})
            raise ExtractionError("Dati estratti non validi") from exc
        LOGGER.info(
            "Documento estratto: tipo=%s commodity=%s",
            bill.document_type.value,
            bill.commodity.value,
        )
        return bill


bill_extractor = BillExtractor()

__all__ = ["BillExtractor", "bill_extractor", "clean_json", "normalize_bill_payload"]
