"""Estrazione delle Condizioni Tecnico-Economiche (CTE) da PDF del fornitore."""
from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Dict, Optional

from pydantic import ValidationError

from app.domain.catalog.models import Segment
from app.schemas import CteCreate

from .base import JsonDocumentExtractor
from .gemini_client import ExtractionError
from .prompting import CTE_PROMPT, CTE_RESPONSE_SCHEMA

LOGGER = logging.getLogger(__name__)

_NON_CODE_CHARS = re.compile(r"[^A-Z0-9]+")


def _offer_code(offer_name: Optional[str], today: date) -> str:
    base = _NON_CODE_CHARS.sub("_", (offer_name or "CTE").upper()).strip("_") or "CTE"
    return f"{base}_{today:%Y%m%d}"


def normalize_cte_payload(data: Dict[str, Any], *, today: Optional[date] = None) -> Dict[str, Any]:
    """Segmento consumer dalla commodity, fasce mancanti = F0, costi accessori a zero."""
    payload = {key: value for key, value in data.items() if value is not None}
    commodity = payload.get("commodity") or "luce"
    payload["commodity"] = commodity
    payload["segment"] = (
        Segment.consumer_luce.value if commodity == "luce" else Segment.consumer_gas.value
    )
    f0 = payload.get("f0") or payload.get("f1") or 0.0
    payload["f0"] = f0
    for band in ("f1", "f2", "f3"):
        payload[band] = payload.get(band) or f0
    payload.setdefault("spread_unit", "€/kWh" if commodity == "luce" else "€/Smc")
    if not payload.get("offer_code"):
        payload["offer_code"] = _offer_code(payload.get("offer_name"), today or date.today())
    payload["other_variable_cost"] = 0.0
    payload["fixed_fee_unit"] = "€/anno"
    payload["is_default"] = False
    payload["visible_to_agency_ids"] = []
    return payload


class CteExtractor(JsonDocumentExtractor):
    """PDF CTE → ``CteCreate`` pronto per il catalogo."""

    prompt = CTE_PROMPT.strip()
    response_schema = CTE_RESPONSE_SCHEMA

    def extract(self, document: bytes, mime_type: str) -> CteCreate:
        data = self.extract_payload(document, mime_type)
        try:
            cte = CteCreate.model_validate(normalize_cte_payload(data))
        except ValidationError as exc:
            LOGGER.error("cte_extraction_invalid_payload", extra={"error": str(exc)})
            raise ExtractionError("Offerta estratta non valida") from exc
        LOGGER.info("CTE estratta: %s %s (%s)", cte.supplier_name, cte.offer_name, cte.offer_code)
        return cte


cte_extractor = CteExtractor()

__all__ = ["CteExtractor", "cte_extractor", "normalize_cte_payload"]
