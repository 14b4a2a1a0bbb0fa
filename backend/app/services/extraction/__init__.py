"""Estrazione dati da documenti tramite servizio AI esterno (Gemini)."""

from .gemini_client import ExtractionError, GeminiClient, GeminiConfig
from .base import JsonDocumentExtractor, clean_json
from .prompting import BILL_RESPONSE_SCHEMA, build_bill_prompt
from .bill_extractor import BillExtractor, bill_extractor, normalize_bill_payload
from .telephony_extractor import (
    CanvasExtractor,
    TelephonyBillExtractor,
    canvas_extractor,
    normalize_allowance,
    normalize_canvas_payload,
    telephony_bill_extractor,
)
from .cte_extractor import CteExtractor, cte_extractor, normalize_cte_payload

__all__ = [
    "BILL_RESPONSE_SCHEMA",
    "BillExtractor",
    "CanvasExtractor",
    "CteExtractor",
    "ExtractionError",
    "GeminiClient",
    "GeminiConfig",
    "JsonDocumentExtractor",
    "TelephonyBillExtractor",
    "bill_extractor",
    "build_bill_prompt",
    "canvas_extractor",
    "clean_json",
    "cte_extractor",
    "normalize_allowance",
    "normalize_bill_payload",
    "normalize_canvas_payload",
    "normalize_cte_payload",
    "telephony_bill_extractor",
]
