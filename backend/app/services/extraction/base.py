"""Parsing comune delle risposte JSON del modello."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from .gemini_client import ExtractionError, GeminiClient

LOGGER = logging.getLogger(__name__)


def clean_json(text: str | None) -> str:
    """Rimuove eventuali blocchi markdown ```json ... ``` dalla risposta del modello."""
    if not text:
        return ""
    return text.replace("```json", "").replace("```", "").strip()


class JsonDocumentExtractor:
    """Documento + prompt → oggetto JSON, con errori ricondotti a ``ExtractionError``."""

    prompt: str = ""
    response_schema: Optional[Dict[str, Any]] = None

    def __init__(self, client: Optional[GeminiClient] = None) -> None:
        self._client = client

    @property
    def client(self) -> GeminiClient:
        if self._client is None:
            self._client = GeminiClient()
        return self._client

    def extract_payload(self, document: bytes, mime_type: str) -> Dict[str, Any]:
        raw = self.client.generate_json(
            document,
            mime_type,
            self.prompt,
            response_schema=self.response_schema,
        )
        try:
            data = json.loads(clean_json(raw))
        except json.JSONDecodeError as exc:
            LOGGER.error(
                "extraction_invalid_json",
                extra={"extractor": type(self).__name__, "error": str(exc)},
            )
            raise ExtractionError("Risposta di estrazione non valida") from exc
        if not isinstance(data, dict):
            raise ExtractionError("Risposta di estrazione non valida")
        return data


__all__ = ["JsonDocumentExtractor", "clean_json"]
