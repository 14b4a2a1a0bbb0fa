"""Minimal HTTP client for the Google Gemini ``generateContent`` API."""
from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from app.core import settings

LOGGER = logging.getLogger(__name__)


class ExtractionError(RuntimeError):
    """Analisi del documento non riuscita (errore o timeout del servizio esterno)."""


@dataclass(frozen=True)
class GeminiConfig:
    """Configuration for the Gemini client."""

    api_key: Optional[str] = field(default_factory=lambda: settings.gemini_api_key)
    model: str = field(default_factory=lambda: settings.gemini_model)
    base_url: str = field(default_factory=lambda: settings.gemini_endpoint)
    timeout: float = field(default_factory=lambda: settings.gemini_timeout)


class GeminiClient:
    """Very small wrapper over the Gemini REST API (document + prompt → JSON text)."""

    def __init__(self, config: Optional[GeminiConfig] = None, *, http: Any = None):
        self._config = config or GeminiConfig()
        self._http = http or requests

    def generate_json(
        self,
        document: bytes,
        mime_type: str,
        prompt: str,
        *,
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Send a document with a prompt and return the raw JSON text produced."""

        if not self._config.api_key:
            raise ExtractionError("Gemini API key non configurata")
        if not document:
            raise ValueError("document must be non-empty")
        if not prompt:
            raise ValueError("prompt must be non-empty")

        url = f"{self._config.base_url.rstrip('/')}/models/{self._config.model}:generateContent"
        generation_config: Dict[str, Any] = {"responseMimeType": "application/json"}
        if response_schema:
            generation_config["responseSchema"] = response_schema
        payload: Dict[str, Any] = {
            "contents": [
                {
                    "parts": [
                        {
                            "inline_data": {
                                "mime_type": mime_type,
                                "data": base64.b64encode(document).decode("ascii"),
                            }
                        },
                        {"text": prompt},
                    ]
                }
            ],
            "generationConfig": generation_config,
        }

        try:
            response = self._http.post(
                url,
                params={"key": self._config.api_key},
                json=payload,
                timeout=self._config.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.Timeout as exc:
            LOGGER.error("gemini_timeout", extra={"model": self._config.model, "timeout": self._config.timeout})
            raise ExtractionError(f"Gemini timeout after {self._config.timeout}s") from exc
        except requests.RequestException as exc:
            LOGGER.error("gemini_error", extra={"model": self._config.model, "error": str(exc)})
            raise ExtractionError(f"Gemini request failed: {exc}") from exc
        except ValueError as exc:
            raise ExtractionError("Unexpected Gemini response format") from exc

        try:
            parts = data["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError) as exc:
            raise ExtractionError("Unexpected Gemini response format") from exc
        if not text.strip():
            raise ExtractionError("No data returned from Gemini")
        return text
