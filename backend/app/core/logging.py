"""Configurazione logging applicativo (testo o JSON strutturato)."""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

from app.core.config import settings

# Attributi standard di LogRecord: tutto il resto arriva da ``extra=``
_RESERVED_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Un oggetto JSON per record, con gli eventuali campi ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(level: str | None = None, *, structured: bool | None = None) -> None:
    """Installa un handler su stdout sul root logger (idempotente)."""
    level_name = (level or settings.log_level or "INFO").upper()
    use_json = settings.structured_logging if structured is None else structured

    handler = logging.StreamHandler(sys.stdout)
    if use_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
        )

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level_name)

    # uvicorn gestisce i propri access log
    logging.getLogger("uvicorn.access").propagate = False


__all__ = ["JsonFormatter", "configure_logging"]
