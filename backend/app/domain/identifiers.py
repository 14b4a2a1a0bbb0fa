"""Generazione identificativi stringa con prefisso (es. ``cust_3f9a...``)."""
from __future__ import annotations

import uuid


def generate_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


__all__ = ["generate_id"]
