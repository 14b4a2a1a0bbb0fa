"""Contesto esplicito di tenant passato a ogni operazione di servizio."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.core import settings


@dataclass(frozen=True)
class TenantContext:
    """Agenzia e operatore per conto dei quali viene eseguita l'operazione."""

    agency_id: str
    user_id: Optional[str] = None
    username: Optional[str] = None
    is_admin: bool = False

    @property
    def is_super_admin(self) -> bool:
        return self.is_admin and self.agency_id == settings.super_agency_id


__all__ = ["TenantContext"]
