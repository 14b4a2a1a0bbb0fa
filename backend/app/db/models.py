"""Database models - compatibility layer.

All models live in their domain packages:

- Agencies, users & audit: app.domain.users.models
- Customers (with nested properties): app.domain.customers.models
- Energy offers (CTE): app.domain.catalog.models
- Telephony operators & canvas offers: app.domain.telephony.models

This module re-exports the table models so that ``SQLModel.metadata`` is
populated by a single import.
"""
from __future__ import annotations

from app.domain.users.models import (
    Agency,
    AgencyRead,
    AuditLog,
    User,
    UserRole,
)
from app.domain.customers.models import (
    Customer,
    CustomerRead,
    CustomerType,
    MobileLine,
    Property,
    PropertyStatus,
    Vehicle,
)
from app.domain.catalog.models import (
    Cte,
    CteBase,
    CteRead,
    OfferType,
    Segment,
)
from app.domain.telephony.models import (
    CanvasOffer,
    CanvasOfferRead,
    CanvasOfferType,
    CanvasStatus,
    TelephonyOperator,
)

__all__ = [
    # Agencies, users & audit
    "Agency",
    "AgencyRead",
    "AuditLog",
    "User",
    "UserRole",
    # Customers
    "Customer",
    "CustomerRead",
    "CustomerType",
    "MobileLine",
    "Property",
    "PropertyStatus",
    "Vehicle",
    # Catalog
    "Cte",
    "CteBase",
    "CteRead",
    "OfferType",
    "Segment",
    # Telephony
    "CanvasOffer",
    "CanvasOfferRead",
    "CanvasOfferType",
    "CanvasStatus",
    "TelephonyOperator",
]
