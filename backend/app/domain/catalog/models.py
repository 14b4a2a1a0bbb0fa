"""Catalog domain models: offerte energia (CTE) visibili alle agenzie."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel

from app.domain.customers.models import Commodity
from app.domain.identifiers import generate_id


class Segment(str, Enum):
    consumer_luce = "consumer_luce"
    consumer_gas = "consumer_gas"
    business_luce = "business_luce"
    business_gas = "business_gas"


class OfferType(str, Enum):
    fixed = "FIXED"
    variable = "VARIABLE"


class IndexType(str, Enum):
    pun = "PUN"
    psv = "PSV"


class CteBase(SQLModel):
    """Condizioni Tecnico-Economiche di un fornitore."""
    offer_code: str = Field(index=True)
    segment: Segment
    supplier_name: str
    offer_name: str
    offer_type: OfferType = Field(default=OfferType.fixed)
    commodity: Commodity
    f0: float = 0.0
    f1: float = 0.0
    f2: float = 0.0
    f3: float = 0.0
    index_type: Optional[IndexType] = None
    spread_unit: str = "€/kWh"
    other_variable_cost: float = 0.0
    other_cost_desc: Optional[str] = None
    fixed_fee_value: float = 0.0
    fixed_fee_unit: str = "€/anno"
    valid_until: Optional[str] = None
    notes_short: Optional[str] = None


class Cte(CteBase, table=True):
    __tablename__ = "cte"

    id: str = Field(default_factory=lambda: generate_id("cte"), primary_key=True)
    is_default: bool = Field(default=False)
    visible_to_agency_ids: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    uploaded_by_user_id: Optional[str] = None
    uploaded_at: datetime = Field(default_factory=datetime.utcnow)


class CteRead(CteBase):
    id: str
    is_default: bool
    visible_to_agency_ids: list[str]
    uploaded_by_user_id: Optional[str] = None
    uploaded_at: datetime
