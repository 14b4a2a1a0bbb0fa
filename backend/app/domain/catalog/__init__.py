"""Catalog domain."""
from .models import Cte, CteBase, CteRead, IndexType, OfferType, Segment

__all__ = ["Cte", "CteBase", "CteRead", "IndexType", "OfferType", "Segment"]
