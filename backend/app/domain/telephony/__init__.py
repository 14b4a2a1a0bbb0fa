"""Telephony domain."""
from .models import (
    UNLIMITED,
    CanvasExtraction,
    CanvasOffer,
    CanvasOfferBase,
    CanvasOfferDraft,
    CanvasOfferRead,
    CanvasOfferType,
    CanvasStatus,
    ExtractedTelephonyBill,
    TargetSegment,
    TelephonyLineType,
    TelephonyOperator,
)

__all__ = [
    "CanvasExtraction",
    "CanvasOffer",
    "CanvasOfferBase",
    "CanvasOfferDraft",
    "CanvasOfferRead",
    "CanvasOfferType",
    "CanvasStatus",
    "ExtractedTelephonyBill",
    "TargetSegment",
    "TelephonyLineType",
    "TelephonyOperator",
    "UNLIMITED",
]
