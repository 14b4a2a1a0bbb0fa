"""Customers domain."""
from .models import (
    Commodity,
    CommodityDetails,
    ConnectivityDetails,
    ConsumptionHistoryItem,
    Customer,
    CustomerBase,
    CustomerRead,
    CustomerType,
    DocumentType,
    EfficiencyDetails,
    ExtractedBill,
    MobileLine,
    Property,
    PropertyStatus,
    ServiceStatus,
    Vehicle,
)

__all__ = [
    "Commodity",
    "CommodityDetails",
    "ConnectivityDetails",
    "ConsumptionHistoryItem",
    "Customer",
    "CustomerBase",
    "CustomerRead",
    "CustomerType",
    "DocumentType",
    "EfficiencyDetails",
    "ExtractedBill",
    "MobileLine",
    "Property",
    "PropertyStatus",
    "ServiceStatus",
    "Vehicle",
]
