from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.db.models import (
    AgencyRead,
    CteBase,
    CustomerRead,
    CustomerType,
    MobileLine,
    Property,
    UserRole,
    Vehicle,
)
from app.domain.customers.models import ExtractedBill
from app.domain.telephony.models import CanvasOfferBase, CanvasOfferRead, ExtractedTelephonyBill

PASSWORD_MIN_LENGTH = 8


class LoginRequest(BaseModel):
    username: str
    password: str


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    full_name: str = ""
    agency_id: str
    role: UserRole
    is_active: bool
    created_at: datetime


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead


class UserCreate(BaseModel):
    username: str
    password: str
    full_name: str = ""
    agency_id: Optional[str] = None
    role: UserRole = UserRole.agent

    @field_validator("username")
    @classmethod
    def normalize_username(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("Username obbligatorio")
        return value

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < PASSWORD_MIN_LENGTH:
            raise ValueError(
                f"La password deve contenere almeno {PASSWORD_MIN_LENGTH} caratteri"
            )
        return value


class AgencyCreate(BaseModel):
    name: str
    vat_number: str = ""


class CustomerCreate(BaseModel):
    fiscal_code: str
    type: CustomerType = CustomerType.person
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    ceo: Optional[str] = None
    commercial_referent: Optional[str] = None
    family_id: Optional[str] = None
    is_family_head: bool = False
    email: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[str] = None
    birth_place: Optional[str] = None
    gender: Optional[str] = None
    properties: list[Property] = Field(default_factory=list)
    mobile_lines: list[MobileLine] = Field(default_factory=list)
    vehicles: list[Vehicle] = Field(default_factory=list)


class CustomerUpdate(BaseModel):
    """Aggiornamento parziale: solo i campi valorizzati vengono applicati."""

    type: Optional[CustomerType] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    ceo: Optional[str] = None
    commercial_referent: Optional[str] = None
    family_id: Optional[str] = None
    is_family_head: Optional[bool] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[str] = None
    birth_place: Optional[str] = None
    gender: Optional[str] = None
    last_bill_date: Optional[str] = None
    annual_spend_est: Optional[float] = None
    properties: Optional[list[Property]] = None
    mobile_lines: Optional[list[MobileLine]] = None
    vehicles: Optional[list[Vehicle]] = None


class FamilySchema(BaseModel):
    family_id: str
    head: Optional[CustomerRead] = None
    members: list[CustomerRead] = Field(default_factory=list)
    addresses: dict[str, str] = Field(default_factory=dict)


class BillAnalysisResponse(BaseModel):
    status: Literal["SUCCESS", "AMBIGUOUS_PROPERTY", "CONFLICT_EXISTING_OWNER"]
    extracted: ExtractedBill
    customer: Optional[CustomerRead] = None
    existing_customer_id: Optional[str] = None
    existing_properties: list[Property] = Field(default_factory=list)
    conflict_owner: Optional[CustomerRead] = None
    conflict_property: Optional[Property] = None


class ConfirmPropertyRequest(BaseModel):
    extracted: ExtractedBill
    customer_id: str
    property_id: str = Field(
        default="NEW",
        description="ID dell'immobile scelto oppure NEW per crearne uno nuovo",
    )


class TransferRequest(BaseModel):
    extracted: ExtractedBill
    old_owner_id: str
    old_property_id: str


class CustomerMergeRequest(BaseModel):
    target_id: str
    source_id: str


class BuildingMergeRequest(BaseModel):
    target_address: str
    source_address: str


class CteCreate(CteBase):
    is_default: bool = False
    visible_to_agency_ids: list[str] = []


class ComparisonRequest(BaseModel):
    extracted: ExtractedBill
    cte_id: str


class ComparisonResult(BaseModel):
    cte_id: str
    current_cost_est: float
    new_cost_est: float
    delta_value: float
    verdict: Literal["CONVIENE", "NON CONVIENE"]
    reasons: list[str] = Field(default_factory=list)
    notes: str = ""
    calculation_details: str = ""


class OperatorCreate(BaseModel):
    name: str
    color_hex: str = "#333333"
    logo_url: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Nome operatore obbligatorio")
        return value


class OperatorRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    color_hex: str
    logo_url: Optional[str] = None
    is_active: bool


class CanvasOfferCreate(CanvasOfferBase):
    visible_to_agency_ids: list[str] = []


class CanvasImportResponse(BaseModel):
    count: int
    operator_name: str


class TelephonyBillResponse(BaseModel):
    asset_type: Literal["MOBILE", "FIXED"]
    extracted: ExtractedTelephonyBill
    customer: CustomerRead


class TelephonyOpportunity(BaseModel):
    customer_id: str
    customer_name: str
    asset_type: Literal["MOBILE", "FIXED"]
    current_asset_info: str
    current_cost: float
    penalty_monthly: float = 0.0
    better_offer: CanvasOfferRead
    estimated_monthly_savings: float


class AuditLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime
    user_id: Optional[str] = None
    username: Optional[str] = None
    agency_id: Optional[str] = None
    action: str
    details: str = ""
    method: Optional[str] = None
    endpoint: Optional[str] = None
    outcome: Optional[str] = None


__all__ = [
    "AgencyCreate",
    "AgencyRead",
    "AuditLogRead",
    "BillAnalysisResponse",
    "BuildingMergeRequest",
    "CanvasImportResponse",
    "CanvasOfferCreate",
    "ComparisonRequest",
    "ComparisonResult",
    "ConfirmPropertyRequest",
    "CteCreate",
    "CustomerCreate",
    "CustomerMergeRequest",
    "CustomerUpdate",
    "FamilySchema",
    "LoginRequest",
    "OperatorCreate",
    "OperatorRead",
    "TelephonyBillResponse",
    "TelephonyOpportunity",
    "TokenResponse",
    "TransferRequest",
    "UserCreate",
    "UserRead",
]
