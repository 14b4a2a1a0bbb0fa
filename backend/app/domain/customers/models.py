"""Customer domain models.

Un ``Customer`` è un documento: immobili, linee mobili e veicoli sono salvati
come colonne JSON sulla riga del cliente e validati tramite i modelli pydantic
definiti qui (``Property``, ``CommodityDetails``, ...).
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field as PydanticField
from sqlalchemy import Column, JSON
from sqlalchemy.orm.attributes import flag_modified
from sqlmodel import Field, SQLModel

from app.domain.identifiers import generate_id


class CustomerType(str, Enum):
    person = "PERSON"
    company = "COMPANY"


class PropertyStatus(str, Enum):
    active = "ACTIVE"
    sold = "SOLD"
    obsolete = "OBSOLETE"


class ServiceStatus(str, Enum):
    active = "ACTIVE"
    churned = "CHURNED"


class Commodity(str, Enum):
    luce = "luce"
    gas = "gas"

    @property
    def field_name(self) -> str:
        """Nome del sotto-documento di ``Property`` che ospita la fornitura."""
        return "electricity" if self is Commodity.luce else "gas"


class DocumentType(str, Enum):
    bill = "BILL"
    id_card = "ID_CARD"


class ConsumptionHistoryItem(BaseModel):
    date: str
    consumption: float
    cost: float
    type: Literal["BILL", "READING"] = "BILL"


class CommodityDetails(BaseModel):
    """Fornitura luce o gas di un immobile (POD per la luce, PDR per il gas)."""
    supplier: str = "N/D"
    status: ServiceStatus = ServiceStatus.active
    code: str = "N/D"
    power_committed: Optional[float] = None
    annual_consumption: Optional[float] = None
    consumption_f1: Optional[float] = None
    consumption_f2: Optional[float] = None
    consumption_f3: Optional[float] = None
    raw_material_cost: float = 0.0
    fixed_fee_year: float = 0.0
    last_bill_amount: Optional[float] = None
    history: list[ConsumptionHistoryItem] = PydanticField(default_factory=list)


class ConnectivityDetails(BaseModel):
    provider: str
    status: ServiceStatus = ServiceStatus.active
    technology: Literal["FTTH", "FTTC", "FWA", "ADSL"] = "FTTH"
    monthly_cost: float = 0.0
    speed_download_mbps: Optional[float] = None
    contract_end_date: Optional[str] = None
    penalty_monthly_cost: Optional[float] = None
    phone_number: Optional[str] = None
    migration_code: Optional[str] = None


class EfficiencyDetails(BaseModel):
    type: Literal["PHOTOVOLTAIC", "HEAT_PUMP", "WALLBOX", "BOILER"]
    brand: Optional[str] = None
    installation_date: Optional[str] = None
    status: Literal["PROPOSED", "INSTALLED", "MAINTENANCE"] = "PROPOSED"
    notes: Optional[str] = None


class Property(BaseModel):
    """Immobile/punto di fornitura posseduto da un singolo cliente."""
    id: str = PydanticField(default_factory=lambda: generate_id("prop"))
    name: Optional[str] = None
    status: PropertyStatus = PropertyStatus.active
    address: str
    city: str = ""
    zip_code: Optional[str] = None
    is_resident: bool = False
    electricity: Optional[CommodityDetails] = None
    gas: Optional[CommodityDetails] = None
    connectivity: Optional[ConnectivityDetails] = None
    efficiency: list[EfficiencyDetails] = PydanticField(default_factory=list)

    def commodity(self, commodity: Commodity) -> Optional[CommodityDetails]:
        return getattr(self, commodity.field_name)

    def set_commodity(self, commodity: Commodity, details: Optional[CommodityDetails]) -> None:
        setattr(self, commodity.field_name, details)

    def supply_codes(self) -> list[str]:
        return [
            details.code
            for details in (self.electricity, self.gas)
            if details is not None and details.code
        ]

    def has_supply_code(self, code: str) -> bool:
        return bool(code) and code in self.supply_codes()


class MobileLine(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = PydanticField(default_factory=lambda: generate_id("sim"))
    number: str = "N/D"
    operator: str = ""
    type: Literal["VOICE_DATA", "DATA_ONLY", "FWA_SIM"] = "VOICE_DATA"
    monthly_cost: float = 0.0
    data_limit_gb: Union[float, Literal["UNLIMITED"], None] = None
    contract_end_date: Optional[str] = None
    penalty_monthly_cost: Optional[float] = None
    migration_code: Optional[str] = None


class Vehicle(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = PydanticField(default_factory=lambda: generate_id("veh"))
    plate: str
    model: str = ""
    brand: str = ""
    type: Literal["OWNED", "LEASING", "RENTAL"] = "OWNED"
    contract_end_date: Optional[str] = None
    monthly_cost: Optional[float] = None
    insurance_expiry: Optional[str] = None


class CustomerBase(SQLModel):
    """Campi anagrafici comuni a persone fisiche e aziende."""
    fiscal_code: str = Field(index=True, description="Codice fiscale / P.IVA normalizzato")
    type: CustomerType = Field(default=CustomerType.person)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    ceo: Optional[str] = None
    commercial_referent: Optional[str] = None
    family_id: Optional[str] = Field(default=None, index=True)
    is_family_head: bool = False
    email: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[str] = None
    birth_place: Optional[str] = None
    gender: Optional[str] = None
    last_bill_date: Optional[str] = None
    annual_spend_est: Optional[float] = None


class Customer(CustomerBase, table=True):
    """Cliente di una agenzia, con i propri immobili annidati."""
    __tablename__ = "customer"

    id: str = Field(default_factory=lambda: generate_id("cust"), primary_key=True)
    agency_id: str = Field(foreign_key="agency.id", index=True)
    properties: list[dict[str, Any]] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    mobile_lines: list[dict[str, Any]] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    vehicles: list[dict[str, Any]] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def get_properties(self) -> list[Property]:
        return [Property.model_validate(item) for item in self.properties or []]

    def set_properties(self, properties: list[Property]) -> None:
        self.properties = [prop.model_dump(mode="json") for prop in properties]
        flag_modified(self, "properties")

    def get_mobile_lines(self) -> list[MobileLine]:
        return [MobileLine.model_validate(item) for item in self.mobile_lines or []]

    def set_mobile_lines(self, lines: list[MobileLine]) -> None:
        self.mobile_lines = [line.model_dump(mode="json") for line in lines]
        flag_modified(self, "mobile_lines")

    def get_vehicles(self) -> list[Vehicle]:
        return [Vehicle.model_validate(item) for item in self.vehicles or []]

    def set_vehicles(self, vehicles: list[Vehicle]) -> None:
        self.vehicles = [vehicle.model_dump(mode="json") for vehicle in vehicles]
        flag_modified(self, "vehicles")

    @property
    def display_name(self) -> str:
        if self.type == CustomerType.company and self.company_name:
            return self.company_name
        return " ".join(part for part in (self.first_name, self.last_name) if part) or self.fiscal_code


class CustomerRead(CustomerBase):
    id: str
    agency_id: str
    properties: list[Property] = Field(default_factory=list)
    mobile_lines: list[MobileLine] = Field(default_factory=list)
    vehicles: list[Vehicle] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ExtractedBill(BaseModel):
    """Dati restituiti dal servizio di estrazione (bolletta o documento d'identità).

    Non viene persistito: è l'input della riconciliazione.
    """
    document_type: DocumentType = DocumentType.bill
    fiscal_code: Optional[str] = None
    client_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    is_resident: Optional[bool] = None
    commodity: Commodity = Commodity.luce
    pod_pdr: Optional[str] = None
    power_committed: Optional[float] = None
    supplier_name: Optional[str] = None
    period: Optional[str] = None
    consumption: float = 0.0
    consumption_f1: float = 0.0
    consumption_f2: float = 0.0
    consumption_f3: float = 0.0
    current_raw_cost: Optional[float] = None
    detected_unit_price: Optional[float] = None
    detected_fixed_fee: Optional[float] = None
    ai_customer_type: Optional[CustomerType] = None
    confidence_map: dict[str, str] = PydanticField(default_factory=dict)

    @property
    def supply_code(self) -> str:
        return "".join((self.pod_pdr or "").split()).upper()

    @property
    def is_bill(self) -> bool:
        return self.document_type == DocumentType.bill
