"""Prompt e schema di risposta per l'estrazione di bollette e documenti d'identità."""
from __future__ import annotations

from typing import Any, Dict

BILL_PROMPT = """
Analyze this document. It could be a Utility Bill OR an Identity Card (Carta d'Identità).

1. Determine document_type: 'BILL' or 'ID_CARD'.
2. Extract Fiscal Code (Codice Fiscale) or VAT number (Partita IVA) accurately. It is crucial.
3. Extract Client Name (First + Last Name or Company Name).
4. Classify the holder in customer_type: 'PERSON' or 'COMPANY'.
5. Extract Address.
   - If ID CARD: this is the residence address.
   - If BILL: this is the supply address.

IF BILL:
- Extract POD/PDR, Commodity, Supplier, Consumption (total and F1/F2/F3), Costs.

IF ID CARD:
- Set 'is_resident' to true.
- Set 'commodity' to 'luce' (default placeholder).
- Leave consumption/costs as 0 or null.
"""

BILL_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "document_type": {"type": "STRING", "enum": ["BILL", "ID_CARD"]},
        "fiscal_code": {"type": "STRING"},
        "client_name": {"type": "STRING"},
        "customer_type": {"type": "STRING", "enum": ["PERSON", "COMPANY"], "nullable": True},
        "address": {"type": "STRING"},
        "city": {"type": "STRING"},
        "pod_pdr": {"type": "STRING"},
        "commodity": {"type": "STRING", "enum": ["luce", "gas"]},
        "is_resident": {"type": "BOOLEAN"},
        "power_committed": {"type": "NUMBER", "nullable": True},
        "supplier_name": {"type": "STRING", "nullable": True},
        "period": {"type": "STRING", "nullable": True},
        "consumption": {"type": "NUMBER", "nullable": True},
        "consumption_f1": {"type": "NUMBER", "nullable": True},
        "consumption_f2": {"type": "NUMBER", "nullable": True},
        "consumption_f3": {"type": "NUMBER", "nullable": True},
        "detected_unit_price": {"type": "NUMBER", "nullable": True},
        "detected_fixed_fee": {"type": "NUMBER", "nullable": True},
    },
}


def build_bill_prompt() -> str:
    return BILL_PROMPT.strip()


TELEPHONY_BILL_PROMPT = """
Analyze this telephone/internet bill.
Extract the customer details (Fiscal Code or VAT number, name, address), current operator, and costs.
Determine if it is a Mobile line or Fixed line (Landline/Fiber).

- type: 'MOBILE' or 'FIXED' or 'FWA'.
- operator: Name of the current provider (e.g. Tim, Vodafone).
- number: The main phone number or line identifier.
- monthly_cost: The total monthly amount for the service.
- plan_name: The name of the active plan if visible.
- migration_code: Migration code (Codice Migrazione) if present.
"""

TELEPHONY_BILL_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "fiscal_code": {"type": "STRING"},
        "client_name": {"type": "STRING"},
        "address": {"type": "STRING"},
        "city": {"type": "STRING"},
        "operator": {"type": "STRING"},
        "type": {"type": "STRING", "enum": ["MOBILE", "FIXED", "FWA"]},
        "number": {"type": "STRING"},
        "monthly_cost": {"type": "NUMBER"},
        "plan_name": {"type": "STRING"},
        "contract_end_date": {"type": "STRING"},
        "migration_code": {"type": "STRING"},
    },
}

CANVAS_PROMPT = """
Analyze this Telephony Canvas / Price List (PDF/Image).
Return a JSON with 'operator_name' and a comprehensive 'offers' list.
"""

CANVAS_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "operator_name": {"type": "STRING"},
        "offers": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING"},
                    "type": {
                        "type": "STRING",
                        "enum": ["MOBILE", "FIXED", "FWA", "CONVERGENCE", "SMARTPHONE"],
                    },
                    "target_segment": {"type": "STRING", "enum": ["CONSUMER", "BUSINESS"]},
                    "monthly_price": {"type": "NUMBER"},
                    "data_gb": {"type": "STRING", "nullable": True},
                    "minutes": {"type": "STRING", "nullable": True},
                    "technology": {"type": "STRING", "nullable": True},
                    "activation_fee": {"type": "NUMBER", "nullable": True},
                    "device_model": {"type": "STRING", "nullable": True},
                    "upfront_cost": {"type": "NUMBER", "nullable": True},
                    "installment_amount": {"type": "NUMBER", "nullable": True},
                    "installment_count": {"type": "NUMBER", "nullable": True},
                    "convergence_requirements": {"type": "STRING", "nullable": True},
                },
            },
        },
    },
}

CTE_PROMPT = """
Analyze this energy contract document (CTE - Condizioni Tecnico Economiche).
Extract the following details into a JSON structure.
If specific values (like F2, F3) are missing, use the F0 value or F1 value.

Fields to extract:
- supplier_name: Name of the energy provider.
- offer_name: Commercial name of the offer.
- offer_code: A unique code if present, otherwise generate one from name + date.
- commodity: 'luce' or 'gas'.
- offer_type: 'FIXED' or 'VARIABLE'.
- index_type: If variable, is it 'PUN' or 'PSV'?
- f0, f1, f2, f3: Price values. For Gas, use f0 for the Smc price.
- spread_unit: '€/kWh' or '€/Smc'.
- fixed_fee_value: The annual fixed cost (PCV/CCV) in €/year.
- valid_until: The expiration date of the offer conditions (YYYY-MM-DD).
"""

CTE_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "supplier_name": {"type": "STRING"},
        "offer_name": {"type": "STRING"},
        "offer_code": {"type": "STRING"},
        "commodity": {"type": "STRING", "enum": ["luce", "gas"]},
        "offer_type": {"type": "STRING", "enum": ["FIXED", "VARIABLE"]},
        "index_type": {"type": "STRING", "enum": ["PUN", "PSV"], "nullable": True},
        "f0": {"type": "NUMBER"},
        "f1": {"type": "NUMBER"},
        "f2": {"type": "NUMBER"},
        "f3": {"type": "NUMBER"},
        "spread_unit": {"type": "STRING"},
        "fixed_fee_value": {"type": "NUMBER"},
        "valid_until": {"type": "STRING"},
    },
}
