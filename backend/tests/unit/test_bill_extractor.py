from __future__ import annotations

import json
from datetime import date

import pytest
import requests

from app.domain.catalog.models import Segment
from app.domain.customers.models import Commodity, CustomerType, DocumentType
from app.domain.telephony import CanvasOfferType, TelephonyLineType
from app.services.extraction import (
    BillExtractor,
    CanvasExtractor,
    CteExtractor,
    ExtractionError,
    GeminiClient,
    GeminiConfig,
    TelephonyBillExtractor,
    clean_json,
    normalize_allowance,
    normalize_bill_payload,
    normalize_cte_payload,
)


class _FakeClient:
    def __init__(self, text: str) -> None:
        self.text = text
        self.prompts: list[str] = []

    def generate_json(self, document, mime_type, prompt, *, response_schema=None):
        self.prompts.append(prompt)
        return self.text


class _FakeResponse:
    def __init__(self, payload) -> None:
        self._payload = payload

    def raise_for_status(self) -> None:
        return None

    def json(self):
        return self._payload


class _FakeHttp:
    def __init__(self, response=None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict] = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


def test_clean_json_strips_markdown_fences() -> None:
    assert clean_json('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert clean_json(None) == ""


def test_normalize_splits_consumption_bands() -> None:
    payload = normalize_bill_payload({"consumption": 1000, "pod_pdr": "it001 e123"})
    assert payload["consumption_f1"] == pytest.approx(350)
    assert payload["consumption_f2"] == pytest.approx(300)
    assert payload["consumption_f3"] == pytest.approx(350)
    assert payload["current_raw_cost"] == pytest.approx(150)
    assert payload["pod_pdr"] == "IT001E123"


def test_extractor_builds_bill_from_model_output() -> None:
    raw = {
        "document_type": "BILL",
        "fiscal_code": "RSSMRA80A01H501U",
        "client_name": "Mario Rossi",
        "customer_type": "PERSON",
        "address": "Via Roma 10",
        "city": "Milano",
        "pod_pdr": "IT 001 E 12345678",
        "commodity": "luce",
        "consumption": 500,
        "detected_unit_price": 0.2,
        "supplier_name": None,
    }
    client = _FakeClient("```json\n" + json.dumps(raw) + "\n```")

    bill = BillExtractor(client).extract(b"%PDF", "application/pdf")

    assert bill.document_type == DocumentType.bill
    assert bill.commodity == Commodity.luce
    assert bill.pod_pdr == "IT001E12345678"
    assert bill.ai_customer_type == CustomerType.person
    assert bill.current_raw_cost == pytest.approx(100)
    assert bill.supplier_name is None
    assert client.prompts and "Codice Fiscale" in client.prompts[0]


def test_extractor_rejects_invalid_json() -> None:
    with pytest.raises(ExtractionError):
        BillExtractor(_FakeClient("non è json")).extract(b"%PDF", "application/pdf")


def test_gemini_client_posts_inline_document() -> None:
    http = _FakeHttp(
        _FakeResponse({"candidates": [{"content": {"parts": [{"text": '{"ok": true}'}]}}]})
    )
    client = GeminiClient(
        GeminiConfig(api_key="k", model="gemini-test", base_url="https://example.test/v1beta/"),
        http=http,
    )

    text = client.generate_json(b"abc", "image/png", "prompt", response_schema={"type": "OBJECT"})

    assert text == '{"ok": true}'
    call = http.calls[0]
    assert call["url"] == "https://example.test/v1beta/models/gemini-test:generateContent"
    assert call["params"] == {"key": "k"}
    parts = call["json"]["contents"][0]["parts"]
    assert parts[0]["inline_data"] == {"mime_type": "image/png", "data": "YWJj"}
    assert call["json"]["generationConfig"]["responseSchema"] == {"type": "OBJECT"}


def test_gemini_client_wraps_transport_errors() -> None:
    client = GeminiClient(
        GeminiConfig(api_key="k", model="m", base_url="https://example.test", timeout=1),
        http=_FakeHttp(error=requests.Timeout("slow")),
    )
    with pytest.raises(ExtractionError):
        client.generate_json(b"abc", "application/pdf", "prompt")


def test_gemini_client_requires_api_key() -> None:
    client = GeminiClient(GeminiConfig(api_key=None), http=_FakeHttp())
    with pytest.raises(ExtractionError):
        client.generate_json(b"abc", "application/pdf", "prompt")


def test_gemini_client_rejects_empty_candidates() -> None:
    client = GeminiClient(
        GeminiConfig(api_key="k"), http=_FakeHttp(_FakeResponse({"candidates": []}))
    )
    with pytest.raises(ExtractionError):
        client.generate_json(b"abc", "application/pdf", "prompt")


def test_telephony_extractor_reads_mobile_bill() -> None:
    raw = {
        "fiscal_code": "RSSMRA80A01H501U",
        "client_name": "Mario Rossi",
        "operator": "TIM",
        "type": "FWA",
        "number": "3331234567",
        "monthly_cost": 19.9,
        "plan_name": None,
    }
    client = _FakeClient(json.dumps(raw))

    bill = TelephonyBillExtractor(client).extract(b"%PDF", "application/pdf")

    assert bill.type == TelephonyLineType.fwa
    assert bill.is_mobile
    assert bill.monthly_cost == pytest.approx(19.9)
    assert bill.plan_name is None
    assert client.prompts and "telephone" in client.prompts[0]


def test_telephony_extractor_rejects_non_object_response() -> None:
    with pytest.raises(ExtractionError):
        TelephonyBillExtractor(_FakeClient("[1, 2]")).extract(b"%PDF", "application/pdf")


def test_normalize_allowance() -> None:
    assert normalize_allowance("Unlimited") == "UNLIMITED"
    assert normalize_allowance("150 GB") == "150"
    assert normalize_allowance("7,5") == "7.5"
    assert normalize_allowance(200) == "200"
    assert normalize_allowance("n/d") == "0"
    assert normalize_allowance(None) is None


def test_canvas_extractor_defaults_unknown_operator() -> None:
    raw = {
        "offers": [
            {"name": "Giga 150", "type": "MOBILE", "monthly_price": 9.99, "data_gb": "150 GB", "minutes": "UNLIMITED"},
            "riga non valida",
        ]
    }

    extraction = CanvasExtractor(_FakeClient(json.dumps(raw))).extract(b"%PDF", "application/pdf")

    assert extraction.operator_name == "Gestore Sconosciuto"
    assert len(extraction.offers) == 1
    offer = extraction.offers[0]
    assert offer.type == CanvasOfferType.mobile
    assert (offer.data_gb, offer.minutes) == ("150", "UNLIMITED")


def test_canvas_extractor_rejects_offer_without_price() -> None:
    raw = {"operator_name": "Iliad", "offers": [{"name": "Giga 150", "type": "MOBILE"}]}
    with pytest.raises(ExtractionError):
        CanvasExtractor(_FakeClient(json.dumps(raw))).extract(b"%PDF", "application/pdf")


def test_normalize_cte_payload_fills_bands_and_code() -> None:
    payload = normalize_cte_payload(
        {"supplier_name": "Enel", "offer_name": "Gas Fix 12", "commodity": "gas", "f1": 0.5, "f2": None},
        today=date(2024, 3, 1),
    )

    assert payload["segment"] == Segment.consumer_gas.value
    assert (payload["f0"], payload["f1"], payload["f2"], payload["f3"]) == (0.5, 0.5, 0.5, 0.5)
    assert payload["spread_unit"] == "€/Smc"
    assert payload["offer_code"] == "GAS_FIX_12_20240301"
    assert payload["visible_to_agency_ids"] == []
    assert payload["is_default"] is False


def test_cte_extractor_builds_offer() -> None:
    raw = {
        "supplier_name": "Fornitore Uno",
        "offer_name": "Luce Fissa",
        "offer_code": "LF-12",
        "commodity": "luce",
        "f0": 0.12,
        "fixed_fee_value": 96,
    }

    cte = CteExtractor(_FakeClient(json.dumps(raw))).extract(b"%PDF", "application/pdf")

    assert cte.offer_code == "LF-12"
    assert cte.segment == Segment.consumer_luce
    assert cte.commodity == Commodity.luce
    assert cte.f3 == pytest.approx(0.12)
    assert cte.fixed_fee_value == pytest.approx(96)


def test_cte_extractor_requires_supplier() -> None:
    raw = {"offer_name": "Luce Fissa", "commodity": "luce", "f0": 0.12}
    with pytest.raises(ExtractionError):
        CteExtractor(_FakeClient(json.dumps(raw))).extract(b"%PDF", "application/pdf")
