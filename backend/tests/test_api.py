from __future__ import annotations

import unittest

from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from app.api import middleware
from app.api.routes import analysis, auth, offers, telephony
from app.core.security import create_access_token, hash_password
from app.db import get_session
from app.db.models import Agency, AuditLog, Customer, User, UserRole
from app.domain.customers.models import Commodity, ExtractedBill
from app.domain.telephony import ExtractedTelephonyBill, TelephonyLineType
from app.main import create_app
from app.services import ExtractionError, ReconciliationService


class _StubExtractor:
    def __init__(self) -> None:
        self.fail = False

    def extract(self, document: bytes, mime_type: str) -> ExtractedBill:
        if self.fail:
            raise ExtractionError("Gemini timeout after 120s")
        return ExtractedBill(
            fiscal_code="RSSMRA80A01H501U",
            client_name="Mario Rossi",
            address="Via Roma 10",
            city="Milano",
            commodity=Commodity.luce,
            pod_pdr="IT001E12345678",
            consumption=400.0,
        )


class _StubTelephonyExtractor:
    def extract(self, document: bytes, mime_type: str) -> ExtractedTelephonyBill:
        return ExtractedTelephonyBill(
            fiscal_code="RSSMRA80A01H501U",
            client_name="Mario Rossi",
            operator="TIM",
            type=TelephonyLineType.mobile,
            number="3331234567",
            monthly_cost=15.0,
        )


class _UnusedExtractor:
    def extract(self, document: bytes, mime_type: str):
        raise AssertionError("estrattore non atteso")


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        SQLModel.metadata.create_all(self.engine)
        with Session(self.engine) as session:
            session.add(Agency(id="ag_1", name="Agenzia Uno"))
            session.add(
                User(
                    id="u_agent",
                    username="agente1",
                    hashed_password=hash_password("segreta123"),
                    agency_id="ag_1",
                    role=UserRole.agent,
                )
            )
            session.commit()

        self.extractor = _StubExtractor()
        service = ReconciliationService(extractor=self.extractor)

        def _get_session():
            with Session(self.engine) as session:
                yield session

        self._original_engine = middleware.engine
        middleware.engine = self.engine
        auth.login_rate_limiter._hits.clear()

        self.app = create_app()
        self.app.dependency_overrides[get_session] = _get_session
        self.app.dependency_overrides[analysis.get_reconciliation_service] = lambda: service
        self.app.dependency_overrides[telephony.get_telephony_bill_extractor] = _StubTelephonyExtractor
        self.app.dependency_overrides[offers.get_cte_extractor] = _UnusedExtractor
        self.client = TestClient(self.app)
        self.token = create_access_token(
            subject="u_agent", username="agente1", role="AGENT", agency_id="ag_1"
        )

    def tearDown(self) -> None:
        middleware.engine = self._original_engine

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    def _upload(self, content_type: str = "application/pdf"):
        return self.client.post(
            "/api/v1/analysis/bill",
            headers=self._headers(),
            files={"file": ("bolletta.pdf", b"%PDF-1.4 test", content_type)},
        )

    def test_login_returns_token(self) -> None:
        response = self.client.post(
            "/api/v1/auth/login", json={"username": "agente1", "password": "segreta123"}
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["user"]["agency_id"], "ag_1")

        me = self.client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"}
        )
        self.assertEqual(me.json()["username"], "agente1")

    def test_login_with_wrong_password(self) -> None:
        response = self.client.post(
            "/api/v1/auth/login", json={"username": "agente1", "password": "errata"}
        )
        self.assertEqual(response.status_code, 401)

    def test_requests_without_token_are_rejected(self) -> None:
        self.assertEqual(self.client.get("/api/v1/customers").status_code, 401)

    def test_agent_cannot_reach_management(self) -> None:
        response = self.client.get("/api/v1/users", headers=self._headers())
        self.assertEqual(response.status_code, 403)

    def test_bill_upload_creates_customer(self) -> None:
        response = self._upload()

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "SUCCESS")
        self.assertEqual(body["customer"]["fiscal_code"], "RSSMRA80A01H501U")
        self.assertEqual(body["customer"]["properties"][0]["electricity"]["code"], "IT001E12345678")

        customers = self.client.get("/api/v1/customers", headers=self._headers()).json()
        self.assertEqual(len(customers), 1)

        with Session(self.engine) as session:
            api_calls = session.exec(
                select(AuditLog).where(AuditLog.action == "API_CALL")
            ).all()
            self.assertTrue(any(log.user_id == "u_agent" for log in api_calls))

    def test_extraction_failure_returns_bad_gateway(self) -> None:
        self.extractor.fail = True
        response = self._upload()

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["detail"], "Analisi del documento non riuscita")
        with Session(self.engine) as session:
            self.assertEqual(session.exec(select(Customer)).all(), [])

    def test_unsupported_document_type(self) -> None:
        response = self._upload("text/plain")
        self.assertEqual(response.status_code, 415)

    def test_unknown_customer_returns_not_found(self) -> None:
        response = self.client.get("/api/v1/customers/cust_missing", headers=self._headers())
        self.assertEqual(response.status_code, 404)

    def test_telephony_bill_upload_registers_mobile_line(self) -> None:
        response = self.client.post(
            "/api/v1/telephony/bill",
            headers=self._headers(),
            files={"file": ("tim.pdf", b"%PDF-1.4 test", "application/pdf")},
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["asset_type"], "MOBILE")
        self.assertEqual(body["customer"]["mobile_lines"][0]["number"], "3331234567")

        opportunities = self.client.get("/api/v1/telephony/opportunities", headers=self._headers())
        self.assertEqual(opportunities.status_code, 200)
        self.assertEqual(opportunities.json(), [])

    def test_agent_cannot_upload_cte(self) -> None:
        response = self.client.post(
            "/api/v1/offers/cte/upload",
            headers=self._headers(),
            files={"file": ("cte.pdf", b"%PDF-1.4 test", "application/pdf")},
        )
        self.assertEqual(response.status_code, 403)


if __name__ == "__main__":
    unittest.main()
