from __future__ import annotations

import unittest

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from app.core import settings
from app.core.security import hash_password
from app.db.models import Agency, AuditLog, CustomerType, Property, User, UserRole
from app.domain.customers.models import CommodityDetails, ExtractedBill
from app.schemas import AgencyCreate, CustomerCreate, CustomerUpdate, UserCreate
from app.services import (
    CustomersService,
    ManagementService,
    PermissionDeniedError,
    list_audit_logs,
    record_audit_log,
)
from app.services.reconciliation import (
    CustomerNotFoundError,
    DuplicateCustomerError,
    detect_conflict,
)
from app.services.tenancy import TenantContext


class CustomersAndManagementTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        SQLModel.metadata.create_all(self.engine)
        with Session(self.engine) as session:
            session.add(Agency(id=settings.super_agency_id, name="HQ"))
            session.add(Agency(id="ag_1", name="Agenzia Uno"))
            session.add(Agency(id="ag_2", name="Agenzia Due"))
            session.add(
                User(
                    id="u_agent",
                    username="agente1",
                    hashed_password=hash_password("segreta123"),
                    agency_id="ag_1",
                    role=UserRole.agent,
                )
            )
            session.add(
                User(
                    id="u_other",
                    username="agente2",
                    hashed_password=hash_password("segreta123"),
                    agency_id="ag_2",
                    role=UserRole.agent,
                )
            )
            session.commit()
        self.hq = TenantContext(
            agency_id=settings.super_agency_id, user_id="u_hq", username="admin", is_admin=True
        )
        self.agency_admin = TenantContext(
            agency_id="ag_1", user_id="u_admin1", username="admin1", is_admin=True
        )
        self.other_agency = TenantContext(agency_id="ag_2", user_id="u_other", username="agente2")

    # --- clienti -------------------------------------------------------
    def test_create_customer_normalizes_and_rejects_duplicates(self) -> None:
        with Session(self.engine) as session:
            customer = CustomersService.create_customer(
                session,
                self.agency_admin,
                CustomerCreate(
                    fiscal_code="rssmra80a01h501u",
                    first_name="Mario",
                    properties=[Property(address="Via Roma 10")],
                ),
            )
            self.assertEqual(customer.fiscal_code, "RSSMRA80A01H501U")
            self.assertEqual(customer.agency_id, "ag_1")
            self.assertEqual(len(customer.get_properties()), 1)

            with self.assertRaises(DuplicateCustomerError):
                CustomersService.create_customer(
                    session, self.agency_admin, CustomerCreate(fiscal_code="RSSMRA80A01H501U")
                )
            # stesso codice in un'altra agenzia: consentito
            CustomersService.create_customer(
                session, self.other_agency, CustomerCreate(fiscal_code="RSSMRA80A01H501U")
            )

    def test_customers_are_tenant_scoped(self) -> None:
        with Session(self.engine) as session:
            customer = CustomersService.create_customer(
                session, self.other_agency, CustomerCreate(fiscal_code="VRDLGU75B12F205X")
            )
            self.assertEqual(CustomersService.list_customers(session, self.agency_admin), [])
            with self.assertRaises(CustomerNotFoundError):
                CustomersService.get_customer(session, self.agency_admin, customer.id)

    def test_update_applies_only_given_fields(self) -> None:
        with Session(self.engine) as session:
            customer = CustomersService.create_customer(
                session,
                self.agency_admin,
                CustomerCreate(fiscal_code="RSSMRA80A01H501U", first_name="Mario", email="a@b.it"),
            )
            updated = CustomersService.update_customer(
                session, self.agency_admin, customer.id, CustomerUpdate(phone="0212345")
            )
            self.assertEqual(updated.phone, "0212345")
            self.assertEqual(updated.email, "a@b.it")

    def test_manual_supply_codes_are_normalized(self) -> None:
        with Session(self.engine) as session:
            customer = CustomersService.create_customer(
                session,
                self.agency_admin,
                CustomerCreate(
                    fiscal_code="RSSMRA80A01H501U",
                    properties=[
                        Property(
                            address="Via Roma 10",
                            electricity=CommodityDetails(code="it001e 12345678"),
                        )
                    ],
                ),
            )
            self.assertEqual(customer.get_properties()[0].electricity.code, "IT001E12345678")

            bill = ExtractedBill(fiscal_code="VRDLGU75B12F205X", pod_pdr="IT001E12345678")
            conflict = detect_conflict(session, self.agency_admin, bill, None)
            self.assertIsNotNone(conflict)
            self.assertEqual(conflict.owner.id, customer.id)

            updated = CustomersService.update_customer(
                session,
                self.agency_admin,
                customer.id,
                CustomerUpdate(
                    properties=[
                        Property(address="Via Roma 10", gas=CommodityDetails(code=" pdr 0001 "))
                    ]
                ),
            )
            self.assertEqual(updated.get_properties()[0].gas.code, "PDR0001")

    def test_delete_customer_is_audited(self) -> None:
        with Session(self.engine) as session:
            customer = CustomersService.create_customer(
                session, self.agency_admin, CustomerCreate(fiscal_code="RSSMRA80A01H501U")
            )
            CustomersService.delete_customer(session, self.agency_admin, customer.id)

            self.assertEqual(CustomersService.list_customers(session, self.agency_admin), [])
            log = session.exec(select(AuditLog)).one()
            self.assertEqual(log.action, "CUSTOMER_DELETE")
            self.assertEqual(log.agency_id, "ag_1")

    def test_families_group_people_by_family_id(self) -> None:
        with Session(self.engine) as session:
            head = CustomersService.create_customer(
                session,
                self.agency_admin,
                CustomerCreate(fiscal_code="RSSMRA80A01H501U", is_family_head=True),
            )
            CustomersService.create_customer(
                session,
                self.agency_admin,
                CustomerCreate(fiscal_code="RSSLCU82B41H501Z", family_id=head.id),
            )
            single = CustomersService.create_customer(
                session, self.agency_admin, CustomerCreate(fiscal_code="VRDLGU75B12F205X")
            )
            CustomersService.create_customer(
                session,
                self.agency_admin,
                CustomerCreate(fiscal_code="12345678901", type=CustomerType.company),
            )

            families = CustomersService.get_families(session, self.agency_admin)

            by_id = {family_id: (head_member, members) for family_id, head_member, members in families}
            self.assertEqual(set(by_id), {head.id, single.id})
            self.assertEqual(by_id[head.id][0].id, head.id)
            self.assertEqual(len(by_id[head.id][1]), 2)
            self.assertEqual(len(by_id[single.id][1]), 1)

    def test_family_addresses_are_keyed_by_normalized_address(self) -> None:
        with Session(self.engine) as session:
            head = CustomersService.create_customer(
                session,
                self.agency_admin,
                CustomerCreate(
                    fiscal_code="RSSMRA80A01H501U",
                    is_family_head=True,
                    properties=[Property(address="Via Roma 10")],
                ),
            )
            member = CustomersService.create_customer(
                session,
                self.agency_admin,
                CustomerCreate(
                    fiscal_code="RSSLCU82B41H501Z",
                    family_id=head.id,
                    properties=[
                        Property(address="VIA ROMA  10"),
                        Property(address="Corso Italia 3"),
                    ],
                ),
            )

            addresses = CustomersService.family_addresses([head, member])

            self.assertEqual(
                addresses, {"viaroma10": "Via Roma 10", "corsoitalia3": "Corso Italia 3"}
            )

    # --- agenzie e utenti ----------------------------------------------
    def test_login_records_audit_for_success_and_failure(self) -> None:
        with Session(self.engine) as session:
            self.assertIsNone(ManagementService.login(session, "agente1", "sbagliata"))
            user = ManagementService.login(session, "AGENTE1", "segreta123")

            self.assertIsNotNone(user)
            self.assertEqual(user.id, "u_agent")
            outcomes = [
                log.outcome
                for log in session.exec(select(AuditLog).order_by(AuditLog.id)).all()
                if log.action == "LOGIN"
            ]
            self.assertEqual(outcomes, ["failure", "success"])

    def test_disabled_user_cannot_login(self) -> None:
        with Session(self.engine) as session:
            ManagementService.toggle_user_status(session, self.agency_admin, "u_agent")
            self.assertIsNone(ManagementService.login(session, "agente1", "segreta123"))

    def test_agency_admin_creates_users_only_in_own_agency(self) -> None:
        with Session(self.engine) as session:
            user = ManagementService.create_user(
                session,
                self.agency_admin,
                UserCreate(username=" Nuovo.Agente ", password="password1", agency_id="ag_2"),
            )
            self.assertEqual(user.agency_id, "ag_1")
            self.assertEqual(user.username, "nuovo.agente")

            hq_user = ManagementService.create_user(
                session,
                self.hq,
                UserCreate(username="agente.due", password="password1", agency_id="ag_2"),
            )
            self.assertEqual(hq_user.agency_id, "ag_2")
            actions = [log.action for log in session.exec(select(AuditLog)).all()]
            self.assertEqual(actions.count("USER_CREATE"), 2)

    def test_user_and_agency_visibility(self) -> None:
        with Session(self.engine) as session:
            self.assertEqual(
                [user.id for user in ManagementService.list_users(session, self.agency_admin)],
                ["u_agent"],
            )
            self.assertEqual(len(ManagementService.list_users(session, self.hq)), 2)
            self.assertEqual(
                [agency.id for agency in ManagementService.list_agencies(session, self.agency_admin)],
                ["ag_1"],
            )
            self.assertEqual(len(ManagementService.list_agencies(session, self.hq)), 3)

            with self.assertRaises(PermissionDeniedError):
                ManagementService.toggle_user_status(session, self.agency_admin, "u_other")
            with self.assertRaises(PermissionDeniedError):
                ManagementService.create_agency(session, self.agency_admin, AgencyCreate(name="X"))
            agency = ManagementService.create_agency(
                session, self.hq, AgencyCreate(name="Agenzia Tre", vat_number="IT000")
            )
            self.assertTrue(agency.id.startswith("ag_"))

    def test_export_is_scoped_to_agency(self) -> None:
        with Session(self.engine) as session:
            CustomersService.create_customer(
                session, self.agency_admin, CustomerCreate(fiscal_code="RSSMRA80A01H501U")
            )
            CustomersService.create_customer(
                session, self.other_agency, CustomerCreate(fiscal_code="VRDLGU75B12F205X")
            )

            scoped = ManagementService.export_tenant(session, self.agency_admin)
            self.assertEqual(scoped["agency_info"]["id"], "ag_1")
            self.assertEqual(len(scoped["customers"]), 1)
            self.assertTrue(all("hashed_password" not in user for user in scoped["users"]))

            full = ManagementService.export_tenant(session, self.hq)
            self.assertEqual(len(full["customers"]), 2)
            self.assertEqual(len(full["agencies"]), 3)

    def test_audit_logs_visibility(self) -> None:
        with Session(self.engine) as session:
            record_audit_log(session, tenant=self.agency_admin, action="LOGIN", details="a")
            record_audit_log(session, tenant=self.other_agency, action="LOGIN", details="b")
            record_audit_log(session, tenant=self.agency_admin, action="API_CALL")

            own = list_audit_logs(session, self.agency_admin)
            self.assertEqual([log.details for log in own], ["a"])
            self.assertEqual(len(list_audit_logs(session, self.agency_admin, include_api_calls=True)), 2)
            self.assertEqual(len(list_audit_logs(session, self.hq)), 2)


if __name__ == "__main__":
    unittest.main()
