from __future__ import annotations

import unittest

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from app.db.models import (
    Agency,
    AuditLog,
    Customer,
    CustomerType,
    MobileLine,
    Property,
    PropertyStatus,
    Vehicle,
)
from app.domain.customers.models import Commodity, CommodityDetails, DocumentType, ExtractedBill
from app.services.reconciliation import (
    CustomerNotFoundError,
    InvalidMergeError,
    MissingFiscalCodeError,
    ReconciliationService,
    ReconciliationStatus,
)
from app.services.tenancy import TenantContext

OLD_CF = "RSSMRA80A01H501U"
NEW_CF = "VRDLGU75B12F205X"
POD = "IT001E12345678"


class _FailingCommitSession(Session):
    """Sessione il cui commit n-esimo fallisce, come un errore di I/O a metà operazione."""

    def __init__(self, *args, fail_on: int, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._fail_on = fail_on
        self._commits = 0

    def commit(self) -> None:
        self._commits += 1
        if self._commits == self._fail_on:
            raise SQLAlchemyError("commit non riuscito")
        super().commit()


class TransferAndMergeTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        SQLModel.metadata.create_all(self.engine)
        with Session(self.engine) as session:
            session.add(Agency(id="ag_1", name="Agenzia Uno"))
            session.commit()
        self.tenant = TenantContext(agency_id="ag_1", user_id="u_1", username="agente")
        self.service = ReconciliationService()

    def _add_customer(self, session: Session, fiscal_code: str, properties: list[Property], **fields) -> Customer:
        customer = Customer(agency_id="ag_1", fiscal_code=fiscal_code, **fields)
        customer.set_properties(properties)
        session.add(customer)
        session.commit()
        session.refresh(customer)
        return customer

    def _audit_actions(self, session: Session) -> list[AuditLog]:
        return list(session.exec(select(AuditLog).order_by(AuditLog.id)).all())

    def _transfer_bill(self) -> ExtractedBill:
        return ExtractedBill(
            document_type=DocumentType.bill,
            fiscal_code=NEW_CF,
            client_name="Luigi Verdi",
            address="Via Roma 10",
            city="Milano",
            commodity=Commodity.luce,
            pod_pdr=POD,
            supplier_name="Enel",
            consumption=300.0,
        )

    def test_transfer_marks_old_property_sold_and_creates_new_owner(self) -> None:
        with Session(self.engine) as session:
            old_property = Property(
                address="Via Roma 10",
                city="Milano",
                zip_code="20100",
                electricity=CommodityDetails(supplier="A2A", code=POD),
            )
            old_owner = self._add_customer(
                session, OLD_CF, [old_property], first_name="Mario", last_name="Rossi"
            )

            conflict = self.service.analyze_bill(session, self.tenant, self._transfer_bill())
            self.assertEqual(conflict.status, ReconciliationStatus.conflict_existing_owner)

            new_owner = self.service.transfer_property(
                session, self.tenant, conflict.extracted, old_owner.id, old_property.id
            )

            old_after = session.get(Customer, old_owner.id)
            self.assertEqual(old_after.get_properties()[0].status, PropertyStatus.sold)

            active = [
                prop
                for prop in new_owner.get_properties()
                if prop.status == PropertyStatus.active and prop.has_supply_code(POD)
            ]
            self.assertEqual(len(active), 1)
            self.assertTrue(active[0].is_resident)
            self.assertEqual(active[0].electricity.supplier, "Enel")
            self.assertEqual(new_owner.fiscal_code, NEW_CF)

            active_holders = [
                customer.id
                for customer in session.exec(select(Customer)).all()
                for prop in customer.get_properties()
                if prop.status == PropertyStatus.active and prop.has_supply_code(POD)
            ]
            self.assertEqual(active_holders, [new_owner.id])

            logs =[log for log in self._audit_actions(session) if log.action == "PROPERTY_TRANSFER"]
            self.assertEqual(len(logs), 1)
            self.assertEqual(logs[0].details, f"POD/PDR {POD} trasferito da {OLD_CF} a {NEW_CF}")
            self.assertEqual(logs[0].agency_id, "ag_1")

    def test_transfer_to_same_owner_is_rejected(self) -> None:
        with Session(self.engine) as session:
            prop = Property(address="Via Roma 10", electricity=CommodityDetails(code=POD))
            owner = self._add_customer(session, OLD_CF, [prop])
            bill = self._transfer_bill().model_copy(update={"fiscal_code": OLD_CF})

            with self.assertRaises(InvalidMergeError):
                self.service.transfer_property(session, self.tenant, bill, owner.id, prop.id)
            self.assertEqual(
                session.get(Customer, owner.id).get_properties()[0].status, PropertyStatus.active
            )

    def test_transfer_without_new_fiscal_code_leaves_old_property_active(self) -> None:
        with Session(self.engine) as session:
            prop = Property(address="Via Roma 10", electricity=CommodityDetails(code=POD))
            owner = self._add_customer(session, OLD_CF, [prop])
            bill = self._transfer_bill().model_copy(update={"fiscal_code": None})

            with self.assertRaises(MissingFiscalCodeError):
                self.service.transfer_property(session, self.tenant, bill, owner.id, prop.id)

            statuses = [p.status for p in session.get(Customer, owner.id).get_properties()]
            self.assertEqual(statuses, [PropertyStatus.active])
            self.assertEqual(len(session.exec(select(Customer)).all()), 1)

    def test_transfer_new_property_is_always_resident(self) -> None:
        with Session(self.engine) as session:
            prop = Property(address="Via Roma 10", electricity=CommodityDetails(code=POD))
            owner = self._add_customer(session, OLD_CF, [prop])
            bill = self._transfer_bill().model_copy(update={"is_resident": False})

            new_owner = self.service.transfer_property(
                session, self.tenant, bill, owner.id, prop.id
            )

            self.assertTrue(new_owner.get_properties()[0].is_resident)

    def test_transfer_failure_after_first_commit_is_partially_applied(self) -> None:
        with Session(self.engine) as session:
            prop = Property(address="Via Roma 10", electricity=CommodityDetails(code=POD))
            owner_id = self._add_customer(session, OLD_CF, [prop]).id

        with _FailingCommitSession(self.engine, fail_on=2) as session:
            with self.assertRaises(SQLAlchemyError):
                self.service.transfer_property(
                    session, self.tenant, self._transfer_bill(), owner_id, prop.id
                )

        with Session(self.engine) as session:
            old_owner = session.get(Customer, owner_id)
            self.assertEqual(old_owner.get_properties()[0].status, PropertyStatus.sold)
            fiscal_codes = [c.fiscal_code for c in session.exec(select(Customer)).all()]
            self.assertEqual(fiscal_codes, [OLD_CF])
            self.assertEqual(self._audit_actions(session), [])

    def test_merge_customers_failure_after_first_commit_is_partially_applied(self) -> None:
        with Session(self.engine) as session:
            target_id = self._add_customer(session, OLD_CF, [Property(address="Via Roma 10")]).id
            source_id = self._add_customer(
                session, "RSSMRA80A01H501X", [Property(address="Via Milano 3")]
            ).id

        with _FailingCommitSession(self.engine, fail_on=2) as session:
            with self.assertRaises(SQLAlchemyError):
                self.service.merge_customers(session, self.tenant, target_id, source_id)

        with Session(self.engine) as session:
            self.assertEqual(len(session.get(Customer, target_id).get_properties()), 2)
            self.assertIsNotNone(session.get(Customer, source_id))
            self.assertEqual(self._audit_actions(session), [])

    def test_merge_customers_concatenates_lists_and_deletes_source(self) -> None:
        with Session(self.engine) as session:
            target = self._add_customer(
                session, OLD_CF, [Property(address="Via Roma 10")], first_name="Mario", phone="0212345"
            )
            target.set_vehicles([Vehicle(plate="AB123CD")])
            session.add(target)
            session.commit()
            source = self._add_customer(
                session,
                "RSSMRA80A01H501X",
                [Property(address="Via Milano 3"), Property(address="Via Torino 8")],
                email="mario@example.com",
                phone="0399999",
            )
            source.set_mobile_lines([MobileLine(number="3331234567", operator="TIM")])
            session.add(source)
            session.commit()
            source_id = source.id

            merged = self.service.merge_customers(session, self.tenant, target.id, source_id)

            self.assertEqual(len(merged.get_properties()), 3)
            self.assertEqual(len(merged.get_mobile_lines()), 1)
            self.assertEqual(len(merged.get_vehicles()), 1)
            self.assertEqual(merged.email, "mario@example.com")
            self.assertEqual(merged.phone, "0212345")
            self.assertIsNone(session.get(Customer, source_id))
            self.assertIn("CUSTOMER_MERGE", [log.action for log in self._audit_actions(session)])

    def test_merge_customers_rejects_same_id(self) -> None:
        with Session(self.engine) as session:
            customer = self._add_customer(session, OLD_CF, [])
            with self.assertRaises(InvalidMergeError):
                self.service.merge_customers(session, self.tenant, customer.id, customer.id)

    def test_merge_buildings_merges_and_renames_family_properties(self) -> None:
        with Session(self.engine) as session:
            head = self._add_customer(
                session,
                OLD_CF,
                [
                    Property(
                        address="Via Roma 10",
                        city="Milano",
                        zip_code="20100",
                        electricity=CommodityDetails(code=POD),
                    ),
                    Property(
                        address="V. Roma 10",
                        city="Milano",
                        is_resident=True,
                        gas=CommodityDetails(code="PDR0001"),
                    ),
                ],
                is_family_head=True,
            )
            member = self._add_customer(
                session,
                NEW_CF,
                [Property(address="v. roma  10", city="MI")],
                family_id=head.id,
            )
            outsider = self._add_customer(
                session, "BNCGNN60C03L219K", [Property(address="V. Roma 10")]
            )

            updated = self.service.merge_buildings(
                session, self.tenant, head.id, "Via Roma 10", "V. Roma 10"
            )

            self.assertEqual({customer.id for customer in updated}, {head.id, member.id})

            head_props = session.get(Customer, head.id).get_properties()
            self.assertEqual(len(head_props), 1)
            self.assertEqual(head_props[0].electricity.code, POD)
            self.assertEqual(head_props[0].gas.code, "PDR0001")
            self.assertTrue(head_props[0].is_resident)

            member_props = session.get(Customer, member.id).get_properties()
            self.assertEqual(len(member_props), 1)
            self.assertEqual(
                (member_props[0].address, member_props[0].city, member_props[0].zip_code),
                ("Via Roma 10", "Milano", "20100"),
            )

            outsider_props = session.get(Customer, outsider.id).get_properties()
            self.assertEqual(outsider_props[0].address, "V. Roma 10")
            self.assertIn("BUILDING_MERGE", [log.action for log in self._audit_actions(session)])

    def test_merge_buildings_skips_companies_pointing_to_the_family(self) -> None:
        with Session(self.engine) as session:
            head = self._add_customer(
                session,
                OLD_CF,
                [Property(address="Via Roma 10"), Property(address="V. Roma 10")],
                is_family_head=True,
            )
            company = self._add_customer(
                session,
                "12345678901",
                [Property(address="V. Roma 10")],
                type=CustomerType.company,
                company_name="Rossi SRL",
                family_id=head.id,
            )

            updated = self.service.merge_buildings(
                session, self.tenant, head.id, "Via Roma 10", "V. Roma 10"
            )

            self.assertEqual([customer.id for customer in updated], [head.id])
            company_props = session.get(Customer, company.id).get_properties()
            self.assertEqual(company_props[0].address, "V. Roma 10")

    def test_merge_buildings_rejects_equivalent_addresses(self) -> None:
        with Session(self.engine) as session:
            head = self._add_customer(session, OLD_CF, [Property(address="Via Roma 10")])
            with self.assertRaises(InvalidMergeError):
                self.service.merge_buildings(
                    session, self.tenant, head.id, "via roma 10", "Via  Roma 10"
                )

    def test_merge_buildings_unknown_family(self) -> None:
        with Session(self.engine) as session:
            with self.assertRaises(CustomerNotFoundError):
                self.service.merge_buildings(
                    session, self.tenant, "cust_missing", "Via Roma 10", "V. Roma 10"
                )


if __name__ == "__main__":
    unittest.main()
