from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from estate_app.booking.schemas import BookApartmentRequest
from estate_app.booking.service import BookingService
from estate_app.exceptions import NotFoundError, ServerError
from estate_app.payment import invoice as invoice_module
from estate_app.payment.invoice import InvoiceComposer
from estate_app.payment.schemas import UpiDetails
from estate_app.payment.store import PaymentStore
from estate_app.payment.summary import get_payment_summary, percentage_of

from conftest import USER_ID, OTHER_USER_ID, PROPERTY_ID, APARTMENT_ID, UNIT_ID, UPI_DETAILS

BASE_DATE = datetime(2024, 5, 1, 10, 0, 0)


def add_property_payment(db, amount, status="completed", days=0, user_id=USER_ID,
                         property_id=PROPERTY_ID, total_price=Decimal("10000")):
    payment_id = PaymentStore(db).insert(
        kind="property",
        user_id=user_id,
        property_id=property_id,
        total_price=total_price,
        amount_paid=Decimal(amount),
        payment_method="upi",
        payment_details=UpiDetails(upi_id="name@bank"),
        status=status,
        payment_date=BASE_DATE + timedelta(days=days),
    )
    db.commit()
    return payment_id


def book_unit(db, unit_id=UNIT_ID, amount="1000", user_id=USER_ID, property_id=APARTMENT_ID):
    return BookingService(db).book_apartment(BookApartmentRequest(
        user_id=user_id,
        property_id=property_id,
        unit_id=unit_id,
        amount_paid=Decimal(amount),
        payment_method="upi",
        payment_details=dict(UPI_DETAILS),
    ))


class TestPaymentSummary:
    def test_deposit_progress(self, db):
        add_property_payment(db, "4000")
        add_property_payment(db, "2500", days=1)

        summary = get_payment_summary(db, USER_ID, PROPERTY_ID)

        assert summary.full_property_price == 100000.0
        assert summary.deposit_amount == 10000.0
        assert summary.total_paid == 6500.0
        assert summary.pending_amount == 3500.0
        # 6.5% rounds half up
        assert summary.percentage_paid == 7

    def test_only_completed_payments_count(self, db):
        add_property_payment(db, "4000")
        add_property_payment(db, "3000", status="pending")
        add_property_payment(db, "1000", status="paid")

        summary = get_payment_summary(db, USER_ID, PROPERTY_ID)
        assert summary.total_paid == 5000.0

    def test_no_payment_is_not_found(self, db):
        with pytest.raises(NotFoundError):
            get_payment_summary(db, USER_ID, PROPERTY_ID)

    def test_pending_only_payments_give_zero_paid_summary(self, db):
        add_property_payment(db, "4000", status="pending")

        summary = get_payment_summary(db, USER_ID, PROPERTY_ID)
        assert summary.total_paid == 0.0
        assert summary.pending_amount == 10000.0
        assert summary.percentage_paid == 0

    def test_other_users_payments_are_ignored(self, db):
        add_property_payment(db, "4000", user_id=OTHER_USER_ID)

        with pytest.raises(NotFoundError):
            get_payment_summary(db, USER_ID, PROPERTY_ID)

    def test_overpayment_is_not_clamped(self, db):
        add_property_payment(db, "15000")

        summary = get_payment_summary(db, USER_ID, PROPERTY_ID)
        assert summary.pending_amount == -5000.0
        assert summary.percentage_paid == 15

    def test_missing_listing_uses_recorded_total_price(self, db):
        add_property_payment(db, "500", property_id=77, total_price=Decimal("20000"))

        summary = get_payment_summary(db, USER_ID, 77)
        assert summary.full_property_price == 20000.0
        assert summary.deposit_amount == 2000.0
        assert summary.percentage_paid == 3

    def test_apartment_bookings_are_not_part_of_property_summary(self, db):
        book_unit(db, property_id=APARTMENT_ID)

        with pytest.raises(NotFoundError):
            get_payment_summary(db, USER_ID, APARTMENT_ID)


def test_percentage_of_zero_price_is_zero():
    assert percentage_of(Decimal("10"), Decimal("0")) == 0
    assert percentage_of(Decimal("1"), Decimal("3")) == 33


class TestInvoice:
    def test_property_invoice_matches_summary(self, db):
        add_property_payment(db, "4000")
        payment_id = add_property_payment(db, "2500", days=1)

        invoice = InvoiceComposer(db).compose(payment_id)
        summary = get_payment_summary(db, USER_ID, PROPERTY_ID)

        assert invoice.payment_type == "property"
        assert invoice.property_name == "Lakeview Villa"
        assert invoice.location == "Pune"
        assert invoice.user_name == "Asha Rao"
        assert invoice.email == "asha@example.com"
        assert invoice.amount_paid == 2500.0
        assert invoice.percentage_paid == summary.percentage_paid
        assert invoice.total_paid == summary.total_paid
        assert invoice.pending_amount == summary.pending_amount
        assert invoice.unit_details is None

    def test_property_invoice_degrades_when_summary_fails(self, db, monkeypatch):
        payment_id = add_property_payment(db, "25000", total_price=Decimal("10000"))

        def broken_summary(*args, **kwargs):
            raise RuntimeError("summary unavailable")

        monkeypatch.setattr(invoice_module, "get_payment_summary", broken_summary)

        invoice = InvoiceComposer(db).compose(payment_id)
        assert invoice.full_property_price == 100000.0
        assert invoice.deposit_amount == 10000.0
        assert invoice.total_paid == 25000.0
        assert invoice.pending_amount == 75000.0
        assert invoice.percentage_paid == 25

    def test_apartment_invoice_is_fully_paid(self, db):
        result = book_unit(db)

        invoice = InvoiceComposer(db).compose(result.payment_id)

        assert invoice.payment_type == "apartment"
        assert invoice.invoice_number == result.invoice_number
        assert invoice.property_name == "Palm Residency"
        assert invoice.percentage_paid == 100
        assert invoice.pending_amount == 0
        assert invoice.total_paid == 1000.0
        assert invoice.full_property_price == 1000.0
        assert invoice.booking_id is not None
        assert invoice.unit_details.unit_number == "A-101"
        assert invoice.unit_details.floor_number == 1
        assert invoice.unit_details.bedrooms == 2
        assert invoice.unit_details.bathrooms == 1
        assert invoice.unit_details.area == 850.0

    def test_fallback_invoice_has_no_unit_number(self, db):
        result = book_unit(db, unit_id="fallback-7", amount="500", property_id=PROPERTY_ID)

        invoice = InvoiceComposer(db).compose(result.payment_id)

        assert invoice.payment_type == "apartment"
        assert invoice.percentage_paid == 100
        assert invoice.pending_amount == 0
        assert invoice.unit_details.unit_number is None

    def test_fallback_id_does_not_resolve_to_a_real_unit(self, db):
        result = book_unit(db, unit_id=f"fallback-{UNIT_ID}", amount="500")

        invoice = InvoiceComposer(db).compose(result.payment_id)
        assert invoice.unit_details.unit_number is None

    def test_unknown_payment_is_not_found(self, db):
        with pytest.raises(NotFoundError):
            InvoiceComposer(db).compose(999)

    def test_query_failure_is_a_server_error(self, db, monkeypatch):
        payment_id = add_property_payment(db, "4000")

        def broken_query(*args, **kwargs):
            raise SQLAlchemyError("server closed the connection")

        monkeypatch.setattr(db, "query", broken_query)

        with pytest.raises(ServerError, match="Server error while generating invoice") as excinfo:
            InvoiceComposer(db).compose(payment_id)
        assert isinstance(excinfo.value.original, SQLAlchemyError)


class TestPaymentHistory:
    def test_merged_history_is_sorted_newest_first(self, db):
        first = add_property_payment(db, "1000", days=0)
        second = add_property_payment(db, "2000", days=2)
        booking = book_unit(db)

        records = PaymentStore(db).find_all_for_user(USER_ID)

        assert [r["id"] for r in records] == [booking.payment_id, second, first]
        assert [r["kind"] for r in records] == ["apartment", "property", "property"]
        assert records[0]["unit_number"] == "A-101"
        assert records[0]["property_name"] == "Palm Residency"
        assert records[1]["property_name"] == "Lakeview Villa"

    def test_single_family_history(self, db):
        add_property_payment(db, "1000")
        book_unit(db)

        records = PaymentStore(db).find_all_for_user(USER_ID, kind="property")
        assert [r["kind"] for r in records] == ["property"]

    def test_equal_dates_do_not_break_sorting(self, db):
        first = add_property_payment(db, "1000")
        second = add_property_payment(db, "2000")

        records = PaymentStore(db).find_all_for_user(USER_ID)
        assert [r["id"] for r in records] == [second, first]

    def test_empty_history(self, db):
        assert PaymentStore(db).find_all_for_user(OTHER_USER_ID) == []

    def test_find_all_lists_both_families(self, db):
        add_property_payment(db, "1000")
        book_unit(db)

        kinds = sorted(p.kind for p in PaymentStore(db).find_all())
        assert kinds == ["apartment", "property"]
