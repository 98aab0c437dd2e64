from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from conftest import InMemoryPayments, make_user
from bgi_admin.common.refs import new_id
from bgi_admin.core.enums import PaymentStatus, PaymentType, Role
from bgi_admin.core.exceptions import NotFoundError, ValidationError
from bgi_admin.finance.service import FinanceService


@pytest.fixture
def payments() -> InMemoryPayments:
    return InMemoryPayments()


@pytest.fixture
def finance(payments, users) -> FinanceService:
    return FinanceService(payments, users, annual_dues=3000)


@pytest.fixture
def treasurer(users):
    return users.add(make_user(its_number="8008", role=Role.FINANCE, name="Fatema", surname="Treasurer"))


def test_bulk_dues_skips_unknown_members(finance, payments, users, member, other_member, admin, fixed_now):
    extra = [users.add(make_user(its_number=f"20{i}")) for i in range(2)]
    ghost = new_id()
    ids = [member.user_id, other_member.user_id, *(u.user_id for u in extra), ghost]

    result = finance.bulk_assign_dues(ids, 500, recorded_by=admin.user_id, now=fixed_now)

    assert len(result.success) == 4
    assert result.failed == [{"memberId": ghost, "reason": "Member not found"}]
    assert len(payments.by_id) == 4
    for p in payments.by_id.values():
        assert p.status == PaymentStatus.PENDING
        assert p.amount == Decimal("500")
        assert p.due_date == date(2026, 4, 9)


def test_bulk_dues_rejects_empty_selection_and_bad_amount(finance, member, admin):
    with pytest.raises(ValidationError, match="No members selected"):
        finance.bulk_assign_dues([], 500, recorded_by=admin.user_id)
    with pytest.raises(ValidationError):
        finance.bulk_assign_dues([member.user_id], -5, recorded_by=admin.user_id)


def test_bulk_mark_paid(finance, payments, member, admin, fixed_now):
    finance.bulk_assign_dues([member.user_id], 1000, recorded_by=admin.user_id, now=fixed_now)
    payment_id = next(iter(payments.by_id))
    ghost = new_id()

    result = finance.bulk_mark_paid([payment_id, ghost], transaction_id="UPI-1", now=fixed_now)

    assert result.failed == [{"paymentId": ghost, "reason": "Payment not found"}]
    paid = payments.get_by_id(payment_id)
    assert paid.status == PaymentStatus.PAID
    assert paid.paid_date == fixed_now
    assert paid.payment_method == "Cash"
    assert paid.receipt_number.startswith("RCP")
    assert result.success[0]["receiptNumber"] == paid.receipt_number


def test_generate_annual_dues_once_per_cycle(finance, payments, users, member, other_member, admin, fixed_now):
    newcomer = users.add(make_user(its_number="3131", created_at=datetime(2025, 12, 1)))

    first = finance.generate_annual_dues(recorded_by=admin.user_id, now=fixed_now)

    assert (first.processed, first.created, first.skipped, first.errors) == (3, 2, 1, [])
    generated = {p.member_id: p for p in payments.by_id.values()}
    assert set(generated) == {member.user_id, other_member.user_id}
    due = generated[member.user_id]
    assert due.subscription_year == "2026-2027"
    assert due.due_date == date(2026, 2, 14)
    assert due.status == PaymentStatus.OVERDUE
    assert due.auto_generated is True
    assert due.amount == Decimal("3000")
    assert newcomer.user_id not in generated

    second = finance.generate_annual_dues(recorded_by=admin.user_id, now=fixed_now)

    assert (second.created, second.skipped) == (0, 3)
    assert len(payments.by_id) == 2


def test_generated_due_is_pending_before_its_due_date(finance, payments, users, admin):
    recent = users.add(make_user(its_number="4242", created_at=datetime(2024, 3, 1)))

    finance.generate_annual_dues(recorded_by=admin.user_id, amount=2500, now=datetime(2026, 3, 10))

    due = next(p for p in payments.by_id.values() if p.member_id == recent.user_id)
    assert due.status == PaymentStatus.PENDING
    assert due.due_date == date(2026, 3, 31)
    assert due.amount == Decimal("2500")


def test_create_payment_as_paid_gets_receipt(finance, member, admin, fixed_now):
    payment = finance.create_payment(
        {"memberId": member.user_id, "amount": "750", "paymentType": "Donation", "status": "Paid"},
        admin.user_id,
        now=fixed_now,
    )

    assert payment["status"] == "Paid"
    assert payment["paymentType"] == "Donation"
    assert payment["receiptNumber"].startswith("RCP")
    assert payment["memberId"]["itsNumber"] == member.its_number


def test_create_payment_for_unknown_member(finance, admin):
    with pytest.raises(NotFoundError, match="Member not found"):
        finance.create_payment({"memberId": new_id(), "amount": 10}, admin.user_id)


def test_update_payment_marks_paid(finance, member, admin, fixed_now):
    created = finance.create_payment({"memberId": member.user_id, "amount": 100}, admin.user_id, now=fixed_now)

    updated = finance.update_payment(created["_id"], {"status": "Paid", "paymentMethod": "UPI"}, now=fixed_now)

    assert updated["status"] == "Paid"
    assert updated["paymentMethod"] == "UPI"
    assert updated["paidDate"] == fixed_now.isoformat()


def test_member_payments_summary(finance, member, admin, fixed_now):
    finance.create_payment({"memberId": member.user_id, "amount": 100}, admin.user_id, now=fixed_now)
    finance.create_payment(
        {"memberId": member.user_id, "amount": 40, "status": "Paid"}, admin.user_id, now=fixed_now
    )

    summary = finance.member_payments(member.user_id)["summary"]

    assert summary["totalPaid"] == 40
    assert summary["totalPending"] == 100


def test_pending_dues_and_filters(finance, member, other_member, admin, fixed_now):
    finance.bulk_assign_dues([member.user_id, other_member.user_id], 300, recorded_by=admin.user_id, now=fixed_now)

    assert len(finance.pending_dues()) == 2
    assert [p["zone"] for p in finance.pending_dues(zone="Zone B")] == ["Zone B"]
    assert len(finance.list_payments(status="All", zone="All")) == 2
    with pytest.raises(ValidationError):
        finance.list_payments(status="Lost")


def test_overview(finance, member, other_member, admin, fixed_now):
    result = finance.bulk_assign_dues(
        [member.user_id, other_member.user_id], 1000, recorded_by=admin.user_id, now=fixed_now
    )
    finance.bulk_mark_paid([result.success[0]["paymentId"]], now=fixed_now)

    data = finance.overview(now=fixed_now)

    overview = data["overview"]
    assert overview["totalMembers"] == 3
    assert overview["totalRevenue"] == 1000
    assert overview["pendingAmount"] == 1000
    assert overview["paidCount"] == 1
    assert overview["pendingCount"] == 1
    assert overview["subscriptionYear"] == "2026-2027"
    assert {z["_id"] for z in data["zoneStats"]} == {"Zone A", "Zone B"}
    assert len(data["recentTransactions"]) == 1


def test_finance_routes_are_restricted(client, member, treasurer, auth_headers):
    assert client.get("/finance/overview", headers=auth_headers(member)).status_code == 403
    assert client.get("/finance/overview", headers=auth_headers(treasurer)).status_code == 200


def test_my_payments_is_open_to_members(client, container, member, admin, auth_headers):
    container.finance_service.bulk_assign_dues([member.user_id], 200, recorded_by=admin.user_id)

    body = client.get("/finance/my-payments", headers=auth_headers(member)).get_json()

    assert len(body["payments"]) == 1
    assert body["summary"]["pendingCount"] == 1


def test_bulk_dues_endpoint(client, member, treasurer, auth_headers):
    resp = client.post(
        "/finance/bulk-dues",
        json={"memberIds": [member.user_id, "missing"], "amount": 100},
        headers=auth_headers(treasurer),
    )
    body = resp.get_json()

    assert resp.status_code == 200
    assert body["message"] == "Successfully assigned 1 dues"
    assert body["results"]["failed"] == [{"memberId": "missing", "reason": "Member not found"}]
