from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import anniversary_in, now_local
from ..common.refs import canonical_id, new_id, require_id
from ..common.validators import optional_date, optional_str, require_positive_amount
from ..core.constants import DEFAULT_ANNUAL_DUES, DUE_IN_DAYS, RECENT_TRANSACTIONS_LIMIT
from ..core.enums import MemberStatus, PaymentStatus, PaymentType, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .model import Payment, PaymentSummary
from .repository import PaymentRepository
from .subscription import (
    calendar_subscription_year,
    generate_receipt_number,
    registered_at_least_a_year_ago,
    subscription_year_for,
)

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_METHOD = "Cash"


@dataclass
class BulkResult:
    """Per-item outcome of a bulk operation; one failure never stops the rest."""

    success: list[dict] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"success": self.success, "failed": self.failed}


@dataclass
class GenerationResult:
    processed: int = 0
    created: int = 0
    skipped: int = 0
    errors: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "processed": self.processed,
            "created": self.created,
            "skipped": self.skipped,
            "errors": self.errors,
        }


def _filter_value(value: Any) -> Optional[str]:
    """Query-string filters: blank or "All" means no filter."""
    s = optional_str(value)
    if s is None or s == "All":
        return None
    return s


def _parse_enum(enum_cls, value: Any, field_name: str):
    s = _filter_value(value)
    if s is None:
        return None
    try:
        return enum_cls(s)
    except ValueError:
        raise ValidationError(f"Invalid {field_name}: {s}")


def _registered_on(user: User, today: date) -> date:
    return user.created_at.date() if user.created_at else today


def _paid_fields(payment: Payment, now: datetime) -> dict:
    """Stamps applied when a payment becomes Paid."""
    return {
        "paid_date": payment.paid_date or now,
        "receipt_number": payment.receipt_number or generate_receipt_number(now),
    }


class FinanceService:
    """Use case: dues ledger (Finance/Admin/SuperAdmin)."""

    def __init__(self, payments: PaymentRepository, users: UserRepository, *, annual_dues: int = DEFAULT_ANNUAL_DUES):
        self._payments = payments
        self._users = users
        self._annual_dues = annual_dues

    def _present(self, payments: Sequence[Payment]) -> list[dict]:
        ids = {p.member_id for p in payments} | {p.recorded_by for p in payments if p.recorded_by}
        briefs = self._users.get_briefs(ids) if ids else {}
        return [p.to_dict(briefs) for p in payments]

    def overview(self, *, now: datetime | None = None) -> dict:
        today = (now or now_local()).date()
        cycle = calendar_subscription_year(today)
        total_members = self._users.count_active()
        payments = self._payments.list_payments(payment_type=PaymentType.ANNUAL_SUBSCRIPTION)

        current = [p for p in payments if p.subscription_year == cycle or (p.due_date and p.due_date.year == today.year)]
        outstanding = [p for p in payments if p.is_outstanding]
        total_revenue = sum((p.amount for p in payments if p.status == PaymentStatus.PAID), Decimal("0"))
        pending_amount = sum((p.amount for p in outstanding), Decimal("0"))
        paid_count = sum(1 for p in current if p.status == PaymentStatus.PAID)

        zones: dict[Optional[str], dict] = defaultdict(
            lambda: {
                "totalAmount": Decimal("0"),
                "paidAmount": Decimal("0"),
                "pendingAmount": Decimal("0"),
                "paidCount": 0,
                "pendingCount": 0,
                "count": 0,
            }
        )
        for p in payments:
            z = zones[p.zone]
            z["totalAmount"] += p.amount
            z["count"] += 1
            if p.status == PaymentStatus.PAID:
                z["paidAmount"] += p.amount
                z["paidCount"] += 1
            elif p.is_outstanding:
                z["pendingAmount"] += p.amount
                z["pendingCount"] += 1

        zone_stats = []
        for zone in sorted(zones, key=lambda z: (z is not None, z or "")):
            stats = zones[zone]
            zone_stats.append(
                {
                    "_id": zone,
                    **{k: float(v) if isinstance(v, Decimal) else v for k, v in stats.items()},
                }
            )

        recent = self._payments.list_recent_paid(
            payment_type=PaymentType.ANNUAL_SUBSCRIPTION, limit=RECENT_TRANSACTIONS_LIMIT
        )
        return {
            "overview": {
                "totalMembers": total_members,
                "totalRevenue": float(total_revenue),
                "pendingAmount": float(pending_amount),
                "paidCount": paid_count,
                "pendingCount": len(outstanding),
                "overdueCount": sum(1 for p in outstanding if p.status == PaymentStatus.OVERDUE),
                "collectionRate": round(paid_count / total_members * 100, 2) if total_members else 0,
                "subscriptionYear": cycle,
            },
            "zoneStats": zone_stats,
            "recentTransactions": [p.to_dict() for p in recent],
        }

    def members_with_dues(self, *, zone: Any = None, role: Any = None, search: Any = None) -> list[dict]:
        members = self._users.list_users(
            search=optional_str(search),
            role=_parse_enum(Role, role, "role"),
            zone=_filter_value(zone),
            status=MemberStatus.ACTIVE,
        )
        by_member: dict[str, list[Payment]] = defaultdict(list)
        for p in self._payments.list_payments():
            by_member[p.member_id].append(p)

        out: list[dict] = []
        for m in sorted(members, key=lambda u: u.name.lower()):
            mine = by_member.get(m.user_id, [])
            outstanding = [p for p in mine if p.is_outstanding]
            paid = [p for p in mine if p.status == PaymentStatus.PAID]
            out.append(
                {
                    **m.to_public(),
                    "totalDue": float(sum((p.amount for p in outstanding), Decimal("0"))),
                    "totalPaid": float(sum((p.amount for p in paid), Decimal("0"))),
                    "pendingCount": len(outstanding),
                    "paidCount": len(paid),
                    "payments": [p.to_dict() for p in mine],
                    "hasPendingDues": bool(outstanding),
                }
            )
        return out

    def member_payments(self, member_id: str) -> dict:
        payments = self._payments.list_payments(member_id=member_id)
        summary = PaymentSummary()
        for p in payments:
            summary.add(p)
        return {"payments": self._present(payments), "summary": summary.to_dict()}

    def pending_dues(self, *, zone: Any = None, search: Any = None) -> list[dict]:
        payments = self._payments.list_payments(
            statuses=(PaymentStatus.PENDING, PaymentStatus.OVERDUE),
            zone=_filter_value(zone),
            search=optional_str(search),
            order_by_due_date=True,
        )
        return self._present(payments)

    def list_payments(
        self,
        *,
        status: Any = None,
        zone: Any = None,
        subscription_year: Any = None,
        payment_type: Any = None,
        search: Any = None,
    ) -> list[dict]:
        status_e = _parse_enum(PaymentStatus, status, "status")
        payments = self._payments.list_payments(
            statuses=(status_e,) if status_e else None,
            zone=_filter_value(zone),
            subscription_year=_filter_value(subscription_year),
            payment_type=_parse_enum(PaymentType, payment_type, "paymentType"),
            search=optional_str(search),
        )
        return self._present(payments)

    def _new_due(
        self,
        member: User,
        *,
        amount: Decimal,
        recorded_by: str,
        now: datetime,
        remarks: Optional[str] = None,
    ) -> Payment:
        today = now.date()
        return Payment(
            payment_id=new_id(),
            member_id=member.user_id,
            member_name=member.full_name,
            its_number=member.its_number,
            zone=member.zone,
            amount=amount,
            payment_type=PaymentType.ANNUAL_SUBSCRIPTION,
            status=PaymentStatus.PENDING,
            subscription_year=subscription_year_for(_registered_on(member, today), today),
            due_date=today + timedelta(days=DUE_IN_DAYS),
            remarks=remarks,
            recorded_by=recorded_by,
            auto_generated=False,
            created_at=now,
        )

    def create_payment(self, payload: Mapping[str, Any], recorded_by: str, *, now: datetime | None = None) -> dict:
        now = now or now_local()
        member_id = require_id(payload.get("memberId"), "Member")
        member = self._users.get_by_id(member_id)
        if not member:
            raise NotFoundError("Member not found")

        payment = self._new_due(
            member,
            amount=require_positive_amount(payload.get("amount")),
            recorded_by=recorded_by,
            now=now,
            remarks=optional_str(payload.get("remarks")),
        )
        fields: dict[str, Any] = {
            "payment_type": _parse_enum(PaymentType, payload.get("paymentType"), "paymentType") or payment.payment_type,
            "status": _parse_enum(PaymentStatus, payload.get("status"), "status") or payment.status,
            "subscription_year": optional_str(payload.get("subscriptionYear")) or payment.subscription_year,
            "due_date": optional_date(payload.get("dueDate"), "dueDate") or payment.due_date,
            "payment_method": optional_str(payload.get("paymentMethod")),
            "transaction_id": optional_str(payload.get("transactionId")),
        }
        payment = _replace(payment, fields)
        if payment.status == PaymentStatus.PAID:
            payment = _replace(payment, _paid_fields(payment, now))

        self._payments.create(payment)
        logger.info("Payment %s recorded for member %s", payment.payment_id, member_id)
        return self._present([payment])[0]

    def update_payment(self, payment_id: str, payload: Mapping[str, Any], *, now: datetime | None = None) -> dict:
        now = now or now_local()
        payment = self._payments.get_by_id(payment_id)
        if not payment:
            raise NotFoundError("Payment not found")

        fields: dict[str, Any] = {}
        if payload.get("amount") is not None:
            fields["amount"] = require_positive_amount(payload.get("amount"))
        if _filter_value(payload.get("paymentType")):
            fields["payment_type"] = _parse_enum(PaymentType, payload.get("paymentType"), "paymentType")
        if _filter_value(payload.get("status")):
            fields["status"] = _parse_enum(PaymentStatus, payload.get("status"), "status")
        if "dueDate" in payload:
            fields["due_date"] = optional_date(payload.get("dueDate"), "dueDate")
        if "paidDate" in payload:
            paid_on = optional_date(payload.get("paidDate"), "paidDate")
            fields["paid_date"] = datetime.combine(paid_on, datetime.min.time()) if paid_on else None
        for key, name in (
            ("subscriptionYear", "subscription_year"),
            ("paymentMethod", "payment_method"),
            ("transactionId", "transaction_id"),
            ("receiptNumber", "receipt_number"),
            ("remarks", "remarks"),
        ):
            if key in payload:
                fields[name] = optional_str(payload.get(key))

        updated = _replace(payment, fields)
        if updated.status == PaymentStatus.PAID:
            updated = _replace(updated, _paid_fields(updated, now))

        if not self._payments.update(updated):
            raise NotFoundError("Payment not found")
        return self._present([updated])[0]

    def bulk_assign_dues(
        self,
        member_ids: Any,
        amount: Any,
        *,
        recorded_by: str,
        remarks: Optional[str] = None,
        now: datetime | None = None,
    ) -> BulkResult:
        if not isinstance(member_ids, list) or not member_ids:
            raise ValidationError("No members selected")
        value = require_positive_amount(amount)
        now = now or now_local()

        result = BulkResult()
        for raw_id in member_ids:
            member_id = str(raw_id)
            try:
                canonical = canonical_id(member_id)
                member = self._users.get_by_id(canonical) if canonical else None
                if not member:
                    result.failed.append({"memberId": member_id, "reason": "Member not found"})
                    continue
                payment = self._new_due(
                    member, amount=value, recorded_by=recorded_by, now=now, remarks=optional_str(remarks) or ""
                )
                self._payments.create(payment)
                result.success.append(
                    {"memberId": member_id, "memberName": member.full_name, "paymentId": payment.payment_id}
                )
            except Exception as e:
                logger.exception("Bulk dues: member %s failed", member_id)
                result.failed.append({"memberId": member_id, "reason": str(e)})

        logger.info("Bulk dues: %d created, %d failed", len(result.success), len(result.failed))
        return result

    def bulk_mark_paid(
        self,
        payment_ids: Any,
        *,
        payment_method: Optional[str] = None,
        transaction_id: Optional[str] = None,
        remarks: Optional[str] = None,
        now: datetime | None = None,
    ) -> BulkResult:
        if not isinstance(payment_ids, list) or not payment_ids:
            raise ValidationError("Please select at least one payment")
        now = now or now_local()

        result = BulkResult()
        for raw_id in payment_ids:
            payment_id = str(raw_id)
            try:
                canonical = canonical_id(payment_id)
                payment = self._payments.get_by_id(canonical) if canonical else None
                if not payment:
                    result.failed.append({"paymentId": payment_id, "reason": "Payment not found"})
                    continue
                fields: dict[str, Any] = {
                    "status": PaymentStatus.PAID,
                    "paid_date": now,
                    "payment_method": optional_str(payment_method) or DEFAULT_PAYMENT_METHOD,
                    "transaction_id": optional_str(transaction_id) or "",
                    "receipt_number": payment.receipt_number or generate_receipt_number(now),
                }
                if optional_str(remarks):
                    fields["remarks"] = optional_str(remarks)
                updated = _replace(payment, fields)
                self._payments.update(updated)
                result.success.append(
                    {
                        "paymentId": payment_id,
                        "memberName": updated.member_name,
                        "receiptNumber": updated.receipt_number,
                    }
                )
            except Exception as e:
                logger.exception("Bulk mark-paid: payment %s failed", payment_id)
                result.failed.append({"paymentId": payment_id, "reason": str(e)})

        logger.info("Bulk mark-paid: %d paid, %d failed", len(result.success), len(result.failed))
        return result

    def generate_annual_dues(
        self,
        *,
        recorded_by: str,
        amount: Any = None,
        now: datetime | None = None,
    ) -> GenerationResult:
        """One auto-generated Annual Subscription per member and cycle; members may complete independently."""
        value = require_positive_amount(self._annual_dues if amount is None else amount)
        now = now or now_local()
        today = now.date()

        result = GenerationResult()
        for member in self._users.list_users(role=Role.MEMBER, status=MemberStatus.ACTIVE):
            result.processed += 1
            try:
                registered_on = _registered_on(member, today)
                if not registered_at_least_a_year_ago(registered_on, today):
                    result.skipped += 1
                    continue

                cycle = subscription_year_for(registered_on, today)
                if self._payments.exists_for_year(
                    member_id=member.user_id, payment_type=PaymentType.ANNUAL_SUBSCRIPTION, subscription_year=cycle
                ):
                    result.skipped += 1
                    continue

                due_date = anniversary_in(today.year, registered_on) + timedelta(days=DUE_IN_DAYS)
                self._payments.create(
                    Payment(
                        payment_id=new_id(),
                        member_id=member.user_id,
                        member_name=member.full_name,
                        its_number=member.its_number,
                        zone=member.zone,
                        amount=value,
                        payment_type=PaymentType.ANNUAL_SUBSCRIPTION,
                        status=PaymentStatus.OVERDUE if today > due_date else PaymentStatus.PENDING,
                        subscription_year=cycle,
                        due_date=due_date,
                        recorded_by=recorded_by,
                        auto_generated=True,
                        created_at=now,
                    )
                )
                result.created += 1
            except Exception as e:
                logger.exception("Annual dues: member %s failed", member.its_number)
                result.errors.append({"memberId": member.user_id, "itsNumber": member.its_number, "error": str(e)})

        logger.info(
            "Annual dues: processed=%d created=%d skipped=%d errors=%d",
            result.processed,
            result.created,
            result.skipped,
            len(result.errors),
        )
        return result


def _replace(payment: Payment, fields: Mapping[str, Any]) -> Payment:
    return replace(payment, **fields) if fields else payment
