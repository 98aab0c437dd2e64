from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Mapping, Optional

from ..common.datetime_utils import iso
from ..core.enums import PaymentStatus, PaymentType


@dataclass(frozen=True)
class Payment:
    """A due or settled amount for one member.

    Member name, ITS number and zone are copied at creation so the ledger survives
    later profile edits.
    """

    payment_id: str
    member_id: str
    member_name: str
    its_number: Optional[str]
    zone: Optional[str]
    amount: Decimal
    payment_type: PaymentType = PaymentType.ANNUAL_SUBSCRIPTION
    status: PaymentStatus = PaymentStatus.PENDING
    subscription_year: Optional[str] = None
    due_date: Optional[date] = None
    paid_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    receipt_number: Optional[str] = None
    remarks: Optional[str] = None
    recorded_by: Optional[str] = None
    auto_generated: bool = False
    created_at: Optional[datetime] = None

    @property
    def is_outstanding(self) -> bool:
        return self.status in (PaymentStatus.PENDING, PaymentStatus.OVERDUE)

    def to_dict(self, briefs: Optional[Mapping[str, dict]] = None) -> dict:
        briefs = briefs or {}
        return {
            "_id": self.payment_id,
            "memberId": briefs.get(self.member_id, self.member_id),
            "memberName": self.member_name,
            "itsNumber": self.its_number,
            "zone": self.zone,
            "amount": float(self.amount),
            "paymentType": self.payment_type.value,
            "status": self.status.value,
            "subscriptionYear": self.subscription_year,
            "dueDate": iso(self.due_date),
            "paidDate": self.paid_date.isoformat() if self.paid_date else None,
            "paymentMethod": self.payment_method,
            "transactionId": self.transaction_id,
            "receiptNumber": self.receipt_number,
            "remarks": self.remarks,
            "recordedBy": briefs.get(self.recorded_by, self.recorded_by) if self.recorded_by else None,
            "autoGenerated": self.auto_generated,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class PaymentSummary:
    total_paid: Decimal = Decimal("0")
    total_pending: Decimal = Decimal("0")
    total_overdue: Decimal = Decimal("0")
    paid_count: int = 0
    pending_count: int = 0
    overdue_count: int = 0

    def add(self, payment: Payment) -> None:
        if payment.status == PaymentStatus.PAID:
            self.total_paid += payment.amount
            self.paid_count += 1
        elif payment.status == PaymentStatus.OVERDUE:
            self.total_overdue += payment.amount
            self.overdue_count += 1
        elif payment.status == PaymentStatus.PENDING:
            self.total_pending += payment.amount
            self.pending_count += 1

    def to_dict(self) -> dict:
        return {
            "totalPaid": float(self.total_paid),
            "totalPending": float(self.total_pending),
            "totalOverdue": float(self.total_overdue),
            "paidCount": self.paid_count,
            "pendingCount": self.pending_count,
            "overdueCount": self.overdue_count,
        }
