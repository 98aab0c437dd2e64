from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional, Sequence

from ..core.enums import PaymentStatus, PaymentType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, like
from .model import Payment
from .repository import PaymentRepository

_COLUMNS = (
    "payment_id, member_id, member_name, its_number, zone, amount, payment_type, status, "
    "subscription_year, due_date, paid_date, payment_method, transaction_id, receipt_number, "
    "remarks, recorded_by, auto_generated, created_at"
)


def _row_to_payment(row: dict) -> Payment:
    return Payment(
        payment_id=row["payment_id"],
        member_id=row["member_id"],
        member_name=row["member_name"],
        its_number=row.get("its_number"),
        zone=row.get("zone"),
        amount=Decimal(str(row["amount"])),
        payment_type=PaymentType(row["payment_type"]),
        status=PaymentStatus(row["status"]),
        subscription_year=row.get("subscription_year"),
        due_date=row.get("due_date"),
        paid_date=row.get("paid_date"),
        payment_method=row.get("payment_method"),
        transaction_id=row.get("transaction_id"),
        receipt_number=row.get("receipt_number"),
        remarks=row.get("remarks"),
        recorded_by=row.get("recorded_by"),
        auto_generated=bool(row.get("auto_generated", False)),
        created_at=row.get("created_at"),
    )


class MySQLPaymentRepository(PaymentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, payment: Payment) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payments(payment_id, member_id, member_name, its_number, zone, amount,
                                     payment_type, status, subscription_year, due_date, paid_date,
                                     payment_method, transaction_id, receipt_number, remarks,
                                     recorded_by, auto_generated)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    payment.payment_id,
                    payment.member_id,
                    payment.member_name,
                    payment.its_number,
                    payment.zone,
                    payment.amount,
                    payment.payment_type.value,
                    payment.status.value,
                    payment.subscription_year,
                    payment.due_date,
                    payment.paid_date,
                    payment.payment_method,
                    payment.transaction_id,
                    payment.receipt_number,
                    payment.remarks,
                    payment.recorded_by,
                    1 if payment.auto_generated else 0,
                ),
            )
            return payment.payment_id

    def get_by_id(self, payment_id: str) -> Optional[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM payments WHERE payment_id=%s", (payment_id,))
            row = fetchone(cur)
            return _row_to_payment(row) if row else None

    def update(self, payment: Payment) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payments
                SET amount=%s, payment_type=%s, status=%s, subscription_year=%s, due_date=%s,
                    paid_date=%s, payment_method=%s, transaction_id=%s, receipt_number=%s, remarks=%s
                WHERE payment_id=%s
                """,
                (
                    payment.amount,
                    payment.payment_type.value,
                    payment.status.value,
                    payment.subscription_year,
                    payment.due_date,
                    payment.paid_date,
                    payment.payment_method,
                    payment.transaction_id,
                    payment.receipt_number,
                    payment.remarks,
                    payment.payment_id,
                ),
            )
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT 1 AS found FROM payments WHERE payment_id=%s", (payment.payment_id,))
            return fetchone(cur) is not None

    def list_payments(
        self,
        *,
        member_id: Optional[str] = None,
        statuses: Optional[Sequence[PaymentStatus]] = None,
        zone: Optional[str] = None,
        subscription_year: Optional[str] = None,
        payment_type: Optional[PaymentType] = None,
        search: Optional[str] = None,
        order_by_due_date: bool = False,
    ) -> Sequence[Payment]:
        where: list[str] = []
        params: list[Any] = []
        if member_id:
            where.append("member_id=%s")
            params.append(member_id)
        if statuses:
            placeholders, status_params = in_clause([s.value for s in statuses])
            where.append(f"status IN {placeholders}")
            params.extend(status_params)
        if zone:
            where.append("zone=%s")
            params.append(zone)
        if subscription_year:
            where.append("subscription_year=%s")
            params.append(subscription_year)
        if payment_type:
            where.append("payment_type=%s")
            params.append(payment_type.value)
        if search:
            where.append("(member_name LIKE %s OR its_number LIKE %s)")
            params.extend([like(search)] * 2)

        sql = f"SELECT {_COLUMNS} FROM payments"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY due_date IS NULL, due_date ASC" if order_by_due_date else " ORDER BY created_at DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_payment(r) for r in fetchall(cur)]

    def exists_for_year(self, *, member_id: str, payment_type: PaymentType, subscription_year: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found FROM payments
                WHERE member_id=%s AND payment_type=%s AND subscription_year=%s
                LIMIT 1
                """,
                (member_id, payment_type.value, subscription_year),
            )
            return fetchone(cur) is not None

    def list_recent_paid(self, *, payment_type: PaymentType, limit: int) -> Sequence[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM payments
                WHERE status=%s AND payment_type=%s
                ORDER BY paid_date DESC
                LIMIT %s
                """,
                (PaymentStatus.PAID.value, payment_type.value, int(limit)),
            )
            return [_row_to_payment(r) for r in fetchall(cur)]
