from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import PaymentStatus, PaymentType
from .model import Payment


class PaymentRepository(Protocol):
    def create(self, payment: Payment) -> str:
        raise NotImplementedError

    def get_by_id(self, payment_id: str) -> Optional[Payment]:
        raise NotImplementedError

    def update(self, payment: Payment) -> bool:
        raise NotImplementedError

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
        """Newest first, or earliest due date first when ``order_by_due_date`` is set.

        ``search`` matches member name or ITS number.
        """
        raise NotImplementedError

    def exists_for_year(self, *, member_id: str, payment_type: PaymentType, subscription_year: str) -> bool:
        raise NotImplementedError

    def list_recent_paid(self, *, payment_type: PaymentType, limit: int) -> Sequence[Payment]:
        raise NotImplementedError
