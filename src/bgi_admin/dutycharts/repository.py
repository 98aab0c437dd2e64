from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import DutyChart


class DutyChartRepository(Protocol):
    """Repository interface for DutyChart.

    ``create`` and ``update`` check every resolved reference and write the chart in one
    transaction, raising MissingReferencesError (and writing nothing) when a user is missing.
    """

    def create(self, chart: DutyChart) -> str:
        raise NotImplementedError

    def update(self, chart: DutyChart) -> bool:
        raise NotImplementedError

    def get_by_id(self, chart_id: str) -> Optional[DutyChart]:
        raise NotImplementedError

    def list_charts(
        self,
        *,
        search: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        incharge: Optional[str] = None,
        member_id: Optional[str] = None,
    ) -> Sequence[DutyChart]:
        """Ordered by duty date, newest first. ``member_id`` keeps charts listing that member."""
        raise NotImplementedError

    def delete_by_id(self, chart_id: str) -> bool:
        raise NotImplementedError
