from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceEntry, Miqaat


class MiqaatRepository(Protocol):
    def create(self, miqaat: Miqaat) -> str:
        raise NotImplementedError

    def get_by_id(self, miqaat_id: str) -> Optional[Miqaat]:
        raise NotImplementedError

    def list_miqaats(
        self,
        *,
        search: Optional[str] = None,
        location: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> Sequence[Miqaat]:
        raise NotImplementedError

    def update(self, miqaat_id: str, *, name: str, location: str, date: date) -> bool:
        raise NotImplementedError

    def delete_by_id(self, miqaat_id: str) -> bool:
        raise NotImplementedError

    def get_attendance_entry(self, miqaat_id: str, member_id: str) -> Optional[AttendanceEntry]:
        raise NotImplementedError

    def add_attendance(self, miqaat_id: str, entry: AttendanceEntry) -> bool:
        """Append ``entry``; False when the member is already on the list."""
        raise NotImplementedError
