from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Mapping, Optional

from ..common.datetime_utils import iso
from ..core.enums import AttendanceStatus


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class AttendanceEntry:
    member_id: str
    status: AttendanceStatus = AttendanceStatus.PRESENT
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    note: Optional[str] = None

    def to_dict(self, briefs: Mapping[str, dict]) -> dict:
        return {
            "member": briefs.get(self.member_id, self.member_id),
            "status": self.status.value,
            "checkIn": _ts(self.check_in),
            "checkOut": _ts(self.check_out),
            "note": self.note,
        }


@dataclass(frozen=True)
class Miqaat:
    """Event. A member appears at most once in ``attendance``."""

    miqaat_id: str
    name: str
    location: str
    date: date
    created_by: str
    attendance: tuple[AttendanceEntry, ...] = field(default_factory=tuple)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def display_user_ids(self) -> set[str]:
        return {self.created_by} | {a.member_id for a in self.attendance}

    def to_dict(self, briefs: Mapping[str, dict]) -> dict:
        return {
            "_id": self.miqaat_id,
            "name": self.name,
            "location": self.location,
            "date": iso(self.date),
            "createdBy": briefs.get(self.created_by, self.created_by),
            "attendance": [a.to_dict(briefs) for a in self.attendance],
            "createdAt": _ts(self.created_at),
            "updatedAt": _ts(self.updated_at),
        }
