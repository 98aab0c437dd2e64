from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Mapping, Optional

from ..common.datetime_utils import iso
from ..common.refs import UserRef, render_ref, resolved_ids


@dataclass(frozen=True)
class Assignment:
    location: str
    area: str
    task: str
    incharge_officer: Optional[UserRef] = None
    sub_incharge_officer: Optional[UserRef] = None
    team: Optional[str] = None
    members: tuple[UserRef, ...] = ()

    def refs(self) -> list[Optional[UserRef]]:
        return [self.incharge_officer, self.sub_incharge_officer, *self.members]

    def to_dict(self, briefs: Mapping[str, dict]) -> dict:
        return {
            "location": self.location,
            "area": self.area,
            "task": self.task,
            "inchargeOfficer": render_ref(self.incharge_officer, briefs),
            "subInchargeOfficer": render_ref(self.sub_incharge_officer, briefs),
            "team": self.team,
            "members": [render_ref(m, briefs) for m in self.members],
        }


@dataclass(frozen=True)
class DutyChart:
    """Roster for one event. Every resolved reference must name an existing user."""

    chart_id: str
    title: str
    event_name: str
    jamiat_incharge: UserRef
    duty_date: date
    reporting_time: str
    dress_code: str
    created_by: str
    captain: Optional[UserRef] = None
    vice_captain: Optional[UserRef] = None
    assignments: tuple[Assignment, ...] = field(default_factory=tuple)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def all_refs(self) -> list[Optional[UserRef]]:
        refs: list[Optional[UserRef]] = [self.jamiat_incharge, self.captain, self.vice_captain]
        for a in self.assignments:
            refs.extend(a.refs())
        return refs

    def referenced_user_ids(self) -> set[str]:
        """Ids that must exist for the chart to be stored."""
        return resolved_ids(self.all_refs())

    def display_user_ids(self) -> set[str]:
        return self.referenced_user_ids() | {self.created_by}

    def assigns(self, user_id: str) -> bool:
        return any(m.user_id == user_id for a in self.assignments for m in a.members)

    def to_dict(self, briefs: Mapping[str, dict]) -> dict:
        return {
            "_id": self.chart_id,
            "title": self.title,
            "eventName": self.event_name,
            "jamiatIncharge": render_ref(self.jamiat_incharge, briefs),
            "eventIncharge": {
                "captain": render_ref(self.captain, briefs),
                "viceCaptain": render_ref(self.vice_captain, briefs),
            },
            "createdBy": briefs.get(self.created_by, self.created_by),
            "dutyDate": iso(self.duty_date),
            "reportingTime": self.reporting_time,
            "dressCode": self.dress_code,
            "assignments": [a.to_dict(briefs) for a in self.assignments],
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
