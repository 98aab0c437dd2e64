from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from ..auth.tokens import Identity
from ..common.datetime_utils import iso
from ..common.refs import UserRef, new_id, parse_user_ref, parse_user_refs
from ..common.validators import optional_date, optional_str, require_date, require_fields
from ..core.constants import DEFAULT_CHART_TITLE
from ..core.enums import NotificationType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..notifications.service import NotificationService
from ..users.repository import UserRepository
from .model import Assignment, DutyChart
from .repository import DutyChartRepository

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("eventName", "dutyDate", "reportingTime", "dressCode")
ASSIGNMENT_REQUIRED_FIELDS = ("location", "area", "task")


def parse_assignments(value: Any) -> tuple[Assignment, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValidationError("assignments must be a list")

    out: list[Assignment] = []
    for index, raw in enumerate(value, start=1):
        if not isinstance(raw, Mapping):
            raise ValidationError(f"Assignment {index} must be an object")
        missing = [f for f in ASSIGNMENT_REQUIRED_FIELDS if not optional_str(raw.get(f))]
        if missing:
            raise ValidationError(f"Assignment {index}: {', '.join(missing)} required")
        out.append(
            Assignment(
                location=optional_str(raw.get("location")),
                area=optional_str(raw.get("area")),
                task=optional_str(raw.get("task")),
                incharge_officer=parse_user_ref(raw.get("inchargeOfficer")),
                sub_incharge_officer=parse_user_ref(raw.get("subInchargeOfficer")),
                team=optional_str(raw.get("team")),
                members=tuple(parse_user_refs(raw.get("members"))),
            )
        )
    return tuple(out)


def _event_incharge(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    value = payload.get("eventIncharge")
    return value if isinstance(value, Mapping) else {}


def _updated_ref(source: Mapping[str, Any], key: str, current: Optional[UserRef]) -> Optional[UserRef]:
    """An explicit null clears the field; a blank or absent value keeps it."""
    if key in source and source[key] is None:
        return None
    return parse_user_ref(source.get(key)) or current


def _require_jamiat_incharge(value: Any) -> UserRef:
    ref = parse_user_ref(value)
    if ref is None:
        raise ValidationError("Please provide a valid Jamiat Incharge (select or type a name).")
    return ref


class DutyChartService:
    """Use case: duty rosters (Admin/SuperAdmin write, members read their own)."""

    def __init__(self, charts: DutyChartRepository, users: UserRepository, notifications: NotificationService):
        self._charts = charts
        self._users = users
        self._notifications = notifications

    def _present(self, charts: Sequence[DutyChart]) -> list[dict]:
        ids: set[str] = set()
        for c in charts:
            ids |= c.display_user_ids()
        briefs = self._users.get_briefs(ids) if ids else {}
        return [c.to_dict(briefs) for c in charts]

    def _reload(self, chart_id: str) -> dict:
        chart = self._charts.get_by_id(chart_id)
        if not chart:
            raise NotFoundError("Duty chart not found")
        return self._present([chart])[0]

    def create(self, payload: Mapping[str, Any], created_by: str) -> dict:
        require_fields(payload, REQUIRED_FIELDS)
        incharge = _event_incharge(payload)
        chart = DutyChart(
            chart_id=new_id(),
            title=optional_str(payload.get("title")) or DEFAULT_CHART_TITLE,
            event_name=optional_str(payload.get("eventName")),
            jamiat_incharge=_require_jamiat_incharge(payload.get("jamiatIncharge")),
            duty_date=require_date(payload.get("dutyDate"), "dutyDate"),
            reporting_time=optional_str(payload.get("reportingTime")),
            dress_code=optional_str(payload.get("dressCode")),
            created_by=created_by,
            captain=parse_user_ref(incharge.get("captain")),
            vice_captain=parse_user_ref(incharge.get("viceCaptain")),
            assignments=parse_assignments(payload.get("assignments")),
        )
        self._charts.create(chart)
        logger.info("Duty chart %s created for %s", chart.chart_id, chart.event_name)

        try:
            self._notifications.notify_all_users(
                NotificationType.DUTY,
                f'Duty chart "{chart.event_name}" has been published for {iso(chart.duty_date)}.',
                created_by,
            )
        except Exception:
            logger.exception("Duty chart %s: notification fan-out failed", chart.chart_id)

        return self._reload(chart.chart_id)

    def list_charts(
        self,
        identity: Identity,
        *,
        search: Optional[str] = None,
        date_from: Any = None,
        date_to: Any = None,
        incharge: Optional[str] = None,
    ) -> list[dict]:
        charts = self._charts.list_charts(
            search=optional_str(search),
            date_from=optional_date(date_from, "from"),
            date_to=optional_date(date_to, "to"),
            incharge=optional_str(incharge),
            member_id=identity.user_id if identity.role == Role.MEMBER else None,
        )
        return self._present(charts)

    def get(self, chart_id: str, identity: Identity) -> dict:
        chart = self._charts.get_by_id(chart_id)
        if not chart:
            raise NotFoundError("Duty chart not found")
        if identity.role == Role.MEMBER and not chart.assigns(identity.user_id):
            raise AuthorizationError("Forbidden. Not assigned to this chart.")
        return self._present([chart])[0]

    def update(self, chart_id: str, payload: Mapping[str, Any]) -> dict:
        """Partial update: blank fields keep their stored value, a supplied list replaces all assignments."""
        chart = self._charts.get_by_id(chart_id)
        if not chart:
            raise NotFoundError("Duty chart not found")

        incharge = _event_incharge(payload)
        date_value = optional_date(payload.get("dutyDate"), "dutyDate")
        updated = DutyChart(
            chart_id=chart.chart_id,
            title=optional_str(payload.get("title")) or chart.title,
            event_name=optional_str(payload.get("eventName")) or chart.event_name,
            jamiat_incharge=parse_user_ref(payload.get("jamiatIncharge")) or chart.jamiat_incharge,
            duty_date=date_value or chart.duty_date,
            reporting_time=optional_str(payload.get("reportingTime")) or chart.reporting_time,
            dress_code=optional_str(payload.get("dressCode")) or chart.dress_code,
            created_by=chart.created_by,
            captain=_updated_ref(incharge, "captain", chart.captain),
            vice_captain=_updated_ref(incharge, "viceCaptain", chart.vice_captain),
            assignments=(
                parse_assignments(payload["assignments"])
                if isinstance(payload.get("assignments"), list)
                else chart.assignments
            ),
            created_at=chart.created_at,
        )
        if not self._charts.update(updated):
            raise NotFoundError("Duty chart not found")
        logger.info("Duty chart %s updated", chart_id)
        return self._reload(chart_id)

    def delete(self, chart_id: str) -> None:
        if not self._charts.delete_by_id(chart_id):
            raise NotFoundError("Duty chart not found")
        logger.info("Duty chart %s deleted", chart_id)
