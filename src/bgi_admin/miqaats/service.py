from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..auth.tokens import Identity
from ..common.datetime_utils import now_local
from ..common.refs import new_id, require_id
from ..common.validators import optional_date, optional_str, require_date
from ..core.enums import ADMIN_ROLES, AttendanceStatus, NotificationType
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..notifications.model import NotificationMessage
from ..notifications.service import NotificationService
from ..users.repository import UserRepository
from .model import AttendanceEntry, Miqaat
from .repository import MiqaatRepository

logger = logging.getLogger(__name__)

ALREADY_REGISTERED = "Already registered for Khidmat."
REGISTERED = "Registered for Khidmat successfully."


@dataclass(frozen=True)
class Registration:
    created: bool

    @property
    def message(self) -> str:
        return REGISTERED if self.created else ALREADY_REGISTERED


class MiqaatService:
    """Use case: events, their announcement, and member self-registration."""

    def __init__(self, miqaats: MiqaatRepository, users: UserRepository, notifications: NotificationService):
        self._miqaats = miqaats
        self._users = users
        self._notifications = notifications

    def _present(self, items: Sequence[Miqaat]) -> list[dict]:
        ids: set[str] = set()
        for m in items:
            ids |= m.display_user_ids()
        briefs = self._users.get_briefs(ids) if ids else {}
        return [m.to_dict(briefs) for m in items]

    def _require(self, miqaat_id: str) -> Miqaat:
        miqaat = self._miqaats.get_by_id(miqaat_id)
        if not miqaat:
            raise NotFoundError("Miqaat not found")
        return miqaat

    def create(self, payload: Mapping[str, Any], created_by: str) -> dict:
        name = optional_str(payload.get("name"))
        location = optional_str(payload.get("location"))
        if not name or not location or not optional_str(payload.get("date")):
            raise ValidationError("name, location, date are required.")

        miqaat = Miqaat(
            miqaat_id=new_id(),
            name=name,
            location=location,
            date=require_date(payload.get("date"), "date"),
            created_by=created_by,
        )
        self._miqaats.create(miqaat)
        logger.info("Miqaat %s created: %s", miqaat.miqaat_id, name)

        # The event stays created even when the announcement fails.
        try:
            self._notifications.notify_all_users(
                NotificationType.MIQAAT,
                NotificationMessage(
                    text=f'A new Miqaat "{name}" has been announced at {location}.',
                    miqaat_id=miqaat.miqaat_id,
                ),
                created_by,
            )
        except Exception:
            logger.exception("Miqaat %s: notification fan-out failed", miqaat.miqaat_id)

        return self._present([self._require(miqaat.miqaat_id)])[0]

    def list_miqaats(
        self,
        *,
        search: Optional[str] = None,
        location: Optional[str] = None,
        date_from: Any = None,
        date_to: Any = None,
    ) -> list[dict]:
        items = self._miqaats.list_miqaats(
            search=optional_str(search),
            location=optional_str(location),
            date_from=optional_date(date_from, "from"),
            date_to=optional_date(date_to, "to"),
        )
        return self._present(items)

    def get(self, miqaat_id: str) -> dict:
        return self._present([self._require(miqaat_id)])[0]

    def update(self, miqaat_id: str, payload: Mapping[str, Any]) -> dict:
        miqaat = self._require(miqaat_id)
        ok = self._miqaats.update(
            miqaat_id,
            name=optional_str(payload.get("name")) or miqaat.name,
            location=optional_str(payload.get("location")) or miqaat.location,
            date=optional_date(payload.get("date"), "date") or miqaat.date,
        )
        if not ok:
            raise NotFoundError("Miqaat not found")
        return self.get(miqaat_id)

    def delete(self, miqaat_id: str) -> None:
        if not self._miqaats.delete_by_id(miqaat_id):
            raise NotFoundError("Miqaat not found")
        logger.info("Miqaat %s deleted", miqaat_id)

    def register_attendance(
        self,
        miqaat_id: str,
        identity: Identity,
        member_id: Any = None,
        *,
        now: datetime | None = None,
    ) -> Registration:
        """Idempotent: a second registration for the same member reports the existing entry."""
        member_id = require_id(member_id, "Member") if optional_str(member_id) else identity.user_id
        if member_id != identity.user_id and identity.role not in ADMIN_ROLES:
            raise AuthorizationError("You can only register yourself")

        self._require(miqaat_id)
        if not self._users.get_by_id(member_id):
            raise NotFoundError("Member not found")

        if self._miqaats.get_attendance_entry(miqaat_id, member_id):
            return Registration(created=False)

        entry = AttendanceEntry(member_id=member_id, status=AttendanceStatus.PRESENT, check_in=now or now_local())
        created = self._miqaats.add_attendance(miqaat_id, entry)
        if created:
            logger.info("Member %s registered for Miqaat %s", member_id, miqaat_id)
        return Registration(created=created)
