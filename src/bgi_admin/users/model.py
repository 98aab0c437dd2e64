from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import MemberStatus, Role


@dataclass(frozen=True)
class User:
    """Domain entity: a member account.

    Pure data object (no DB access code).
    """

    user_id: str
    name: str
    surname: str
    email: Optional[str]
    mobile: Optional[str]
    whatsapp: Optional[str]
    its_number: str
    password_hash: str
    role: Role
    designation: Optional[str]
    zone: Optional[str]
    status: MemberStatus = MemberStatus.ACTIVE
    must_change_password: bool = False
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == MemberStatus.ACTIVE

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}".strip()

    def to_public(self) -> dict:
        return {
            "_id": self.user_id,
            "name": self.name,
            "surname": self.surname,
            "email": self.email,
            "mobile": self.mobile,
            "whatsapp": self.whatsapp,
            "itsNumber": self.its_number,
            "role": self.role.value,
            "designation": self.designation,
            "zone": self.zone,
            "status": self.status.value,
            "mustChangePassword": self.must_change_password,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def to_brief(self) -> dict:
        """Projection embedded wherever another record references this user."""
        return {
            "_id": self.user_id,
            "name": self.name,
            "surname": self.surname,
            "itsNumber": self.its_number,
            "role": self.role.value,
        }


# Profile fields an administrator may change through a partial update.
EDITABLE_FIELDS = ("name", "surname", "email", "mobile", "whatsapp", "role", "designation", "zone", "status")
