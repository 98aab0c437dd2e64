from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from ..core.enums import MemberStatus, Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): the service layer depends on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_its_number(self, its_number: str) -> Optional[User]:
        raise NotImplementedError

    def exists_with_its_or_email(
        self,
        *,
        its_number: Optional[str],
        email: Optional[str],
        exclude_user_id: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def create(self, user: User) -> str:
        raise NotImplementedError

    def update_fields(self, user_id: str, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def set_password(self, user_id: str, *, password_hash: str, must_change_password: bool) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: str) -> bool:
        raise NotImplementedError

    def list_users(
        self,
        *,
        search: Optional[str] = None,
        role: Optional[Role] = None,
        zone: Optional[str] = None,
        status: Optional[MemberStatus] = None,
    ) -> Sequence[User]:
        raise NotImplementedError

    def list_active_ids(self) -> list[str]:
        raise NotImplementedError

    def count_active(self) -> int:
        raise NotImplementedError

    def get_briefs(self, user_ids: Iterable[str]) -> dict[str, dict]:
        """Map each existing id to its brief projection; unknown ids are simply absent."""
        raise NotImplementedError
