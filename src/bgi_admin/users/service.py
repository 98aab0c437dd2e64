from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..auth.tokens import TokenService
from ..common.refs import new_id
from ..common.validators import optional_str, require_fields, require_min_length, require_non_empty
from ..core.constants import (
    ACCESSIBLE_DASHBOARDS,
    DASHBOARD_ICONS,
    DASHBOARD_PATHS,
    DEFAULT_DESIGNATION,
    GENERATED_PASSWORD_LENGTH,
    MIN_PASSWORD_LENGTH,
)
from ..core.enums import MemberStatus, Role
from ..core.exceptions import AuthenticationError, MailError, NotFoundError, ValidationError
from ..mail.mailer import Mailer
from ..mail.templates import welcome_email
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)

DUPLICATE_USER_MESSAGE = "User with this email or ITS number already exists"


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User
    redirect_to: str


@dataclass(frozen=True)
class CreatedMember:
    """Outcome of an administrative create: the mail failure is advisory only."""

    user: User
    email_error: Optional[str] = None


def parse_role(value: Any, default: Optional[Role] = None) -> Optional[Role]:
    s = optional_str(value)
    if s is None:
        return default
    try:
        return Role(s)
    except ValueError:
        raise ValidationError(f"Invalid role: {s}")


def parse_status(value: Any, default: Optional[MemberStatus] = None) -> Optional[MemberStatus]:
    s = optional_str(value)
    if s is None:
        return default
    try:
        return MemberStatus(s.lower())
    except ValueError:
        raise ValidationError(f"Invalid status: {s}")


def generate_password(length: int = GENERATED_PASSWORD_LENGTH) -> str:
    return secrets.token_hex((length + 1) // 2)[:length].upper()


def dashboards_for(role: Role) -> list[dict]:
    return [
        {"name": r.value, "path": DASHBOARD_PATHS[r], "icon": DASHBOARD_ICONS[r]}
        for r in ACCESSIBLE_DASHBOARDS[role]
    ]


def _password_matches(password_hash: str, password: str) -> bool:
    try:
        return check_password_hash(password_hash, password)
    except ValueError:
        # e.g. placeholder or corrupted hashes
        return False


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository, tokens: TokenService):
        self._users = users
        self._tokens = tokens

    def login(self, its_number: Optional[str], password: Optional[str]) -> LoginResult:
        its_number = optional_str(its_number)
        logger.info("Login attempt for ITS %s", its_number)
        if not its_number or not password:
            raise ValidationError("ITS number and password are required")

        user = self._users.get_by_its_number(its_number)
        if not user:
            logger.info("Login failed for ITS %s: user not found", its_number)
            raise AuthenticationError("User not found")
        if not user.is_active:
            logger.info("Login failed for ITS %s: account inactive", its_number)
            raise AuthenticationError("User account is inactive")
        if not _password_matches(user.password_hash, password):
            logger.info("Login failed for ITS %s: wrong password", its_number)
            raise AuthenticationError("Invalid ITS number or password")

        token = self._tokens.issue(user.user_id, user.role)
        logger.info("Login succeeded for ITS %s (role %s)", its_number, user.role.value)
        return LoginResult(token=token, user=user, redirect_to=DASHBOARD_PATHS[user.role])


class UserService:
    """Use case: member accounts (self-registration, administration, profile)."""

    def __init__(self, users: UserRepository, mailer: Mailer, *, login_url: str):
        self._users = users
        self._mailer = mailer
        self._login_url = login_url

    def _ensure_unique(self, *, its_number: Optional[str], email: Optional[str], exclude_user_id: Optional[str] = None) -> None:
        if self._users.exists_with_its_or_email(its_number=its_number, email=email, exclude_user_id=exclude_user_id):
            raise ValidationError(DUPLICATE_USER_MESSAGE)

    def _require(self, user_id: str) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("Member not found")
        return user

    def register(self, payload: Mapping[str, Any]) -> User:
        """Public self-registration; the role is always Member."""
        require_fields(payload, ("name", "surname", "email", "mobile", "itsNumber", "password"))
        password = require_min_length(str(payload["password"]), "Password", MIN_PASSWORD_LENGTH)
        its_number = require_non_empty(payload["itsNumber"], "ITS number")
        email = require_non_empty(payload["email"], "Email").lower()
        self._ensure_unique(its_number=its_number, email=email)

        user = User(
            user_id=new_id(),
            name=require_non_empty(payload["name"], "Name"),
            surname=require_non_empty(payload["surname"], "Surname"),
            email=email,
            mobile=require_non_empty(payload["mobile"], "Mobile"),
            whatsapp=optional_str(payload.get("whatsapp")),
            its_number=its_number,
            password_hash=generate_password_hash(password),
            role=Role.MEMBER,
            designation=optional_str(payload.get("designation")) or DEFAULT_DESIGNATION,
            zone=optional_str(payload.get("zone")),
            status=MemberStatus.ACTIVE,
            must_change_password=True,
        )
        self._users.create(user)
        logger.info("Member registered: %s", user.its_number)
        return self._users.get_by_id(user.user_id) or user

    def admin_create(self, payload: Mapping[str, Any]) -> CreatedMember:
        its_number = optional_str(payload.get("itsNumber"))
        if not its_number:
            raise ValidationError("ITS number required")
        zone = optional_str(payload.get("zone"))
        if not zone:
            raise ValidationError("Zone is required")

        email = optional_str(payload.get("email"))
        email = email.lower() if email else None
        self._ensure_unique(its_number=its_number, email=email)

        role = parse_role(payload.get("role"), Role.MEMBER)
        plain_password = optional_str(payload.get("password")) or generate_password()
        require_min_length(plain_password, "Password", MIN_PASSWORD_LENGTH)

        user = User(
            user_id=new_id(),
            name=optional_str(payload.get("name")) or "",
            surname=optional_str(payload.get("surname")) or "",
            email=email,
            mobile=optional_str(payload.get("mobile")),
            whatsapp=optional_str(payload.get("whatsapp")),
            its_number=its_number,
            password_hash=generate_password_hash(plain_password),
            role=role,
            designation=optional_str(payload.get("designation")) or DEFAULT_DESIGNATION,
            zone=zone,
            status=parse_status(payload.get("status"), MemberStatus.ACTIVE),
            must_change_password=role == Role.MEMBER,
        )
        self._users.create(user)
        logger.info("Member created by admin: %s", user.its_number)
        created = self._users.get_by_id(user.user_id) or user

        if not email:
            return CreatedMember(user=created)

        mail = welcome_email(
            name=created.name,
            its_number=its_number,
            email=email,
            password=plain_password,
            login_url=self._login_url,
        )
        try:
            self._mailer.send(email, mail.subject, mail.text, mail.html)
        except MailError as e:
            logger.exception("Welcome email to %s failed", email)
            return CreatedMember(user=created, email_error=str(e))
        return CreatedMember(user=created)

    def update(self, user_id: str, payload: Mapping[str, Any]) -> User:
        self._require(user_id)

        fields: dict[str, Any] = {}
        for key, name in (
            ("name", "name"),
            ("surname", "surname"),
            ("mobile", "mobile"),
            ("whatsapp", "whatsapp"),
            ("designation", "designation"),
            ("zone", "zone"),
        ):
            if key in payload:
                fields[name] = optional_str(payload.get(key))
        if "email" in payload:
            email = optional_str(payload.get("email"))
            fields["email"] = email.lower() if email else None
            if email:
                self._ensure_unique(its_number=None, email=fields["email"], exclude_user_id=user_id)
        if optional_str(payload.get("role")):
            fields["role"] = parse_role(payload.get("role"))
        if optional_str(payload.get("status")):
            fields["status"] = parse_status(payload.get("status"))

        for required in ("name", "surname"):
            if required in fields and not fields[required]:
                raise ValidationError(f"{required.capitalize()} must not be blank")

        if not self._users.update_fields(user_id, fields):
            raise NotFoundError("Member not found")
        return self._require(user_id)

    def delete(self, user_id: str) -> None:
        if not self._users.delete_by_id(user_id):
            raise NotFoundError("Member not found")
        logger.info("Member deleted: %s", user_id)

    def reset_password(self, user_id: str, password: Optional[str]) -> None:
        if not password:
            raise ValidationError("Password required")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        user = self._require(user_id)
        self._users.set_password(
            user.user_id,
            password_hash=generate_password_hash(password),
            must_change_password=user.role == Role.MEMBER,
        )

    def change_own_password(self, user_id: str, *, current_password: Optional[str], new_password: Optional[str]) -> None:
        user = self._require(user_id)
        if not current_password or not _password_matches(user.password_hash, current_password):
            raise ValidationError("Current password is incorrect")
        require_min_length(new_password, "New password", MIN_PASSWORD_LENGTH)
        self._users.set_password(
            user.user_id,
            password_hash=generate_password_hash(new_password),
            must_change_password=False,
        )

    def profile(self, user_id: str) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_members(
        self,
        *,
        search: Optional[str] = None,
        role: Any = None,
        zone: Optional[str] = None,
        status: Any = None,
    ) -> Sequence[User]:
        return self._users.list_users(
            search=optional_str(search),
            role=parse_role(role),
            zone=optional_str(zone),
            status=parse_status(status),
        )
