"""Identifiers and user reference fields.

Every persisted entity is keyed by a UUID4 string. Fields that point at a user may
also hold a free-typed name (e.g. an in-charge who has no account), so they are
parsed once at the boundary into a ``UserRef`` and never re-interpreted later.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Union

from ..core.exceptions import NotFoundError


def new_id() -> str:
    return str(uuid.uuid4())


def canonical_id(value: Any) -> Optional[str]:
    """Hyphenated lowercase form of any accepted UUID spelling (hex, braces, urn), else None."""
    if not isinstance(value, str):
        return None
    try:
        return str(uuid.UUID(value.strip()))
    except ValueError:
        return None


def is_valid_id(value: Any) -> bool:
    return canonical_id(value) is not None


def require_id(value: Any, what: str = "Record") -> str:
    """Path/body ids that are not UUID-shaped cannot exist: report them as not found."""
    canonical = canonical_id(value)
    if canonical is None:
        raise NotFoundError(f"{what} not found")
    return canonical


@dataclass(frozen=True)
class UserRef:
    """Either a resolved user id or an unresolved raw string, never both."""

    user_id: Optional[str] = None
    raw: Optional[str] = None

    @classmethod
    def resolved(cls, user_id: str) -> "UserRef":
        return cls(user_id=canonical_id(user_id) or user_id.strip().lower())

    @classmethod
    def unresolved(cls, raw: str) -> "UserRef":
        return cls(raw=raw)

    @property
    def is_resolved(self) -> bool:
        return self.user_id is not None

    @property
    def value(self) -> str:
        return self.user_id if self.user_id is not None else str(self.raw)


def parse_user_ref(value: Any) -> Optional[UserRef]:
    if value is None:
        return None
    if isinstance(value, UserRef):
        return value
    if isinstance(value, Mapping):
        # Clients sometimes echo back a denormalized user object.
        value = value.get("_id") or value.get("id")
        if value is None:
            return None
    s = str(value).strip()
    if not s:
        return None
    if is_valid_id(s):
        return UserRef.resolved(s)
    return UserRef.unresolved(s)


def parse_user_refs(values: Any) -> list[UserRef]:
    if not isinstance(values, list):
        return []
    out: list[UserRef] = []
    for v in values:
        ref = parse_user_ref(v)
        if ref is not None:
            out.append(ref)
    return out


def resolved_ids(refs: Iterable[Optional[UserRef]]) -> set[str]:
    return {r.user_id for r in refs if r is not None and r.user_id is not None}


def render_ref(ref: Optional[UserRef], briefs: Mapping[str, dict]) -> Union[dict, str, None]:
    """Replace a resolved ref with its user projection; anything else passes through."""
    if ref is None:
        return None
    if ref.user_id is not None and ref.user_id in briefs:
        return briefs[ref.user_id]
    return ref.value
