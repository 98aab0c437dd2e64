from __future__ import annotations

import logging
from functools import wraps
from typing import Callable

from flask import g, request

from ..common.responses import error
from ..core.enums import Role
from ..core.exceptions import AuthenticationError
from .tokens import Identity, TokenService

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "Not authorized"


def current_identity() -> Identity:
    return g.identity


class AccessGate:
    """Route decorators: ``required`` authenticates, ``allow(*roles)`` authorizes.

    Usage::

        @app.post("/miqaat")
        @gate.required
        @gate.allow(Role.SUPERADMIN, Role.ADMIN)
        def create_miqaat(): ...
    """

    def __init__(self, tokens: TokenService):
        self._tokens = tokens

    def required(self, view: Callable):
        @wraps(view)
        def wrapper(*args, **kwargs):
            header = request.headers.get("Authorization", "")
            token = header[len("Bearer "):].strip() if header.startswith("Bearer ") else ""
            if not token:
                logger.warning("Missing bearer token: %s %s", request.method, request.path)
                return error(UNAUTHORIZED_MESSAGE, 401)

            try:
                g.identity = self._tokens.decode(token)
            except AuthenticationError as e:
                logger.warning("Invalid bearer token on %s %s: %s", request.method, request.path, e)
                return error(UNAUTHORIZED_MESSAGE, 401)

            return view(*args, **kwargs)

        return wrapper

    def allow(self, *roles: Role):
        allowed = frozenset(roles)

        def decorator(view: Callable):
            @wraps(view)
            def wrapper(*args, **kwargs):
                identity = g.get("identity")
                if identity is None or identity.role not in allowed:
                    logger.warning(
                        "Role denied on %s %s: %s not in %s",
                        request.method,
                        request.path,
                        identity.role.value if identity else None,
                        sorted(r.value for r in allowed),
                    )
                    role_s = identity.role.value if identity else "none"
                    required = ", ".join(r.value for r in roles)
                    return error(f"Access denied. Your role: {role_s}. Required: {required}", 403)
                return view(*args, **kwargs)

            return wrapper

        return decorator
