from __future__ import annotations

import logging

from flask import Flask, current_app
from werkzeug.exceptions import HTTPException

from ..common.responses import error
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    MissingReferencesError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(MissingReferencesError)
    def missing_references(e: MissingReferencesError):
        return error(str(e), 400, missing=e.missing)

    @app.errorhandler(ValidationError)
    def validation_error(e: ValidationError):
        return error(str(e), 400)

    @app.errorhandler(AuthenticationError)
    def authentication_error(e: AuthenticationError):
        return error(str(e), 401)

    @app.errorhandler(AuthorizationError)
    def authorization_error(e: AuthorizationError):
        return error(str(e), 403)

    @app.errorhandler(NotFoundError)
    def not_found_error(e: NotFoundError):
        return error(str(e), 404)

    @app.errorhandler(HTTPException)
    def http_error(e: HTTPException):
        return error(e.name, e.code or 500)

    @app.errorhandler(Exception)
    def unexpected_error(e: Exception):
        logger.exception("Unhandled error")
        if current_app.config.get("ENV_NAME") == "production":
            return error("Server error", 500)
        return error("Server error", 500, error=str(e))
