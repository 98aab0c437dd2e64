"""BGI membership administration backend.

Organized by feature modules (users, dutycharts, miqaats, notifications, finance)
with a thin Flask controller layer over service/repository layers.
"""
from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, ensure_superadmins, list_tables, superadmin_seeds_from_env
from .dutycharts.controller import register as register_dutycharts
from .finance.controller import register as register_finance
from .middleware.error_handlers import register_error_handlers
from .miqaats.controller import register as register_miqaats
from .notifications.controller import register as register_notifications
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "database" / "schema.sql"
VERCEL_PREVIEW_ORIGIN = r"https://.*\.vercel\.app"


def create_app(container: Optional[Container] = None, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["ENV_NAME"] = getattr(settings, "ENV_NAME", "development")

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    origins: list = list(getattr(settings, "ALLOWED_ORIGINS", []))
    if getattr(settings, "ALLOW_VERCEL_PREVIEWS", False):
        origins.append(VERCEL_PREVIEW_ORIGIN)
    CORS(app, origins=origins, supports_credentials=True)

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        if getattr(settings, "AUTO_SEED_DB", False):
            created = ensure_superadmins(db_config, superadmin_seeds_from_env())
            logger.info("SuperAdmin seed ready (created=%d)", len(created))

        container = build_container(
            db_config=db_config,
            jwt_secret=getattr(settings, "JWT_SECRET"),
            jwt_algorithm=getattr(settings, "JWT_ALGORITHM", "HS256"),
            jwt_expires_days=int(getattr(settings, "JWT_EXPIRES_DAYS", 7)),
            mail_config=getattr(settings, "MAIL_CONFIG", {}),
            frontend_url=getattr(settings, "FRONTEND_URL", "http://localhost:5173"),
            annual_dues=int(getattr(settings, "DEFAULT_ANNUAL_DUES", 3000)),
        )

    app.extensions["bgi_container"] = container

    register_users(app, container)
    register_dutycharts(app, container)
    register_miqaats(app, container)
    register_notifications(app, container)
    register_finance(app, container)
    register_error_handlers(app)

    @app.get("/health")
    def health():
        return {"success": True, "status": "ok", "env": app.config["ENV_NAME"]}

    return app
