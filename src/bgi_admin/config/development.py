import os

from .common import db_config_from_env, env_flag, env_list, mail_config_from_env

ENV_NAME = "development"

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

JWT_SECRET = os.getenv("JWT_SECRET", "dev-jwt-secret")
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))

DB_CONFIG = db_config_from_env()

# Local work usually has no SMTP account; print mails to the log instead.
MAIL_CONFIG = dict(mail_config_from_env(), provider=os.getenv("MAIL_PROVIDER", "log").strip().lower())
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

ALLOWED_ORIGINS = env_list("ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000")
ALLOW_VERCEL_PREVIEWS = env_flag("ALLOW_VERCEL_PREVIEWS", "1")

DEFAULT_ANNUAL_DUES = int(os.getenv("DEFAULT_ANNUAL_DUES", "3000"))

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")
# Optional: also seed the SuperAdmin accounts on startup
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")
