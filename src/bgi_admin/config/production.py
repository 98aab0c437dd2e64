import os

from .common import db_config_from_env, env_flag, env_list, mail_config_from_env

ENV_NAME = "production"

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

JWT_SECRET = os.getenv("JWT_SECRET", "please-set-JWT_SECRET")
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))

DB_CONFIG = db_config_from_env()

MAIL_CONFIG = mail_config_from_env()
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

ALLOWED_ORIGINS = env_list("ALLOWED_ORIGINS")
ALLOW_VERCEL_PREVIEWS = env_flag("ALLOW_VERCEL_PREVIEWS", "0")

DEFAULT_ANNUAL_DUES = int(os.getenv("DEFAULT_ANNUAL_DUES", "3000"))

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "0")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")
