from .common import db_config_from_env

ENV_NAME = "testing"

SECRET_KEY = "test-secret"

JWT_SECRET = "test-jwt-secret"
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_DAYS = 7

DB_CONFIG = db_config_from_env(default_database="bgi_admin_test")

MAIL_CONFIG = {"provider": "log", "from_name": "BGI Ujjain", "user": "no-reply@example.com"}
FRONTEND_URL = "http://localhost:5173"

ALLOWED_ORIGINS = ["http://localhost:5173"]
ALLOW_VERCEL_PREVIEWS = False

DEFAULT_ANNUAL_DUES = 3000

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
AUTO_SEED_DB = False
