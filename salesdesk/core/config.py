import logging
import os

from dotenv import load_dotenv

# Loads .env from the project root
load_dotenv()

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}

ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_TEST = ENV_NORMALIZED == "test"
IS_PROD = ENV_NORMALIZED in {"prod", "production"}

API_PREFIX = os.getenv("API_PREFIX", "/api/v1").rstrip("/")

# Database
DB_HOST = os.getenv("DB_HOST", "").strip()
DB_PORT = int(os.getenv("DB_PORT", "3306"))
DB_USER = os.getenv("DB_USER", "")
DB_PASSWORD = os.getenv("DB_PASSWORD", "")
DB_NAME = os.getenv("DB_NAME", "salesdesk")

_legacy_host = os.getenv("HOST", "").strip()
if _legacy_host and _legacy_host != DB_HOST:
    logger.warning("HOST is not a database setting; using DB_HOST=%r", DB_HOST)


def build_database_url() -> str:
    explicit = os.getenv("DATABASE_URL", "").strip()
    if explicit:
        return explicit
    if DB_HOST:
        credentials = DB_USER
        if DB_PASSWORD:
            credentials = f"{DB_USER}:{DB_PASSWORD}"
        return f"mysql+pymysql://{credentials}@{DB_HOST}:{DB_PORT}/{DB_NAME}?charset=utf8mb4"
    return "sqlite:///./salesdesk.db"


DATABASE_URL = build_database_url()

DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "100"))
DB_QUEUE_LIMIT = int(os.getenv("DB_QUEUE_LIMIT", "50"))
DB_QUEUE_TIMEOUT = float(os.getenv("DB_QUEUE_TIMEOUT", "10"))

# Auth (JWT)
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
if not JWT_SECRET_KEY and not IS_PROD:
    JWT_SECRET_KEY = "dev-only-secret"
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "60"))

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

# Bootstrap user (DEV)
DEV_USER_USERNAME = os.getenv("DEV_USER_USERNAME", "admin").strip() or "admin"
DEV_USER_PASSWORD = os.getenv("DEV_USER_PASSWORD", "").strip()

# CORS
_cors_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and IS_DEV:
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

ECHO_SQL = os.getenv("ECHO_SQL", "").strip().lower() in _TRUTHY
