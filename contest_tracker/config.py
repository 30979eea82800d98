from dataclasses import dataclass
from pathlib import Path
import os

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str = f"sqlite:///{BASE_DIR / 'contests.db'}"
    secret_key: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7
    auth_cookie_name: str = "AUTH_TOKEN"
    legacy_auth_cookie_name: str = "token"
    cookie_secure: bool = False
    log_level: str = "INFO"


def load_settings() -> Settings:
    defaults = Settings()
    return Settings(
        database_url=os.getenv("DATABASE_URL", defaults.database_url),
        secret_key=os.getenv("SECRET_KEY", defaults.secret_key),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", defaults.jwt_algorithm),
        access_token_expire_minutes=int(
            os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", defaults.access_token_expire_minutes)
        ),
        auth_cookie_name=os.getenv("AUTH_COOKIE_NAME", defaults.auth_cookie_name),
        legacy_auth_cookie_name=os.getenv("LEGACY_AUTH_COOKIE_NAME", defaults.legacy_auth_cookie_name),
        cookie_secure=_env_bool("COOKIE_SECURE", defaults.cookie_secure),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
    )
