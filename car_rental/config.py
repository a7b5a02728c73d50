import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]


def env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    APP_ENV: str = os.getenv("APP_ENV", "dev")
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-change-me")
    DATA_PATH: str | None = os.getenv("DATA_PATH", str(BASE_DIR / "data.pkl"))
    TIMEZONE: str = os.getenv("TIMEZONE", "Europe/Bucharest")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    # Same-day handoff: a rental ending on day D does not block one starting on D.
    ALLOW_SAME_DAY_TURNOVER: bool = env_bool("ALLOW_SAME_DAY_TURNOVER", default=False)
    DEFAULT_ADMIN_EMAIL: str | None = os.getenv("DEFAULT_ADMIN_EMAIL", "admin@rental.local")
    DEFAULT_ADMIN_PASSWORD: str = os.getenv("DEFAULT_ADMIN_PASSWORD", "Admin123")
    LOGIN_DISABLED: bool = env_bool("LOGIN_DISABLED", default=False)
    TESTING: bool = False


class TestConfig(Config):
    APP_ENV = "test"
    TESTING = True
    SECRET_KEY = "test"
    DATA_PATH = None
    LOG_LEVEL = "WARNING"
    DEFAULT_ADMIN_EMAIL = None
