import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_choice(name: str, default: str, choices: set[str]) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    return value if value in choices else default


@dataclass(frozen=True)
class Settings:
    app_name: str
    database_url: str
    cors_origins: tuple[str, ...]
    log_level: str
    log_file: str
    report_timezone: str
    report_locale: str
    report_compare_previous: bool


settings = Settings(
    app_name=os.getenv("APP_NAME", "POS Desk API"),
    database_url=os.getenv("DATABASE_URL", "sqlite:///./posdesk.db"),
    cors_origins=tuple(
        origin.strip().rstrip("/")
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
        if origin.strip()
    ),
    log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    log_file=os.getenv("LOG_FILE", ""),
    report_timezone=os.getenv("REPORT_TIMEZONE", "UTC"),
    report_locale=_env_choice("REPORT_LOCALE", "en", {"en", "ar"}),
    report_compare_previous=_env_bool("REPORT_COMPARE_PREVIOUS", True),
)
