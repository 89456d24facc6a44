"""
Configuration Module
Reads service settings from environment variables (and an optional .env file)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

try:
    from dotenv import load_dotenv

    load_dotenv()
except Exception:
    # dotenv is optional when the platform injects env vars.
    pass


PROJECT_ROOT = Path(__file__).resolve().parents[1]
TEMPLATES_DIR = PROJECT_ROOT / "templates"


def resolve_path(path_str: str) -> str:
    """Resolve a possibly relative path against the project root.

    URLs are returned untouched.
    """
    if is_url(path_str):
        return path_str
    # Allow Windows-style env var paths (e.g., "data\\certificates.json") even on Linux.
    normalized = (path_str or "").replace("\\", "/")
    p = Path(normalized)
    if not p.is_absolute():
        p = PROJECT_ROOT / p
    return str(p)


def is_url(value: str) -> bool:
    return (value or "").lower().startswith(("http://", "https://"))


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if raw.isdigit():
        return int(raw)
    return default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


@dataclass(frozen=True)
class Settings:
    dataset_path: str = "certificates.json"
    max_attempts: int = 5
    cooldown_seconds: int = 60
    result_delay_seconds: float = 1.5
    auto_trigger_delay_seconds: float = 0.5
    toast_seconds: float = 4.0
    session_ttl_seconds: float = 1800.0
    event_title: str = "Cloud Computing With AWS"
    event_date: str = "January 17, 2026"
    event_organizer: str = "AWS Cloud Club at SVKM's Institute of Technology, Dhule"
    cors_allow_origins: tuple = ("*",)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment, falling back to defaults."""
        defaults = cls()
        origins_raw = os.getenv("CORS_ALLOW_ORIGINS", "*")
        origins: List[str] = [o.strip() for o in origins_raw.split(",") if o.strip()]

        return cls(
            dataset_path=resolve_path(os.getenv("DATASET_PATH", defaults.dataset_path)),
            max_attempts=max(1, _env_int("MAX_ATTEMPTS", defaults.max_attempts)),
            cooldown_seconds=_env_int("COOLDOWN_SECONDS", defaults.cooldown_seconds),
            result_delay_seconds=_env_float("RESULT_DELAY_SECONDS", defaults.result_delay_seconds),
            auto_trigger_delay_seconds=_env_float(
                "AUTO_TRIGGER_DELAY_SECONDS", defaults.auto_trigger_delay_seconds
            ),
            toast_seconds=_env_float("TOAST_SECONDS", defaults.toast_seconds),
            session_ttl_seconds=_env_float("SESSION_TTL_SECONDS", defaults.session_ttl_seconds),
            event_title=os.getenv("EVENT_TITLE", defaults.event_title),
            event_date=os.getenv("EVENT_DATE", defaults.event_date),
            event_organizer=os.getenv("EVENT_ORGANIZER", defaults.event_organizer),
            cors_allow_origins=tuple(origins) if origins else ("*",),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        )

    @property
    def event_info(self) -> dict:
        return {
            "title": self.event_title,
            "date": self.event_date,
            "organizer": self.event_organizer,
        }


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the process-wide settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment"""
    global _settings
    _settings = None
