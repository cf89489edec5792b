import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from listing_monitor.errors import ConfigurationError

# Load .env values into environment variables
load_dotenv()

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


def env(name: str, default: str | None = None) -> str:
    v = os.getenv(name, default)
    return (v or "").strip()


def _number(name: str, default: str, cast=int, minimum=0, allow_minimum=True):
    raw = env(name, default)
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc

    if not (value > minimum or (allow_minimum and value == minimum)):
        bound = ">=" if allow_minimum else ">"
        raise ConfigurationError(f"{name} must be {bound} {minimum}, got {raw!r}")
    return value


def _flag(name: str, default: str = "false") -> bool:
    return env(name, default).lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    cron_secret: str
    database_url: str = "sqlite:///./listing_monitor.db"

    # Probing
    probe_timeout_seconds: float = 15.0
    probe_delay_ms: int = 1000
    probe_user_agent: str = DEFAULT_USER_AGENT

    # Alerting (disabled unless switched on explicitly)
    notifications_enabled: bool = False
    notify_webhook_url: str = ""

    # 0 disables the in-process scheduler
    schedule_interval_minutes: int = 0

    def require_secret(self) -> str:
        if not self.cron_secret:
            raise ConfigurationError("CRON_SECRET is not configured")
        return self.cron_secret


def load_settings() -> Settings:
    """
    Build Settings from the process environment. Called once at startup;
    everything downstream receives the object instead of reading os.environ.
    """
    database_url = env("DATABASE_URL", "sqlite:///./listing_monitor.db")
    if not database_url:
        raise ConfigurationError("DATABASE_URL is empty")

    return Settings(
        cron_secret=env("CRON_SECRET"),
        database_url=database_url,
        probe_timeout_seconds=_number("PROBE_TIMEOUT_SECONDS", "15", float, allow_minimum=False),
        probe_delay_ms=_number("PROBE_DELAY_MS", "1000"),
        probe_user_agent=env("PROBE_USER_AGENT", DEFAULT_USER_AGENT),
        notifications_enabled=_flag("NOTIFICATIONS_ENABLED"),
        notify_webhook_url=env("NOTIFY_WEBHOOK_URL"),
        schedule_interval_minutes=_number("SCHEDULE_INTERVAL_MINUTES", "0"),
    )


def configure_logging() -> None:
    logging.basicConfig(
        level=env("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
