"""Configuration management for nextup."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

NEXTUP_HOME = Path(os.environ.get("NEXTUP_HOME", Path.home() / "nextup"))
CONFIG_FILE = NEXTUP_HOME / "config" / "nextup.conf"
TOKEN_FILE = NEXTUP_HOME / "config" / ".tokens.json"
DATA_DIR = NEXTUP_HOME / "data"


@dataclass
class Config:
    """nextup configuration."""

    ticktick_client_id: str = ""
    ticktick_client_secret: str = ""
    timezone: str = "America/Toronto"
    use_icalpal: bool = True
    icalpal_include_calendars: list[str] = field(default_factory=list)
    fetch_policy: str = "abort"
    completion_delay_ms: int = 300
    settings_file: str = str(DATA_DIR / "settings.json")
    badge_file: str = str(DATA_DIR / "badge")


@dataclass
class Tokens:
    """OAuth tokens for TickTick."""

    access_token: str = ""
    refresh_token: str = ""
    expires_at: int = 0

    def save(self) -> None:
        """Save tokens to file."""
        TOKEN_FILE.parent.mkdir(parents=True, exist_ok=True)
        TOKEN_FILE.write_text(
            json.dumps(
                {
                    "access_token": self.access_token,
                    "refresh_token": self.refresh_token,
                    "expires_at": self.expires_at,
                }
            )
        )
        TOKEN_FILE.chmod(0o600)

    @classmethod
    def load(cls) -> "Tokens":
        """Load tokens from file."""
        if not TOKEN_FILE.exists():
            return cls()
        try:
            data = json.loads(TOKEN_FILE.read_text())
            return cls(
                access_token=data.get("access_token", ""),
                refresh_token=data.get("refresh_token", ""),
                expires_at=data.get("expires_at", 0),
            )
        except (json.JSONDecodeError, KeyError):
            return cls()


def _parse_bool(value: str) -> bool:
    return value.lower() in ("1", "true", "yes", "on")


def _unquote(value: str) -> str:
    """Strip quotes, or an inline comment from unquoted values."""
    for quote in ('"', "'"):
        if value.startswith(quote):
            end_quote = value.find(quote, 1)
            return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from nextup.conf file."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "ticktick_client_id":
                config.ticktick_client_id = value
            case "ticktick_client_secret":
                config.ticktick_client_secret = value
            case "timezone":
                config.timezone = value
            case "use_icalpal":
                config.use_icalpal = _parse_bool(value)
            case "icalpal_include_calendars":
                config.icalpal_include_calendars = [c.strip() for c in value.split(",") if c.strip()]
            case "fetch_policy":
                if value.lower() in ("abort", "skip"):
                    config.fetch_policy = value.lower()
                else:
                    logger.warning(f"Unknown FETCH_POLICY '{value}', using '{config.fetch_policy}'")
            case "completion_delay_ms":
                try:
                    config.completion_delay_ms = int(value)
                except ValueError:
                    logger.warning(f"Invalid COMPLETION_DELAY_MS '{value}'")
            case "settings_file":
                config.settings_file = value
            case "badge_file":
                config.badge_file = value

    return config
