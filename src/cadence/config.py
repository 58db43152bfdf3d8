"""Configuration management for Cadence."""

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path

from .core.recurrence import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)

CADENCE_HOME = Path(os.environ.get("CADENCE_HOME", Path.home() / "cadence"))
CONFIG_FILE = CADENCE_HOME / "config" / "cadence.conf"
DATA_DIR = CADENCE_HOME / "data"

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class Config:
    """Cadence configuration."""

    timezone: str = DEFAULT_TIMEZONE
    store: str = "json"
    data_file: str = ""
    postgrest_url: str = ""
    postgrest_api_key: str = ""
    carry_forward_days: int = 30
    auto_approve: bool = True
    summary_time: str = "18:00"
    summary_day: str = "same"
    summary_dir: str = ""
    log_level: str = "INFO"


@dataclass
class OrgSettings:
    """Effective settings for one organization: stored values over config."""

    timezone: str
    auto_approve: bool
    summary_time: str
    summary_day: str
    carry_forward_days: int

    @classmethod
    def resolve(cls, config: Config, stored: dict[str, str] | None = None) -> "OrgSettings":
        settings = cls(
            timezone=config.timezone,
            auto_approve=config.auto_approve,
            summary_time=config.summary_time,
            summary_day=config.summary_day,
            carry_forward_days=config.carry_forward_days,
        )
        for key, value in (stored or {}).items():
            match key:
                case "timezone" if value:
                    settings = replace(settings, timezone=value)
                case "auto_approve_tasks":
                    flag = _parse_bool(key, value)
                    if flag is not None:
                        settings = replace(settings, auto_approve=flag)
                case "email_notification_time" if value:
                    settings = replace(settings, summary_time=value)
                case "email_notification_day" if value in ("same", "previous"):
                    settings = replace(settings, summary_day=value)
        return settings


def _parse_bool(key: str, value: str) -> bool | None:
    lowered = str(value).strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    logger.warning(f"Ignoring non-boolean value for {key}: {value!r}")
    return None


def _parse_int(key: str, value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer value for {key}: {value!r}")
        return None


def _unquote(value: str) -> str:
    # Handle quoted values with inline comments: "value" # comment
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from cadence.conf file."""
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
            case "timezone":
                config.timezone = value
            case "store":
                config.store = value.lower()
            case "data_file":
                config.data_file = value
            case "postgrest_url":
                config.postgrest_url = value
            case "postgrest_api_key":
                config.postgrest_api_key = value
            case "carry_forward_days":
                days = _parse_int(key, value)
                if days is not None and days > 0:
                    config.carry_forward_days = days
            case "auto_approve":
                flag = _parse_bool(key, value)
                if flag is not None:
                    config.auto_approve = flag
            case "summary_time":
                config.summary_time = value
            case "summary_day":
                if value in ("same", "previous"):
                    config.summary_day = value
                else:
                    logger.warning(f"Ignoring summary_day {value!r}; expected 'same' or 'previous'")
            case "summary_dir":
                config.summary_dir = value
            case "log_level":
                config.log_level = value.upper()
            case _:
                logger.warning(f"Unknown config key: {key}")

    return config
