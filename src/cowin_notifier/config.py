"""
Config loading via Pydantic v2 and python-dotenv.

Settings are read from the environment, with an optional ``.env`` file at the
repository root (or the working directory for an installed copy) filling in
anything not already set.
"""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator


BASE_DIR = Path(__file__).resolve().parent.parent.parent


def resolve_app_root(base_dir: Path = BASE_DIR) -> Path:
    """
    Directory holding `.env` and the default `logs/`.

    That is the repository root in a source checkout, and the working directory
    when the package is installed into site-packages.
    """
    if (base_dir / "pyproject.toml").is_file():
        return base_dir
    return Path.cwd()


APP_ROOT = resolve_app_root()
ENV_PATH = APP_ROOT / ".env"

if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=False)


class BotConfig(BaseModel):
    token: str
    channel_id: str
    # Startup message goes here; unset means no startup message
    owner_id: Optional[str] = None


class CowinConfig(BaseModel):
    base_url: str = "https://cdn-api.co-vin.in/api"
    request_interval: float = Field(default=3.0, ge=0)
    request_timeout: float = Field(default=15.0, gt=0)
    rate_limit_cooldown: float = Field(default=10.0, ge=0)


class RetryConfig(BaseModel):
    max_attempts: int = Field(default=4, ge=1)
    base_delay: float = Field(default=2.0, ge=0)
    multiplier: float = Field(default=2.0, ge=1)
    max_delay: float = Field(default=30.0, ge=0)
    max_elapsed: float = Field(default=60.0, gt=0)


class ScanConfig(BaseModel):
    lookahead_days: int = Field(default=28, ge=1)
    capacity_threshold: int = Field(
        default=1,
        ge=0,
        description="A session qualifies only when its capacity is strictly greater.",
    )
    max_age_limit: int = Field(default=45, ge=1)
    message_max_bytes: int = Field(default=512, ge=64)
    districts_file: Optional[Path] = None

    @model_validator(mode="after")
    def _check_districts_file(self) -> "ScanConfig":
        if self.districts_file is not None and not self.districts_file.is_file():
            raise ValueError(f"DISTRICTS_FILE does not exist: {self.districts_file}")
        return self


class LoggingConfig(BaseModel):
    logs_dir: Path = Field(default_factory=lambda: APP_ROOT / "logs")
    log_level: str = Field(default="INFO")
    max_bytes: int = Field(default=5 * 1024 * 1024)  # 5 MB
    backup_count: int = Field(default=5)


class Settings(BaseModel):
    bot: BotConfig
    cowin: CowinConfig = CowinConfig()
    retry: RetryConfig = RetryConfig()
    scan: ScanConfig = ScanConfig()
    logging: LoggingConfig = LoggingConfig()


@lru_cache
def get_settings() -> Settings:
    """
    Load and cache settings.

    Raises ValidationError (ValueError for non-numeric values) if the
    environment holds a malformed value. Missing BOT_TOKEN / CHANNEL_ID are
    left empty here and rejected at startup.
    """
    env = os.environ

    def _get(name: str, default: str) -> str:
        return env.get(name, "").strip() or default

    bot = BotConfig(
        token=_get("BOT_TOKEN", ""),
        channel_id=_get("CHANNEL_ID", ""),
        owner_id=_get("OWNER_ID", "") or None,
    )
    cowin = CowinConfig(
        base_url=_get("COWIN_BASE_URL", CowinConfig().base_url).rstrip("/"),
        request_interval=float(_get("REQUEST_INTERVAL", "3.0")),
        request_timeout=float(_get("REQUEST_TIMEOUT", "15.0")),
        rate_limit_cooldown=float(_get("RATE_LIMIT_COOLDOWN", "10.0")),
    )
    retry = RetryConfig(
        max_attempts=int(_get("RETRY_MAX_ATTEMPTS", "4")),
        base_delay=float(_get("RETRY_BASE_DELAY", "2.0")),
        multiplier=float(_get("RETRY_MULTIPLIER", "2.0")),
        max_delay=float(_get("RETRY_MAX_DELAY", "30.0")),
        max_elapsed=float(_get("RETRY_MAX_ELAPSED", "60.0")),
    )
    districts_file = _get("DISTRICTS_FILE", "")
    scan = ScanConfig(
        lookahead_days=int(_get("LOOKAHEAD_DAYS", "28")),
        capacity_threshold=int(_get("CAPACITY_THRESHOLD", "1")),
        max_age_limit=int(_get("MAX_AGE_LIMIT", "45")),
        message_max_bytes=int(_get("MESSAGE_MAX_BYTES", "512")),
        districts_file=Path(districts_file) if districts_file else None,
    )
    logs_dir = _get("LOGS_DIR", "")
    logging_cfg = LoggingConfig(
        log_level=_get("LOG_LEVEL", "INFO"),
        **({"logs_dir": Path(logs_dir)} if logs_dir else {}),
    )
    return Settings(bot=bot, cowin=cowin, retry=retry, scan=scan, logging=logging_cfg)


__all__ = [
    "BotConfig",
    "CowinConfig",
    "RetryConfig",
    "ScanConfig",
    "LoggingConfig",
    "Settings",
    "get_settings",
    "BASE_DIR",
    "APP_ROOT",
    "resolve_app_root",
]
