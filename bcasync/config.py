"""Runtime configuration using Pydantic Settings.

Environment Variable Strategy:
- Credentials come from the environment, CLI flags or the stored credentials file
- CLI flags are passed as init kwargs and win over the environment
- The resulting Settings is frozen and handed to every component explicitly
"""

import os
from datetime import datetime
from enum import Enum
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Sink(str, Enum):
    """Where mapped transactions end up."""

    YNAB = "ynab"
    FIREFLY = "firefly"
    CSV = "csv"


def default_config_dir() -> Path:
    """Return the per-user directory holding the credentials file."""
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / "bcasync"


class Settings(BaseSettings):
    """Settings for one synchronization run.

    Credentials (from env, flags or the credentials file):
        bca_username, bca_password, ynab_token, firefly_token

    Run flags only answer to BCASYNC_-prefixed variables so that generic
    names such as DEBUG or DELETE in the environment never steer a run.
    The CLI passes its values under the same names (see ``init_key``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ================================================================
    # CREDENTIALS - None means "not provided yet"
    # ================================================================

    bca_username: str | None = None
    bca_password: str | None = None
    ynab_token: str | None = None
    firefly_token: str | None = None

    # ================================================================
    # TARGET
    # ================================================================

    sink: Sink = Field(default=Sink.YNAB, validation_alias="BCASYNC_SINK")
    account_name: str = Field(default="BCA", validation_alias="BCASYNC_ACCOUNT")
    budget: str = Field(default="last-used", validation_alias="BCASYNC_BUDGET")
    firefly_url: str = "http://localhost:8080"
    ynab_base_url: str = "https://api.ynab.com/v1"
    bca_base_url: str = "https://m.klikbca.com"
    public_ip_url: str = "https://api.ipify.org?format=text"

    # Name of the category that receives balance adjustments
    adjustment_category: str = "Inflows"
    adjustment_payee: str = "Automated Balance Adjustment"

    # ================================================================
    # RUN BEHAVIOUR
    # ================================================================

    days: int = Field(default=27, ge=1, le=31, validation_alias="BCASYNC_DAYS")
    no_adjust: bool = Field(default=False, validation_alias="BCASYNC_NO_ADJUST")
    non_interactive: bool = Field(default=False, validation_alias="BCASYNC_NON_INTERACTIVE")
    no_store: bool = Field(default=False, validation_alias="BCASYNC_NO_STORE")
    reset: bool = Field(default=False, validation_alias="BCASYNC_RESET")
    delete: bool = Field(default=False, validation_alias="BCASYNC_DELETE")

    # KlikBCA operates on Western Indonesia Time
    timezone: str = "Asia/Jakarta"
    http_timeout: float = 30.0
    config_dir: Path = Field(default_factory=default_config_dir, validation_alias="BCASYNC_CONFIG_DIR")

    debug: bool = Field(default=False, validation_alias="BCASYNC_DEBUG")
    log_json: bool = Field(default=False, validation_alias="BCASYNC_LOG_JSON")

    @field_validator("bca_username", "bca_password", "ynab_token", "firefly_token", mode="before")
    @classmethod
    def _blank_is_missing(cls, value: str | None) -> str | None:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def init_key(cls, name: str) -> str:
        """Constructor keyword for field ``name``; its alias when it has one."""
        alias = cls.model_fields[name].validation_alias
        return alias if isinstance(alias, str) else name

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def credentials_path(self) -> Path:
        return self.config_dir / "credentials"

    @property
    def ledger_token(self) -> str | None:
        """Token for the selected sink; CSV needs none."""
        if self.sink is Sink.YNAB:
            return self.ynab_token
        if self.sink is Sink.FIREFLY:
            return self.firefly_token
        return None

    def now(self) -> datetime:
        """Current wall-clock time in the bank's zone."""
        return datetime.now(self.tz)
