"""Test fixtures and configuration."""

from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest

from bcasync.config import Settings
from bcasync.schemas import EntryType, RawStatementEntry

WIB = timezone(timedelta(hours=7), "WIB")

_CREDENTIAL_ENV = (
    "BCA_USERNAME",
    "BCA_PASSWORD",
    "YNAB_TOKEN",
    "FIREFLY_TOKEN",
    "FIREFLY_URL",
    "BCASYNC_SINK",
    "BCASYNC_DEBUG",
    "BCASYNC_DAYS",
    "BCASYNC_DELETE",
    "BCASYNC_RESET",
    "BCASYNC_NON_INTERACTIVE",
)


def wib(year: int, month: int, day: int, hour: int = 9, minute: int = 0) -> datetime:
    """Wall-clock time in the bank's zone."""
    return datetime(year, month, day, hour, minute, tzinfo=WIB)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the developer's environment and .env out of Settings."""
    for name in _CREDENTIAL_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def make_entry() -> Callable[..., RawStatementEntry]:
    def _make(
        txn_date: date | None = date(2021, 3, 1),
        amount: str = "50000",
        entry_type: EntryType = EntryType.CREDIT,
        payee: str = "ACME",
        description: str = "",
    ) -> RawStatementEntry:
        return RawStatementEntry(
            date=txn_date,
            amount=Decimal(amount),
            type=entry_type,
            payee=payee,
            description=description,
        )

    return _make


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        bca_username="user",
        bca_password="secret",
        ynab_token="ynab-token",
        BCASYNC_CONFIG_DIR=tmp_path / "config",
        timezone="UTC",
    )
