"""Tests for the command line entry point."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from bcasync import cli
from bcasync.config import Sink
from bcasync.exceptions import BankError
from bcasync.schemas import SubmitResult
from bcasync.services.pipeline import SyncReport


def _parse(*argv: str) -> dict:
    args = cli.build_parser().parse_args(list(argv))
    return {key: value for key, value in vars(args).items() if value is not None}


def test_unset_flags_are_omitted():
    assert _parse() == {}


def test_short_flags_map_to_settings_fields():
    overrides = _parse("-u", "user", "-p", "pass", "-t", "tok", "-a", "Savings", "-b", "budget-1", "-r")

    assert overrides == {
        "bca_username": "user",
        "bca_password": "pass",
        "ynab_token": "tok",
        "account_name": "Savings",
        "budget": "budget-1",
        "reset": True,
    }


def test_csv_flag_selects_csv_sink():
    assert _parse("--csv")["sink"] == Sink.CSV.value
    assert _parse("--sink", "firefly")["sink"] == "firefly"


def test_version(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--version"])

    assert excinfo.value.code == 0
    assert "bcasync" in capsys.readouterr().out


def test_invalid_days_is_usage_error():
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--days", "40"])
    assert excinfo.value.code == 2


def test_delete_exits_zero(tmp_path, monkeypatch):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "credentials").write_text("{}")
    run = AsyncMock()
    monkeypatch.setattr(cli, "_run", run)

    assert cli.main(["-d", "--config-dir", str(config_dir)]) == 0
    assert not (config_dir / "credentials").exists()
    run.assert_not_called()


def test_sync_error_exits_one(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "_run", AsyncMock(side_effect=BankError("failed to get bca login")))

    code = cli.main(
        ["--non-interactive", "-u", "u", "-p", "p", "-t", "t", "--config-dir", str(tmp_path)]
    )

    assert code == 1


def test_missing_credential_non_interactive_exits_one(tmp_path, monkeypatch):
    run = AsyncMock()
    monkeypatch.setattr(cli, "_run", run)

    assert cli.main(["--non-interactive", "-u", "u", "--config-dir", str(tmp_path)]) == 1
    run.assert_not_called()


def test_success_passes_resolved_settings(tmp_path, monkeypatch):
    report = SyncReport(
        window_start=date(2021, 3, 1),
        window_end=date(2021, 3, 28),
        entries=2,
        submit=SubmitResult(submitted=2, created=2),
    )
    run = AsyncMock(return_value=report)
    monkeypatch.setattr(cli, "_run", run)

    code = cli.main(
        ["--non-interactive", "-u", "u", "-p", "p", "-t", "t", "--no-adjust", "--config-dir", str(tmp_path)]
    )

    assert code == 0
    (settings,) = run.await_args.args
    assert settings.bca_username == "u"
    assert settings.no_adjust is True
    assert settings.sink is Sink.YNAB


def test_generic_environment_flags_are_ignored(tmp_path, monkeypatch):
    """An exported DELETE or node-style DEBUG neither deletes nor breaks a run."""
    (tmp_path / "credentials").write_text('{"bcaUser": "u"}')
    monkeypatch.setenv("DELETE", "1")
    monkeypatch.setenv("DEBUG", "express:*")
    run = AsyncMock(
        return_value=SyncReport(window_start=date(2021, 3, 1), window_end=date(2021, 3, 28))
    )
    monkeypatch.setattr(cli, "_run", run)

    code = cli.main(["--non-interactive", "-u", "u", "-p", "p", "-t", "t", "--config-dir", str(tmp_path)])

    assert code == 0
    assert (tmp_path / "credentials").exists()
    (settings,) = run.await_args.args
    assert settings.delete is False
    assert settings.debug is False


def test_flags_win_over_prefixed_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("BCASYNC_DAYS", "3")
    run = AsyncMock(
        return_value=SyncReport(window_start=date(2021, 3, 1), window_end=date(2021, 3, 28))
    )
    monkeypatch.setattr(cli, "_run", run)

    cli.main(["--non-interactive", "-u", "u", "-p", "p", "-t", "t", "--days", "14", "--config-dir", str(tmp_path)])

    (settings,) = run.await_args.args
    assert settings.days == 14
