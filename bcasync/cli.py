"""bcasync - synchronize your BCA transactions with YNAB.

Usage:
    bcasync [options]

Examples:
    bcasync                          # interactive, YNAB account "BCA"
    bcasync --csv > statement.csv    # mapped transactions to stdout
    bcasync --sink firefly --firefly-url https://firefly.example
    BCA_USERNAME=.. BCA_PASSWORD=.. YNAB_TOKEN=.. bcasync --non-interactive
"""

import argparse
import asyncio
import sys
from pathlib import Path

from pydantic import ValidationError

from bcasync import __version__
from bcasync.clients import FireflyClient, KlikBCAClient, YNABClient, get_public_ip
from bcasync.config import Settings, Sink
from bcasync.credentials import resolve_credentials
from bcasync.exceptions import SyncError
from bcasync.logger import configure_logging, get_logger, log_exception
from bcasync.services.pipeline import SyncReport, run_sync

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bcasync",
        description="Synchronize your BCA transactions with YNAB",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    creds = parser.add_argument_group("credentials")
    creds.add_argument(
        "-u", "--username", dest="bca_username",
        help="username for klikbca https://klikbca.com/. can be set from BCA_USERNAME",
    )
    creds.add_argument(
        "-p", "--password", dest="bca_password",
        help="password for klikbca https://klikbca.com/. can be set from BCA_PASSWORD",
    )
    creds.add_argument(
        "-t", "--token", dest="ynab_token",
        help="ynab personal access token. can be set from YNAB_TOKEN",
    )
    creds.add_argument(
        "--firefly-token", dest="firefly_token",
        help="firefly iii personal access token. can be set from FIREFLY_TOKEN",
    )
    creds.add_argument("-r", "--reset", action="store_true", default=None, help="reset credentials anew")
    creds.add_argument("-d", "--delete", action="store_true", default=None, help="delete credentials")
    creds.add_argument("--no-store", action="store_true", default=None, help="don't store credentials")
    creds.add_argument(
        "--non-interactive", action="store_true", default=None,
        help="do not read from stdin and do not read/store credentials file. "
        "used with -u, -p and -t or environment variables",
    )
    creds.add_argument("--config-dir", type=Path, help="directory holding the credentials file")

    target = parser.add_argument_group("target")
    target.add_argument("--sink", choices=[s.value for s in Sink], help="where transactions go (default: ynab)")
    target.add_argument(
        "--csv", action="store_const", const=Sink.CSV.value, dest="sink",
        help="instead of creating ynab transactions, generate a csv",
    )
    target.add_argument("-a", "--account", dest="account_name", help="ledger account name (default: BCA)")
    target.add_argument("-b", "--budget", help="ynab budget ID (default: last-used)")
    target.add_argument("--firefly-url", help="firefly iii base url. can be set from FIREFLY_URL")
    target.add_argument("--days", type=int, help="statement lookback in days (default: 27)")
    target.add_argument(
        "--no-adjust", action="store_true", default=None,
        help="don't create balance adjustment if applicable after creating transactions",
    )

    parser.add_argument("--debug", action="store_true", default=None, help="verbose logging")
    parser.add_argument("--log-json", action="store_true", default=None, help="log as JSON lines")
    return parser


async def _run(settings: Settings) -> SyncReport:
    ip = await get_public_ip(settings.public_ip_url, timeout=settings.http_timeout)

    token = settings.ledger_token
    async with KlikBCAClient(base_url=settings.bca_base_url, timeout=settings.http_timeout) as bank:
        if settings.sink is Sink.YNAB and token:
            async with YNABClient(
                token, base_url=settings.ynab_base_url, timeout=settings.http_timeout
            ) as ynab:
                return await run_sync(settings, bank, ip, ynab=ynab)
        if settings.sink is Sink.FIREFLY and token:
            async with FireflyClient(
                settings.firefly_url, token, timeout=settings.http_timeout
            ) as firefly:
                return await run_sync(settings, bank, ip, firefly=firefly)
        return await run_sync(settings, bank, ip, out=sys.stdout)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    overrides = {Settings.init_key(key): value for key, value in vars(args).items() if value is not None}

    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        parser.error(str(exc))

    configure_logging(debug=settings.debug, json_logs=settings.log_json)

    try:
        resolved = resolve_credentials(settings)
        if resolved is None:
            return 0
        report = asyncio.run(_run(resolved))
    except SyncError as exc:
        log_exception(logger, exc, "Synchronization failed", include_traceback=settings.debug)
        return 1
    except KeyboardInterrupt:
        return 130

    logger.info(
        "Synchronization finished",
        sink=resolved.sink.value,
        entries=report.entries,
        created=report.submit.created if report.submit else 0,
        duplicates=report.submit.duplicates if report.submit else 0,
        exported=report.exported,
        adjusted=report.adjustment is not None,
    )
    return 0
