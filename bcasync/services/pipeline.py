"""One synchronization run, start to finish.

Strictly sequential: login, fetch the statement, map, hand the batch to the
selected sink, optionally reconcile the balance, logout. Each collaborator
failure is wrapped with what was being attempted and propagated; nothing is
retried.
"""

import sys
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import TextIO

from bcasync.clients.bca import KlikBCAClient
from bcasync.clients.firefly import FireflyClient
from bcasync.clients.ynab import YNABClient
from bcasync.config import Settings, Sink
from bcasync.exceptions import (
    BankError,
    LedgerError,
    LookupNotFoundError,
    MissingCredentialError,
    ReconciliationError,
    SyncError,
)
from bcasync.logger import get_logger, log_timing
from bcasync.schemas import (
    CanonicalTransaction,
    FireflyAccount,
    FireflySplit,
    LedgerAccount,
    RawStatementEntry,
    SubmitResult,
)
from bcasync.services.csv_export import write_transactions_csv
from bcasync.services.mapper import map_entries, to_firefly_split
from bcasync.services.reconciler import reconcile_firefly, reconcile_ynab
from bcasync.services.submitter import store_firefly_transactions, submit_transactions

logger = get_logger(__name__)

RESET_HINT = "try -r"


@dataclass
class SyncReport:
    """What a run did; ``submit`` stays None when nothing reached a ledger."""

    window_start: date
    window_end: date
    entries: int = 0
    exported: int = 0
    submit: SubmitResult | None = None
    adjustment: CanonicalTransaction | FireflySplit | None = None


def statement_window(now: datetime, days: int) -> tuple[date, date]:
    end = now.date()
    return end - timedelta(days=days), end


async def fetch_entries(bank: KlikBCAClient, start: date, end: date) -> list[RawStatementEntry]:
    try:
        return await bank.fetch_statement(start, end)
    except BankError as exc:
        raise BankError(f"failed to get bca transactions: {exc.args[0]}", hint=RESET_HINT) from exc


async def find_ynab_account(client: YNABClient, budget_id: str, name: str) -> LedgerAccount:
    try:
        accounts = await client.list_accounts(budget_id)
    except LedgerError as exc:
        raise LedgerError(f"failed to get ynab accounts: {exc.args[0]}", hint=RESET_HINT) from exc

    for account in accounts:
        if account.name == name and not account.deleted:
            return account
    raise LookupNotFoundError("ynab account", name)


async def find_firefly_account(client: FireflyClient, name: str) -> FireflyAccount:
    matches = await client.search_accounts(name)
    if not matches:
        raise LookupNotFoundError("firefly account", name)
    return matches[0]


async def _sync_ynab(
    settings: Settings,
    bank: KlikBCAClient,
    client: YNABClient,
    entries: list[RawStatementEntry],
    now: datetime,
    report: SyncReport,
) -> None:
    account = await find_ynab_account(client, settings.budget, settings.account_name)

    with log_timing("map_entries", logger=logger, count=len(entries)):
        transactions = map_entries(entries, account.id, now)

    try:
        report.submit = await submit_transactions(client, settings.budget, transactions)
    except LedgerError as exc:
        raise LedgerError(f"failed to create ynab transactions: {exc.args[0]}", hint=exc.hint) from exc

    if settings.no_adjust:
        return

    try:
        balance = await bank.fetch_balance()
        report.adjustment = await reconcile_ynab(
            client,
            settings.budget,
            account.id,
            balance.balance,
            now.date(),
            category_name=settings.adjustment_category,
            payee=settings.adjustment_payee,
        )
    except SyncError as exc:
        raise ReconciliationError(
            f"failed to create balance adjustment: {exc.args[0]}", hint=exc.hint
        ) from exc


async def _sync_firefly(
    settings: Settings,
    bank: KlikBCAClient,
    client: FireflyClient,
    entries: list[RawStatementEntry],
    now: datetime,
    report: SyncReport,
) -> None:
    try:
        account = await find_firefly_account(client, settings.account_name)
    except LedgerError as exc:
        raise LedgerError(f"failed to get account: {exc.args[0]}") from exc

    with log_timing("map_entries", logger=logger, count=len(entries)):
        splits = [to_firefly_split(entry, account.id, now) for entry in entries]

    try:
        report.submit = await store_firefly_transactions(client, splits)
    except LedgerError as exc:
        raise LedgerError(f"failed to create firefly transaction: {exc.args[0]}") from exc

    if settings.no_adjust:
        return

    try:
        balance = await bank.fetch_balance()
        report.adjustment = await reconcile_firefly(
            client,
            account.id,
            settings.account_name,
            balance.balance,
            now.date(),
            settings.days,
        )
    except SyncError as exc:
        raise ReconciliationError(
            f"failed to create firefly reconciliation: {exc.args[0]}", hint=exc.hint
        ) from exc


async def _logout(bank: KlikBCAClient) -> None:
    try:
        await bank.logout()
    except BankError as exc:
        # A failed logout only leaves a server-side session to expire
        logger.warning("klikbca logout failed", error=str(exc))


async def run_sync(
    settings: Settings,
    bank: KlikBCAClient,
    ip: str,
    *,
    ynab: YNABClient | None = None,
    firefly: FireflyClient | None = None,
    out: TextIO | None = None,
    now: datetime | None = None,
) -> SyncReport:
    """Run one synchronization against the sink selected in ``settings``."""
    if settings.bca_username is None:
        raise MissingCredentialError("bca_username")
    if settings.bca_password is None:
        raise MissingCredentialError("bca_password")

    now = now or settings.now()
    start, end = statement_window(now, settings.days)
    report = SyncReport(window_start=start, window_end=end)

    try:
        await bank.login(settings.bca_username, settings.bca_password, ip)
    except BankError as exc:
        raise BankError(f"failed to get bca login: {exc.args[0]}", hint=exc.hint or RESET_HINT) from exc

    try:
        entries = await fetch_entries(bank, start, end)
        report.entries = len(entries)
        if not entries:
            logger.info("No bca transactions in window", start=start.isoformat(), end=end.isoformat())
            return report

        if settings.sink is Sink.CSV:
            transactions = map_entries(entries, "", now)
            report.exported = write_transactions_csv(transactions, out or sys.stdout)
        elif settings.sink is Sink.YNAB:
            if ynab is None:
                raise MissingCredentialError("ynab_token")
            await _sync_ynab(settings, bank, ynab, entries, now, report)
        else:
            if firefly is None:
                raise MissingCredentialError("firefly_token")
            await _sync_firefly(settings, bank, firefly, entries, now, report)
    finally:
        await _logout(bank)

    return report
