"""Balance reconciliation after an import.

The bank balance is authoritative. When the ledger's balance for the account
differs once the statement is imported, exactly one adjusting transaction is
posted for the difference.
"""

from datetime import date, timedelta
from decimal import Decimal

from bcasync.clients.firefly import ACCOUNT_TYPE_RECONCILIATION, FireflyClient
from bcasync.clients.ynab import YNABClient
from bcasync.exceptions import LookupNotFoundError
from bcasync.logger import get_logger
from bcasync.schemas import (
    CanonicalTransaction,
    CategoryGroup,
    ClearedStatus,
    FireflySplit,
    FireflyTransactionType,
    LedgerCategory,
)
from bcasync.services.mapper import to_milliunits

logger = get_logger(__name__)

DEFAULT_ADJUSTMENT_CATEGORY = "Inflows"
DEFAULT_ADJUSTMENT_PAYEE = "Automated Balance Adjustment"


def _long_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def balance_delta(bank_balance: Decimal, ledger_balance: int) -> int:
    """Milliunits to add to the ledger so it matches the bank (may be negative)."""
    # sen are kept; the bank balance is not truncated to whole rupiah first
    return to_milliunits(bank_balance) - ledger_balance


def find_category(groups: list[CategoryGroup], name: str) -> LedgerCategory:
    for group in groups:
        for category in group.categories:
            if category.name == name and not category.deleted:
                return category
    raise LookupNotFoundError("category", name)


def build_adjustment_transaction(
    account_id: str,
    delta: int,
    category_id: str,
    today: date,
    payee: str = DEFAULT_ADJUSTMENT_PAYEE,
) -> CanonicalTransaction:
    return CanonicalTransaction(
        account_id=account_id,
        date=today,
        amount=delta,
        payee_name=payee,
        memo=None,
        cleared=ClearedStatus.RECONCILED,
        approved=True,
        category_id=category_id,
        import_id=None,
    )


async def reconcile_ynab(
    client: YNABClient,
    budget_id: str,
    account_id: str,
    bank_balance: Decimal,
    today: date,
    *,
    category_name: str = DEFAULT_ADJUSTMENT_CATEGORY,
    payee: str = DEFAULT_ADJUSTMENT_PAYEE,
) -> CanonicalTransaction | None:
    """Post a balance adjustment if the budget drifted from the bank.

    Returns the posted adjustment, or None when the balances already agree.
    """
    account = await client.get_account(budget_id, account_id)
    delta = balance_delta(bank_balance, account.balance)
    if delta == 0:
        logger.info("Balances agree, no adjustment needed", balance=account.balance)
        return None

    category = find_category(await client.list_categories(budget_id), category_name)
    adjustment = build_adjustment_transaction(account_id, delta, category.id, today, payee)
    await client.create_transaction(budget_id, adjustment)

    logger.info(
        "Balance adjustment transaction created",
        delta=delta,
        ledger_balance=account.balance,
        bank_balance=str(bank_balance),
    )
    return adjustment


def build_firefly_reconciliation(
    account_id: str,
    reconciliation_account_id: str,
    delta: Decimal,
    today: date,
    days: int,
) -> FireflySplit:
    """Reconciliation split for ``delta`` covering the statement window.

    A positive delta moves money from the reconciliation account into the
    asset account; a negative one moves it back out.
    """
    window_start = today - timedelta(days=days)
    description = (
        f"Reconciliation ({_long_date(window_start)} "
        f"to {_long_date(today)})"
    )
    if delta > 0:
        source, destination = reconciliation_account_id, account_id
    else:
        source, destination = account_id, reconciliation_account_id

    return FireflySplit(
        type=FireflyTransactionType.RECONCILIATION,
        date=today,
        amount=format(abs(delta), "f"),
        description=description,
        source_id=source,
        destination_id=destination,
        reconciled=True,
    )


async def reconcile_firefly(
    client: FireflyClient,
    account_id: str,
    account_name: str,
    bank_balance: Decimal,
    today: date,
    days: int,
) -> FireflySplit | None:
    """Store a reconciliation transaction if Firefly drifted from the bank."""
    account = await client.get_account(account_id)
    delta = bank_balance - account.current_balance
    if delta == 0:
        logger.info("Balances agree, no reconciliation needed", balance=str(account.current_balance))
        return None

    matches = await client.search_accounts(account_name, ACCOUNT_TYPE_RECONCILIATION)
    if not matches:
        raise LookupNotFoundError("reconciliation account", account_name)

    split = build_firefly_reconciliation(account.id, matches[0].id, delta, today, days)
    await client.store_transaction(split)

    logger.info(
        "Firefly reconciliation created",
        delta=str(delta),
        ledger_balance=str(account.current_balance),
        bank_balance=str(bank_balance),
    )
    return split
