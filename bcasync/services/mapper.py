"""Statement line to ledger transaction mapping."""

from collections.abc import Iterable
from datetime import date, datetime
from decimal import ROUND_DOWN, Decimal

from bcasync.schemas import (
    CanonicalTransaction,
    ClearedStatus,
    EntryType,
    FireflySplit,
    FireflyTransactionType,
    RawStatementEntry,
)
from bcasync.services.clearance import resolve_clearance_date
from bcasync.services.import_id import import_id_for_entry

MILLIUNITS_PER_UNIT = Decimal(1000)


def to_milliunits(amount: Decimal) -> int:
    """Scale a currency amount to milliunits, truncating toward zero."""
    return int((amount * MILLIUNITS_PER_UNIT).to_integral_value(rounding=ROUND_DOWN))


def resolve_entry_date(entry: RawStatementEntry, now: datetime) -> date:
    """Posted date, or the predicted clearance date while the entry is pending."""
    if entry.date is None:
        return resolve_clearance_date(now)
    return entry.date


def _clamp_to_today(txn_date: date, now: datetime) -> date:
    today = now.date()
    return today if txn_date > today else txn_date


def _memo(entry: RawStatementEntry) -> str:
    return entry.description or entry.payee


def to_canonical_transaction(
    entry: RawStatementEntry,
    account_id: str,
    now: datetime,
) -> CanonicalTransaction:
    """Map one statement line to a budgeting-ledger transaction.

    The import id is derived from the resolved date before clamping, so a
    pending entry keeps the key of its predicted clearance date even when the
    transaction itself is dated today.
    """
    resolved = resolve_entry_date(entry, now)
    import_id = import_id_for_entry(entry, resolved)

    amount = to_milliunits(entry.amount)
    if entry.type is EntryType.DEBIT:
        amount = -amount

    return CanonicalTransaction(
        account_id=account_id,
        date=_clamp_to_today(resolved, now),
        amount=amount,
        payee_name=entry.payee,
        memo=_memo(entry),
        cleared=ClearedStatus.CLEARED,
        approved=True,
        import_id=import_id,
    )


def to_firefly_split(
    entry: RawStatementEntry,
    account_id: str,
    now: datetime,
) -> FireflySplit:
    """Map one statement line to a Firefly III transaction split.

    Debits leave the asset account towards the payee; credits arrive from it.
    """
    txn_date = _clamp_to_today(resolve_entry_date(entry, now), now)
    amount = format(entry.amount, "f")

    if entry.type is EntryType.DEBIT:
        return FireflySplit(
            type=FireflyTransactionType.WITHDRAWAL,
            date=txn_date,
            amount=amount,
            description=_memo(entry),
            source_id=account_id,
            destination_name=entry.payee,
        )
    return FireflySplit(
        type=FireflyTransactionType.DEPOSIT,
        date=txn_date,
        amount=amount,
        description=_memo(entry),
        source_name=entry.payee,
        destination_id=account_id,
    )


def map_entries(
    entries: Iterable[RawStatementEntry],
    account_id: str,
    now: datetime,
) -> list[CanonicalTransaction]:
    return [to_canonical_transaction(entry, account_id, now) for entry in entries]
