"""Pydantic schemas for statement data and ledger payloads."""

from .ledger import (
    CanonicalTransaction,
    CategoryGroup,
    ClearedStatus,
    CreateTransactionsResult,
    FireflyAccount,
    FireflySplit,
    FireflyTransactionType,
    LedgerAccount,
    LedgerCategory,
    SubmitResult,
)
from .statement import Balance, EntryType, RawStatementEntry

__all__ = [
    "Balance",
    "CanonicalTransaction",
    "CategoryGroup",
    "ClearedStatus",
    "CreateTransactionsResult",
    "EntryType",
    "FireflyAccount",
    "FireflySplit",
    "FireflyTransactionType",
    "LedgerAccount",
    "LedgerCategory",
    "RawStatementEntry",
    "SubmitResult",
]
