"""Idempotency keys for statement lines.

The key becomes the ledger's ``import_id``; the ledger refuses a second
transaction with the same key in the same account, which is what keeps
repeated runs from importing a statement line twice.
"""

import hashlib
from datetime import date
from decimal import Decimal

from bcasync.schemas import EntryType, RawStatementEntry

KEY_VERSION = "v1"


def _canonical_amount(amount: Decimal) -> str:
    # 50000 and 50000.00 are the same statement line
    return format(amount.normalize(), "f")


def calculate_import_id(
    txn_date: date,
    amount: Decimal,
    entry_type: EntryType,
    payee: str,
) -> str:
    """Calculate the import id for one statement line.

    Key = v1_MD5(date|amount|type|payee). The description is deliberately not
    a component: the portal truncates and rewrites it between fetches. The
    result is 35 characters, inside the ledger's 36-character limit.
    """
    components = [
        txn_date.isoformat(),
        _canonical_amount(amount),
        entry_type.value,
        payee,
    ]
    hash_input = "|".join(components).encode("utf-8")
    digest = hashlib.md5(hash_input, usedforsecurity=False).hexdigest()
    return f"{KEY_VERSION}_{digest}"


def import_id_for_entry(entry: RawStatementEntry, resolved_date: date) -> str:
    """Import id for ``entry`` once its date has been resolved.

    Pending entries have no date of their own; callers pass the predicted
    clearance date so the key is still defined.
    """
    return calculate_import_id(resolved_date, entry.amount, entry.type, entry.payee)
