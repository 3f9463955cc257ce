"""Flat-file sink: mapped transactions as CSV."""

import csv
from collections.abc import Iterable
from typing import TextIO

from bcasync.schemas import CanonicalTransaction

CSV_COLUMNS = [
    "account_id",
    "date",
    "amount",
    "payee_name",
    "memo",
    "cleared",
    "approved",
    "import_id",
]


def write_transactions_csv(transactions: Iterable[CanonicalTransaction], stream: TextIO) -> int:
    """Write a header and one row per transaction; return the row count."""
    writer = csv.DictWriter(stream, fieldnames=CSV_COLUMNS, extrasaction="ignore")
    writer.writeheader()
    count = 0
    for transaction in transactions:
        row = transaction.model_dump(mode="json")
        writer.writerow({key: "" if row[key] is None else row[key] for key in CSV_COLUMNS})
        count += 1
    return count
