"""Services package."""

from bcasync.services.clearance import resolve_clearance_date
from bcasync.services.csv_export import write_transactions_csv
from bcasync.services.import_id import calculate_import_id, import_id_for_entry
from bcasync.services.mapper import (
    map_entries,
    resolve_entry_date,
    to_canonical_transaction,
    to_firefly_split,
    to_milliunits,
)
from bcasync.services.pipeline import SyncReport, run_sync, statement_window
from bcasync.services.reconciler import (
    balance_delta,
    build_adjustment_transaction,
    build_firefly_reconciliation,
    reconcile_firefly,
    reconcile_ynab,
)
from bcasync.services.submitter import store_firefly_transactions, submit_transactions

__all__ = [
    "SyncReport",
    "balance_delta",
    "build_adjustment_transaction",
    "build_firefly_reconciliation",
    "calculate_import_id",
    "import_id_for_entry",
    "map_entries",
    "reconcile_firefly",
    "reconcile_ynab",
    "resolve_clearance_date",
    "resolve_entry_date",
    "run_sync",
    "statement_window",
    "store_firefly_transactions",
    "submit_transactions",
    "to_canonical_transaction",
    "to_firefly_split",
    "to_milliunits",
    "write_transactions_csv",
]
