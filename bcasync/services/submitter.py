"""Batch submission of mapped transactions to a ledger.

Duplicate detection belongs to the ledger: YNAB matches ``import_id`` within
the account and reports the ids it skipped. Nothing here retries.
"""

from pydantic import ValidationError

from bcasync.clients.firefly import FireflyClient
from bcasync.clients.ynab import YNABClient
from bcasync.exceptions import LedgerResponseError
from bcasync.logger import get_logger
from bcasync.schemas import CanonicalTransaction, FireflySplit, SubmitResult

logger = get_logger(__name__)


async def submit_transactions(
    client: YNABClient,
    budget_id: str,
    transactions: list[CanonicalTransaction],
) -> SubmitResult:
    """Create ``transactions`` in one bulk call and report what the ledger did."""
    if not transactions:
        return SubmitResult()

    response = await client.create_transactions(budget_id, transactions)
    try:
        result = SubmitResult(
            submitted=len(transactions),
            created=len(response.transaction_ids),
            duplicates=len(response.duplicate_import_ids),
        )
    except ValidationError as exc:
        raise LedgerResponseError(f"ynab reported more transactions than were submitted: {exc}") from exc

    if result.duplicates:
        logger.info("Transactions already exist", count=result.duplicates)
    logger.info("Transactions created", count=result.created)
    return result


async def store_firefly_transactions(
    client: FireflyClient,
    splits: list[FireflySplit],
) -> SubmitResult:
    """Store each split as its own transaction; the first failure aborts."""
    for split in splits:
        await client.store_transaction(split)

    logger.info("Firefly transactions created", count=len(splits))
    return SubmitResult(submitted=len(splits), created=len(splits))
