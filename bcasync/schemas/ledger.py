"""Pydantic schemas for payloads sent to and read from the target ledgers."""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ClearedStatus(str, Enum):
    """Clearing status of a budgeting-ledger transaction."""

    CLEARED = "cleared"
    RECONCILED = "reconciled"


class CanonicalTransaction(BaseModel):
    """Normalized transaction in the budgeting-ledger payload shape.

    ``amount`` is in milliunits, positive for money flowing into the account.
    Balance adjustments carry no ``import_id``.
    """

    model_config = ConfigDict(frozen=True)

    account_id: str
    date: date
    amount: int
    payee_name: str | None = None
    memo: str | None = None
    cleared: ClearedStatus = ClearedStatus.CLEARED
    approved: bool = True
    category_id: str | None = None
    flag_color: str | None = None
    import_id: str | None = Field(default=None, max_length=36)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class FireflyTransactionType(str, Enum):
    WITHDRAWAL = "withdrawal"
    DEPOSIT = "deposit"
    RECONCILIATION = "reconciliation"


class FireflySplit(BaseModel):
    """Normalized transaction in the ledger-service (Firefly III) split shape.

    ``amount`` is a positive decimal string; direction is expressed by the
    source and destination accounts.
    """

    model_config = ConfigDict(frozen=True)

    type: FireflyTransactionType
    date: date
    amount: str
    description: str
    source_id: str | None = None
    source_name: str | None = None
    destination_id: str | None = None
    destination_name: str | None = None
    reconciled: bool = False

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class SubmitResult(BaseModel):
    """Counts reported by a ledger for one submitted batch."""

    model_config = ConfigDict(frozen=True)

    submitted: int = Field(default=0, ge=0)
    created: int = Field(default=0, ge=0)
    duplicates: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _bounded_by_submitted(self) -> "SubmitResult":
        if self.created + self.duplicates > self.submitted:
            raise ValueError(
                f"created ({self.created}) + duplicates ({self.duplicates}) "
                f"exceeds submitted ({self.submitted})"
            )
        return self


# ================================================================
# Read models
# ================================================================


class LedgerAccount(BaseModel):
    """Budgeting-ledger account; ``balance`` is in milliunits."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    balance: int = 0
    deleted: bool = False


class LedgerCategory(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    deleted: bool = False


class CategoryGroup(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    categories: list[LedgerCategory] = Field(default_factory=list)


class CreateTransactionsResult(BaseModel):
    """Bulk create response: ids created and import ids already present."""

    model_config = ConfigDict(extra="ignore")

    transaction_ids: list[str] = Field(default_factory=list)
    duplicate_import_ids: list[str] = Field(default_factory=list)


class FireflyAccount(BaseModel):
    """Flattened Firefly III account resource."""

    id: str
    name: str
    type: str
    current_balance: Decimal

    @classmethod
    def from_resource(cls, resource: dict[str, Any]) -> "FireflyAccount":
        attributes = resource.get("attributes") or {}
        return cls(
            id=str(resource["id"]),
            name=attributes.get("name", ""),
            type=attributes.get("type", ""),
            current_balance=Decimal(str(attributes.get("current_balance") or "0")),
        )
