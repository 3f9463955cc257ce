"""Pydantic schemas for data delivered by the banking portal."""

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EntryType(str, Enum):
    """Direction of a statement line as seen from the bank account."""

    DEBIT = "debit"
    CREDIT = "credit"

    @classmethod
    def from_code(cls, code: str) -> "EntryType":
        """Parse the portal's raw code; only ``DB`` is a debit."""
        if code.strip().upper() == "DB":
            return cls.DEBIT
        return cls.CREDIT


class RawStatementEntry(BaseModel):
    """One line of the account statement.

    ``date`` is None while the transaction is still pending. ``amount`` is
    always the non-negative magnitude; the sign lives in ``type``.
    """

    model_config = ConfigDict(frozen=True)

    date: date | None
    amount: Decimal = Field(ge=0)
    type: EntryType
    payee: str
    description: str = ""


class Balance(BaseModel):
    """Authoritative balance reported by the bank."""

    model_config = ConfigDict(frozen=True)

    account_number: str = ""
    currency: str = "IDR"
    balance: Decimal
