"""Error taxonomy for a synchronization run.

Every error is single-shot: nothing here is retried. Messages say what failed;
``hint`` carries the suggested remedy shown next to it.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from decimal import InvalidOperation


class SyncError(Exception):
    """Base class for failures that abort a run."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint

    def __str__(self) -> str:
        message = super().__str__()
        if self.hint:
            return f"{message}. {self.hint}"
        return message


class MissingCredentialError(SyncError):
    """Raised when a required credential is absent and cannot be prompted for."""

    def __init__(self, field: str, *, hint: str | None = None) -> None:
        super().__init__(f"missing credential: {field}", hint=hint)
        self.field = field


class BankError(SyncError):
    """Raised when the banking portal rejects a login or a request fails."""


class LedgerError(SyncError):
    """Raised when a ledger service call fails."""


class LedgerStatusError(LedgerError):
    """Raised when a ledger service answers with a non-2xx status."""

    def __init__(
        self,
        service: str,
        status_code: int,
        response_body: str,
        *,
        request_body: str | None = None,
        hint: str | None = None,
    ) -> None:
        message = f"{service} returned status {status_code}"
        if request_body is not None:
            message += f" with request {request_body!r}"
        message += f" response {response_body!r}"
        super().__init__(message, hint=hint)
        self.service = service
        self.status_code = status_code
        self.response_body = response_body
        self.request_body = request_body


class LedgerTransportError(LedgerError):
    """Raised when a ledger service cannot be reached."""


class LedgerResponseError(LedgerError):
    """Raised when a ledger response contradicts the request it answers."""


class LookupNotFoundError(SyncError):
    """Raised when an account or category cannot be found by its configured name."""

    def __init__(self, kind: str, name: str, *, hint: str | None = None) -> None:
        super().__init__(f"couldn't find {kind} {name!r}", hint=hint)
        self.kind = kind
        self.name = name


class ReconciliationError(SyncError):
    """Raised when the balance adjustment fails after a completed import."""


@contextmanager
def unexpected_response(service: str, what: str, body: str | None = None) -> Iterator[None]:
    """Turn a malformed 2xx answer into ``LedgerResponseError``.

    Covers undecodable JSON, missing keys and payloads that fail model
    validation (pydantic's ``ValidationError`` is a ``ValueError``).
    """
    try:
        yield
    except (ValueError, KeyError, TypeError, AttributeError, InvalidOperation) as exc:
        message = f"unexpected {service} response for {what}: {exc}"
        if body is not None:
            message += f" body {body[:200]!r}"
        raise LedgerResponseError(message) from exc
