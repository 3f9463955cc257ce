"""YNAB API client (budgeting ledger)."""

from __future__ import annotations

import json
from typing import Any

import httpx

from bcasync.exceptions import LedgerStatusError, LedgerTransportError, unexpected_response
from bcasync.logger import log_external_api
from bcasync.schemas import (
    CanonicalTransaction,
    CategoryGroup,
    CreateTransactionsResult,
    LedgerAccount,
)

SERVICE = "ynab"


def _error_detail(response: httpx.Response) -> str:
    """Pull ``error.detail`` out of a YNAB error body, falling back to raw text."""
    try:
        payload = response.json()
    except ValueError:
        return response.text
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("detail"):
        return str(error["detail"])
    return response.text


class YNABClient:
    """Thin async wrapper over the endpoints a sync run needs."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = "https://api.ynab.com/v1",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> YNABClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=body)
        except httpx.HTTPError as exc:
            raise LedgerTransportError(f"failed to reach ynab ({method} {path}): {exc}") from exc

        if response.is_error:
            hint = "check the YNAB token or try -r" if response.status_code == 401 else None
            raise LedgerStatusError(
                SERVICE,
                response.status_code,
                _error_detail(response),
                request_body=json.dumps(body) if body is not None else None,
                hint=hint,
            )
        with unexpected_response(SERVICE, f"{method} {path}", response.text):
            return response.json()["data"]

    @log_external_api(SERVICE)
    async def list_accounts(self, budget_id: str) -> list[LedgerAccount]:
        data = await self._request("GET", f"/budgets/{budget_id}/accounts")
        with unexpected_response(SERVICE, "accounts"):
            return [LedgerAccount.model_validate(item) for item in data["accounts"]]

    @log_external_api(SERVICE)
    async def get_account(self, budget_id: str, account_id: str) -> LedgerAccount:
        data = await self._request("GET", f"/budgets/{budget_id}/accounts/{account_id}")
        with unexpected_response(SERVICE, "account"):
            return LedgerAccount.model_validate(data["account"])

    @log_external_api(SERVICE)
    async def list_categories(self, budget_id: str) -> list[CategoryGroup]:
        data = await self._request("GET", f"/budgets/{budget_id}/categories")
        with unexpected_response(SERVICE, "categories"):
            return [CategoryGroup.model_validate(item) for item in data["category_groups"]]

    @log_external_api(SERVICE)
    async def create_transactions(
        self,
        budget_id: str,
        transactions: list[CanonicalTransaction],
    ) -> CreateTransactionsResult:
        body = {"transactions": [txn.to_payload() for txn in transactions]}
        data = await self._request("POST", f"/budgets/{budget_id}/transactions", body)
        with unexpected_response(SERVICE, "created transactions"):
            return CreateTransactionsResult.model_validate(data)

    @log_external_api(SERVICE)
    async def create_transaction(self, budget_id: str, transaction: CanonicalTransaction) -> str:
        """Create one transaction and return its id."""
        body = {"transaction": transaction.to_payload()}
        data = await self._request("POST", f"/budgets/{budget_id}/transactions", body)
        with unexpected_response(SERVICE, "created transaction"):
            return str(data["transaction"]["id"])
