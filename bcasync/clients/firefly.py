"""Firefly III API client (alternate ledger)."""

from __future__ import annotations

import json
from typing import Any

import httpx

from bcasync.exceptions import LedgerStatusError, LedgerTransportError, unexpected_response
from bcasync.logger import log_external_api
from bcasync.schemas import FireflyAccount, FireflySplit

SERVICE = "firefly"

ACCOUNT_TYPE_RECONCILIATION = "reconciliation"


class FireflyClient:
    """Async wrapper over the Firefly III endpoints a sync run needs.

    Non-2xx answers and transport failures raise different exceptions; both
    carry the request body so a failed store can be replayed by hand.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/api/v1",
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.api+json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> FireflyClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        request_body = json.dumps(body) if body is not None else None
        try:
            response = await self._client.request(method, path, params=params, json=body)
        except httpx.HTTPError as exc:
            message = f"failed to reach firefly ({method} {path})"
            if request_body is not None:
                message += f" with request {request_body!r}"
            raise LedgerTransportError(f"{message}: {exc}") from exc

        if not response.is_success:
            raise LedgerStatusError(
                SERVICE,
                response.status_code,
                response.text,
                request_body=request_body if request_body is not None else json.dumps(params or {}),
            )
        with unexpected_response(SERVICE, f"{method} {path}", response.text):
            return dict(response.json())

    @log_external_api(SERVICE)
    async def search_accounts(self, name: str, account_type: str | None = None) -> list[FireflyAccount]:
        params = {"field": "name", "query": name}
        if account_type:
            params["type"] = account_type
        payload = await self._request("GET", "/search/accounts", params=params)
        with unexpected_response(SERVICE, "account search"):
            return [FireflyAccount.from_resource(item) for item in payload.get("data", [])]

    @log_external_api(SERVICE)
    async def get_account(self, account_id: str) -> FireflyAccount:
        payload = await self._request("GET", f"/accounts/{account_id}")
        with unexpected_response(SERVICE, "account"):
            return FireflyAccount.from_resource(payload["data"])

    @log_external_api(SERVICE)
    async def store_transaction(self, split: FireflySplit) -> str:
        """Store a single-split transaction and return the new journal id."""
        body = {"transactions": [split.to_payload()]}
        payload = await self._request("POST", "/transactions", body=body)
        with unexpected_response(SERVICE, "stored transaction"):
            return str(payload["data"]["id"])
