"""Public IP lookup; KlikBCA wants the caller's address in the login form."""

import httpx

from bcasync.exceptions import BankError
from bcasync.logger import log_external_api


@log_external_api("ipify")
async def get_public_ip(
    url: str = "https://api.ipify.org?format=text",
    *,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise BankError(f"failed to look up the public ip: {exc}") from exc
    return response.text.strip()
