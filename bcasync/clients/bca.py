"""KlikBCA mobile portal client (banking collaborator).

The portal has no API; every call posts a form and the answer is an HTML
page. Session state is the JSESSIONID cookie kept in the client's cookie jar,
so one client instance is one login.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from html.parser import HTMLParser

import httpx

from bcasync.exceptions import BankError
from bcasync.logger import get_logger, log_external_api
from bcasync.schemas import Balance, EntryType, RawStatementEntry

logger = get_logger(__name__)

SERVICE = "klikbca"

_USER_AGENT = (
    "Mozilla/5.0 (Linux; Android 10) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Mobile Safari/537.36"
)
_LOGIN_ERROR = re.compile(r"var\s+err\s*=\s*['\"]([^'\"]*)['\"]")
_AMOUNT = re.compile(r"\d[\d,]*(?:\.\d+)?")
_STATEMENT_DATE = re.compile(r"^(\d{2})/(\d{2})$")
_PENDING = "PEND"


@dataclass
class _Cell:
    lines: list[str] = field(default_factory=list)
    parts: list[str] = field(default_factory=list)

    def break_line(self) -> None:
        text = " ".join("".join(self.parts).split())
        if text:
            self.lines.append(text)
        self.parts = []


class _TableParser(HTMLParser):
    """Collect every table row as a list of cells, each cell a list of lines.

    ``<br>`` splits a cell into lines. Nested tables produce their own rows.
    """

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.rows: list[list[list[str]]] = []
        self._rows: list[list[list[str]]] = []
        self._cells: list[_Cell] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag == "tr":
            self._rows.append([])
        elif tag in ("td", "th") and self._rows:
            self._cells.append(_Cell())
        elif tag == "br" and self._cells:
            self._cells[-1].break_line()

    def handle_endtag(self, tag: str) -> None:
        if tag in ("td", "th") and self._cells:
            cell = self._cells.pop()
            cell.break_line()
            if self._rows:
                self._rows[-1].append(cell.lines)
        elif tag == "tr" and self._rows:
            row = self._rows.pop()
            if row:
                self.rows.append(row)

    def handle_data(self, data: str) -> None:
        if self._cells:
            self._cells[-1].parts.append(data)


def parse_rows(html: str) -> list[list[list[str]]]:
    parser = _TableParser()
    parser.feed(html)
    parser.close()
    return parser.rows


def parse_amount(text: str) -> Decimal:
    """Parse ``1,234,567.89`` style amounts."""
    match = _AMOUNT.search(text)
    if not match:
        raise ValueError(f"Invalid amount format: {text!r}")
    try:
        return Decimal(match.group(0).replace(",", ""))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount format: {text!r}") from exc


def parse_statement_date(text: str, window_end: date) -> date | None:
    """Parse ``dd/mm``; ``PEND`` means not posted yet.

    The portal omits the year. A month later than the window end's month
    belongs to the previous year.
    """
    if text.strip().upper() == _PENDING:
        return None
    match = _STATEMENT_DATE.match(text.strip())
    if not match:
        raise ValueError(f"Invalid statement date: {text!r}")
    day, month = int(match.group(1)), int(match.group(2))
    year = window_end.year if month <= window_end.month else window_end.year - 1
    return date(year, month, day)


def _is_statement_row(row: list[list[str]]) -> bool:
    if len(row) < 3 or not row[0] or not row[2]:
        return False
    head = row[0][0].strip().upper()
    return head == _PENDING or bool(_STATEMENT_DATE.match(head))


def parse_statement(html: str, window_end: date) -> list[RawStatementEntry]:
    """Parse the statement view.

    Each transaction row has three cells: the date, a detail cell whose lines
    are the description, the counterparty and finally the amount, and the
    ``DB``/``CR`` code. A detail cell with a single text line before the amount
    has no separate description.
    """
    entries: list[RawStatementEntry] = []
    for row in parse_rows(html):
        if not _is_statement_row(row):
            continue
        details = row[1]
        if not details:
            continue
        amount = parse_amount(details[-1])
        body = details[:-1] or [""]
        payee = body[-1]
        description = " ".join(body[:-1])
        entries.append(
            RawStatementEntry(
                date=parse_statement_date(row[0][0], window_end),
                amount=amount,
                type=EntryType.from_code(row[2][0]),
                payee=payee,
                description=description,
            )
        )
    return entries


def parse_balance(html: str) -> Balance:
    """Parse the balance inquiry page: account number, currency, balance."""
    for row in parse_rows(html):
        if len(row) < 3 or not all(row[:3]):
            continue
        account_number, currency, balance = row[0][0], row[1][0], row[2][0]
        if not account_number.replace("-", "").isdigit():
            continue
        try:
            amount = parse_amount(balance)
        except ValueError:
            continue
        return Balance(account_number=account_number, currency=currency, balance=amount)
    raise BankError("couldn't find the balance on the klikbca balance page")


class KlikBCAClient:
    """Session-scoped client: ``login`` first, ``logout`` last."""

    def __init__(
        self,
        *,
        base_url: str = "https://m.klikbca.com",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"User-Agent": _USER_AGENT},
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )
        self.logged_in = False

    async def __aenter__(self) -> KlikBCAClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _referer(self, path: str) -> dict[str, str]:
        return {"Referer": f"{self._client.base_url}{path.lstrip('/')}"}

    async def _post(self, path: str, *, data: dict[str, str] | None = None, referer: str) -> str:
        try:
            response = await self._client.post(path, data=data, headers=self._referer(referer))
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise BankError(f"klikbca request {path} failed: {exc}") from exc
        return response.text

    @log_external_api(SERVICE)
    async def login(self, username: str, password: str, ip: str) -> None:
        try:
            response = await self._client.get("/login.jsp")
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise BankError(f"klikbca login page unavailable: {exc}") from exc

        html = await self._post(
            "/authentication.do",
            data={
                "value(user_id)": username,
                "value(pswd)": password,
                "value(Submit)": "LOGIN",
                "value(actions)": "login",
                "value(user_ip)": ip,
                "user_ip": ip,
                "value(mobile)": "true",
                "mobile": "true",
            },
            referer="/login.jsp",
        )
        rejected = _LOGIN_ERROR.search(html)
        if rejected:
            raise BankError(
                f"klikbca rejected the login: {rejected.group(1)}",
                hint="check the username and password or try -r",
            )
        self.logged_in = True
        logger.info("Logged in to klikbca")

    @log_external_api(SERVICE)
    async def fetch_statement(self, start: date, end: date) -> list[RawStatementEntry]:
        await self._post("/accountstmt.do?value(actions)=menu", referer="/authentication.do")
        await self._post(
            "/accountstmt.do?value(actions)=acct_stmt",
            referer="/accountstmt.do?value(actions)=menu",
        )
        html = await self._post(
            "/accountstmt.do?value(actions)=acctstmtview",
            data={
                "r1": "1",
                "value(D1)": "0",
                "value(startDt)": f"{start.day:02d}",
                "value(startMt)": str(start.month),
                "value(startYr)": str(start.year),
                "value(endDt)": f"{end.day:02d}",
                "value(endMt)": str(end.month),
                "value(endYr)": str(end.year),
            },
            referer="/accountstmt.do?value(actions)=acct_stmt",
        )
        try:
            return parse_statement(html, end)
        except ValueError as exc:
            raise BankError(f"couldn't parse the klikbca statement: {exc}") from exc

    @log_external_api(SERVICE)
    async def fetch_balance(self) -> Balance:
        await self._post("/accountstmt.do?value(actions)=menu", referer="/authentication.do")
        html = await self._post(
            "/balanceinquiry.do",
            referer="/accountstmt.do?value(actions)=menu",
        )
        return parse_balance(html)

    @log_external_api(SERVICE)
    async def logout(self) -> None:
        if not self.logged_in:
            return
        try:
            await self._client.get(
                "/authentication.do?value(actions)=logout",
                headers=self._referer("/authentication.do?value(actions)=menu"),
            )
        except httpx.HTTPError as exc:
            raise BankError(f"klikbca logout failed: {exc}") from exc
        finally:
            self.logged_in = False
