"""Tests for KlikBCA page parsing and the portal session flow."""

from datetime import date
from decimal import Decimal

import httpx
import pytest

from bcasync.clients.bca import (
    KlikBCAClient,
    parse_amount,
    parse_balance,
    parse_statement,
    parse_statement_date,
)
from bcasync.exceptions import BankError
from bcasync.schemas import EntryType

STATEMENT_HTML = """
<html><body>
<table>
  <tr><td>
    <table>
      <tr><td>TGL.</td><td>KETERANGAN</td><td>CBG</td></tr>
      <tr>
        <td>01/03</td>
        <td>TRSF E-BANKING CR<br>0103/FTSCY/WS95031<br>ACME<br>50,000.00</td>
        <td>CR</td>
      </tr>
      <tr>
        <td>PEND</td>
        <td>KARTU DEBIT<br>Shop &amp; Co<br>20,000.00</td>
        <td>DB</td>
      </tr>
      <tr>
        <td>02/03</td>
        <td>BIAYA ADM<br>10,000.00</td>
        <td>DB</td>
      </tr>
    </table>
  </td></tr>
</table>
</body></html>
"""

BALANCE_HTML = """
<table>
  <tr><td>No. Rekening</td><td>Mata Uang</td><td>Saldo Efektif</td></tr>
  <tr><td>1234567890</td><td>IDR</td><td>1,000,000.00</td></tr>
</table>
"""


def test_parse_amount():
    assert parse_amount("1,234,567.89") == Decimal("1234567.89")
    assert parse_amount("Rp 50,000") == Decimal("50000")
    with pytest.raises(ValueError):
        parse_amount("n/a")


def test_parse_statement_date():
    assert parse_statement_date("01/03", date(2021, 3, 28)) == date(2021, 3, 1)
    assert parse_statement_date("PEND", date(2021, 3, 28)) is None
    # a December line in a window ending in January belongs to last year
    assert parse_statement_date("28/12", date(2021, 1, 5)) == date(2020, 12, 28)
    with pytest.raises(ValueError):
        parse_statement_date("2021-03-01", date(2021, 3, 28))


def test_parse_statement():
    entries = parse_statement(STATEMENT_HTML, date(2021, 3, 28))

    assert len(entries) == 3
    first, pending, fee = entries

    assert first.date == date(2021, 3, 1)
    assert first.amount == Decimal("50000.00")
    assert first.type is EntryType.CREDIT
    assert first.payee == "ACME"
    assert first.description == "TRSF E-BANKING CR 0103/FTSCY/WS95031"

    assert pending.date is None
    assert pending.type is EntryType.DEBIT
    assert pending.payee == "Shop & Co"

    assert fee.payee == "BIAYA ADM"
    assert fee.description == ""


def test_parse_statement_without_rows():
    assert parse_statement("<html><p>Tidak ada transaksi</p></html>", date(2021, 3, 28)) == []


def test_parse_balance():
    balance = parse_balance(BALANCE_HTML)

    assert balance.account_number == "1234567890"
    assert balance.currency == "IDR"
    assert balance.balance == Decimal("1000000.00")


def test_parse_balance_missing():
    with pytest.raises(BankError):
        parse_balance("<html>session expired</html>")


class PortalStub:
    """Minimal KlikBCA portal; records every request it serves."""

    def __init__(self, login_page: str = "<script>var x = 1;</script>") -> None:
        self.login_page = login_page
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if request.url.path == "/authentication.do" and request.method == "POST":
            return httpx.Response(200, text=self.login_page)
        if "acctstmtview" in url:
            return httpx.Response(200, text=STATEMENT_HTML)
        if request.url.path == "/balanceinquiry.do":
            return httpx.Response(200, text=BALANCE_HTML)
        return httpx.Response(200, text="<html></html>")

    def paths(self) -> list[str]:
        return [f"{r.method} {r.url.path}" for r in self.requests]


@pytest.mark.asyncio
async def test_session_flow():
    portal = PortalStub()

    async with KlikBCAClient(transport=httpx.MockTransport(portal)) as bank:
        await bank.login("user", "secret", "1.2.3.4")
        assert bank.logged_in
        entries = await bank.fetch_statement(date(2021, 3, 1), date(2021, 3, 28))
        balance = await bank.fetch_balance()
        await bank.logout()

    assert len(entries) == 3
    assert balance.balance == Decimal("1000000.00")
    assert not bank.logged_in
    assert portal.paths()[:2] == ["GET /login.jsp", "POST /authentication.do"]
    assert portal.paths()[-1] == "GET /authentication.do"

    login_form = portal.requests[1].content.decode()
    assert "1.2.3.4" in login_form
    assert "secret" in login_form

    statement_form = next(r for r in portal.requests if "acctstmtview" in str(r.url)).content.decode()
    assert "value%28startDt%29=01" in statement_form
    assert "value%28endYr%29=2021" in statement_form


@pytest.mark.asyncio
async def test_login_rejected():
    portal = PortalStub(login_page="<script>var err='User ID atau PIN anda salah';</script>")

    async with KlikBCAClient(transport=httpx.MockTransport(portal)) as bank:
        with pytest.raises(BankError) as excinfo:
            await bank.login("user", "wrong", "1.2.3.4")

        assert not bank.logged_in
        assert "User ID atau PIN anda salah" in str(excinfo.value)
        assert excinfo.value.hint


@pytest.mark.asyncio
async def test_logout_without_login_is_noop():
    portal = PortalStub()

    async with KlikBCAClient(transport=httpx.MockTransport(portal)) as bank:
        await bank.logout()

    assert portal.requests == []


@pytest.mark.asyncio
async def test_portal_error_status_is_bank_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="maintenance")

    async with KlikBCAClient(transport=httpx.MockTransport(handler)) as bank:
        with pytest.raises(BankError):
            await bank.login("user", "secret", "1.2.3.4")
