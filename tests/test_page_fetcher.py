"""Page fetcher: URL building, fixed retries, decode failures."""

import asyncio

import httpx
import pytest

from steam_inventory.core.config import settings
from steam_inventory.core.errors import DecodeError, PrivateInventoryError, TransportError
from steam_inventory.schemas.steam import InventoryPage
from steam_inventory.services.page_fetcher import (
    FailureReason,
    PageFailure,
    build_inventory_url,
    decode_page,
    fetch_page,
    retry_web_request,
)
from steam_stub import OWNER, asset, page


class ScriptedWeb:
    """Returns/raises the scripted outcomes in order, one per fetch."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def fetch(self, url, method="GET"):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def sleeps(monkeypatch):
    recorded = []

    async def fake_sleep(delay):
        recorded.append(delay)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return recorded


def test_build_url_first_page():
    url = build_inventory_url(OWNER, 730, 2, 500)
    assert url == f"https://steamcommunity.com/inventory/{OWNER}/730/2?count=500"


def test_build_url_with_cursor():
    url = build_inventory_url(OWNER, 753, 6, 2, "100")
    assert url == f"https://steamcommunity.com/inventory/{OWNER}/753/6?count=2&start_assetid=100"


async def test_retry_returns_first_success(sleeps):
    web = ScriptedWeb(TransportError("down"), "body")
    assert await retry_web_request(web, "u") == "body"
    assert web.calls == 2
    assert len(sleeps) == 1


async def test_retry_exhausted_returns_empty_body(sleeps, monkeypatch):
    monkeypatch.setattr(settings, "inventory_retry_delay", 1.0)
    web = ScriptedWeb(*(TransportError(str(i)) for i in range(3)))

    assert await retry_web_request(web, "u") == ""
    assert web.calls == 3
    # sleeps only between attempts
    assert sleeps == [1.0, 1.0]


async def test_retry_does_not_retry_private(sleeps):
    web = ScriptedWeb(PrivateInventoryError("403"), "never")
    with pytest.raises(PrivateInventoryError):
        await retry_web_request(web, "u")
    assert web.calls == 1
    assert sleeps == []


def test_decode_page_rejects_garbage():
    with pytest.raises(DecodeError):
        decode_page("<html>busy</html>")
    with pytest.raises(DecodeError):
        decode_page("null")


async def test_fetch_page_ok(fake_steam, web):
    fake_steam.add(page([asset(1), asset(2)], more=True, last="2"))

    result = await fetch_page(web, OWNER, 730, 2, 2)

    assert isinstance(result, InventoryPage)
    assert [a.asset_id for a in result.assets] == [1, 2]
    assert fake_steam.requests[0].url.params["count"] == "2"
    assert "start_assetid" not in fake_steam.requests[0].url.params


async def test_fetch_page_sends_cursor(fake_steam, web):
    fake_steam.add(page([asset(3)]), cursor="2")

    result = await fetch_page(web, OWNER, 730, 2, 2, "2")

    assert isinstance(result, InventoryPage)
    assert fake_steam.requests[0].url.params["start_assetid"] == "2"


async def test_fetch_page_transport_failure_after_three_attempts(fake_steam, web):
    fake_steam.add(httpx.ConnectError("refused"))

    result = await fetch_page(web, OWNER, 730, 2, 500)

    assert isinstance(result, PageFailure)
    assert result.reason is FailureReason.TRANSPORT
    assert len(fake_steam.requests) == 3


async def test_fetch_page_recovers_from_transient_errors(fake_steam, web):
    fake_steam.add(httpx.Response(502))
    fake_steam.add(httpx.Response(429))
    fake_steam.add(page([asset(1)]))

    result = await fetch_page(web, OWNER, 730, 2, 500)

    assert isinstance(result, InventoryPage)
    assert len(fake_steam.requests) == 3


async def test_fetch_page_decode_failure(fake_steam, web):
    fake_steam.add("{not json")

    result = await fetch_page(web, OWNER, 730, 2, 500)

    assert isinstance(result, PageFailure)
    assert result.reason is FailureReason.DECODE
    assert len(fake_steam.requests) == 1


async def test_fetch_page_unsuccessful(fake_steam, web):
    fake_steam.add({"success": False})

    result = await fetch_page(web, OWNER, 730, 2, 500)

    assert isinstance(result, PageFailure)
    assert result.reason is FailureReason.UNSUCCESSFUL


async def test_fetch_page_private(fake_steam, web):
    fake_steam.add(httpx.Response(403, text="null"))

    result = await fetch_page(web, OWNER, 730, 2, 500)

    assert isinstance(result, PageFailure)
    assert result.reason is FailureReason.PRIVATE
    assert len(fake_steam.requests) == 1
