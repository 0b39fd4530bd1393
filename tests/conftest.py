"""Shared fixtures: fake Steam endpoint, no real retry delays."""

import pytest

from steam_inventory.core.config import settings
from steam_stub import FakeSteam


@pytest.fixture(autouse=True)
def _fast_retries(monkeypatch):
    monkeypatch.setattr(settings, "inventory_retry_delay", 0)


@pytest.fixture
def fake_steam():
    return FakeSteam()


@pytest.fixture
async def web(fake_steam):
    web = fake_steam.web()
    yield web
    await web._client.aclose()
