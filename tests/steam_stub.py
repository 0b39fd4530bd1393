"""In-memory Steam Community inventory endpoint served through httpx.MockTransport."""

import asyncio
from typing import Dict, List, Tuple

import httpx

from steam_inventory.services.steam_web import SteamWeb

OWNER = 76500000000000001


def asset(asset_id, classid="1", instanceid="0", appid=730, contextid="2", amount="1"):
    return {
        "appid": appid,
        "contextid": contextid,
        "assetid": str(asset_id),
        "classid": classid,
        "instanceid": instanceid,
        "amount": amount,
    }


def description(classid="1", instanceid="0", appid=730, name="Item", **extra):
    return {
        "appid": appid,
        "classid": classid,
        "instanceid": instanceid,
        "name": name,
        "market_hash_name": name,
        "tradable": 1,
        "marketable": 1,
        **extra,
    }


def page(assets, descriptions=(), more=False, last=None, total=None):
    body = {
        "assets": list(assets),
        "descriptions": list(descriptions),
        "total_inventory_count": len(assets) if total is None else total,
        "success": 1,
    }
    if more:
        body["more_items"] = 1
        body["last_assetid"] = last
    return body


class FakeSteam:
    """
    Responses are queued per (owner, app, context, start_assetid). The last queued
    response repeats once the queue is down to one. Unknown keys answer 500.
    """

    def __init__(self):
        self._responses: Dict[Tuple[int, int, int, str], List] = {}
        self.delays: Dict[Tuple[int, int], float] = {}
        self.requests: List[httpx.Request] = []

    def add(self, response, owner=OWNER, app=730, ctx=2, cursor=""):
        self._responses.setdefault((owner, app, ctx, cursor), []).append(response)

    def calls(self, app=730, ctx=2):
        return [
            r for r in self.requests
            if r.url.path.endswith(f"/{app}/{ctx}")
        ]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        _, _, owner, app, ctx = request.url.path.split("/")
        key = (int(owner), int(app), int(ctx), request.url.params.get("start_assetid", ""))

        delay = self.delays.get((int(app), int(ctx)))
        if delay:
            await asyncio.sleep(delay)

        queue = self._responses.get(key)
        if not queue:
            return httpx.Response(500)
        resp = queue.pop(0) if len(queue) > 1 else queue[0]

        if isinstance(resp, Exception):
            raise resp
        if isinstance(resp, httpx.Response):
            return resp
        if isinstance(resp, str):
            return httpx.Response(200, text=resp)
        return httpx.Response(200, json=resp)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def web(self) -> SteamWeb:
        return SteamWeb(self.client())
