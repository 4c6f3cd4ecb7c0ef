"""Shared fixtures for map engine tests.

HTTP is faked with httpx.MockTransport: routes map a URL path to either a
JSON-able payload, an ``httpx.Response``, an exception to raise, or an
``asyncio.Event`` the request waits on before answering 504.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest


@pytest.fixture(autouse=True)
def _event_loop():
    """Provide a fresh event loop for each test."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


class RouteTransport:
    """Records requests and answers them from a path -> response table."""

    def __init__(self, routes: dict) -> None:
        self.routes = dict(routes)
        self.requests: list[httpx.Request] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answer = self.routes.get(request.url.path)
        if answer is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(answer, asyncio.Event):
            await answer.wait()
            return httpx.Response(504)
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, httpx.Response):
            return answer
        return httpx.Response(200, content=json.dumps(answer).encode())

    def count(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def routes():
    """Factory: routes({...}) -> RouteTransport."""
    return RouteTransport

