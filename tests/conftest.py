"""Shared fixtures: a fake mantela network served through httpx.MockTransport."""

from __future__ import annotations

import httpx
import pytest

from mantelagraph.fetcher import DescriptorFetcher


class FakeNetwork:
    """
    URL → response table. A value may be:
      - dict/list     → 200 with that JSON body
      - int           → empty response with that HTTP status
      - str           → 200 with that raw text body
      - Exception     → raised from the transport
    Unknown URLs raise httpx.ConnectError.
    """

    def __init__(self, routes: dict):
        self.routes = dict(routes)
        self.requested: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requested.append(url)
        if url not in self.routes:
            raise httpx.ConnectError(f"no route to {url}", request=request)
        value = self.routes[url]
        if isinstance(value, Exception):
            raise value
        if isinstance(value, int):
            return httpx.Response(value)
        if isinstance(value, str):
            return httpx.Response(200, text=value)
        return httpx.Response(200, json=value)

    def fetcher(self) -> DescriptorFetcher:
        return DescriptorFetcher(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fake_network():
    """Factory: fake_network({url: body, ...}) → FakeNetwork."""
    fetchers: list[DescriptorFetcher] = []

    def _make(routes: dict) -> FakeNetwork:
        net = FakeNetwork(routes)
        original = net.fetcher

        def _tracked() -> DescriptorFetcher:
            f = original()
            fetchers.append(f)
            return f

        net.fetcher = _tracked
        return net

    yield _make

    for f in fetchers:
        f.close()
