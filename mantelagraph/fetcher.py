"""
Descriptor Fetcher — one URL in, one FetchResult out.

The walker must never see an exception from here. Every way a fetch can
go wrong is folded into a FetchResult with a FetchStatus:

    transport-error   DNS, refused, TLS, timeout, malformed URL
    http-error        4xx / 5xx
    json-error        body doesn't decode as JSON
    shape-error       JSON, but consumed fields have the wrong shape

Usage:
    with DescriptorFetcher(timeout=5.0) as fetcher:
        result = fetcher.fetch("https://example.jp/mantela.json")
        if result.ok:
            print(result.descriptor.about_me)
"""

from __future__ import annotations
import logging
import time
from typing import Optional

import httpx

from .diagnostics import FetchResult, FetchStatus
from .parsers import DescriptorShapeError, parse_descriptor

logger = logging.getLogger("mantelagraph.fetcher")

DEFAULT_TIMEOUT = 10.0
DEFAULT_USER_AGENT = "mantelagraph/0.1"


class DescriptorFetcher:

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        client: Optional[httpx.Client] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        # An injected client belongs to the caller — we don't close it.
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={
                "Accept": "application/json",
                "User-Agent": user_agent,
            },
            transport=transport,
        )

    def __enter__(self) -> "DescriptorFetcher":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def fetch(self, url: str) -> FetchResult:
        """GET + decode + parse. Never raises."""
        started = time.monotonic()
        result = FetchResult(url=url)

        try:
            response = self._client.get(url)
            result.http_status = response.status_code
            response.raise_for_status()
            doc = response.json()
            result.descriptor = parse_descriptor(doc)

        except httpx.HTTPStatusError as e:
            result.status = FetchStatus.HTTP_ERROR
            result.error_message = (
                f"HTTP {e.response.status_code} {e.response.reason_phrase}"
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            result.status = FetchStatus.TRANSPORT_ERROR
            result.error_message = f"{type(e).__name__}: {e}"
        except DescriptorShapeError as e:
            result.status = FetchStatus.SHAPE_ERROR
            result.error_message = f"not a mantela: {e}"
        except (ValueError, RecursionError) as e:
            # JSONDecodeError, UnicodeDecodeError, and nesting too deep to decode
            result.status = FetchStatus.JSON_ERROR
            result.error_message = f"invalid JSON: {e}"

        result.duration_ms = (time.monotonic() - started) * 1000

        if result.ok:
            logger.debug(f"Fetched {url} in {result.duration_ms:.0f}ms")
        else:
            result.descriptor = None
            logger.debug(f"Fetch failed {url}: {result.status.value}: "
                         f"{result.error_message}")
        return result
