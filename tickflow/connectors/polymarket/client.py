"""Paginated Polymarket market sources (CLOB and Gamma APIs)."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

import aiohttp
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from tickflow.connectors.polymarket.types import GammaMarket, Market, PolymarketMessage
from tickflow.core.channel import BatchSender
from tickflow.core.exceptions import SourceError
from tickflow.core.source import MessageSource

logger = logging.getLogger(__name__)

CLOB_HOST = "https://clob.polymarket.com"
GAMMA_API_BASE = "https://gamma-api.polymarket.com"

# Cursor the CLOB API returns on the last page.
END_CURSOR = "LTE="
GAMMA_PAGE_LIMIT = 500


class PolymarketApiError(SourceError):
    """A Polymarket request failed or returned an unusable response."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(f"Polymarket: {message}")


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, PolymarketApiError):
        return exc.status is not None and exc.status >= 500
    return isinstance(exc, (aiohttp.ClientConnectionError, asyncio.TimeoutError))


@retry(
    retry=retry_if_exception(_is_transient),
    stop=stop_after_attempt(3),
    wait=wait_exponential_jitter(initial=0.5, max=5, jitter=1),
    reraise=True,
)
async def fetch_json(
    session: aiohttp.ClientSession, url: str, params: Mapping[str, str] | None = None
) -> Any:
    """GET *url* and decode the JSON body.

    Non-2xx responses raise :class:`PolymarketApiError`; 5xx responses and
    connection failures are retried.
    """
    async with session.get(url, params=params) as response:
        if response.status >= 300:
            body = await response.text()
            raise PolymarketApiError(
                f"GET {response.url} returned {response.status}: {body[:200]}",
                status=response.status,
            )
        return await response.json(content_type=None)


class _HttpSource:
    """Session handling shared by both Polymarket sources."""

    def __init__(
        self,
        request_delay_ms: int,
        session: aiohttp.ClientSession | None,
        timeout: float,
    ) -> None:
        self.request_delay_ms = request_delay_ms
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[aiohttp.ClientSession]:
        if self._session is not None:
            yield self._session
            return
        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            yield session

    async def _get(
        self, session: aiohttp.ClientSession, url: str, params: Mapping[str, str]
    ) -> Any:
        try:
            return await fetch_json(session, url, params)
        except aiohttp.ClientError as exc:
            raise PolymarketApiError(f"GET {url} failed: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise PolymarketApiError(f"GET {url} timed out") from exc

    async def _pause(self) -> None:
        await asyncio.sleep(self.request_delay_ms / 1000)


def parse_markets(entries: Any) -> list[Market]:
    """Parse a CLOB ``data`` array, skipping entries that do not validate."""
    markets: list[Market] = []
    for entry in entries or []:
        try:
            markets.append(Market.model_validate(entry))
        except ValidationError as exc:
            logger.warning("Failed to parse market, skipping: %s", exc)
    return markets


def next_cursor(page: Mapping[str, Any]) -> str | None:
    """Cursor for the page after *page*, or ``None`` on the last page."""
    cursor = page.get("next_cursor")
    if not isinstance(cursor, str) or not cursor or cursor == END_CURSOR:
        return None
    return cursor


class PolymarketClient(_HttpSource, MessageSource[PolymarketMessage]):
    """Walks every CLOB market page by cursor; one batch per page."""

    def __init__(
        self,
        host: str = CLOB_HOST,
        *,
        request_delay_ms: int = 0,
        session: aiohttp.ClientSession | None = None,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(request_delay_ms, session, timeout)
        self.host = host.rstrip("/")

    async def run(self, tx: BatchSender[PolymarketMessage]) -> None:
        url = f"{self.host}/markets"
        cursor: str | None = None
        pages = 0
        total = 0

        async with self._client() as session:
            while True:
                pages += 1
                logger.debug("Fetching markets page %d (cursor=%s)", pages, cursor)
                params = {"next_cursor": cursor} if cursor else {}
                page = await self._get(session, url, params)
                if not isinstance(page, Mapping):
                    raise PolymarketApiError(
                        f"unexpected markets response: {type(page).__name__}"
                    )

                data = page.get("data")
                if isinstance(data, list):
                    logger.info("Received markets page %d: %d markets", pages, len(data))
                    markets = parse_markets(data)
                    if markets:
                        await tx.send(markets)
                    total += len(data)

                cursor = next_cursor(page)
                if cursor is None:
                    break
                await self._pause()

        logger.info("Finished fetching %d markets over %d pages", total, pages)


class PolymarketGammaClient(_HttpSource, MessageSource[PolymarketMessage]):
    """Walks active Gamma markets by offset; one batch per page.

    Only markets that are not closed and end on or after *end_date_min*
    (ISO date, e.g. ``"2025-12-13"``) are requested.
    """

    def __init__(
        self,
        end_date_min: str,
        *,
        base_url: str = GAMMA_API_BASE,
        request_delay_ms: int = 0,
        page_limit: int = GAMMA_PAGE_LIMIT,
        session: aiohttp.ClientSession | None = None,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(request_delay_ms, session, timeout)
        self.end_date_min = end_date_min
        self.base_url = base_url.rstrip("/")
        self.page_limit = page_limit

    async def run(self, tx: BatchSender[PolymarketMessage]) -> None:
        url = f"{self.base_url}/markets"
        offset = 0
        total = 0

        async with self._client() as session:
            while True:
                params = {
                    "closed": "false",
                    "end_date_min": self.end_date_min,
                    "limit": str(self.page_limit),
                    "offset": str(offset),
                }
                logger.debug("Fetching Gamma markets (offset=%d)", offset)
                payload = await self._get(session, url, params)
                if not isinstance(payload, list):
                    raise PolymarketApiError(
                        f"unexpected Gamma response: {type(payload).__name__}"
                    )
                try:
                    markets = [GammaMarket.model_validate(entry) for entry in payload]
                except ValidationError as exc:
                    raise PolymarketApiError(f"failed to parse Gamma markets: {exc}") from exc

                logger.info("Received %d Gamma markets (offset=%d)", len(markets), offset)
                if markets:
                    await tx.send(markets)
                total += len(markets)

                if len(markets) < self.page_limit:
                    break
                offset += self.page_limit
                await self._pause()

        logger.info("Finished fetching %d active Gamma markets", total)
