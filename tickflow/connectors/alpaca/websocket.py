"""Alpaca market-data websocket source."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, Sequence

import aiohttp
from pydantic import ValidationError

from tickflow.connectors.alpaca.types import AlpacaError, AlpacaMessage, parse_frame
from tickflow.core.channel import BatchSender
from tickflow.core.exceptions import SourceError
from tickflow.core.source import MessageSource

logger = logging.getLogger(__name__)

IEX_STREAM_URL = "wss://stream.data.alpaca.markets/v2/iex"


class AlpacaStreamError(SourceError):
    """The stream could not be opened or the server reported an error."""

    def __init__(self, message: str, code: int | None = None):
        self.code = code
        super().__init__(f"Alpaca {code}: {message}" if code else f"Alpaca: {message}")


class AlpacaWebSocketClient(MessageSource[AlpacaMessage]):
    """Streams bars, quotes and trades from Alpaca.

    Each text frame becomes one batch.  The stream ends cleanly when the
    server closes the socket or the transport fails mid-stream; it fails
    when the connection cannot be opened or the server sends an
    ``error`` message (bad credentials, connection limit, ...).

    An ``aiohttp.ClientSession`` may be passed in; otherwise one is
    created for the run and closed afterwards.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        api_secret: str,
        *,
        bars: Sequence[str] = (),
        quotes: Sequence[str] = (),
        trades: Sequence[str] = (),
        session: aiohttp.ClientSession | None = None,
        heartbeat: float | None = 30.0,
    ) -> None:
        self.url = url
        self._api_key = api_key
        self._api_secret = api_secret
        self.bars = list(bars)
        self.quotes = list(quotes)
        self.trades = list(trades)
        self._session = session
        self._heartbeat = heartbeat

    def auth_payload(self) -> dict[str, str]:
        return {"action": "auth", "key": self._api_key, "secret": self._api_secret}

    def subscribe_payload(self) -> dict[str, object]:
        return {
            "action": "subscribe",
            "bars": self.bars,
            "quotes": self.quotes,
            "trades": self.trades,
        }

    async def run(self, tx: BatchSender[AlpacaMessage]) -> None:
        owns_session = self._session is None
        session = self._session or aiohttp.ClientSession()
        try:
            ws = await self._connect(session)
            try:
                logger.info("Authenticating")
                await ws.send_json(self.auth_payload())
                logger.info(
                    "Subscribing (bars=%s quotes=%s trades=%s)",
                    self.bars,
                    self.quotes,
                    self.trades,
                )
                await ws.send_json(self.subscribe_payload())
                await self.stream_messages(ws, tx)
            finally:
                await ws.close()
                logger.info("WebSocket closed")
        finally:
            if owns_session:
                await session.close()

    async def _connect(
        self, session: aiohttp.ClientSession
    ) -> aiohttp.ClientWebSocketResponse:
        logger.info("Connecting to %s", self.url)
        try:
            ws = await session.ws_connect(self.url, heartbeat=self._heartbeat)
        except aiohttp.ClientError as exc:
            raise AlpacaStreamError(f"could not connect to {self.url}: {exc}") from exc
        logger.info("WebSocket connected")
        return ws

    async def stream_messages(
        self,
        ws: AsyncIterable[aiohttp.WSMessage],
        tx: BatchSender[AlpacaMessage],
    ) -> None:
        """Forward every parsed text frame from *ws* to *tx* as one batch."""
        try:
            async for frame in ws:
                if frame.type == aiohttp.WSMsgType.TEXT:
                    await self._forward(frame.data, tx)
                elif frame.type == aiohttp.WSMsgType.BINARY:
                    logger.debug("Binary frame ignored")
                elif frame.type == aiohttp.WSMsgType.ERROR:
                    logger.error("WebSocket error: %s", frame.data)
                    break
                elif frame.type in (
                    aiohttp.WSMsgType.CLOSE,
                    aiohttp.WSMsgType.CLOSING,
                    aiohttp.WSMsgType.CLOSED,
                ):
                    logger.info("Received close frame: %s", frame.extra)
                    break
        except aiohttp.ClientError as exc:
            logger.error("WebSocket transport error: %s", exc)

    async def _forward(self, text: str, tx: BatchSender[AlpacaMessage]) -> None:
        logger.debug("frame: %s", text)
        try:
            batch = parse_frame(text)
        except ValidationError as exc:
            logger.debug("Failed to parse frame: %s", exc)
            return
        if not batch:
            return

        await tx.send(batch)

        for message in batch:
            if isinstance(message, AlpacaError):
                raise AlpacaStreamError(message.msg, code=message.code)
