# blocktap/stream.py
"""
Geyser block-metadata subscriber that:
1. Opens one websocket connection to the geyser endpoint (token in x-token header)
2. Subscribes to block notifications only, without transactions or rewards
3. Yields a ChainEvent per finalized block, in delivery order
4. Never reconnects: once the connection ends, the sequence is exhausted
"""
import asyncio
import json
import logging
from collections.abc import AsyncIterator

import websockets
from websockets.exceptions import InvalidHandshake, InvalidURI

import blocktap.constants as C
from blocktap.constants import StreamState
from blocktap.errors import TransportError
from blocktap.models import ChainEvent

log = logging.getLogger("blocktap.stream")

BLOCK_NOTIFICATION = "blockNotification"
SUBSCRIBE_ID = 1


def block_subscribe_request(commitment: str = C.STREAM_COMMITMENT) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": SUBSCRIBE_ID,
        "method": "blockSubscribe",
        "params": [
            "all",
            {
                "commitment": commitment,
                "encoding": "base64",
                "transactionDetails": "none",
                "showRewards": False,
                "maxSupportedTransactionVersion": 0,
            },
        ],
    }


class EventStreamSubscriber:
    """
    One-shot subscription to the block-metadata feed.

    Parameters
    ----------
    url:
        Geyser websocket URL (e.g., "wss://geyser.example.com")
    token:
        Access token sent in the x-token header
    commitment:
        Commitment level of the blocks to receive
    connect:
        Websocket connect factory; defaults to ``websockets.connect``
    """

    def __init__(self, url: str, token: str, *, commitment: str = C.STREAM_COMMITMENT, connect=websockets.connect):
        self.url = url
        self._token = token
        self.commitment = commitment
        self._connect = connect
        self.state = StreamState.DISCONNECTED
        self.close_reason: str | None = None
        self.subscription_id: int | None = None
        self.received = 0
        self._started = False

    def _set_state(self, state: StreamState, reason: str | None = None) -> None:
        log.debug("Stream %s -> %s", self.state, state)
        self.state = state
        if reason is not None:
            self.close_reason = reason

    async def events(self) -> AsyncIterator[ChainEvent]:
        """Yield block events until the connection ends.

        Raises:
            TransportError: the connection or subscription could not be
                established, or the connection broke while streaming.
            RuntimeError: the subscriber was already consumed.
        """
        if self._started:
            raise RuntimeError("EventStreamSubscriber is not restartable; create a new one")
        self._started = True

        self._set_state(StreamState.CONNECTING)
        try:
            ws = await self._connect(
                self.url,
                additional_headers={C.STREAM_TOKEN_HEADER: self._token},
                open_timeout=C.CONNECT_TIMEOUT,
                ping_interval=C.PING_INTERVAL,
                ping_timeout=C.PING_TIMEOUT,
                close_timeout=C.CLOSE_TIMEOUT,
            )
        except (OSError, TimeoutError, InvalidHandshake, InvalidURI) as e:
            self._set_state(StreamState.ERRORED, f"connect failed: {e}")
            log.error("Geyser connection to %s failed: %s", self.url, e)
            raise TransportError(f"cannot connect to geyser at {self.url}: {e}") from e

        log.info("Geyser connected: %s", self.url)
        try:
            early = await self._subscribe(ws)
            self._set_state(StreamState.STREAMING)

            for event in early:
                self.received += 1
                yield event

            async for raw in ws:
                event = self._parse(raw)
                if event is None:
                    continue
                self.received += 1
                yield event

            self._set_state(StreamState.CLOSED, "remote closed")
        except websockets.ConnectionClosedError as e:
            self._set_state(StreamState.ERRORED, f"connection lost: {e}")
            log.error("Geyser stream broke: %s", e)
            raise TransportError(f"geyser stream broke: {e}") from e
        finally:
            if self.state not in C.TERMINAL_STREAM_STATES:
                self._set_state(StreamState.CLOSED, "consumer closed")
            await ws.close()
            log.info("Geyser stream %s (%s) after %d events", self.state, self.close_reason, self.received)

    async def _subscribe(self, ws) -> list[ChainEvent]:
        """Send blockSubscribe and wait for the reply to it.

        Notifications that arrive before the reply are returned so the caller
        can yield them first. Only an error reply is fatal.
        """
        early: list[ChainEvent] = []
        try:
            await ws.send(json.dumps(block_subscribe_request(self.commitment)))
            async with asyncio.timeout(C.SUBSCRIBE_ACK_TIMEOUT):
                while True:
                    raw = await ws.recv()
                    reply = _reply_to_subscribe(raw)
                    if reply is not None:
                        break
                    event = self._parse(raw)
                    if event is not None:
                        early.append(event)
        except TimeoutError:
            # Some providers never ack; notifications still flow.
            log.warning("Subscription ack timeout after %d early events, continuing anyway", len(early))
            self._set_state(StreamState.SUBSCRIBED)
            return early
        except websockets.ConnectionClosed as e:
            self._set_state(StreamState.ERRORED, f"closed during subscribe: {e}")
            raise TransportError(f"geyser closed during subscribe: {e}") from e

        if "error" in reply:
            self._set_state(StreamState.ERRORED, f"subscribe rejected: {reply['error']}")
            raise TransportError(f"blockSubscribe failed: {reply['error']}")

        self.subscription_id = reply.get("result")
        self._set_state(StreamState.SUBSCRIBED)
        log.info("Subscribed to block metadata (subscription=%s, %d early events)", self.subscription_id, len(early))
        return early

    def _parse(self, raw: str | bytes) -> ChainEvent | None:
        try:
            obj = json.loads(raw)
        except json.JSONDecodeError:
            log.error("Block retrieval error: undecodable frame %r", raw[:200])
            return None

        method = obj.get("method") if isinstance(obj, dict) else None
        if method != BLOCK_NOTIFICATION:
            log.debug("Ignoring stream message: %s", method or "no_method")
            return None
        try:
            return ChainEvent.from_notification(obj)
        except ValueError as e:
            log.error("Block retrieval error: %s", e)
            return None


def _reply_to_subscribe(raw: str | bytes) -> dict | None:
    try:
        obj = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if isinstance(obj, dict) and obj.get("id") == SUBSCRIBE_ID and "method" not in obj:
        return obj
    return None
