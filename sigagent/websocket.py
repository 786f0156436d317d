"""A WebSocket connection that carries binary protocol frames in both directions."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import websockets
from websockets.exceptions import ConnectionClosedOK, WebSocketException

from .errors import (
    DeserializationError,
    NotConnectedError,
    ProtocolError,
    SerializationError,
    SignalManagerError,
    WebSocketConnectError,
    WebSocketReceiveError,
    WebSocketSendError,
)
from .protocol import Message

log = logging.getLogger(__name__)


class WebSocketClient:
    """Queues outgoing messages and collects decoded incoming ones.

    A background task owns the socket: it writes queued messages as binary
    frames and decodes every binary frame it reads into a Message.
    """

    def __init__(self, url: str) -> None:
        log.info("Creating WebSocket client for URL: %s", url)
        self.url = url
        self._outgoing: Optional[asyncio.Queue[Optional[Message]]] = None
        self._incoming: Optional[asyncio.Queue[Optional[Message]]] = None
        self._task: Optional[asyncio.Task[None]] = None

    async def connect(self) -> None:
        """Open the socket and start the background send/receive task."""
        log.info("Connecting to WebSocket at %s", self.url)
        try:
            ws = await websockets.connect(self.url)
        except (OSError, asyncio.TimeoutError, ValueError, WebSocketException) as exc:
            raise WebSocketConnectError(f"Failed to connect: {exc}") from exc

        outgoing: asyncio.Queue[Optional[Message]] = asyncio.Queue()
        incoming: asyncio.Queue[Optional[Message]] = asyncio.Queue()
        self._outgoing = outgoing
        self._incoming = incoming
        self._task = asyncio.create_task(self._run(ws, outgoing, incoming))
        log.info("WebSocket connection established successfully")

    async def _run(
        self,
        ws: Any,
        outgoing: asyncio.Queue[Optional[Message]],
        incoming: asyncio.Queue[Optional[Message]],
    ) -> None:
        writer = asyncio.create_task(self._write_loop(ws, outgoing))
        reader = asyncio.create_task(self._read_loop(ws, incoming))
        try:
            done, _ = await asyncio.wait({writer, reader}, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                exc = task.exception()
                if exc is not None:
                    log.error("WebSocket loop error: %s", exc)
        finally:
            for task in (writer, reader):
                task.cancel()
            await asyncio.gather(writer, reader, return_exceptions=True)
            await ws.close()
            incoming.put_nowait(None)
            log.info("WebSocket loop completed")

    @staticmethod
    async def _write_loop(ws: Any, outgoing: asyncio.Queue[Optional[Message]]) -> None:
        while (message := await outgoing.get()) is not None:
            try:
                frame = message.to_binary()
            except (SignalManagerError, TypeError, ValueError) as exc:
                raise SerializationError(str(exc)) from exc
            log.debug("Sending binary frame: %d bytes", len(frame))
            try:
                await ws.send(frame)
            except WebSocketException as exc:
                raise WebSocketSendError(str(exc)) from exc

    @staticmethod
    async def _read_loop(ws: Any, incoming: asyncio.Queue[Optional[Message]]) -> None:
        try:
            async for frame in ws:
                if isinstance(frame, str):
                    log.warning("Received text message (not expected): %s", frame)
                    continue
                log.debug("Received binary frame: %d bytes", len(frame))
                try:
                    message = Message.from_binary(frame)
                except ProtocolError as exc:
                    raise DeserializationError(str(exc)) from exc
                incoming.put_nowait(message)
        except ConnectionClosedOK:
            pass
        except WebSocketException as exc:
            raise WebSocketReceiveError(str(exc)) from exc
        log.info("WebSocket connection closed by server")

    def send(self, message: Message) -> None:
        """Queue a message for sending."""
        log.debug("Queueing message for send: %r", message.message_type)
        if self._outgoing is None:
            raise NotConnectedError()
        if self._task is not None and self._task.done():
            raise WebSocketSendError("Failed to send message")
        self._outgoing.put_nowait(message)

    async def receive(self) -> Optional[Message]:
        """The next incoming message, or None once the connection has ended."""
        if self._incoming is None:
            raise NotConnectedError()
        message = await self._incoming.get()
        if message is None:
            self._incoming.put_nowait(None)
        return message

    def is_connected(self) -> bool:
        return self._outgoing is not None

    async def close(self) -> None:
        """Flush queued messages, close the socket and wait for the task to end."""
        log.info("Closing WebSocket connection")
        if self._outgoing is not None:
            self._outgoing.put_nowait(None)
            self._outgoing = None
        task, self._task = self._task, None
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        log.info("WebSocket connection closed")