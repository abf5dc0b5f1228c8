"""
Per-connection message loop.

One text frame is one print job. Close frames end the loop; binary and control
frames are ignored.
"""
import asyncio
import logging
from typing import Callable, Set

from aiohttp import WSMsgType, web

from ws_printer_server.errors import ConnectionReadError

logger = logging.getLogger(__name__)

LOG_PREVIEW = 80

_CLOSED_TYPES = (WSMsgType.CLOSE, WSMsgType.CLOSING, WSMsgType.CLOSED)


class ConnectionHandler:
    """aiohttp request handler that upgrades to a WebSocket and prints each text frame."""

    def __init__(self, dispatch: Callable[[str], bool], max_message_size: int = 4 * 1024 * 1024):
        self.dispatch = dispatch
        self.max_message_size = max_message_size
        self.connections: Set[web.WebSocketResponse] = set()

    async def handle(self, request: web.Request) -> web.StreamResponse:
        ws = web.WebSocketResponse(max_msg_size=self.max_message_size)
        if not ws.can_prepare(request).ok:
            logger.warning(f"Rejected non-WebSocket request {request.method} {request.path} from {request.remote}")
            return web.Response(status=400, text='WebSocket upgrade required\n')

        await ws.prepare(request)
        peer = request.remote
        self.connections.add(ws)
        logger.info(f"Client connected: {peer}")
        try:
            await self._read_loop(ws)
        except ConnectionReadError as e:
            logger.error(f"Connection {peer} dropped: {e}")
        finally:
            self.connections.discard(ws)
            if not ws.closed:
                await ws.close()
            logger.info(f"Client disconnected: {peer}")
        return ws

    async def _read_loop(self, ws: web.WebSocketResponse) -> None:
        loop = asyncio.get_running_loop()
        while not ws.closed:
            msg = await ws.receive()

            if msg.type == WSMsgType.TEXT:
                text = msg.data
                logger.info(f"Received: {text[:LOG_PREVIEW]}{'...' if len(text) > LOG_PREVIEW else ''}")
                # Blocking work (rendering, spooler, downloads) runs off the event loop
                await loop.run_in_executor(None, self.dispatch, text)
            elif msg.type in _CLOSED_TYPES:
                return
            elif msg.type == WSMsgType.ERROR:
                raise ConnectionReadError(str(ws.exception() or msg.data))
            else:
                logger.debug(f"Ignoring {msg.type.name} frame")
