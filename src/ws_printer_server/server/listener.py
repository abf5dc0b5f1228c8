"""
WebSocket listener: accepts connections on ``ws://<host>:<port>/`` and runs one
ConnectionHandler task per client.
"""
import logging
from typing import Callable, Optional

from aiohttp import WSCloseCode, web

from ws_printer_server.errors import BindError
from ws_printer_server.server.handler import ConnectionHandler

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT = 10.0


class PrintServer:
    """Owns the aiohttp application, its listening site and all client connections."""

    def __init__(self, dispatch: Callable[[str], bool], host: str = 'localhost', port: int = 8080,
                 max_message_size: int = 4 * 1024 * 1024):
        self.host = host
        self.port = port
        self.handler = ConnectionHandler(dispatch, max_message_size=max_message_size)

        self.app = web.Application()
        self.app.router.add_route('*', '/{tail:.*}', self.handler.handle)
        self.app.on_shutdown.append(self._close_connections)

        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

    @property
    def is_running(self) -> bool:
        return self._site is not None

    @property
    def bound_port(self) -> Optional[int]:
        """Actual listening port (useful when started with port 0)."""
        if not self._runner or not self._runner.addresses:
            return None
        return self._runner.addresses[0][1]

    async def start(self, port: int = None) -> None:
        """Bind and start accepting connections. Raises BindError."""
        if port is not None:
            self.port = port
        if self._site is not None:
            return
        if self._runner is None:
            self._runner = web.AppRunner(self.app, handle_signals=False, shutdown_timeout=SHUTDOWN_TIMEOUT)
            await self._runner.setup()

        site = web.TCPSite(self._runner, self.host, self.port)
        try:
            await site.start()
        except OSError as e:
            await site.stop()
            raise BindError(self.host, self.port, e.strerror or str(e))
        self._site = site
        logger.info(f"WebSocket server started on ws://{self.host}:{self.bound_port}/")

    async def stop(self) -> None:
        """Stop accepting; open connections keep running until they close."""
        if self._site is None:
            return
        await self._site.stop()
        self._site = None
        logger.info("WebSocket server stopped")

    async def change_port(self, new_port: int) -> bool:
        """Restart the listener on ``new_port``. Bind errors are logged, not raised."""
        await self.stop()
        try:
            await self.start(new_port)
        except BindError as e:
            logger.error(f"WebSocket Server Error: {e}")
            return False
        logger.info(f"WebSocket Port Changed to: {new_port}")
        return True

    async def shutdown(self) -> None:
        """Stop accepting, close every client connection and wait for the handlers."""
        await self.stop()
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None

    async def _close_connections(self, app: web.Application) -> None:
        for ws in list(self.handler.connections):
            await ws.close(code=WSCloseCode.GOING_AWAY, message=b'Server shutdown')
