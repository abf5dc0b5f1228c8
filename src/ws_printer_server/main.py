"""
Main entry point for the WebSocket Printer Server.
Starts the listener and prints every received payload on the selected printer.
"""
import sys
import asyncio
import logging
import signal

from ws_printer_server.config.manager import ConfigManager, parse_port
from ws_printer_server.config.state import PrinterState
from ws_printer_server.errors import BindError, ConfigError
from ws_printer_server.jobs.processor import PrintDispatcher
from ws_printer_server.logging import setup_logging
from ws_printer_server.server.listener import PrintServer

logger = logging.getLogger(__name__)


def build_server(config: ConfigManager, state: PrinterState, port: int = None) -> PrintServer:
    dispatcher = PrintDispatcher.from_config(config, state)
    return PrintServer(
        dispatcher.dispatch,
        host=config.get('server.host'),
        port=port if port is not None else parse_port(config.get('server.port')),
        max_message_size=int(config.get('server.max_message_size')),
    )


async def reload_config(config: ConfigManager, state: PrinterState, server: PrintServer) -> None:
    """Re-read the config file and apply printer and port changes."""
    try:
        config.load_config()
    except ConfigError as e:
        logger.error(f"Config reload failed: {e}")
        return

    try:
        state.reload()
    except ConfigError as e:
        logger.error(f"Printer settings not reloaded: {e}")
    else:
        logger.info(
            f"Configuration reloaded (printer={state.get_selected_printer()!r}, "
            f"page width={state.get_page_width_inches():.2f}in)"
        )

    try:
        new_port = parse_port(config.get('server.port'))
    except ConfigError as e:
        logger.error(f"Port not changed: {e}")
        return

    if new_port != server.port or not server.is_running:
        await server.change_port(new_port)


def _log_reload_result(task: asyncio.Task) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error("Config reload crashed", exc_info=task.exception())


async def start_server(config_file: str = None, port: int = None):
    """Start the printer server and run until SIGINT/SIGTERM."""
    config = ConfigManager(config_file)
    setup_logging(config.get('logging.level'), config.get('logging.file'))

    if not config.exists():
        logger.warning("No config file found, using built-in defaults. Run: ws-printer-server init-config")

    state = PrinterState(config)
    if not state.get_selected_printer():
        logger.warning("No printer selected. Run: ws-printer-server select <PRINTER>")

    server = build_server(config, state, port)
    try:
        await server.start()
    except BindError as e:
        # Keep running: a SIGHUP with a fixed port restarts the listener
        logger.error(f"WebSocket Server Error: {e}")

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    reloads = set()

    def schedule_reload():
        task = loop.create_task(reload_config(config, state, server))
        reloads.add(task)
        task.add_done_callback(reloads.discard)
        task.add_done_callback(_log_reload_result)

    try:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)
        if hasattr(signal, 'SIGHUP'):
            loop.add_signal_handler(signal.SIGHUP, schedule_reload)
    except NotImplementedError:
        # Windows event loops have no signal handlers; Ctrl+C raises KeyboardInterrupt
        pass

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down...")
        await server.shutdown()


def run_server(config_file: str = None, port: int = None):
    try:
        asyncio.run(start_server(config_file, port))
    except KeyboardInterrupt:
        print("\nServer stopped.")
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


def main():
    """Main entry point."""
    run_server()


if __name__ == "__main__":
    main()
