"""
Printer selection state shared between the operator surface (CLI, config
reload) and the print dispatcher.

Each job reads the state once through ``snapshot()``; a selection change made
while a job is printing only affects the next job.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Optional

from ws_printer_server.config.manager import ConfigManager
from ws_printer_server.errors import ConfigError

logger = logging.getLogger(__name__)

MIN_PAGE_WIDTH = 1.0
MAX_PAGE_WIDTH = 100.0


@dataclass(frozen=True)
class JobSettings:
    printer: str
    page_width_inches: float


def parse_page_width(value) -> float:
    """Validate a page width in inches, rounded to 2 decimals."""
    try:
        inches = round(float(value), 2)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid page width: {value!r}")
    if not MIN_PAGE_WIDTH <= inches <= MAX_PAGE_WIDTH:
        raise ConfigError(
            f"Page width must be between {MIN_PAGE_WIDTH:g} and {MAX_PAGE_WIDTH:g} inches, got {inches:g}"
        )
    return inches


class PrinterState:
    """Selected printer and page width, backed by the config file."""

    def __init__(self, config: ConfigManager):
        self.config = config
        self._lock = threading.Lock()
        self._printer = (config.get('printer.selected') or '').strip()
        self._page_width = parse_page_width(config.get('printer.page_width_inches'))

    def get_selected_printer(self) -> Optional[str]:
        with self._lock:
            return self._printer or None

    def get_page_width_inches(self) -> float:
        with self._lock:
            return self._page_width

    def select_printer(self, name: str) -> None:
        name = (name or '').strip()
        with self._lock:
            self._printer = name
            self.config.set('printer.selected', name)
        logger.info(f"Selected Printer: {name}")

    def set_page_width(self, inches: float) -> None:
        inches = parse_page_width(inches)
        with self._lock:
            self._page_width = inches
            self.config.set('printer.page_width_inches', inches)
        logger.info(f"Page width changed to: {inches:.2f}in")

    def reload(self) -> None:
        """
        Re-read printer settings from the (already reloaded) config.

        Raises ConfigError on an invalid page width; the current settings are
        kept in that case.
        """
        printer = (self.config.get('printer.selected') or '').strip()
        page_width = parse_page_width(self.config.get('printer.page_width_inches'))
        with self._lock:
            self._printer = printer
            self._page_width = page_width

    def snapshot(self) -> JobSettings:
        """Consistent view of the settings for one job."""
        with self._lock:
            return JobSettings(printer=self._printer, page_width_inches=self._page_width)
