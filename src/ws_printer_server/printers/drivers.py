"""
OS print spooler access.

Rendered pages are written to a temporary PNG and handed to the CUPS `lp`
command. External commands run with a timeout and return a typed ToolResult.
"""

import logging
import subprocess
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from ws_printer_server.errors import ExternalToolError, SpoolError
from ws_printer_server.jobs.models import PageGeometry, RenderedPage

logger = logging.getLogger(__name__)

LPSTAT_TIMEOUT = 10

# Run external tools without a console window on Windows
NO_WINDOW = getattr(subprocess, 'CREATE_NO_WINDOW', 0) if sys.platform == 'win32' else 0


@dataclass(frozen=True)
class ToolResult:
    returncode: Optional[int] = None
    timed_out: bool = False
    stdout: str = ''
    stderr: str = ''

    @property
    def ok(self) -> bool:
        return not self.timed_out and self.returncode == 0

    def describe(self) -> str:
        if self.timed_out:
            return 'timed out'
        detail = self.stderr.strip() or self.stdout.strip()
        return f"exit code {self.returncode}" + (f": {detail}" if detail else '')


def run_tool(cmd: Sequence[str], timeout: float) -> ToolResult:
    """
    Run an external command, wait at most ``timeout`` seconds.

    Raises ExternalToolError if the command cannot be started at all.
    """
    try:
        result = subprocess.run(
            list(cmd),
            capture_output=True,
            text=True,
            encoding='utf-8',
            errors='replace',
            timeout=timeout,
            creationflags=NO_WINDOW,
        )
    except subprocess.TimeoutExpired as e:
        return ToolResult(timed_out=True, stdout=_text(e.stdout), stderr=_text(e.stderr))
    except OSError as e:
        raise ExternalToolError(f"Failed to start {cmd[0]}: {e}")
    return ToolResult(returncode=result.returncode, stdout=result.stdout or '', stderr=result.stderr or '')


def _text(value) -> str:
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    return value or ''


class SpoolerDriver:
    """Submits rendered pages to a printer queue using the `lp` command."""

    def __init__(self, command: str = 'lp', timeout: float = 60):
        self.command = command
        self.timeout = timeout

    def build_command(self, printer: str, geometry: PageGeometry, title: str, path: str) -> List[str]:
        return [
            self.command,
            '-d', printer,
            '-o', f'media={geometry.media}',
            '-t', title,
            path,
        ]

    def submit(self, page: RenderedPage, printer: str, geometry: PageGeometry, title: str = 'print job') -> str:
        """Spool one page. Returns the spooler's acknowledgement text."""
        tmp = None
        try:
            with tempfile.NamedTemporaryFile(delete=False, suffix='.png') as f:
                tmp = f.name
                page.image.save(f, format='PNG', dpi=(geometry.dpi, geometry.dpi))

            cmd = self.build_command(printer, geometry, title, tmp)
            logger.info(f"Spooler: {' '.join(cmd)}")
            try:
                result = run_tool(cmd, self.timeout)
            except ExternalToolError as e:
                raise SpoolError(str(e))

            if not result.ok:
                raise SpoolError(f"Spooler rejected job for {printer!r}: {result.describe()}")
            logger.info(f"✓ Spooler accepted job: {result.stdout.strip()}")
            return result.stdout.strip()
        finally:
            if tmp:
                Path(tmp).unlink(missing_ok=True)


def list_printers(timeout: float = LPSTAT_TIMEOUT) -> List[str]:
    """Names of the installed printer queues (``lpstat -e``)."""
    try:
        result = run_tool(['lpstat', '-e'], timeout)
    except ExternalToolError as e:
        logger.error(f"Cannot enumerate printers: {e}")
        return []
    if not result.ok:
        logger.error(f"lpstat failed: {result.describe()}")
        return []
    return [line.strip() for line in result.stdout.splitlines() if line.strip()]
