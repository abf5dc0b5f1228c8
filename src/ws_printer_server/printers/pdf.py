"""
Remote PDF printing: download the document to a temporary file and hand it to
an external PDF print tool (SumatraPDF-compatible command line):

    <tool> -print-to "<printer>" "<file>"
"""
import logging
import tempfile
from pathlib import Path

import requests

from ws_printer_server.errors import DownloadError
from ws_printer_server.printers.drivers import ToolResult, run_tool

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class PdfBridge:
    """Fetch-and-print for ``PDF_URL`` payloads."""

    def __init__(self, tool: str = 'SumatraPDF.exe', download_timeout: float = 60,
                 tool_timeout: float = 120, session: requests.Session = None):
        self.tool = tool
        self.download_timeout = download_timeout
        self.tool_timeout = tool_timeout
        self.session = session

    def download(self, url: str, dest: Path) -> int:
        """Stream ``url`` into ``dest``. Returns the number of bytes written."""
        size = 0
        try:
            get = self.session.get if self.session is not None else requests.get
            with get(url, stream=True, timeout=self.download_timeout) as resp:
                resp.raise_for_status()
                with open(dest, 'wb') as f:
                    for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                        f.write(chunk)
                        size += len(chunk)
        except requests.RequestException as e:
            raise DownloadError(url, str(e))
        return size

    def build_command(self, printer: str, path: str) -> list:
        return [self.tool, '-print-to', printer, path]

    def print_file(self, path: str, printer: str) -> ToolResult:
        cmd = self.build_command(printer, path)
        logger.info(f"PDF tool: {' '.join(cmd)}")
        return run_tool(cmd, self.tool_timeout)

    def fetch_and_print(self, url: str, printer: str) -> ToolResult:
        """
        Download ``url`` and print it on ``printer``.

        Raises DownloadError / ExternalToolError. The temporary file is removed
        on every path.
        """
        tmp = None
        try:
            with tempfile.NamedTemporaryFile(delete=False, prefix='ws_print_', suffix='.pdf') as f:
                tmp = f.name

            size = self.download(url, Path(tmp))
            logger.info(f"Downloaded PDF to: {tmp} ({size} bytes)")

            # TODO: report a failed tool exit back to the sending client once a
            # response message format exists; for now it only fails the job.
            return self.print_file(tmp, printer)
        finally:
            if tmp:
                Path(tmp).unlink(missing_ok=True)
