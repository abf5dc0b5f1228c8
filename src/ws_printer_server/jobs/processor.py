"""
Print dispatcher: turns one received payload into a printed page.

Routes:
  pdf_url : download the PDF, print it with the external PDF tool
  image   : decode data URI / base64 image, scale to page width, spool
  text    : word-wrap to page width, spool
"""
import logging

from ws_printer_server.config.manager import ConfigManager
from ws_printer_server.config.state import PrinterState
from ws_printer_server.errors import NoPrinterSelected, PrinterServerError
from ws_printer_server.jobs.classifier import classify
from ws_printer_server.jobs.models import PageGeometry, PayloadKind, PrintJob
from ws_printer_server.printers.drivers import SpoolerDriver
from ws_printer_server.printers.pdf import PdfBridge
from ws_printer_server.render.image import decode_and_scale
from ws_printer_server.render.text import render_text

logger = logging.getLogger(__name__)


class PrintDispatcher:

    def __init__(self, state: PrinterState, spooler: SpoolerDriver, pdf_bridge: PdfBridge, dpi: int = 203):
        self.state = state
        self.spooler = spooler
        self.pdf_bridge = pdf_bridge
        self.dpi = dpi

    @classmethod
    def from_config(cls, config: ConfigManager, state: PrinterState) -> 'PrintDispatcher':
        return cls(
            state=state,
            spooler=SpoolerDriver(
                command=config.get('spooler.command'),
                timeout=float(config.get('spooler.timeout')),
            ),
            pdf_bridge=PdfBridge(
                tool=config.get('pdf.tool'),
                download_timeout=float(config.get('pdf.download_timeout')),
                tool_timeout=float(config.get('pdf.tool_timeout')),
            ),
            dpi=int(config.get('printer.dpi')),
        )

    def build_job(self, payload: str) -> PrintJob:
        """Classify the payload against a snapshot of the printer settings."""
        settings = self.state.snapshot()
        if not settings.printer:
            raise NoPrinterSelected()
        return PrintJob(
            kind=classify(payload),
            payload=payload,
            printer=settings.printer,
            page_width_inches=settings.page_width_inches,
        )

    def dispatch(self, payload: str) -> bool:
        """
        Print one payload on the selected printer.

        Failures are logged and contained here; returns True if the job was
        handed to the spooler or the PDF tool finished successfully.
        """
        try:
            job = self.build_job(payload)
        except NoPrinterSelected as e:
            logger.error(str(e))
            return False

        logger.info(f"Processing: {job}")
        try:
            if job.kind is PayloadKind.PDF_URL:
                return self._print_pdf(job)
            return self._print_page(job)
        except PrinterServerError as e:
            logger.error(f"Printing error for {job}: {e}")
            return False
        except Exception as e:
            logger.error(f"Printing error for {job}: {e}", exc_info=True)
            return False

    def _print_page(self, job: PrintJob) -> bool:
        geometry = PageGeometry(width_inches=job.page_width_inches, dpi=self.dpi)
        if job.kind is PayloadKind.IMAGE:
            page = decode_and_scale(job.payload, geometry)
        else:
            page = render_text(job.payload, geometry)
            logger.debug(f"Wrapped text into {len(page.lines)} line(s)")

        self.spooler.submit(page, job.printer, geometry, title=job.title)
        logger.info("Printing...")
        return True

    def _print_pdf(self, job: PrintJob) -> bool:
        result = self.pdf_bridge.fetch_and_print(job.payload.strip(), job.printer)
        if result.ok:
            logger.info("PDF printed successfully.")
            return True
        logger.error(f"PDF print tool failed for {job.printer!r}: {result.describe()}")
        return False
