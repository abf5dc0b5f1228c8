import base64
import io
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

from PIL import Image

from ws_printer_server.config.manager import ConfigManager
from ws_printer_server.config.state import PrinterState
from ws_printer_server.errors import DownloadError, NoPrinterSelected, SpoolError
from ws_printer_server.jobs.models import PayloadKind, RenderedPage
from ws_printer_server.jobs.processor import PrintDispatcher
from ws_printer_server.printers.drivers import SpoolerDriver, ToolResult
from ws_printer_server.printers.pdf import PdfBridge

LOGGER = 'ws_printer_server.jobs.processor'


def png_data_uri(size=(30, 10)) -> str:
    buf = io.BytesIO()
    Image.new('RGB', size, 'black').save(buf, format='PNG')
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode('ascii')


class TestPrintDispatcher(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.config = ConfigManager(str(Path(self.tmpdir) / 'config.toml'))
        self.state = PrinterState(self.config)
        self.state.select_printer('Office')
        self.spooler = MagicMock(spec=SpoolerDriver)
        self.pdf_bridge = MagicMock(spec=PdfBridge)
        self.dispatcher = PrintDispatcher(self.state, self.spooler, self.pdf_bridge, dpi=100)

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_text_payload_is_spooled(self):
        with self.assertLogs(LOGGER, level='INFO') as log:
            self.assertTrue(self.dispatcher.dispatch("Hello printer"))

        self.spooler.submit.assert_called_once()
        page, printer, geometry = self.spooler.submit.call_args.args
        self.assertIsInstance(page, RenderedPage)
        self.assertEqual(page.lines, ("Hello printer",))
        self.assertEqual(printer, 'Office')
        self.assertEqual(geometry.width_inches, 3.0)
        self.assertEqual(geometry.size_px, (300, 1100))
        self.assertTrue(any("Printing..." in line for line in log.output))
        self.pdf_bridge.fetch_and_print.assert_not_called()

    def test_page_width_comes_from_state(self):
        self.state.set_page_width(2.5)
        self.dispatcher.dispatch("Hello printer")
        geometry = self.spooler.submit.call_args.args[2]
        self.assertEqual(geometry.size_px, (250, 1100))

    def test_image_payload_is_scaled_and_spooled(self):
        self.assertTrue(self.dispatcher.dispatch(png_data_uri()))
        page = self.spooler.submit.call_args.args[0]
        self.assertEqual(page.size, (300, 1100))
        self.assertEqual(page.lines, ())

    def test_malformed_image_is_logged_not_raised(self):
        with self.assertLogs(LOGGER, level='ERROR') as log:
            self.assertFalse(self.dispatcher.dispatch("data:image/png;base64,iVBORw0KG@@@"))
        self.assertIn("Error decoding Base64 image", log.output[0])
        self.spooler.submit.assert_not_called()

    def test_pdf_url_goes_to_bridge(self):
        self.pdf_bridge.fetch_and_print.return_value = ToolResult(returncode=0)
        with self.assertLogs(LOGGER, level='INFO') as log:
            self.assertTrue(self.dispatcher.dispatch("https://example.com/file.pdf"))
        self.pdf_bridge.fetch_and_print.assert_called_once_with("https://example.com/file.pdf", 'Office')
        self.spooler.submit.assert_not_called()
        self.assertTrue(any("PDF printed successfully." in line for line in log.output))

    def test_pdf_tool_failure_is_logged(self):
        self.pdf_bridge.fetch_and_print.return_value = ToolResult(returncode=2, stderr='printer offline')
        with self.assertLogs(LOGGER, level='ERROR') as log:
            self.assertFalse(self.dispatcher.dispatch("https://example.com/file.pdf"))
        self.assertIn("exit code 2", log.output[0])

    def test_pdf_download_failure_is_logged(self):
        self.pdf_bridge.fetch_and_print.side_effect = DownloadError("https://example.com/x.pdf", "timed out")
        with self.assertLogs(LOGGER, level='ERROR') as log:
            self.assertFalse(self.dispatcher.dispatch("https://example.com/x.pdf"))
        self.assertIn("Error downloading PDF", log.output[0])

    def test_spooler_failure_is_logged(self):
        self.spooler.submit.side_effect = SpoolError("Spooler rejected job")
        with self.assertLogs(LOGGER, level='ERROR'):
            self.assertFalse(self.dispatcher.dispatch("Hello printer"))

    def test_no_printer_selected(self):
        self.state.select_printer('')
        for payload in ("Hello printer", png_data_uri(), "https://example.com/file.pdf"):
            with self.subTest(payload=payload[:20]):
                with self.assertLogs(LOGGER, level='ERROR') as log:
                    self.assertFalse(self.dispatcher.dispatch(payload))
                self.assertIn("No printer selected.", log.output[0])
        self.spooler.submit.assert_not_called()
        self.pdf_bridge.fetch_and_print.assert_not_called()

    def test_build_job_rejects_missing_printer(self):
        self.state.select_printer('')
        with self.assertRaises(NoPrinterSelected):
            self.dispatcher.build_job("Hello")

    def test_job_uses_snapshot_of_settings(self):
        job = self.dispatcher.build_job("Hello printer")
        self.state.select_printer('Other')
        self.state.set_page_width(4)
        self.assertEqual(job.printer, 'Office')
        self.assertEqual(job.page_width_inches, 3.0)
        self.assertIs(job.kind, PayloadKind.TEXT)

    def test_from_config(self):
        self.config.update({'pdf.tool': '/opt/sumatra', 'spooler.command': 'lpr', 'printer.dpi': 300})
        dispatcher = PrintDispatcher.from_config(self.config, self.state)
        self.assertEqual(dispatcher.pdf_bridge.tool, '/opt/sumatra')
        self.assertEqual(dispatcher.spooler.command, 'lpr')
        self.assertEqual(dispatcher.dpi, 300)


if __name__ == '__main__':
    unittest.main()
