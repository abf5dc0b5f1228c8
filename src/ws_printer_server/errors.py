"""
Error taxonomy for the print server.

Every failure is contained at the job or connection boundary: the dispatcher
and connection handler catch these, log them and carry on.
"""


class PrinterServerError(Exception):
    """Base class for all print server failures."""


class ConfigError(PrinterServerError):
    """Invalid configuration value (bad port, page width out of range...)."""


class BindError(PrinterServerError):
    """The listener could not bind its endpoint (port in use, no permission)."""

    def __init__(self, host: str, port: int, reason: str):
        super().__init__(f"Cannot listen on {host}:{port}: {reason}")
        self.host = host
        self.port = port


class ConnectionReadError(PrinterServerError):
    """Reading from a client connection failed; that connection is dropped."""


class NoPrinterSelected(PrinterServerError):
    """A job arrived while no target printer is selected."""

    def __init__(self):
        super().__init__("No printer selected.")


class DecodeError(PrinterServerError):
    """Malformed base64 or unrecognised image data."""


class DownloadError(PrinterServerError):
    """Fetching a remote PDF failed."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Error downloading PDF from {url}: {reason}")
        self.url = url


class ExternalToolError(PrinterServerError):
    """The external PDF print tool could not be started."""


class SpoolError(PrinterServerError):
    """The OS print spooler rejected or did not accept a job."""
