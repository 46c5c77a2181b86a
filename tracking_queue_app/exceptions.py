"""
Error types shared by the analyzer, the monitor and the CLI.
"""


class QueueDiagnosticsError(Exception):
    """Base class for all errors raised by this package"""


class ConfigurationError(QueueDiagnosticsError):
    """A command line option or setting has an unusable value"""


class BackendError(QueueDiagnosticsError):
    """A backend call failed (connection dropped, timeout, bad reply)"""


class BackendUnavailableError(BackendError):
    """The backend could not be reached at all"""


class DecodeError(QueueDiagnosticsError):
    """A stored queue item is not a valid request set"""


class InvalidVisitorId(QueueDiagnosticsError):
    """A request carries a visitor id that is not 16 hex characters"""
