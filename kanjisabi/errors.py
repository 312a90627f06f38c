class KanjisabiError(Exception):
    """Base class for errors raised by kanjisabi."""


class AnalyzerUnavailableError(KanjisabiError):
    """The morphological analyzer could not be reached within the start-up retry budget."""

    def __init__(self, address: str, attempts: int, cause: Exception = None):
        self.address = address
        self.attempts = attempts
        self.cause = cause
        message = f"Could not reach the morphological analyzer at {address} after {attempts} attempts"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ProtocolError(KanjisabiError):
    """A request or response did not follow the expected wire format."""
