class ClientInputError(Exception):
    """Missing or malformed request fields; surfaced as HTTP 400."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DependencyFailure(Exception):
    """QR encoding or file I/O failed; surfaced as HTTP 500."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StartupCorruption(Exception):
    """Persisted scan counts exist but cannot be parsed."""
