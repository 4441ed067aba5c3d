"""Exception hierarchy for OTS loss runs.

Every exception here is fatal for a run. Per-connection telemetry gaps are
not exceptions: the reconciler returns None and the scheduler skips the
connection.
"""


class OtsLossError(Exception):
    """Base class for all run-aborting errors."""


class TransportError(OtsLossError):
    """A request to the management platform failed or returned non-2xx."""

    def __init__(self, host: str, call: str, message: str, status_code: int | None = None):
        self.host = host
        self.call = call
        self.status_code = status_code
        detail = f"{call} on {host} failed: {message}"
        if status_code is not None:
            detail = f"{call} on {host} failed with HTTP {status_code}: {message}"
        super().__init__(detail)


class AuthenticationError(TransportError):
    """Token request or revocation was rejected."""


class TelemetryFormatError(OtsLossError):
    """A platform document does not have the expected shape."""


class PowerParseError(OtsLossError):
    """A power or gain value could not be parsed as a decimal number.

    Raised for corrupt values and for values that are missing altogether,
    since both mean the upstream data cannot be trusted.
    """

    def __init__(self, field: str, value, context: str = ""):
        self.field = field
        self.value = value
        self.context = context
        where = f" ({context})" if context else ""
        super().__init__(f"Cannot parse {field}={value!r}{where}")


class EmptyReportError(OtsLossError):
    """No connection produced a loss record."""
