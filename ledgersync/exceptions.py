"""
Exceptions raised while importing notifications and reconciling balances.

Errors are never recovered from inside the package: they propagate to the
command-line entry points, which log them and exit.
"""


class LedgerSyncError(Exception):
    """Base class for all errors raised by ledgersync."""


class UnrecognizedMessageError(LedgerSyncError):
    """
    Raised when no rule of a bank profile matches a notification.

    A notification that matches nothing may be a real transaction in a new
    format, so the whole batch is aborted instead of dropping it.
    """

    def __init__(self, text: str, profile: str = None):
        self.text = text
        self.profile = profile

        message = f"Cannot match message: {text}"
        if profile:
            message = f"{message} (profile: {profile})"
        super().__init__(message)


class NumericFormatError(LedgerSyncError, ValueError):
    """Raised when a number in a notification or user input cannot be parsed."""


class RateUnavailableError(LedgerSyncError):
    """Raised when a spot rate for a currency pair cannot be obtained."""

    def __init__(self, source: str, target: str, reason: str = None):
        self.source = source
        self.target = target

        message = f"Cannot get rate for {source}-{target}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
