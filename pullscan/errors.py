"""PullScan — error types raised by the scan engine."""


class InvalidInputError(ValueError):
    """Raised when the series generator receives a non-positive price or count."""
