"""
Exception classes for wall thickness analysis.

Per-vertex measurement failures are never exceptions; they show up as
unmeasured vertices in the thickness field. The classes below cover the
whole-run failures: bad configuration, queries issued too early and
malformed mesh input.
"""


class WallScanError(Exception):
    """Base exception for all wallscan errors."""

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigurationError(WallScanError):
    """Raised before any measurement when the analysis cannot be set up."""
    pass


class NotComputedError(WallScanError):
    """Raised when a thickness query runs before compute()."""

    def __init__(self, operation: str):
        super().__init__(
            f"MeshThicknessAnalyzer.{operation}: must call compute() first",
            {"operation": operation},
        )
        self.operation = operation


class MeshError(WallScanError, ValueError):
    """Raised for malformed or empty mesh input."""
    pass
