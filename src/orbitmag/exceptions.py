"""
Custom exceptions for geomagnetic field runs.
"""

from datetime import datetime
from typing import List, Optional


class OrbitmagError(Exception):
    """Base exception for all orbitmag errors."""
    pass


class ConfigurationError(OrbitmagError):
    """Exception for missing or invalid run configuration."""
    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = list(errors or [])
        if self.errors:
            message = message + "\n" + "\n".join(f"- {error}" for error in self.errors)
        super().__init__(message)


class ElementSetError(ConfigurationError):
    """Exception for unreadable or missing two-line element sets."""
    pass


class PropagationError(OrbitmagError):
    """Exception raised when the orbit model cannot produce a state."""
    def __init__(self, epoch: datetime, reason: str):
        self.epoch = epoch
        self.reason = reason
        super().__init__(f"Propagation failed at {epoch.isoformat()}: {reason}")


class TransformError(OrbitmagError):
    """Exception for degenerate positions or non-converging projections."""
    def __init__(self, epoch: Optional[datetime], reason: str):
        self.epoch = epoch
        self.reason = reason
        when = epoch.isoformat() if epoch is not None else "unknown epoch"
        super().__init__(f"Geodetic transform failed at {when}: {reason}")


class OutputError(OrbitmagError):
    """Exception for output files that cannot be opened or written."""
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot write output file {path}: {reason}")
