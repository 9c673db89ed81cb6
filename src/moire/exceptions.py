"""
Custom exceptions for the moire sampler.

This module provides specific exception types so that configuration,
data and numerical failures can be told apart by callers.
"""


class MoireError(Exception):
    """Base exception for moire errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(MoireError):
    """Raised when sampler parameters or run settings are invalid."""
    pass


class DataValidationError(MoireError):
    """Raised when genotyping data is malformed or inconsistent."""
    pass


class NumericalError(MoireError):
    """Raised when a likelihood evaluation produces a non-finite value."""
    pass


class SimulationError(MoireError):
    """Raised when simulation inputs are invalid."""
    pass
