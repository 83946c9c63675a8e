"""Errors raised by the body composition scoring and analytics core."""

from __future__ import annotations


class ValidationError(ValueError):
    """Raised for an unrecognised gender, period, timeline or field name."""


class InvalidPeriodError(ValidationError):
    """Raised when a period or timeline key is not one of the known names."""


class InsufficientDataError(ValueError):
    """Raised when risk scoring is asked to score zero metrics."""


class CalibrationError(ValueError):
    """Raised when a risk calibration table is malformed."""
