"""Input validation package."""

from finance_tracker.validation.validator import (
    ValidationError,
    validate_input,
    validate_marker_ids,
    validate_month_key,
)

__all__ = [
    "ValidationError",
    "validate_input",
    "validate_marker_ids",
    "validate_month_key",
]
