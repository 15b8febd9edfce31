"""
Input Validation

DESIGN DECISION: Caller input is validated at the ledger boundary, before
any document is read or written:

- Schema checks (types, required fields, positive amounts, day ranges)
  come from the pydantic models.
- Format checks that are not tied to a model (month keys, marker ids)
  live here.

Pydantic's own error type is converted to ValidationError so callers can
handle "bad input" without importing pydantic, and so the list of
offending fields travels with the exception.

IMPORTANT: Validation NEVER silently fixes input. It reports it.
"""

import re
from typing import Any, Iterable, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from finance_tracker.models.finance import MONTH_KEY_PATTERN, ValidationIssue


ModelT = TypeVar("ModelT", bound=BaseModel)

_MONTH_KEY_RE = re.compile(MONTH_KEY_PATTERN)


class ValidationError(ValueError):
    """Caller input was rejected; nothing was saved."""

    def __init__(self, message: str, issues: Optional[list[ValidationIssue]] = None):
        super().__init__(message)
        self.issues = issues or []

    @property
    def fields(self) -> list[str]:
        return [issue.field for issue in self.issues]

    @classmethod
    def from_pydantic(cls, model_name: str, error: PydanticValidationError) -> "ValidationError":
        issues = [
            ValidationIssue(
                field=".".join(str(part) for part in detail["loc"]) or model_name,
                issue_type=detail["type"],
                message=detail["msg"],
            )
            for detail in error.errors()
        ]
        summary = "; ".join(f"{issue.field}: {issue.message}" for issue in issues)
        return cls(f"Invalid {model_name}: {summary}", issues)


def validate_input(
    model_cls: type[ModelT],
    data: Union[ModelT, Mapping[str, Any]],
) -> ModelT:
    """
    Validate caller input against a model.

    Accepts either a model instance or a mapping with snake_case or
    camelCase keys.

    Raises:
        ValidationError: If the input does not satisfy the model
    """
    if isinstance(data, model_cls):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    if not isinstance(data, Mapping):
        raise ValidationError(
            f"Invalid {model_cls.__name__}: expected an object, got {type(data).__name__}",
            [ValidationIssue(field=model_cls.__name__, issue_type="type", message="expected an object")],
        )
    try:
        return model_cls.model_validate(dict(data))
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(model_cls.__name__, e) from e


def validate_month_key(month: str) -> str:
    """
    Check a YYYY-MM month key.

    Month keys become file names, so anything else is refused.
    """
    if not isinstance(month, str) or not _MONTH_KEY_RE.fullmatch(month):
        raise ValidationError(
            f"Invalid month {month!r}: expected YYYY-MM",
            [ValidationIssue(field="month", issue_type="pattern", message="expected YYYY-MM")],
        )
    return month


def validate_marker_ids(ids: Iterable[Any]) -> list[str]:
    """
    Check a list of paid-marker ids and collapse duplicates.

    First occurrence wins, order is otherwise preserved.
    """
    if isinstance(ids, (str, bytes)) or not isinstance(ids, Iterable):
        raise ValidationError(
            "Paid markers must be a list of strings",
            [ValidationIssue(field="ids", issue_type="type", message="expected a list")],
        )
    result: list[str] = []
    seen: set[str] = set()
    for position, item in enumerate(ids):
        if not isinstance(item, str) or not item:
            raise ValidationError(
                f"Paid marker at position {position} is not a non-empty string",
                [ValidationIssue(field=f"ids.{position}", issue_type="type", message="expected a string")],
            )
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result
