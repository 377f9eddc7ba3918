"""Validation errors raised by the distribution engine.

Every problem found in caller-supplied input is collected as a field-tagged
ValidationIssue and raised together in a single ValidationError, so callers
can report all problems at once.
"""

from dataclasses import dataclass
from typing import Iterable, List

from pydantic import ValidationError as PydanticValidationError


@dataclass(frozen=True)
class ValidationIssue:
    """A single problem with an input field."""

    field: str
    message: str

    def __str__(self) -> str:
        return self.message


class ValidationError(ValueError):
    """Raised when engine input is malformed.

    Attributes:
        issues: All problems found, in input order.

    Example:
        try:
            calculate_waterfall(holders, exit_value)
        except ValidationError as exc:
            for issue in exc.issues:
                print(issue.field, issue.message)
    """

    def __init__(self, issues: Iterable[ValidationIssue]):
        self.issues: List[ValidationIssue] = list(issues)
        super().__init__("; ".join(issue.message for issue in self.issues))

    @property
    def fields(self) -> List[str]:
        return [issue.field for issue in self.issues]

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([ValidationIssue(field, message)])


def issues_from_pydantic(
    exc: PydanticValidationError,
    field_prefix: str = "",
    message_prefix: str = "",
) -> List[ValidationIssue]:
    """Convert pydantic errors into engine ValidationIssues.

    Args:
        exc: Error raised by model validation
        field_prefix: Prepended to each field path (e.g. "holders[2].")
        message_prefix: Prepended to each message (e.g. "Holder 3: ")

    Returns:
        One issue per pydantic error
    """
    issues = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error["loc"])
        message = error["msg"]
        # Model-level validators report "Value error, <text>"
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        field = f"{field_prefix}{loc}" if loc else field_prefix.rstrip(".")
        text = f"{loc}: {message}" if loc else message
        issues.append(ValidationIssue(field, f"{message_prefix}{text}"))
    return issues
