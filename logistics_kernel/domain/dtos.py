"""
Data transfer objects shared across the engine layers.

Field-tagged validation results are returned, never raised, so that a
caller can render every problem on a form at once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ValidationError:
    """
    A single validation error.

    Contract:
        Carries a machine-readable code, human-readable message, the field
        tag the error belongs to, and optional details.

    Non-goals:
        - Does NOT raise exceptions -- it IS the error representation.
    """

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class ValidationResult:
    """
    Result of validation.

    Contract:
        Aggregates zero or more ValidationErrors. is_valid is True only when
        there are no errors.

    Guarantees:
        - errors is always a tuple (never None)
        - bool(result) == result.is_valid for convenience
    """

    is_valid: bool
    errors: tuple[ValidationError, ...] = field(default_factory=tuple)

    @classmethod
    def success(cls) -> ValidationResult:
        """Create a successful validation result."""
        return cls(is_valid=True, errors=())

    @classmethod
    def failure(cls, *errors: ValidationError) -> ValidationResult:
        """Create a failed validation result."""
        return cls(is_valid=False, errors=tuple(errors))

    @classmethod
    def from_errors(cls, errors: list[ValidationError] | tuple[ValidationError, ...]) -> ValidationResult:
        """Success when ``errors`` is empty, failure otherwise."""
        if not errors:
            return cls.success()
        return cls.failure(*errors)

    @property
    def error(self) -> ValidationError | None:
        """First error, for single-check validators."""
        return self.errors[0] if self.errors else None

    def fields(self) -> tuple[str, ...]:
        """Field tags of all errors, in order."""
        return tuple(e.field for e in self.errors if e.field is not None)

    def merge(self, *others: ValidationResult) -> ValidationResult:
        """Accumulate the errors of several results into one."""
        errors = list(self.errors)
        for other in others:
            errors.extend(other.errors)
        return ValidationResult.from_errors(errors)

    def __bool__(self) -> bool:
        return self.is_valid
