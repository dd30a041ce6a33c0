"""
'validators/base.py': Base class for all entity validators.

Each entity kind gets one subclass of `BaseValidator` that appends a message
for every rule the record violates. Validation never raises: malformed input
(including a non-mapping payload) is reported through the result.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, List

from .schemas import EntityKind, ValidationResult


class BaseValidator(ABC):
    """Abstract base class for record validators."""

    kind: EntityKind

    def validate(self, data: Any) -> ValidationResult:
        """
        Check a record against every rule of the entity kind.

        Args:
            data (Any): The (already sanitized) record.

        Returns:
            ValidationResult: `is_valid` plus the full list of violated rules.
        """
        record = data if isinstance(data, Mapping) else {}
        errors: List[str] = []
        self.check(record, errors)
        return ValidationResult(is_valid=not errors, errors=errors)

    @abstractmethod
    def check(self, record: Mapping, errors: List[str]) -> None:
        """
        Append one message per violated rule to `errors`.

        Args:
            record (Mapping): The record to check.
            errors (List[str]): Accumulator for error messages.
        """
        pass

    @staticmethod
    def present(value: Any) -> bool:
        """True for values the caller actually supplied (None and "" count as absent)."""
        return value is not None and value != ""

    @staticmethod
    def is_blank(value: Any) -> bool:
        """True when a required text field is missing, not text, or only whitespace."""
        return not isinstance(value, str) or not value.strip()

    @staticmethod
    def is_identifier(value: Any) -> bool:
        return isinstance(value, str) and bool(value)

    @staticmethod
    def is_optional_text(value: Any) -> bool:
        return value is None or isinstance(value, str)
