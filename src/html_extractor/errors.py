"""
Error types for html_extractor.

Only configuration problems and missing input are errors. Missing data in the
markup (no match, no attribute) degrades to an absent key or empty value.
"""

from typing import Any, Optional


class ExtractionError(Exception):
    """Base class for all html_extractor errors."""


class InvalidRuleError(ExtractionError):
    """A rule has an unknown value type or a value type / valueBy mismatch."""

    def __init__(self, message: str, var_name: Optional[str] = None, value_type: Any = None):
        super().__init__(message)
        self.var_name = var_name
        self.value_type = value_type


class RulesPayloadError(InvalidRuleError):
    """The rule payload could not be parsed into a list of rules."""

    def __init__(self, payload: Any, reason: str = ""):
        super().__init__(f"Rules are invalid. Expected an array or an object, got {payload}")
        self.payload = payload
        self.reason = reason


class MissingInputError(ExtractionError):
    """The source property holding the markup is absent from an input record."""

    def __init__(self, property_name: str, item_index: Optional[int] = None):
        super().__init__(f'No property named "{property_name}" exists!')
        self.property_name = property_name
        self.item_index = item_index
