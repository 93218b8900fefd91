"""
Rule model for html_extractor.

Uses Pydantic models for parsing extraction rules from JSON payloads. A rule
names a CSS selector, how a matched node becomes a value (text, attribute or a
nested object) and whether all matches or only the first one are used.

Validation is lazy: value types and the shape of ``valueBy`` are checked when
the extractor reaches a rule, not when the payload is loaded.
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import InvalidRuleError, RulesPayloadError

logger = logging.getLogger(__name__)


class ValueType(str, Enum):
    """How a matched node is turned into a value."""
    TEXT = "text"
    ATTR = "attr"
    OBJECT = "object"


# Accepted spellings besides the enum values themselves
_VALUE_TYPE_ALIASES = {
    "attribute": ValueType.ATTR,
}


class Rule(BaseModel):
    """One extraction instruction."""
    var_name: str = Field("", alias="varName")
    selector: Optional[str] = None
    value_type: Any = Field(None, alias="valueType")
    value_by: Any = Field(None, alias="valueBy")
    multi: Optional[bool] = False

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def kind(self) -> ValueType:
        """
        Resolve the declared value type.

        Raises:
            InvalidRuleError: If the value type is not one of text, attr, object
        """
        if isinstance(self.value_type, str):
            key = self.value_type.strip().lower()
            if key in _VALUE_TYPE_ALIASES:
                return _VALUE_TYPE_ALIASES[key]
            try:
                return ValueType(key)
            except ValueError:
                pass
        raise InvalidRuleError(
            f"{self.var_name}: invalid valueType: {self.value_type}",
            var_name=self.var_name,
            value_type=self.value_type,
        )

    def attribute_name(self) -> Optional[str]:
        """Name of the attribute to read for text/attr rules (may be absent)."""
        if self.value_by is None or isinstance(self.value_by, str):
            return self.value_by
        raise InvalidRuleError(
            f"{self.var_name}: valueBy must be an attribute name for valueType "
            f"{self.value_type}, got {type(self.value_by).__name__}",
            var_name=self.var_name,
            value_type=self.value_type,
        )

    def nested_rules(self) -> List["Rule"]:
        """
        Nested rules of an object rule.

        Raises:
            InvalidRuleError: If valueBy is not a list of rules
        """
        if not isinstance(self.value_by, list):
            raise InvalidRuleError(
                f"{self.var_name}: valueBy must be a list of rules for valueType object, "
                f"got {type(self.value_by).__name__}",
                var_name=self.var_name,
                value_type=self.value_type,
            )
        try:
            return parse_rules(self.value_by)
        except RulesPayloadError as e:
            raise InvalidRuleError(
                f"{self.var_name}: nested rules are invalid: {e.reason or e}",
                var_name=self.var_name,
                value_type=self.value_type,
            ) from e


RulesPayload = Union[str, bytes, dict, Rule, List[Union[dict, Rule]], None]


def parse_rules(payload: RulesPayload) -> List[Rule]:
    """
    Parse a rule payload into a list of rules.

    Args:
        payload: JSON text, a single rule object, or a list of rule objects

    Returns:
        List of rules; a single object becomes a one-element list

    Raises:
        RulesPayloadError: If the payload is not valid JSON or not an object/array
    """
    raw = payload
    if isinstance(payload, (str, bytes)):
        try:
            if isinstance(payload, bytes):
                payload = payload.decode("utf-8")
            payload = json.loads(payload)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RulesPayloadError(raw, str(e)) from e

    if not payload:
        return []
    if not isinstance(payload, list):
        payload = [payload]

    rules: List[Rule] = []
    for entry in payload:
        if isinstance(entry, Rule):
            rules.append(entry)
        elif isinstance(entry, dict):
            try:
                rules.append(Rule.model_validate(entry))
            except ValidationError as e:
                raise RulesPayloadError(raw, str(e)) from e
        else:
            raise RulesPayloadError(raw, f"rule entries must be objects, got {type(entry).__name__}")

    logger.debug(f"Parsed {len(rules)} rules")
    return rules


def load_rules(rules_path: Union[str, Path]) -> List[Rule]:
    """
    Load rules from a JSON file.

    Args:
        rules_path: Path to a JSON file holding a rule object or array

    Returns:
        Parsed list of rules
    """
    rules_path = Path(rules_path)

    if not rules_path.exists():
        raise FileNotFoundError(f"Rules file not found: {rules_path}")

    logger.info(f"Loading rules from: {rules_path}")
    return parse_rules(rules_path.read_text(encoding="utf-8"))
