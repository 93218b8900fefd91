"""
Extraction module for html_extractor.

Applies a list of rules to a parsed HTML document and builds a JSON-compatible
mapping whose shape follows the rules, not the markup.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from bs4 import BeautifulSoup
from bs4.element import Tag
from soupsieve import SelectorSyntaxError

from .errors import InvalidRuleError
from .rules import Rule, RulesPayload, ValueType, parse_rules

logger = logging.getLogger(__name__)

# find(node, selector) -> matching descendants of node, in document order
SelectorQuery = Callable[[Any, str], Sequence[Any]]

ResolvedValue = Union[str, List[str], Dict[str, Any], List[Dict[str, Any]]]

_LINE_BREAK_WS = re.compile(r"\s*\n+\s*")


def format_text(text: str) -> str:
    """
    Trim text and fold every whitespace run containing a line break into one space.

    Whitespace runs that stay on one line are left untouched.
    """
    return _LINE_BREAK_WS.sub(" ", text.strip())


def select_descendants(node: Tag, selector: str) -> List[Tag]:
    """Default tree query: CSS selection scoped to the node's descendants."""
    return node.select(selector)


def node_text(node: Tag) -> str:
    """Full rendered text of a node, normalized with :func:`format_text`."""
    return format_text(node.get_text())


def node_attribute(node: Tag, name: Optional[str]) -> str:
    """Attribute value of a node, or an empty string when it is absent."""
    if not name:
        return ""
    value = node.get(name)
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        # multi-valued attributes such as class when the tree was parsed elsewhere
        return " ".join(value)
    return str(value)


class RuleExtractor:
    """Resolves extraction rules against parsed HTML documents."""

    def __init__(self, find: Optional[SelectorQuery] = None, parser: str = "html.parser"):
        """
        Initialize RuleExtractor.

        Args:
            find: Tree query used to match selectors, defaults to BeautifulSoup CSS select
            parser: BeautifulSoup parser feature used by :meth:`parse`
        """
        self.find = find or select_descendants
        self.parser = parser

    def parse(self, html: str) -> BeautifulSoup:
        """Parse markup into a document tree, keeping attributes as plain strings."""
        return BeautifulSoup(html, self.parser, multi_valued_attributes=None)

    def extract(self, html: str, rules: RulesPayload) -> Dict[str, Any]:
        """
        Extract structured data from HTML.

        Args:
            html: HTML content to extract from
            rules: Rules or a raw rule payload

        Returns:
            Mapping of rule varName to resolved value
        """
        return self.resolve(self.parse(html), parse_rules(rules))

    def extract_many(self, source: Union[str, Sequence[str]], rules: RulesPayload) -> List[Dict[str, Any]]:
        """
        Extract from a single markup string or a list of them.

        Returns:
            One mapping per markup string, in input order
        """
        rules = parse_rules(rules)
        documents = [source] if isinstance(source, str) else list(source)
        return [self.resolve(self.parse(html), rules) for html in documents]

    def resolve(self, context: Any, rules: List[Rule]) -> Dict[str, Any]:
        """
        Apply rules to a context node.

        Args:
            context: Node whose descendants the selectors are matched against
            rules: Rules applied in order

        Returns:
            Mapping of rule varName to resolved value; later duplicates overwrite earlier ones

        Raises:
            InvalidRuleError: If a reached rule has an invalid value type, valueBy or selector
        """
        result: Dict[str, Any] = {}

        for rule in rules:
            if not rule.selector:
                logger.debug(f"Skipping rule {rule.var_name!r}: empty selector")
                continue

            try:
                matches = self.find(context, rule.selector)
            except SelectorSyntaxError as e:
                raise InvalidRuleError(
                    f"{rule.var_name}: invalid selector {rule.selector!r}: {e}",
                    var_name=rule.var_name,
                    value_type=rule.value_type,
                ) from e

            if rule.multi:
                to_value = self._value_resolver(rule)
                result[rule.var_name] = [to_value(node) for node in matches]
            else:
                if not matches:
                    logger.debug(f"Skipping rule {rule.var_name!r}: no match for {rule.selector!r}")
                    continue
                to_value = self._value_resolver(rule)
                result[rule.var_name] = to_value(matches[0])

        return result

    def _value_resolver(self, rule: Rule) -> Callable[[Any], ResolvedValue]:
        """Build the function turning one matched node into a value for this rule."""
        kind = rule.kind

        if kind is ValueType.TEXT:
            # valueBy is ignored for text but must still be absent or a string
            rule.attribute_name()
            return node_text

        if kind is ValueType.ATTR:
            attribute = rule.attribute_name()
            return lambda node: node_attribute(node, attribute)

        nested = rule.nested_rules()
        return lambda node: self.resolve(node, nested)
