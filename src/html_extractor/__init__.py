"""
html_extractor - Declarative JSON extraction from HTML using CSS selectors

This package turns HTML documents into structured records driven by a list of
extraction rules:
- Text, attribute and nested object values
- Single (first match) or multi (all matches) cardinality
- Selectors scoped to the enclosing match for nested rules
- Batch processing with optional continue-on-failure
- JSON lines / JSON array persistence
"""

__version__ = "1.0.0"

from .config import load_config, Config, Defaults
from .rules import Rule, ValueType, parse_rules, load_rules
from .errors import ExtractionError, InvalidRuleError, RulesPayloadError, MissingInputError
from .extraction import RuleExtractor, format_text, select_descendants
from .batch_runner import BatchRunner, BatchStats, ExtractionRecord
from .persistence import PersistenceStrategy, JsonLinesStrategy, JsonArrayStrategy, create_persistence_strategy, SavedRecordInfo
from .cli import main

__all__ = [
    "load_config",
    "Config",
    "Defaults",
    "Rule",
    "ValueType",
    "parse_rules",
    "load_rules",
    "ExtractionError",
    "InvalidRuleError",
    "RulesPayloadError",
    "MissingInputError",
    "RuleExtractor",
    "format_text",
    "select_descendants",
    "BatchRunner",
    "BatchStats",
    "ExtractionRecord",
    "PersistenceStrategy",
    "JsonLinesStrategy",
    "JsonArrayStrategy",
    "create_persistence_strategy",
    "SavedRecordInfo",
    "main",
]
