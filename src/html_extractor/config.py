"""
Configuration module for html_extractor.

Uses Pydantic models for validation and parsing of configuration files.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .rules import Rule, parse_rules

logger = logging.getLogger(__name__)


class Defaults(BaseModel):
    """Default values applied to every extraction run."""
    threads: int = Field(20, ge=1)
    continue_on_fail: bool = Field(False, alias="continueOnFail")
    parser: str = "html.parser"  # any BeautifulSoup feature, e.g. "lxml"
    source_type: Literal["json", "binary"] = Field("json", alias="sourceType")
    data_property_name: str = Field("data", alias="dataPropertyName")

    model_config = ConfigDict(populate_by_name=True)


class Config(BaseModel):
    """Main configuration class."""
    persistence_strategy: str = Field("json_lines", alias="persistenceStrategy")
    defaults: Defaults = Field(default_factory=Defaults)
    # Raw rule payload: JSON text, one rule object or a list of them
    rules: Any = "[]"

    model_config = ConfigDict(populate_by_name=True)

    def get_rules(self) -> List[Rule]:
        """Parse the configured rule payload."""
        return parse_rules(self.rules)


def load_config(config_path: Union[str, Path]) -> Config:
    """
    Load configuration from JSON file.

    Args:
        config_path: Path to configuration file

    Returns:
        Parsed configuration object
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    config = Config.model_validate(data)

    logger.info(
        f"Loaded configuration: sourceType={config.defaults.source_type}, "
        f"dataPropertyName={config.defaults.data_property_name}, threads={config.defaults.threads}"
    )

    return config
