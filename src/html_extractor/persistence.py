"""
Persistence module for html_extractor.

Handles different persistence strategies for saving extracted records.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


@dataclass
class SavedRecordInfo:
    """Information about a saved record."""
    paired_item: int
    path: str
    size: int


class PersistenceStrategy(ABC):
    """Abstract base class for persistence strategies."""

    @abstractmethod
    async def save(self, record: Dict[str, Any], paired_item: int = 0) -> str:
        """
        Save one output record.

        Args:
            record: Extracted mapping (or error placeholder)
            paired_item: Index of the input record it came from

        Returns:
            Path where the record was (or will be) saved
        """
        pass

    @abstractmethod
    async def finalize(self) -> None:
        """Finalize persistence operations (e.g., write buffered records)."""
        pass


class JsonLinesStrategy(PersistenceStrategy):
    """Persistence strategy that appends one JSON object per line."""

    def __init__(self, output_path: str):
        """
        Initialize JsonLinesStrategy.

        Args:
            output_path: File to write; truncated on creation
        """
        self.output_path = Path(output_path)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text("", encoding='utf-8')
        self._saved_records: List[SavedRecordInfo] = []

    async def save(self, record: Dict[str, Any], paired_item: int = 0) -> str:
        line = json.dumps(record, ensure_ascii=False)

        with open(self.output_path, 'a', encoding='utf-8') as f:
            f.write(line + "\n")

        self._saved_records.append(SavedRecordInfo(
            paired_item=paired_item,
            path=str(self.output_path),
            size=len(line),
        ))

        logger.debug(f"Appended record for item {paired_item} to: {self.output_path}")
        return str(self.output_path)

    async def finalize(self) -> None:
        """No finalization needed for JSON lines."""
        logger.info(f"JsonLinesStrategy completed. Saved {len(self._saved_records)} records.")

    def get_saved_records(self) -> List[SavedRecordInfo]:
        """Get list of saved records."""
        return self._saved_records.copy()


class JsonArrayStrategy(PersistenceStrategy):
    """Persistence strategy that buffers records and writes a single JSON array."""

    def __init__(self, output_path: str, indent: int = 2):
        """
        Initialize JsonArrayStrategy.

        Args:
            output_path: File to write on finalize
            indent: JSON indentation
        """
        self.output_path = Path(output_path)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.indent = indent
        self.buffer: List[Dict[str, Any]] = []
        self._saved_records: List[SavedRecordInfo] = []

    async def save(self, record: Dict[str, Any], paired_item: int = 0) -> str:
        self.buffer.append(record)
        self._saved_records.append(SavedRecordInfo(
            paired_item=paired_item,
            path=str(self.output_path),
            size=len(json.dumps(record, ensure_ascii=False)),
        ))

        logger.debug(f"Buffered record for item {paired_item}")
        return str(self.output_path)

    async def finalize(self) -> None:
        """Write all buffered records to the output file."""
        logger.info(f"Finalizing JsonArrayStrategy - writing {len(self.buffer)} records")

        with open(self.output_path, 'w', encoding='utf-8') as f:
            json.dump(self.buffer, f, ensure_ascii=False, indent=self.indent)

        logger.info(f"JsonArrayStrategy completed. Wrote {self.output_path}.")

    def get_saved_records(self) -> List[SavedRecordInfo]:
        """Get list of saved records."""
        return self._saved_records.copy()


def create_persistence_strategy(
    strategy: str,
    output_path: str,
    **kwargs
) -> PersistenceStrategy:
    """
    Factory function to create persistence strategy.

    Args:
        strategy: Strategy name ("json_lines" or "json_array")
        output_path: Output file
        **kwargs: Additional strategy-specific parameters

    Returns:
        Configured persistence strategy

    Raises:
        ValueError: If strategy is not supported
    """
    if strategy == "json_lines":
        return JsonLinesStrategy(output_path)
    elif strategy == "json_array":
        indent = kwargs.get("indent", 2)
        return JsonArrayStrategy(output_path, indent)
    else:
        raise ValueError(f"Unsupported persistence strategy: {strategy}")
