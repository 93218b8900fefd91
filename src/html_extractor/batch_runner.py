"""
Batch runner module for html_extractor.

Runs the rule extractor over a batch of input records. Records are independent,
so each one is parsed and resolved on a worker thread, bounded by the configured
number of threads. Output order always follows input order.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .config import Defaults
from .errors import ExtractionError, MissingInputError
from .extraction import RuleExtractor
from .rules import Rule, RulesPayload, parse_rules
from .utils import decode_binary, ensure_list, get_path, has_path

logger = logging.getLogger(__name__)


@dataclass
class BatchStats:
    """Statistics for batch processing."""
    total: int = 0
    documents: int = 0
    success: int = 0
    failed: int = 0


@dataclass
class ExtractionRecord:
    """One output record, paired with the index of the input record it came from."""
    json: Dict[str, Any]
    paired_item: int
    error: Optional[str] = None

    @classmethod
    def failure(cls, paired_item: int, error: Exception) -> "ExtractionRecord":
        """Error placeholder used when failures are tolerated."""
        message = str(error)
        return cls(json={"error": message}, paired_item=paired_item, error=message)


class BatchRunner:
    """Handles extraction over a batch of input records."""

    def __init__(self, defaults: Defaults, extractor: Optional[RuleExtractor] = None):
        """
        Initialize BatchRunner.

        Args:
            defaults: Default configuration
            extractor: Extractor to use, built from the configured parser when omitted
        """
        self.defaults = defaults
        self.extractor = extractor or RuleExtractor(parser=defaults.parser)
        self.stats = BatchStats()

    async def run(self, items: Sequence[Any], rules: RulesPayload) -> List[ExtractionRecord]:
        """
        Run extraction on a batch of input records.

        Args:
            items: Input records; mappings holding markup under the data property,
                or markup strings/bytes used directly
            rules: Rules or a raw rule payload, shared by every record

        Returns:
            Output records in input order

        Raises:
            ExtractionError: On the first failure unless continue_on_fail is set
        """
        self.stats = BatchStats(total=len(items))
        if not items:
            logger.info("No items to process")
            return []

        logger.info(f"Starting extraction of {len(items)} items")

        try:
            parsed_rules = parse_rules(rules)
        except ExtractionError as e:
            if not self.defaults.continue_on_fail:
                logger.error(f"Invalid rules: {e}")
                raise
            logger.error(f"Invalid rules, marking all {len(items)} items as failed: {e}")
            records = [ExtractionRecord.failure(index, e) for index in range(len(items))]
            self.stats.failed = len(records)
            return records

        semaphore = asyncio.Semaphore(self.defaults.threads)
        batches = await asyncio.gather(*[
            self._run_item(semaphore, index, item, parsed_rules)
            for index, item in enumerate(items)
        ], return_exceptions=True)

        # earliest failing item in input order, regardless of which worker finished first
        for batch in batches:
            if isinstance(batch, BaseException):
                raise batch

        records = [record for batch in batches for record in batch]
        self.stats.documents = len(records)
        self.stats.failed = sum(1 for record in records if record.error is not None)
        self.stats.success = self.stats.documents - self.stats.failed

        logger.info(
            f"Extraction completed: {self.stats.success} success, {self.stats.failed} failed, "
            f"{self.stats.documents} documents from {self.stats.total} items"
        )

        return records

    async def _run_item(
        self,
        semaphore: asyncio.Semaphore,
        index: int,
        item: Any,
        rules: List[Rule],
    ) -> List[ExtractionRecord]:
        async with semaphore:
            try:
                return await asyncio.to_thread(self.extract_item, index, item, rules)
            except Exception as e:
                if not self.defaults.continue_on_fail:
                    logger.error(f"Extraction failed for item {index}: {e}")
                    raise
                logger.error(f"Extraction failed for item {index}, continuing: {e}")
                return [ExtractionRecord.failure(index, e)]

    def extract_item(self, index: int, item: Any, rules: List[Rule]) -> List[ExtractionRecord]:
        """
        Extract every document held by one input record.

        Args:
            index: Position of the record in the batch
            item: Input record
            rules: Parsed rules

        Returns:
            One output record per document
        """
        records = []
        for html in self.load_documents(index, item):
            try:
                data = self.extractor.resolve(self.extractor.parse(html), rules)
            except Exception as e:
                if not self.defaults.continue_on_fail:
                    raise
                logger.error(f"Extraction failed for a document of item {index}, continuing: {e}")
                records.append(ExtractionRecord.failure(index, e))
                continue
            records.append(ExtractionRecord(json=data, paired_item=index))
        return records

    def load_documents(self, index: int, item: Any) -> List[str]:
        """
        Read the markup documents of an input record.

        Raises:
            MissingInputError: If the data property is absent
            ExtractionError: If the data property does not hold markup
        """
        binary = self.defaults.source_type == "binary"

        if isinstance(item, (str, bytes, bytearray)):
            value = item
        else:
            name = self.defaults.data_property_name
            if not has_path(item, name):
                raise MissingInputError(name, index)
            value = get_path(item, name)

        if binary:
            if not isinstance(value, (str, bytes, bytearray)):
                raise ExtractionError(
                    f'Property "{self.defaults.data_property_name}" does not hold binary data'
                )
            return [decode_binary(value)]

        if isinstance(value, (bytes, bytearray)):
            value = decode_binary(value)

        documents = ensure_list(value)
        for document in documents:
            if not isinstance(document, str):
                raise ExtractionError(
                    f'Property "{self.defaults.data_property_name}" must be a string '
                    f'or an array of strings, got {type(document).__name__}'
                )
        return documents

    def get_stats(self) -> BatchStats:
        """Get processing statistics."""
        return self.stats
