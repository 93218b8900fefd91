"""
CLI module for html_extractor.

Provides command-line interface and orchestration logic.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from .batch_runner import BatchRunner
from .config import load_config
from .persistence import create_persistence_strategy
from .rules import load_rules

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def read_inputs(paths: List[str], as_items: bool = False) -> List[Any]:
    """
    Read input records from files.

    Args:
        paths: Input files
        as_items: Treat files as JSON holding one record or a list of records;
            otherwise every file is one HTML document

    Returns:
        Input records in file order
    """
    items: List[Any] = []
    for path in paths:
        text = Path(path).read_text(encoding='utf-8')
        if not as_items:
            items.append(text)
            continue
        data = json.loads(text)
        items.extend(data if isinstance(data, list) else [data])
    logger.info(f"Read {len(items)} input records from {len(paths)} files")
    return items


async def run_extractor(
    config_path: str,
    inputs: List[str],
    output_path: str,
    rules_path: Optional[str] = None,
    as_items: bool = False,
    continue_on_fail: bool = False,
    threads: Optional[int] = None,
    dry_run: bool = False,
    verbose: bool = False
) -> None:
    """
    Main extraction orchestration function.

    Args:
        config_path: Path to configuration file
        inputs: Input files
        output_path: Output file for extracted records
        rules_path: Optional rules file overriding the configured rules
        as_items: Read inputs as JSON records instead of raw HTML
        continue_on_fail: Replace failing records with error placeholders
        threads: Number of concurrent workers, overrides the configuration
        dry_run: If True, only validate configuration and list inputs
        verbose: Enable verbose logging
    """
    setup_logging(verbose)

    try:
        config = load_config(config_path)
        if continue_on_fail:
            config.defaults.continue_on_fail = True
        if threads:
            config.defaults.threads = threads

        rules = load_rules(rules_path) if rules_path else config.get_rules()
        items = read_inputs(inputs, as_items)

        if dry_run:
            logger.info(f"Would apply {len(rules)} rules to {len(items)} records")
            for path in inputs:
                logger.info(f"Would process: {path}")
            return

        persistence = create_persistence_strategy(config.persistence_strategy, output_path)

        runner = BatchRunner(config.defaults)
        records = await runner.run(items, rules)

        for record in records:
            await persistence.save(record.json, record.paired_item)
        await persistence.finalize()

        stats = runner.get_stats()
        logger.info(f"Extraction stats: {stats.success} success, {stats.failed} failed, {stats.documents} documents")

    except Exception as e:
        logger.error(f"Extraction failed: {e}")
        sys.exit(1)


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Extract structured JSON from HTML with declarative CSS selector rules",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  html-extractor run config.json page1.html page2.html -o out.jsonl
  html-extractor run config.json items.json --items -o out.jsonl --continue-on-fail
  html-extractor run config.json page.html -o out.jsonl --rules rules.json --verbose
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Run command
    run_parser = subparsers.add_parser('run', help='Run the extractor')
    run_parser.add_argument('config_file', help='Path to JSON configuration file')
    run_parser.add_argument('inputs', nargs='+', help='HTML files, or JSON record files with --items')
    run_parser.add_argument('--output', '-o', required=True,
                          help='File to store extracted records')
    run_parser.add_argument('--rules', help='JSON rules file overriding the configured rules')
    run_parser.add_argument('--items', action='store_true',
                          help='Inputs are JSON files holding records with the markup property')
    run_parser.add_argument('--continue-on-fail', action='store_true',
                          help='Emit {"error": ...} records instead of aborting')
    run_parser.add_argument('--threads', type=int, help='Number of concurrent workers')
    run_parser.add_argument('--dry-run', action='store_true',
                          help='Validate configuration and list inputs, don\'t extract')
    run_parser.add_argument('--verbose', '-v', action='store_true',
                          help='Enable verbose logging')

    args = parser.parse_args()

    if args.command == 'run':
        asyncio.run(run_extractor(
            config_path=args.config_file,
            inputs=args.inputs,
            output_path=args.output,
            rules_path=args.rules,
            as_items=args.items,
            continue_on_fail=args.continue_on_fail,
            threads=args.threads,
            dry_run=args.dry_run,
            verbose=args.verbose
        ))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == '__main__':
    main()
