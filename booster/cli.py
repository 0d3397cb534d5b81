"""
Command-line interface for Booster.
"""
import os
import sys
import argparse
import logging
import asyncio
from datetime import datetime
from typing import List, Optional

from dotenv import load_dotenv

from booster.config import Config, CONFIG_PATH_ENV
from booster.core.models import ImportSummary
from booster.core.pipeline import Orchestrator

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure logging to a dated log file and the console.

    Args:
        level: Log level name
        log_file: Log file path, defaults to booster_YYYYMMDD.log
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file or f"booster_{datetime.now().strftime('%Y%m%d')}.log"),
            logging.StreamHandler()
        ],
        force=True
    )


def parse_args(argv: Optional[List[str]] = None):
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description="Booster - Content ingestion pipeline")
    parser.add_argument("--config", help=f"Path to YAML/JSON config file (default: ${CONFIG_PATH_ENV})")
    parser.add_argument("--log-level", default="INFO", help="Log level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--log-file", help="Log file path")
    parser.add_argument("--database", help="Override storage.database")

    subparsers = parser.add_subparsers(dest="command")

    import_parser = subparsers.add_parser("import", help="Import content from configured providers")
    import_parser.add_argument(
        "--provider", action="append", default=[], metavar="API/ENDPOINT",
        help="Only run the given provider (repeatable)"
    )
    import_parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar")

    fix_parser = subparsers.add_parser("fix-images", help="Find images for stored records that have none")
    fix_parser.add_argument("--batch-size", type=int, default=50, help="Records per batch (default 50)")
    fix_parser.add_argument("--dry-run", action="store_true", help="Report without updating records")

    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "import"
        args.provider = []
        args.no_progress = False
    return args


def load_config(args) -> Config:
    overrides = {}
    if args.database:
        overrides['storage'] = {'database': args.database}
    return Config(args.config or os.getenv(CONFIG_PATH_ENV), overrides=overrides)


def select_providers(orchestrator: Orchestrator, keys: List[str]):
    providers = orchestrator.load_providers()
    if not keys:
        return providers
    wanted = set(keys)
    selected = [p for p in providers if p.key in wanted]
    missing = wanted - {p.key for p in selected}
    for key in sorted(missing):
        logger.warning(f"Provider {key} is not configured")
    return selected


def print_summary(summary: ImportSummary):
    print("------------------------------------------")
    print(f"Imported {summary.created} items")
    for key, count in sorted(summary.per_provider.items()):
        print(f"  {key}: {count}")
    print(f"Duplicates skipped: {summary.duplicates}")
    if summary.failed_providers:
        print(f"Failed providers: {', '.join(summary.failed_providers)}")
    print("------------------------------------------")


async def run_import(config: Config, provider_keys: List[str], show_progress: bool = True) -> int:
    async with Orchestrator(config=config, show_progress=show_progress) as orchestrator:
        providers = select_providers(orchestrator, provider_keys)
        summary = await orchestrator.run_import(providers)
    print_summary(summary)
    return 0


async def run_fix_images(config: Config, batch_size: int, dry_run: bool) -> int:
    if dry_run:
        logger.info("Dry run mode enabled. No changes will be made.")
    async with Orchestrator(config=config) as orchestrator:
        counts = await orchestrator.fix_images(batch_size=batch_size, dry_run=dry_run)
    print("------------------------------------------")
    print(f"Total records processed: {counts['processed']}")
    print(f"Images set: {counts['fixed']}" + (" (Dry Run)" if dry_run else ""))
    print(f"No image found: {counts['unresolved']}")
    print("------------------------------------------")
    return 0


async def async_main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the application.
    """
    load_dotenv(override=True)
    args = parse_args(argv)
    setup_logging(args.log_level, args.log_file)
    config = load_config(args)

    if args.command == "fix-images":
        return await run_fix_images(config, args.batch_size, args.dry_run)
    return await run_import(config, args.provider, show_progress=not args.no_progress)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the command-line script.
    """
    try:
        return asyncio.run(async_main(argv))
    except KeyboardInterrupt:
        logger.info("Process interrupted by user")
        return 1
    except Exception as e:
        logger.exception(f"An error occurred: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
