"""
Command-line interface for keysync.

Usage Examples:
    Extract keys from source and update every language:
        keysync extract

    Remove keys that are no longer used:
        keysync clean

    Show translation progress:
        keysync status

    Fill missing translations for all languages, or just one:
        keysync translate
        keysync translate fr

    Use a specific configuration file:
        keysync --config path/to/keysync.yml status
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import NamedTuple

import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .config.manager import ConfigManager
from .config.schema import KeySyncConfig
from .core.exceptions import ConfigurationError, StorageError
from .sync.clean import run_clean
from .sync.extract import run_extract
from .sync.status import StatusReport, collect_status
from .translate.batch import BatchTranslator

console = Console()
logger = logging.getLogger(__name__)

BAR_WIDTH = 20
MAX_LISTED_MISSING = 10


class CliArgs(NamedTuple):
    """Type-safe container for command-line arguments."""

    command: str
    language: str | None
    config: Path | None
    verbose: bool


def setup_logging(verbose: bool = False) -> None:
    """
    Set up logging configuration.

    Args:
        verbose: Enable verbose logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keysync",
        description="Extract, synchronize and translate i18n keys",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  extract            Scans code, extracts keys, and updates JSON files
  clean              Removes unused keys from JSON files (config dependent)
  status             Shows translation progress and missing keys
  translate [lang]   Fills untranslated keys through the translation service
  help               Shows this help message
        """,
    )
    _ = parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Configuration file (default: ./keysync.yml when present)",
    )
    _ = parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command", metavar="command")
    _ = subparsers.add_parser("extract", help="Extract keys and update documents")
    _ = subparsers.add_parser("clean", help="Remove unused keys")
    _ = subparsers.add_parser("status", help="Show translation progress")
    translate_parser = subparsers.add_parser("translate", help="Fill missing translations")
    _ = translate_parser.add_argument(
        "language", nargs="?", default=None, help="Only translate this language (e.g. fr)"
    )
    _ = subparsers.add_parser("help", help="Show this help message")
    return parser


def parse_arguments(argv: list[str] | None = None) -> CliArgs:
    """
    Parse command-line arguments.

    Unknown commands make argparse exit with a usage error.
    """
    args = build_parser().parse_args(argv)
    return CliArgs(
        command=args.command or "extract",  # pyright: ignore[reportAny]
        language=getattr(args, "language", None),
        config=args.config,  # pyright: ignore[reportAny]
        verbose=args.verbose,  # pyright: ignore[reportAny]
    )


def render_bar(percentage: int) -> str:
    filled = round(percentage / 100 * BAR_WIDTH)
    return "█" * filled + "░" * (BAR_WIDTH - filled)


def print_status(report: StatusReport) -> None:
    if report.total_keys == 0:
        console.print("No keys found.")
        return

    table = Table(title=f"Translation Status ({report.total_keys} keys)")
    table.add_column("Language", style="cyan")
    table.add_column("Progress", justify="right")
    table.add_column("Translated", justify="right", style="green")
    table.add_column("Missing", justify="right", style="red")

    for status in report.languages:
        table.add_row(
            f"{status.language.upper()} ({status.label})",
            f"{render_bar(status.percentage)} {status.percentage}%",
            str(status.translated),
            str(len(status.missing_keys)),
        )
    console.print(table)

    for status in report.languages:
        missing = status.missing_keys
        if not missing:
            continue
        console.print(f"\n[bold]{status.language.upper()}[/bold] missing:")
        if len(missing) < MAX_LISTED_MISSING:
            for full_key in missing:
                console.print(f"  - {full_key}")
        else:
            console.print(f"  ...and {len(missing)} missing keys.")


def cmd_extract(config: KeySyncConfig, _args: CliArgs) -> int:
    console.print("[yellow]Starting extraction...[/yellow]")
    result = run_extract(config)
    if result.added:
        console.print(f"  [green]+ {len(result.added)} keys added[/green]")
    if result.changed:
        console.print(f"  [yellow]~ {len(result.changed)} keys changed[/yellow]")
    console.print(str(result))
    return 0


def cmd_clean(config: KeySyncConfig, _args: CliArgs) -> int:
    console.print("[yellow]Scanning source code for used keys...[/yellow]")
    result = run_clean(config)
    for path, keys in result.removed.items():
        console.print(f"\n  Cleaning {path}:")
        for full_key in keys:
            console.print(f"    - {full_key}")
    if result.removed_count == 0 and not result.skipped:
        console.print("No unused keys found.")
    console.print(str(result))
    return 0


def cmd_status(config: KeySyncConfig, _args: CliArgs) -> int:
    print_status(collect_status(config))
    return 0


def cmd_translate(config: KeySyncConfig, args: CliArgs) -> int:
    console.print("[yellow]Starting translation...[/yellow]")
    try:
        result = asyncio.run(BatchTranslator(config).run(args.language))
    except ConfigurationError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    for language, applied in result.applied.items():
        planned = result.planned.get(language, applied)
        console.print(f"  [green]✓ {language}: {applied}/{planned} key(s) translated[/green]")
    if result.failed_batches:
        failed = ", ".join(f"{language}#{batch_id}" for language, batch_id in result.failed_batches)
        console.print(
            f"  [yellow]⚠ {result.failed_count} batch(es) failed ({failed}). "
            "Run translate again to retry skipped keys.[/yellow]"
        )
    if result.batch_count == 0:
        console.print("All languages are fully translated.")
    return 0


COMMANDS: dict[str, Callable[[KeySyncConfig, CliArgs], int]] = {
    "extract": cmd_extract,
    "clean": cmd_clean,
    "status": cmd_status,
    "translate": cmd_translate,
}


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_arguments(argv)
    if args.command == "help":
        build_parser().print_help()
        return 0

    setup_logging(args.verbose)

    try:
        config = ConfigManager.load_or_default(args.config)
    except (FileNotFoundError, yaml.YAMLError, ValueError, ValidationError) as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        return 1

    try:
        return COMMANDS[args.command](config, args)
    except StorageError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled by user[/yellow]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
