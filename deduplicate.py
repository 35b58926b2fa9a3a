#!/usr/bin/env python3
"""
Media Deduplication CLI

Removes duplicate images and videos across source folders and places the
unique ones into a destination folder, optionally renaming them with their
capture time.
"""

import sys
import logging
import click
from pathlib import Path
from colorama import init, Fore, Style

# Add the media_deduplicator package to path
sys.path.insert(0, str(Path(__file__).parent))

from media_deduplicator import (
    Config,
    MediaDeduplicator,
    DeduplicationReporter,
)
from media_deduplicator.deduplicator import validate_destination, validate_sources
from media_deduplicator.exceptions import WorkerPoolError

# Initialize colorama for cross-platform colored output
init()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_console_handler = None
_file_handler = None


def setup_logging(level: str = 'INFO', log_dir: Path = None):
    """Set up logging configuration."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    global _console_handler
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove previous console handler if any
    if _console_handler is not None:
        root_logger.removeHandler(_console_handler)

    _console_handler = logging.StreamHandler(sys.stdout)
    _console_handler.setFormatter(formatter)
    root_logger.addHandler(_console_handler)

    if log_dir:
        _setup_file_logging(log_dir, formatter, root_logger)

    # exifread logs every file it does not recognize
    logging.getLogger('exifread').setLevel(logging.ERROR)


def _setup_file_logging(log_dir: Path, formatter: logging.Formatter, root_logger: logging.Logger,
                        log_name: str = 'deduplicate'):
    """Add file handler to root logger."""
    global _file_handler
    log_dir.mkdir(parents=True, exist_ok=True)

    if _file_handler is not None:
        root_logger.removeHandler(_file_handler)

    _file_handler = logging.FileHandler(log_dir / f'{log_name}.log')
    _file_handler.setFormatter(formatter)
    root_logger.addHandler(_file_handler)


def print_header(title: str):
    """Print a formatted header."""
    click.echo(f"\n{Fore.CYAN}{'=' * 60}{Style.RESET_ALL}")
    click.echo(f"{Fore.CYAN}{title.center(60)}{Style.RESET_ALL}")
    click.echo(f"{Fore.CYAN}{'=' * 60}{Style.RESET_ALL}\n")
    sys.stdout.flush()

def print_success(message: str):
    """Print success message."""
    click.echo(f"{Fore.GREEN}OK: {message}{Style.RESET_ALL}")
    sys.stdout.flush()

def print_warning(message: str):
    """Print warning message."""
    click.echo(f"{Fore.YELLOW}WARN: {message}{Style.RESET_ALL}")
    sys.stdout.flush()

def print_error(message: str):
    """Print error message."""
    click.echo(f"{Fore.RED}ERROR: {message}{Style.RESET_ALL}")
    sys.stdout.flush()

def print_info(message: str):
    """Print info message."""
    click.echo(f"{Fore.BLUE}INFO: {message}{Style.RESET_ALL}")
    sys.stdout.flush()


@click.command()
@click.option('--sources', '-s', multiple=True, help='Sources folder to analyze')
@click.option('--destination', '-d', default='', help='Destination folder')
@click.option('--rename', '-r', is_flag=True, help='Rename with file datetime prefix')
@click.option('--move', '-m', is_flag=True, help='Move files instead of copying')
@click.option('--simulate', '-l', is_flag=True, help='Simulate process')
@click.option('--config', '-c', 'config_path', help='Path to configuration file')
@click.option('--log-level', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Logging level (overrides config)')
@click.option('--workers', '-w', type=click.IntRange(min=1), default=None,
              help='Number of worker threads (default: twice the CPU count)')
@click.option('--progress', is_flag=True, help='Show progress bars')
@click.option('--report', help='Save JSON report to specific file')
def cli(sources, destination, rename, move, simulate, config_path, log_level, workers, progress, report):
    """Deduplicate allows to remove duplicate images and rename the unique ones."""

    try:
        config = Config(config_path)
    except Exception as e:
        print_error(f"Failed to load configuration: {e}")
        sys.exit(1)

    errors = config.validate_config()
    if errors:
        print_error("Configuration validation failed:")
        for error in errors:
            click.echo(f"  - {error}")
        sys.exit(1)

    log_dir = config.get_log_dir()
    setup_logging(log_level or config.get_log_level(), Path(log_dir) if log_dir else None)

    folders = validate_sources(sources)
    dest = validate_destination(destination)

    if not folders:
        print_error("sources shouldn't be empty")
        sys.exit(1)
    if dest is None:
        print_error("destination shouldn't be empty")
        sys.exit(1)

    deduplicator = MediaDeduplicator(config, workers=workers)
    reporter = DeduplicationReporter(config)

    print_header("MEDIA DEDUPLICATION")
    click.echo(f"Source Folders: {', '.join(str(f) for f in folders)}")
    click.echo(f"Destination: {dest}")
    click.echo(f"Rename: {rename}")
    click.echo(f"Move: {move}")
    click.echo(f"Simulate: {simulate}")
    click.echo(f"Concurrency Level: {deduplicator.workers}")
    click.echo()

    try:
        results = deduplicator.run(folders, dest, rename=rename, move=move,
                                   simulate=simulate, progress=progress)
    except WorkerPoolError as e:
        print_error(f"Cannot start workers: {e}")
        sys.exit(1)

    if results['simulate']:
        print_info("SIMULATE completed - no files were actually modified")
        for mapping in results['mappings']:
            click.echo(f"{mapping['source']} -> {mapping['destination']}")

    for warning in results['warnings']:
        print_warning(warning)

    if results['errors']:
        print_warning(f"Completed with {len(results['errors'])} errors:")
        for error in results['errors'][:5]:
            click.echo(f"  - {error}")
        if len(results['errors']) > 5:
            click.echo(f"  - ... and {len(results['errors']) - 5} more errors")

    click.echo("\n" + reporter.generate_summary_report(results))

    if report:
        report_file = reporter.save_report(results, report)
        print_success(f"Report saved: {report_file}")

    sys.stdout.flush()


if __name__ == '__main__':
    cli()
