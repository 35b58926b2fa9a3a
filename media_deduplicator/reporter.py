"""Reporting and statistics for media deduplication."""

import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional

from .utils import ensure_directory

logger = logging.getLogger(__name__)


class DeduplicationReporter:
    """Generates summaries and JSON reports of a deduplication run."""

    def __init__(self, config):
        """Initialize reporter with configuration."""
        self.config = config
        log_dir = config.get_log_dir()
        self.report_dir = Path(log_dir) if log_dir else Path.cwd()

    def generate_summary_report(self, results: Dict[str, Any]) -> str:
        """
        Generate human-readable summary report.

        Args:
            results: Results from MediaDeduplicator.run

        Returns:
            Formatted summary report
        """
        stats = results.get('statistics', {})

        report = []
        report.append("=" * 50)
        report.append("MEDIA DEDUPLICATION SUMMARY REPORT")
        report.append("=" * 50)
        report.append(f"Completed: {results.get('timestamp', 'Unknown')}")
        report.append(f"Mode: {'SIMULATE' if results.get('simulate', False) else 'LIVE RUN'}"
                      f"{' (move)' if results.get('move', False) else ''}"
                      f"{' (rename)' if results.get('rename', False) else ''}")
        report.append(f"Destination: {results.get('destination', 'N/A')}")
        report.append("")

        report.append("=== FILE STATISTICS ===")
        report.append(f"• Total number of files scanned: {stats.get('total_files', 0):,}")
        report.append(f"• Total number of images with no duplicates: {stats.get('unique_files', 0):,}")
        report.append(f"• Total number of duplicates: {stats.get('duplicates', 0):,}")
        report.append(f"• Total number of copy errors: {stats.get('copy_errors', 0):,}")
        if results.get('move', False):
            report.append(f"• Total number of remove errors: {stats.get('remove_errors', 0):,}")
        if stats.get('read_errors', 0):
            report.append(f"• Files that could not be read: {stats.get('read_errors', 0):,}")
        if not results.get('simulate', False):
            report.append(f"• Hard linked: {stats.get('linked', 0):,}, "
                          f"copied: {stats.get('copied', 0):,}, "
                          f"skipped: {stats.get('skipped', 0):,}")
        if stats.get('timestamp_fallbacks', 0):
            report.append(f"• Renamed using current time: {stats.get('timestamp_fallbacks', 0):,}")
        report.append("")

        warnings = results.get('warnings', [])
        if warnings:
            report.append("=== WARNINGS ===")
            for warning in warnings[:10]:
                report.append(f"- {warning}")
            if len(warnings) > 10:
                report.append(f"- ... and {len(warnings) - 10} more warnings")
            report.append("")

        errors = results.get('errors', [])
        if errors:
            report.append("=== ERRORS ===")
            for error in errors[:10]:
                report.append(f"- {error}")
            if len(errors) > 10:
                report.append(f"- ... and {len(errors) - 10} more errors")
            report.append("")

        report.append(f"Done in {results.get('duration_seconds', 0):.2f}s")
        return "\n".join(report)

    def save_report(self, results: Dict[str, Any], output_file: Optional[str] = None) -> str:
        """
        Save detailed JSON report to file.

        Args:
            results: Results from MediaDeduplicator.run
            output_file: Optional output file path

        Returns:
            Path to saved report file
        """
        if output_file is None:
            timestamp = results.get('timestamp', 'unknown').replace(':', '-')
            output_file = str(self.report_dir / f"deduplicate_report_{timestamp}.json")

        output_path = Path(output_file)
        ensure_directory(output_path.parent)

        with open(output_path, 'w') as f:
            json.dump(results, f, indent=2, default=str)
        logger.info(f"Report saved: {output_path}")
        return str(output_path)
