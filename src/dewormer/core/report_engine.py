"""Report generation for scan cycles"""

import json
from collections import defaultdict
from typing import Dict, List, Optional

import click

from .models import Finding, ScanResult


class ReportEngine:
    """
    Aggregates one scan cycle's findings and renders them

    Supports:
    - Console output with colored formatting
    - Short summary text for notifiers
    - JSON export
    """

    def __init__(self, result: Optional[ScanResult] = None, lists: Optional[List[str]] = None):
        """
        Initialize report engine

        Args:
            result: Scan cycle result to report on
            lists: Names of the bad-package lists that were loaded
        """
        self.result = result or ScanResult()
        self.lists: List[str] = list(lists or [])

    @property
    def findings(self) -> List[Finding]:
        return self.result.findings

    def get_findings_count(self) -> int:
        """Get total number of findings"""
        return len(self.findings)

    def get_list_names(self) -> List[str]:
        """Get names of lists that produced findings"""
        return sorted(set(f.list_name for f in self.findings))

    def _generate_summary(self) -> Dict[str, dict]:
        """
        Generate summary statistics per matched list

        Returns:
            Dictionary mapping list names to summary stats
        """
        list_summary = {}
        for list_name in self.get_list_names():
            list_findings = [f for f in self.findings if f.list_name == list_name]
            list_summary[list_name] = {
                'total': len(list_findings),
                'unique_packages': len(set(f.package_name for f in list_findings)),
                'files': len(set(f.file_path for f in list_findings)),
            }
        return list_summary

    def summary_message(self) -> str:
        """Build the one-line text handed to notifiers"""
        count = self.get_findings_count()
        if count == 0:
            return f"No threats detected ({self.result.files_scanned} file(s) scanned)."
        return f"Found {count} infected dependencies! Check logs for details."

    def print_report(self):
        """Print formatted console report"""
        result = self.result
        click.echo(click.style(
            f"Scan completed in {result.duration:.2f}s. Files scanned: {result.files_scanned}"
            f" (unchanged: {result.files_skipped}, unreadable: {result.files_failed})",
            fg='cyan'))

        if not self.findings:
            click.echo(click.style("✓ No threats detected", fg='green', bold=True))
            return

        click.echo(click.style("⚠️  WARNING: ", fg='red', bold=True) +
                   click.style(f"Found {self.get_findings_count()} infected dependencies!", fg='yellow', bold=True))

        by_file = defaultdict(list)
        for finding in self.findings:
            by_file[finding.file_path].append(finding)

        for file_path in sorted(by_file):
            click.echo(f"\n  File: {file_path}")
            for finding in by_file[file_path]:
                click.echo("    - " + click.style(f"{finding.package_name}@{finding.version}", fg='red', bold=True)
                           + f" (matched: {finding.list_name})")

        click.echo()

    def save_report(self, output_file: str) -> bool:
        """
        Save findings to JSON file

        Args:
            output_file: Path to output file

        Returns:
            True if saved successfully, False otherwise
        """
        report = {
            'total_findings': self.get_findings_count(),
            'files_scanned': self.result.files_scanned,
            'lists': self.lists,
            'findings': [finding.to_dict() for finding in self.findings],
            'summary': self._generate_summary(),
        }

        try:
            with open(output_file, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2)
            return True

        except OSError as e:
            click.echo(click.style(f"✗ Error saving report: {e}", fg='red', bold=True), err=True)
            return False
