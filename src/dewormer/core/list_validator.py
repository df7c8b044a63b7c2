"""
Bad-package list validation

Lints list files so malformed entries, which loading skips silently, can be
found and fixed before a list is distributed.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import click

from .bad_package_index import parse_list_line


# Version string validation pattern
VERSION_PATTERN = re.compile(r'^[0-9a-zA-Z.\-_+]+$')
UNDECODABLE = '\ufffd'


@dataclass
class ValidationError:
    """Represents a validation error with context"""
    line_number: int
    severity: str  # 'error', 'warning'
    message: str
    value: Optional[str] = None


@dataclass
class ValidationResult:
    """Results of list file validation"""
    file_path: Path
    is_valid: bool
    errors: List[ValidationError] = field(default_factory=list)
    warnings: List[ValidationError] = field(default_factory=list)
    stats: dict = field(default_factory=dict)

    def add_error(self, line_number: int, message: str, value: Optional[str] = None):
        """Add validation error"""
        self.errors.append(ValidationError(line_number, 'error', message, value))
        self.is_valid = False

    def add_warning(self, line_number: int, message: str, value: Optional[str] = None):
        """Add validation warning"""
        self.warnings.append(ValidationError(line_number, 'warning', message, value))

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        return len(self.warnings) > 0


class ListValidator:
    """
    Validates bad-package list files

    Checks:
    - File encoding and readability
    - Lines without a package@version separator
    - Empty package names or versions
    - Duplicate entries
    - Version string format
    """

    def validate_file(self, file_path: Path) -> ValidationResult:
        """
        Validate a list file

        Args:
            file_path: Path to list file

        Returns:
            ValidationResult with errors, warnings, and stats
        """
        result = ValidationResult(file_path=file_path, is_valid=True)

        if not file_path.exists():
            result.add_error(0, f"File not found: {file_path}")
            return result

        if not file_path.is_file():
            result.add_error(0, f"Not a file: {file_path}")
            return result

        try:
            with open(file_path, 'r', encoding='utf-8-sig', errors='replace') as f:
                lines = f.read().splitlines()
        except OSError as e:
            result.add_error(0, f"Could not read file: {e}")
            return result

        self._validate_lines(lines, result)
        return result

    def _validate_lines(self, lines: List[str], result: ValidationResult):
        """
        Validate every line of a list file

        Args:
            lines: File contents split into lines
            result: ValidationResult to populate
        """
        seen_entries: Dict[Tuple[str, str], int] = {}
        packages = set()
        entry_lines = 0

        for line_number, raw_line in enumerate(lines, start=1):
            line = raw_line.strip()
            if UNDECODABLE in line:
                result.add_warning(line_number, "Line contains bytes that are not valid UTF-8", value=line)
            if not line or line.startswith('#'):
                continue

            entry_lines += 1
            entry = parse_list_line(line)

            if entry is None:
                if '@' not in line:
                    result.add_error(line_number, "Missing '@' between package and version", value=line)
                elif line.endswith('@'):
                    result.add_error(line_number, "Empty version", value=line)
                else:
                    result.add_error(line_number, "Empty package name", value=line)
                continue

            package_name, version = entry

            if any(ch.isspace() for ch in line):
                result.add_warning(line_number, "Entry contains whitespace", value=line)

            if not VERSION_PATTERN.match(version):
                result.add_warning(line_number, f"Version contains unusual characters: '{version}'", value=line)

            if entry in seen_entries:
                result.add_warning(
                    line_number,
                    f"Duplicate entry (first seen on line {seen_entries[entry]})",
                    value=line)
            else:
                seen_entries[entry] = line_number

            packages.add(package_name)

        result.stats = {
            'entry_lines': entry_lines,
            'valid_entries': len(seen_entries),
            'invalid_entries': len(result.errors),
            'unique_packages': len(packages),
        }

        if entry_lines == 0:
            result.add_warning(0, "List has no entries")

    def print_result(self, result: ValidationResult, verbose: bool = False):
        """
        Print validation result to console

        Args:
            result: ValidationResult to print
            verbose: If True, show warnings even when there are errors
        """
        click.echo(f"\n{click.style('File:', bold=True)} {result.file_path}")

        if result.stats:
            stats = result.stats
            click.echo(f"  Entries: {stats.get('entry_lines', 0)}, "
                       f"unique: {stats.get('valid_entries', 0)}, "
                       f"packages: {stats.get('unique_packages', 0)}")

        for error in result.errors:
            click.echo(click.style(f"  • {self._describe(error)}", fg='red'))

        if result.has_warnings() and (verbose or not result.has_errors()):
            for warning in result.warnings:
                click.echo(click.style(f"  • {self._describe(warning)}", fg='yellow'))

        if result.is_valid:
            click.echo(click.style("  ✓ VALID", fg='green', bold=True))
        else:
            click.echo(click.style(f"  ✗ INVALID ({len(result.errors)} error(s))", fg='red', bold=True))

    @staticmethod
    def _describe(error: ValidationError) -> str:
        line_info = f"Line {error.line_number}" if error.line_number > 0 else "File"
        value_info = f" '{error.value}'" if error.value else ""
        return f"{line_info}{value_info}: {error.message}"


def validate_list_file(file_path: str, verbose: bool = False) -> bool:
    """
    Validate a list file and print the result (convenience function)

    Args:
        file_path: Path to list file
        verbose: If True, show all warnings

    Returns:
        True if validation passed, False otherwise
    """
    validator = ListValidator()
    result = validator.validate_file(Path(file_path))
    validator.print_result(result, verbose=verbose)
    return result.is_valid
