"""Bad-package index built from curated list files"""

import os
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import click
from semantic_version import Version


class BadPackageIndex:
    """
    Maps package names to known-malicious versions and the list they came from

    List file format (UTF-8, one entry per line):
        # comment
        left-pad@1.3.0
        @scope/package@2.0.0

    Only the last ``@`` separates name from version, so scoped npm names work.
    When two lists name the same package and version, the list loaded last wins.

    The index is rebuilt from scratch every scan cycle.
    """

    def __init__(self):
        # Structure: {package_name: {version: list_name}}
        self.packages: Dict[str, Dict[str, str]] = {}
        self.loaded_lists: List[str] = []
        self.latest_list_mod: int = 0  # Nanoseconds since epoch, 0 if nothing loaded

    def load_lists(self, list_paths: Iterable[str]) -> int:
        """
        Load several list files in order

        Args:
            list_paths: Paths to list files; later files override earlier ones

        Returns:
            Number of list files loaded successfully
        """
        loaded = 0
        for list_path in list_paths:
            if self.load_list(list_path):
                loaded += 1
        return loaded

    def load_list(self, list_path: str) -> bool:
        """
        Load a single list file

        A file that cannot be read is reported and skipped.

        Args:
            list_path: Path to list file

        Returns:
            True if loaded successfully, False otherwise
        """
        list_name = os.path.basename(list_path)

        try:
            mod_time = os.stat(list_path).st_mtime_ns
            # Undecodable bytes only spoil their own line
            with open(list_path, 'r', encoding='utf-8-sig', errors='replace') as f:
                entries = [entry for entry in (parse_list_line(line) for line in f) if entry]
        except OSError as e:
            click.echo(click.style(
                f"⚠️  Warning: Could not open bad package list {list_path}: {e}",
                fg='yellow'), err=True)
            return False

        for package_name, version in entries:
            self.packages.setdefault(package_name, {})[version] = list_name

        self.loaded_lists.append(list_name)
        self.latest_list_mod = max(self.latest_list_mod, mod_time)
        return True

    def lookup(self, package_name: str, version: str) -> Optional[str]:
        """
        Find the list that flags an exact package version

        Args:
            package_name: Package identifier
            version: Exact version string

        Returns:
            List name, or None if the version is not listed
        """
        return self.packages.get(package_name, {}).get(version)

    def get_versions(self, package_name: str) -> Dict[str, str]:
        """Return {version: list_name} for a package (empty if unknown)"""
        return dict(self.packages.get(package_name, {}))

    def iter_entries(self) -> Iterator[Tuple[str, List[Tuple[str, str]]]]:
        """
        Iterate packages by name with their versions in version order

        Yields:
            (package_name, [(version, list_name), ...])
        """
        for package_name in sorted(self.packages):
            versions = self.packages[package_name]
            yield package_name, [(version, versions[version]) for version in sort_versions(versions)]

    def get_package_count(self) -> int:
        """Get count of unique packages in the index"""
        return len(self.packages)

    def get_version_count(self) -> int:
        """Get count of listed package versions"""
        return sum(len(versions) for versions in self.packages.values())

    def __contains__(self, package_name: str) -> bool:
        return package_name in self.packages

    def __len__(self) -> int:
        return self.get_version_count()

    def print_summary(self):
        """Print a summary of loaded lists"""
        if not self.loaded_lists:
            click.echo(click.style("⚠️  Warning: No bad package lists loaded", fg='yellow', bold=True), err=True)
            return

        click.echo(click.style(f"✓ Loaded lists: {', '.join(self.loaded_lists)}", fg='green', bold=True))
        click.echo(click.style(
            f"✓ Bad package index: {self.get_package_count()} packages, {self.get_version_count()} versions",
            fg='green', bold=True))


def parse_list_line(line: str) -> Optional[Tuple[str, str]]:
    """
    Parse one line of a bad-package list

    Args:
        line: Raw line from the list file

    Returns:
        (package_name, version) or None for blank, comment and malformed lines
    """
    line = line.strip()
    if not line or line.startswith('#'):
        return None

    package_name, sep, version = line.rpartition('@')
    if not sep or not package_name or not version:
        return None

    return package_name, version


def discover_list_files(lists_dir: Optional[str]) -> List[str]:
    """
    Find every list file in a lists directory

    Args:
        lists_dir: Directory holding list files (may be None or missing)

    Returns:
        Sorted list of file paths; empty if the directory does not exist
    """
    if not lists_dir:
        return []

    directory = Path(lists_dir)
    if not directory.is_dir():
        return []

    return [str(path) for path in sorted(directory.iterdir())
            if path.is_file() and not path.name.startswith('.')]


def build_index(list_paths: Iterable[str]) -> BadPackageIndex:
    """
    Build a fresh index from list files

    Args:
        list_paths: Paths in load order

    Returns:
        Loaded BadPackageIndex
    """
    index = BadPackageIndex()
    index.load_lists(list_paths)
    return index


def _version_sort_key(version: str):
    try:
        return (0, Version.coerce(version), version)
    except ValueError:
        return (1, version)


def sort_versions(versions: Iterable[str]) -> List[str]:
    """
    Order version strings semantically where possible

    Versions that cannot be coerced to semver sort after the others,
    in plain string order.
    """
    return sorted(versions, key=_version_sort_key)
