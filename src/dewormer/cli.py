#!/usr/bin/env python3
"""
Dewormer: malicious dependency scanner

CLI usage:
    dewormer                       # Scan now, then every scan_interval
    dewormer --once --dir ~/code   # Single scan of one directory
    dewormer --list-bad-packages   # Show the loaded bad-package index
"""

import os
import sys
from pathlib import Path
from typing import Optional

import click

from dewormer.config import (
    ConfigError,
    ScanConfig,
    create_default_config,
    default_config_path,
    load_config,
    parse_interval,
)
from dewormer.core import validate_list_file
from dewormer.notifier import ConsoleNotifier, DesktopNotifier
from dewormer.readers import default_readers
from dewormer.scanner import ProgressSpinner, Scanner


def apply_overrides(config: ScanConfig, scan_dirs: tuple, lists_dir: Optional[str],
                    state_file: Optional[str], interval: Optional[str]) -> ScanConfig:
    """
    Apply command line overrides on top of the loaded configuration

    Returns:
        New ScanConfig with ~ expanded
    """
    if scan_dirs:
        config.scan_paths = list(scan_dirs)
    if lists_dir:
        config.bad_package_lists_dir = lists_dir
    if state_file:
        config.state_file = state_file
    if interval:
        config.scan_interval = interval
    return config.expanded()


def print_readers():
    """Print registered readers in priority order"""
    click.echo(click.style("📄 Supported manifest files (priority order):", fg='cyan', bold=True))
    for position, reader in enumerate(default_readers(), 1):
        click.echo(f"  {position}. {click.style(reader.name, fg='green', bold=True)}")


def print_bad_packages(scanner: Scanner):
    """Print the bad-package index built from the configured lists"""
    index = scanner.load_index()
    index.print_summary()

    for package_name, entries in index.iter_entries():
        click.echo(f"  {click.style(package_name, fg='red', bold=True)}")
        for version, list_name in entries:
            click.echo(f"    └─ {version} " + click.style(f"({list_name})", dim=True))


@click.command(name="dewormer", help="Scan project trees for known-malicious dependencies")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=str),
    default=None,
    help="Config file (default: ~/.dewormer/config.json)",
)
@click.option(
    "--dir",
    "scan_dirs",
    type=click.Path(file_okay=False, dir_okay=True, path_type=str),
    multiple=True,
    help="Directory to scan (repeatable, overrides scan_paths)",
)
@click.option(
    "--lists-dir",
    type=click.Path(file_okay=False, dir_okay=True, path_type=str),
    default=None,
    help="Directory of bad package lists (overrides bad_package_lists_dir)",
)
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False, path_type=str),
    default=None,
    help="Scan state file (overrides state_file)",
)
@click.option(
    "--interval",
    type=str,
    default=None,
    help="Time between scans, e.g. 12h or 30m (overrides scan_interval)",
)
@click.option("--once", is_flag=True, help="Run a single scan and exit (exit code 1 if threats found)")
@click.option(
    "--output",
    "output_file",
    type=click.Path(writable=True, dir_okay=False, path_type=str),
    default=None,
    help="File to write a JSON report to after each scan",
)
@click.option("--no-notify", is_flag=True, help="Do not raise desktop notifications")
@click.option("--quiet", is_flag=True, help="Do not show per-file progress")
@click.option("--list-readers", is_flag=True, help="List supported manifest files and exit")
@click.option("--list-bad-packages", is_flag=True, help="Display the loaded bad packages and exit")
@click.option("--validate-lists", is_flag=True, help="Validate bad package list files and exit")
def cli(
    config_path: Optional[str],
    scan_dirs: tuple,
    lists_dir: Optional[str],
    state_file: Optional[str],
    interval: Optional[str],
    once: bool,
    output_file: Optional[str],
    no_notify: bool,
    quiet: bool,
    list_readers: bool,
    list_bad_packages: bool,
    validate_lists: bool,
):
    """Dewormer CLI"""

    if list_readers:
        print_readers()
        sys.exit(0)

    config_path = config_path or str(default_config_path())

    if not os.path.exists(config_path):
        create_default_config(config_path, base_dir=Path(config_path).parent)
        click.echo(click.style(f"✓ Created default config at: {config_path}", fg='green', bold=True))
        click.echo("Please edit the config file to add your scan paths and bad package lists.")
        sys.exit(0)

    try:
        config = load_config(config_path, base_dir=Path(config_path).parent)
    except ConfigError as e:
        click.echo(click.style(f"✗ Error: Failed to load config: {e}", fg='red', bold=True), err=True)
        sys.exit(1)

    if interval:
        try:
            parse_interval(interval)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--interval")

    config = apply_overrides(config, scan_dirs, lists_dir, state_file, interval)

    scanner = Scanner(
        config,
        notifier=ConsoleNotifier() if no_notify else DesktopNotifier(),
        spinner=ProgressSpinner(enabled=not quiet),
        report_file=os.path.abspath(output_file) if output_file else None,
    )

    if list_bad_packages:
        print_bad_packages(scanner)
        sys.exit(0)

    if validate_lists:
        list_paths = scanner.list_files()
        if not list_paths:
            click.echo(click.style("⚠️  Warning: No bad package lists configured", fg='yellow'), err=True)
            sys.exit(0)
        results = [validate_list_file(path) for path in list_paths]
        sys.exit(0 if all(results) else 1)

    if once:
        result = scanner.run_cycle()
        sys.exit(1 if result.findings else 0)

    seconds = config.interval_seconds()
    click.echo(click.style(f"🛡️  Dewormer started. Scanning every {config.scan_interval}", fg='cyan', bold=True))

    try:
        scanner.run_forever(seconds)
    except KeyboardInterrupt:
        click.echo("\nStopped.")
        sys.exit(0)


if __name__ == "__main__":
    cli()
