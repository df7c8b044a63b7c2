"""Scan orchestrator: walks scan roots and flags malicious dependencies"""

import os
import sys
import time
from typing import Iterator, List, Optional, Sequence

import click

from dewormer.config import ScanConfig
from dewormer.core import (
    BadPackageIndex,
    ReportEngine,
    ScanResult,
    build_index,
    discover_list_files,
    find_matches,
    load_scan_state,
    needs_scan,
    normalize_path,
    save_scan_state,
)
from dewormer.core.scan_state import ScanState
from dewormer.notifier import ConsoleNotifier, Notifier
from dewormer.readers import ManifestReader, ManifestReadError, default_readers, select_reader


class ProgressSpinner:
    """
    One-line progress display for the manifest currently being read

    On a terminal the line is redrawn in place and long paths keep their
    tail. When output is piped each manifest gets its own line.
    """

    FRAMES = '⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏'
    WIDTH = 100

    def __init__(self, enabled: bool = True, stream=None):
        self.enabled = enabled
        self.stream = stream or sys.stdout
        self.interactive = self.stream.isatty()
        self.count = 0
        self._drawn = 0

    def update(self, path: str):
        """Show that path is being scanned"""
        if not self.enabled:
            return
        self.count += 1

        if not self.interactive:
            click.echo(f"  scanning {path}", file=self.stream)
            return

        label = f"[{self.count}] "
        room = self.WIDTH - len(label) - 2
        if len(path) > room:
            path = "..." + path[-(room - 3):]
        frame = self.FRAMES[self.count % len(self.FRAMES)]
        text = f"{frame} {label}{path}"

        self.stream.write("\r" + click.style(text, dim=True) + " " * max(0, self._drawn - len(text)))
        self.stream.flush()
        self._drawn = len(text)

    def clear(self):
        """Erase the progress line"""
        if not self._drawn:
            return
        self.stream.write("\r" + " " * self._drawn + "\r")
        self.stream.flush()
        self._drawn = 0


class Scanner:
    """
    Runs incremental scan cycles over the configured roots

    Each cycle:
    1. Builds a fresh bad-package index from configured and discovered lists
    2. Loads the scan state
    3. Walks every root, picking the first reader that supports each file
    4. Skips files unchanged since their last scan (unless a list changed)
    5. Matches extracted dependencies against the index
    6. Persists the scan state and reports the findings
    """

    def __init__(self, config: ScanConfig,
                 readers: Optional[Sequence[ManifestReader]] = None,
                 notifier: Optional[Notifier] = None,
                 spinner: Optional[ProgressSpinner] = None,
                 report_file: Optional[str] = None):
        """
        Initialize scanner

        Args:
            config: Scan roots, list sources and state location
            readers: Manifest readers in priority order (defaults to all readers)
            notifier: Receives the cycle summary (defaults to console output)
            spinner: Optional progress spinner
            report_file: Optional path for a JSON report written after each cycle
        """
        self.config = config
        self.readers: List[ManifestReader] = list(readers) if readers is not None else default_readers()
        self.notifier = notifier or ConsoleNotifier()
        self.spinner = spinner or ProgressSpinner(enabled=False)
        self.report_file = report_file
        self.skip_dirs = set(config.skip_dirs)

    def list_files(self) -> List[str]:
        """
        Resolve every bad-package list to load, in load order

        Explicitly configured lists come first, then the files found in the
        lists directory. A file named by both is loaded once, at its first
        position.

        Returns:
            List file paths
        """
        paths = []
        seen = set()
        for path in list(self.config.bad_package_lists) + discover_list_files(self.config.bad_package_lists_dir):
            key = normalize_path(path)
            if key in seen:
                continue
            seen.add(key)
            paths.append(path)
        return paths

    def load_index(self) -> BadPackageIndex:
        """Build this cycle's bad-package index"""
        return build_index(self.list_files())

    def run_cycle(self) -> ScanResult:
        """
        Run one complete scan cycle

        Returns:
            ScanResult with findings and file counters
        """
        start_time = time.monotonic()
        click.echo(click.style("🔍 Starting scan...", fg='cyan', bold=True))

        index = self.load_index()
        index.print_summary()

        state = load_scan_state(self.config.state_file)
        result = ScanResult()

        for root in self.config.scan_paths:
            self.scan_root(root, index, state, result)

        self.spinner.clear()

        try:
            save_scan_state(self.config.state_file, state)
        except OSError as e:
            click.echo(click.style(f"✗ Error saving scan state: {e}", fg='red', bold=True), err=True)

        result.duration = time.monotonic() - start_time
        self.report(result, index)
        return result

    def scan_root(self, root: str, index: BadPackageIndex, state: ScanState, result: ScanResult):
        """
        Scan every supported file below one root

        Args:
            root: Directory to walk
            index: Bad-package index for this cycle
            state: Scan state, updated in place
            result: Cycle result, updated in place
        """
        if not os.path.exists(root):
            click.echo(click.style(f"⚠️  Warning: Scan path does not exist: {root}", fg='yellow'), err=True)
            return

        click.echo(click.style(f"Scanning path: {root}", fg='cyan'))

        for path in self._walk(root):
            reader = select_reader(os.path.basename(path), self.readers)
            if reader is None:
                continue

            try:
                file_mod = os.stat(path).st_mtime_ns
            except OSError:
                continue

            key, _, need = needs_scan(path, file_mod, index.latest_list_mod, state)
            if not need:
                result.files_skipped += 1
                continue

            self.scan_file(path, reader, index, result)
            state[key] = time.time_ns()

    def scan_file(self, path: str, reader: ManifestReader, index: BadPackageIndex, result: ScanResult):
        """
        Read one manifest and record any matches

        A file that cannot be parsed is reported and counts as scanned with no
        dependencies. This holds for any error a reader raises, not only
        ManifestReadError.
        """
        result.files_scanned += 1
        self.spinner.update(path)

        try:
            dependencies = reader.read_dependencies(path)
        except ManifestReadError as e:
            self._read_failed(result, e.path, e.reason)
            return
        except Exception as e:
            self._read_failed(result, path, f"{reader.name} reader failed: {type(e).__name__}: {e}")
            return

        result.findings.extend(find_matches(dependencies, index, path, reader.name))

    def _read_failed(self, result: ScanResult, path: str, reason: str):
        result.files_failed += 1
        self.spinner.clear()
        click.echo(click.style(f"⚠️  Warning: Error reading {path}: {reason}", fg='yellow'), err=True)

    def _walk(self, root: str) -> Iterator[str]:
        """Yield file paths below root in a stable order, ignoring unreadable entries"""
        if os.path.isfile(root):
            yield root
            return

        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if d not in self.skip_dirs)
            for filename in sorted(filenames):
                yield os.path.join(dirpath, filename)

    def report(self, result: ScanResult, index: BadPackageIndex):
        """Print the cycle report, notify, and write the JSON report if requested"""
        report_engine = ReportEngine(result, lists=index.loaded_lists)
        report_engine.print_report()

        if self.report_file:
            if report_engine.save_report(self.report_file):
                click.echo(click.style(f"✓ Report saved to: {self.report_file}", fg='green'))

        self.notifier.notify(report_engine.get_findings_count(), report_engine.summary_message())

    def run_forever(self, interval: float, max_cycles: Optional[int] = None,
                    sleep=time.sleep) -> Optional[ScanResult]:
        """
        Run a cycle now and then again after every interval

        Args:
            interval: Seconds to wait after a cycle finishes
            max_cycles: Stop after this many cycles (None runs until interrupted)
            sleep: Sleep function

        Returns:
            Result of the last cycle that ran
        """
        cycles = 0
        while True:
            result = self.run_cycle()
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                return result
            sleep(interval)
