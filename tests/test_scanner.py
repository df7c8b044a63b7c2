"""Tests for the scan orchestrator, including full scan cycles."""

import io
import json
import os
import time

import pytest

from dewormer.config import ScanConfig
from dewormer.core.scan_state import load_scan_state, normalize_path
from dewormer.notifier import Notifier
from dewormer.readers import (
    DEFAULT_READERS,
    ManifestReader,
    PackageLockReader,
    PomReader,
    default_readers,
    select_reader,
)
from dewormer.scanner import ProgressSpinner, Scanner


class RecordingNotifier(Notifier):
    """Notifier that remembers what it was told."""

    def __init__(self):
        self.calls = []

    def notify(self, count, summary):
        self.calls.append((count, summary))


class AnyLockReader(ManifestReader):
    """Reader that claims every *.lock file and returns fixed dependencies."""

    @property
    def name(self):
        return 'any-lock'

    def supports(self, filename):
        return filename.endswith('.lock')

    def read_dependencies(self, path):
        return {'left-pad': '1.2.3'}


@pytest.fixture
def workspace(tmp_path):
    """Create two scan roots, a bad package list and a state file location."""
    npm_root = tmp_path / 'npm-root' / 'app'
    npm_root.mkdir(parents=True)
    (npm_root / 'package-lock.json').write_text(json.dumps({
        'lockfileVersion': 3,
        'packages': {
            '': {'name': 'app', 'version': '1.0.0'},
            'node_modules/left-pad': {'version': '1.2.3'},
        }
    }), encoding='utf-8')

    maven_root = tmp_path / 'maven-root'
    maven_root.mkdir()
    (maven_root / 'pom.xml').write_text('''<project>
  <dependencies>
    <dependency>
      <groupId>com.example</groupId>
      <artifactId>safe</artifactId>
      <version>1.0.0</version>
    </dependency>
  </dependencies>
</project>''', encoding='utf-8')
    (maven_root / 'README.md').write_text('not a manifest', encoding='utf-8')

    lists_dir = tmp_path / 'lists'
    lists_dir.mkdir()
    bad_list = lists_dir / 'npm-malicious.txt'
    bad_list.write_text("# test list\nleft-pad@1.2.3\n", encoding='utf-8')

    # Lists and manifests predate any scan
    past = time.time_ns() - 60 * 1_000_000_000
    for path in [bad_list, npm_root / 'package-lock.json', maven_root / 'pom.xml']:
        os.utime(path, ns=(past, past))

    config = ScanConfig(
        scan_paths=[str(tmp_path / 'npm-root'), str(maven_root)],
        bad_package_lists=[str(bad_list)],
        bad_package_lists_dir=None,
        state_file=str(tmp_path / 'state' / 'scan_state.json'),
    )
    return tmp_path, config


def make_scanner(config, **kwargs):
    return Scanner(config, notifier=RecordingNotifier(), **kwargs)


def test_default_reader_order():
    """Test that readers are registered in a fixed priority order."""
    names = [reader.name for reader in default_readers()]

    assert names == ['package-lock.json', 'pom.xml', 'yarn.lock', 'gradle.lockfile']
    assert len(DEFAULT_READERS) == 4


def test_select_reader_first_match_wins():
    """Test that overlapping readers are resolved by registration order."""
    custom = AnyLockReader()
    yarn_first = default_readers()
    custom_first = [custom] + default_readers()

    assert select_reader('yarn.lock', yarn_first).name == 'yarn.lock'
    assert select_reader('yarn.lock', custom_first) is custom
    assert select_reader('package.json', yarn_first) is None


def test_first_cycle_then_skip(workspace):
    """Test a full cycle followed by an immediate cycle with nothing changed."""
    tmp_path, config = workspace
    scanner = make_scanner(config)

    first = scanner.run_cycle()

    assert first.files_scanned == 2
    assert len(first.findings) == 1
    finding = first.findings[0]
    assert finding.package_name == 'left-pad'
    assert finding.version == '1.2.3'
    assert finding.list_name == 'npm-malicious.txt'
    assert finding.reader == 'package-lock.json'
    assert finding.file_path.endswith(os.path.join('app', 'package-lock.json'))

    second = scanner.run_cycle()

    assert second.files_scanned == 0
    assert second.files_skipped == 2
    assert second.findings == []

    assert scanner.notifier.calls[0][0] == 1
    assert scanner.notifier.calls[1][0] == 0


def test_state_persisted_with_normalized_keys(workspace):
    """Test that every scanned file is recorded under its absolute path."""
    tmp_path, config = workspace

    make_scanner(config).run_cycle()

    state = load_scan_state(config.state_file)
    assert set(state) == {
        normalize_path(str(tmp_path / 'npm-root' / 'app' / 'package-lock.json')),
        normalize_path(str(tmp_path / 'maven-root' / 'pom.xml')),
    }


def test_changed_manifest_is_rescanned(workspace):
    """Test that touching a manifest after a scan makes it scanned again."""
    tmp_path, config = workspace
    scanner = make_scanner(config)
    scanner.run_cycle()

    future = time.time_ns() + 60 * 1_000_000_000
    os.utime(tmp_path / 'maven-root' / 'pom.xml', ns=(future, future))

    result = scanner.run_cycle()

    assert result.files_scanned == 1
    assert result.files_skipped == 1
    assert result.findings == []


def test_changed_list_rescans_everything(workspace):
    """Test that a newer bad package list forces every manifest to be rescanned."""
    tmp_path, config = workspace
    scanner = make_scanner(config)
    scanner.run_cycle()

    bad_list = tmp_path / 'lists' / 'npm-malicious.txt'
    bad_list.write_text("left-pad@1.2.3\ncom.example:safe@1.0.0\n", encoding='utf-8')
    future = time.time_ns() + 60 * 1_000_000_000
    os.utime(bad_list, ns=(future, future))

    result = scanner.run_cycle()

    assert result.files_scanned == 2
    assert sorted(f.package_name for f in result.findings) == ['com.example:safe', 'left-pad']


def test_unparsable_manifest_is_marked_scanned(workspace):
    """Test that a parse failure is counted and not retried while unchanged."""
    tmp_path, config = workspace
    broken = tmp_path / 'maven-root' / 'nested'
    broken.mkdir()
    (broken / 'pom.xml').write_text('<project><dependencies>', encoding='utf-8')
    scanner = make_scanner(config)

    first = scanner.run_cycle()

    assert first.files_scanned == 3
    assert first.files_failed == 1
    assert len(first.findings) == 1

    second = scanner.run_cycle()

    assert second.files_scanned == 0
    assert second.files_failed == 0


def test_missing_root_is_skipped(workspace, capsys):
    """Test that a missing root only skips that root."""
    tmp_path, config = workspace
    config.scan_paths = [str(tmp_path / 'does-not-exist')] + config.scan_paths

    result = make_scanner(config).run_cycle()

    assert result.files_scanned == 2
    assert 'Scan path does not exist' in capsys.readouterr().err


def test_missing_list_does_not_abort(workspace):
    """Test that an unreadable list is skipped and the scan continues."""
    tmp_path, config = workspace
    config.bad_package_lists = [str(tmp_path / 'missing.txt')] + config.bad_package_lists

    result = make_scanner(config).run_cycle()

    assert len(result.findings) == 1


def test_lists_directory_is_loaded(workspace):
    """Test that lists found in the lists directory are loaded once."""
    tmp_path, config = workspace
    (tmp_path / 'lists' / 'maven.txt').write_text("com.example:safe@1.0.0\n", encoding='utf-8')
    config.bad_package_lists_dir = str(tmp_path / 'lists')
    scanner = make_scanner(config)

    names = [os.path.basename(p) for p in scanner.list_files()]
    result = scanner.run_cycle()

    assert names == ['npm-malicious.txt', 'maven.txt']
    assert sorted(f.list_name for f in result.findings) == ['maven.txt', 'npm-malicious.txt']


def test_skip_dirs_are_pruned(workspace):
    """Test that configured directory names are not walked."""
    tmp_path, config = workspace
    vendored = tmp_path / 'npm-root' / 'node_modules' / 'dep'
    vendored.mkdir(parents=True)
    (vendored / 'package-lock.json').write_text('{"packages": {}}', encoding='utf-8')
    config.skip_dirs = ['node_modules']

    result = make_scanner(config).run_cycle()

    assert result.files_scanned == 2


def test_no_state_file_rescans(workspace):
    """Test that without a state file every cycle scans everything."""
    tmp_path, config = workspace
    config.state_file = None
    scanner = make_scanner(config)

    scanner.run_cycle()
    second = scanner.run_cycle()

    assert second.files_scanned == 2
    assert not (tmp_path / 'state').exists()


def test_state_save_failure_still_reports(workspace, capsys):
    """Test that a state write failure is logged and findings still reported."""
    tmp_path, config = workspace
    blocker = tmp_path / 'blocker'
    blocker.write_text('a file, not a directory', encoding='utf-8')
    config.state_file = str(blocker / 'scan_state.json')
    scanner = make_scanner(config)

    result = scanner.run_cycle()

    assert len(result.findings) == 1
    assert scanner.notifier.calls == [(1, "Found 1 infected dependencies! Check logs for details.")]
    assert 'Error saving scan state' in capsys.readouterr().err


def test_custom_reader_registry(workspace):
    """Test that the scanner uses exactly the readers it is given."""
    tmp_path, config = workspace
    (tmp_path / 'maven-root' / 'deps.lock').write_text('', encoding='utf-8')

    result = make_scanner(config, readers=[AnyLockReader(), PomReader()]).run_cycle()

    assert result.files_scanned == 2
    assert [f.reader for f in result.findings] == ['any-lock']


def test_report_file_written(workspace):
    """Test that a JSON report is written after the cycle."""
    tmp_path, config = workspace
    report_file = tmp_path / 'report.json'

    make_scanner(config, report_file=str(report_file)).run_cycle()

    report = json.loads(report_file.read_text(encoding='utf-8'))
    assert report['total_findings'] == 1
    assert report['files_scanned'] == 2
    assert report['lists'] == ['npm-malicious.txt']


def test_run_forever_sleeps_between_cycles(workspace):
    """Test the periodic loop with an injected sleep."""
    tmp_path, config = workspace
    scanner = make_scanner(config, readers=[PackageLockReader()])
    sleeps = []

    last = scanner.run_forever(30.0, max_cycles=3, sleep=sleeps.append)

    assert sleeps == [30.0, 30.0]
    assert len(scanner.notifier.calls) == 3
    assert last.files_scanned == 0


class ExplodingReader(ManifestReader):
    """Reader that fails with an unexpected error type."""

    @property
    def name(self):
        return 'exploding'

    def supports(self, filename):
        return filename == 'pom.xml'

    def read_dependencies(self, path):
        raise ValueError("unexpected structure")


def test_deeply_nested_lockfile_does_not_abort_cycle(workspace, capsys):
    """Test that an undecodably deep lockfile is counted as failed and the cycle completes."""
    tmp_path, config = workspace
    broken = tmp_path / 'npm-root' / 'a-broken'
    broken.mkdir()
    (broken / 'package-lock.json').write_text('[' * 200000 + ']' * 200000, encoding='utf-8')

    scanner = make_scanner(config)
    result = scanner.run_cycle()

    assert result.files_scanned == 3
    assert result.files_failed == 1
    assert [f.package_name for f in result.findings] == ['left-pad']
    assert scanner.notifier.calls[0][0] == 1
    assert normalize_path(str(broken / 'package-lock.json')) in load_scan_state(config.state_file)
    assert 'nested too deeply' in capsys.readouterr().err


def test_unexpected_reader_error_is_a_failed_parse(workspace, capsys):
    """Test that any exception from a reader is logged and the cycle continues."""
    tmp_path, config = workspace

    scanner = make_scanner(config, readers=[PackageLockReader(), ExplodingReader()])
    result = scanner.run_cycle()

    assert result.files_scanned == 2
    assert result.files_failed == 1
    assert len(result.findings) == 1
    assert len(load_scan_state(config.state_file)) == 2
    err = capsys.readouterr().err
    assert 'exploding reader failed: ValueError: unexpected structure' in err


class FakeTerminal(io.StringIO):
    def isatty(self):
        return True


def test_spinner_piped_output_prints_each_path():
    """Test that without a terminal every manifest gets its own line."""
    stream = io.StringIO()
    spinner = ProgressSpinner(stream=stream)

    spinner.update('/repo/a/package-lock.json')
    spinner.update('/repo/b/pom.xml')
    spinner.clear()

    assert stream.getvalue().splitlines() == [
        '  scanning /repo/a/package-lock.json',
        '  scanning /repo/b/pom.xml',
    ]


def test_spinner_terminal_keeps_path_tail():
    """Test that long paths are shortened from the left on a terminal."""
    stream = FakeTerminal()
    spinner = ProgressSpinner(stream=stream)

    spinner.update('/very/long' * 20 + '/app/package-lock.json')

    line = stream.getvalue()
    assert line.startswith('\r')
    assert '[1] ...' in line
    assert '/app/package-lock.json' in line
    assert '/very/long' * 20 not in line

    spinner.clear()
    assert stream.getvalue().endswith('\r')


def test_spinner_disabled_writes_nothing():
    stream = FakeTerminal()
    spinner = ProgressSpinner(enabled=False, stream=stream)

    spinner.update('/repo/package-lock.json')
    spinner.clear()

    assert stream.getvalue() == ''
