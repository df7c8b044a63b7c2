"""Configuration file loading, defaults and scan interval parsing"""

import json
import os
import re
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import List, Optional

import click


DEFAULT_INTERVAL = "12h"
DEFAULT_INTERVAL_SECONDS = 12 * 60 * 60

EXAMPLE_LIST_NAME = "npm-malicious.txt"
EXAMPLE_LIST_CONTENT = """# Example bad package list
# Format: package@version (one per line)
# Lines starting with # are comments

voip-callkit@1.0.2
voip-callkit@1.0.3
eslint-config-teselagen@6.1.7
@rxap/ngx-bootstrap@19.0.3
"""

# Durations: 12h, 1h30m, 90s, 250ms
DURATION_PART_PATTERN = re.compile(r'(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)')
DURATION_UNITS = {
    'ns': 1e-9,
    'us': 1e-6,
    'µs': 1e-6,
    'ms': 1e-3,
    's': 1,
    'm': 60,
    'h': 3600,
}


class ConfigError(Exception):
    """Raised when a configuration file exists but cannot be used"""


def default_base_dir() -> Path:
    """Directory holding config, lists and state (~/.dewormer)"""
    return Path.home() / '.dewormer'


@dataclass
class ScanConfig:
    """Settings for one scanner instance"""

    scan_paths: List[str] = field(default_factory=list)
    bad_package_lists: List[str] = field(default_factory=list)
    bad_package_lists_dir: Optional[str] = None
    state_file: Optional[str] = None
    scan_interval: str = DEFAULT_INTERVAL
    skip_dirs: List[str] = field(default_factory=list)

    @classmethod
    def defaults(cls, base_dir: Optional[Path] = None) -> 'ScanConfig':
        """
        Build the default configuration rooted at base_dir

        Args:
            base_dir: Dewormer home directory (defaults to ~/.dewormer)

        Returns:
            ScanConfig with default paths
        """
        base_dir = Path(base_dir) if base_dir else default_base_dir()
        lists_dir = base_dir / 'bad_package_lists'
        return cls(
            scan_paths=[str(Path.home() / 'projects')],
            bad_package_lists=[str(lists_dir / EXAMPLE_LIST_NAME)],
            bad_package_lists_dir=str(lists_dir),
            state_file=str(base_dir / 'scan_state.json'),
            scan_interval=DEFAULT_INTERVAL,
        )

    @classmethod
    def from_dict(cls, data: dict, base_dir: Optional[Path] = None) -> 'ScanConfig':
        """
        Build a configuration from parsed JSON

        Missing optional keys fall back to the defaults for base_dir.

        Raises:
            ConfigError: If a value has the wrong type
        """
        if not isinstance(data, dict):
            raise ConfigError("config must be a JSON object")

        defaults = cls.defaults(base_dir)
        config = cls(
            scan_paths=_string_list(data, 'scan_paths', []),
            bad_package_lists=_string_list(data, 'bad_package_lists', []),
            bad_package_lists_dir=_optional_string(data, 'bad_package_lists_dir', defaults.bad_package_lists_dir),
            state_file=_optional_string(data, 'state_file', defaults.state_file),
            scan_interval=_optional_string(data, 'scan_interval', DEFAULT_INTERVAL) or DEFAULT_INTERVAL,
            skip_dirs=_string_list(data, 'skip_dirs', []),
        )
        return config.expanded()

    def expanded(self) -> 'ScanConfig':
        """Return a copy with ~ expanded in every path"""
        return ScanConfig(
            scan_paths=[os.path.expanduser(p) for p in self.scan_paths],
            bad_package_lists=[os.path.expanduser(p) for p in self.bad_package_lists],
            bad_package_lists_dir=os.path.expanduser(self.bad_package_lists_dir) if self.bad_package_lists_dir else None,
            state_file=os.path.expanduser(self.state_file) if self.state_file else None,
            scan_interval=self.scan_interval,
            skip_dirs=list(self.skip_dirs),
        )

    def interval_seconds(self) -> float:
        """Scan interval in seconds, falling back to 12h when invalid"""
        try:
            return parse_interval(self.scan_interval)
        except ValueError as e:
            click.echo(click.style(
                f"⚠️  Warning: Invalid scan interval, defaulting to {DEFAULT_INTERVAL}: {e}",
                fg='yellow'), err=True)
            return DEFAULT_INTERVAL_SECONDS

    def to_dict(self) -> dict:
        return asdict(self)


def _string_list(data: dict, key: str, default: List[str]) -> List[str]:
    value = data.get(key, default)
    if value is None:
        return list(default)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"'{key}' must be a list of strings")
    return list(value)


def _optional_string(data: dict, key: str, default: Optional[str]) -> Optional[str]:
    value = data.get(key, default)
    if value is not None and not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string")
    return value


def parse_interval(value: str) -> float:
    """
    Parse a duration string such as "1h30m" into seconds

    Args:
        value: Duration such as "12h", "1h30m" or "90s"

    Returns:
        Duration in seconds

    Raises:
        ValueError: If the string is not a positive duration
    """
    text = value.strip() if value else ''
    if not text:
        raise ValueError("empty duration")

    position = 0
    total = 0.0
    for match in DURATION_PART_PATTERN.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * DURATION_UNITS[match.group(2)]
        position = match.end()

    if position != len(text):
        raise ValueError(f"invalid duration {value!r}")
    if total <= 0:
        raise ValueError(f"duration must be positive: {value!r}")

    return total


def default_config_path(base_dir: Optional[Path] = None) -> Path:
    """Default location of the config file"""
    return (Path(base_dir) if base_dir else default_base_dir()) / 'config.json'


def load_config(config_path: str, base_dir: Optional[Path] = None) -> ScanConfig:
    """
    Load a configuration file

    Args:
        config_path: Path to JSON config
        base_dir: Dewormer home used for default paths

    Returns:
        Loaded ScanConfig

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(f"could not read {config_path}: {e}") from e
    except ValueError as e:
        raise ConfigError(f"invalid JSON in {config_path}: {e}") from e

    return ScanConfig.from_dict(data, base_dir=base_dir)


def create_default_config(config_path: str, base_dir: Optional[Path] = None) -> ScanConfig:
    """
    Write a default config file and an example bad package list

    An existing example list is left untouched.

    Args:
        config_path: Where to write the config
        base_dir: Dewormer home used for default paths

    Returns:
        The default ScanConfig that was written
    """
    config = ScanConfig.defaults(base_dir)

    lists_dir = Path(config.bad_package_lists_dir)
    lists_dir.mkdir(parents=True, exist_ok=True)

    example_list = lists_dir / EXAMPLE_LIST_NAME
    if not example_list.exists():
        example_list.write_text(EXAMPLE_LIST_CONTENT, encoding='utf-8')

    config_file = Path(config_path)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(config_file, 'w', encoding='utf-8') as f:
        json.dump(config.to_dict(), f, indent=2)

    return config
