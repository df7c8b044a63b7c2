"""
Persisted scan state

Maps absolute manifest paths to the instant (nanoseconds since epoch) they
were last scanned, so unchanged files can be skipped on the next cycle.
"""

import json
import os
from typing import Dict, Optional, Tuple


ScanState = Dict[str, int]


def normalize_path(path: str) -> str:
    """Return an absolute, lexically cleaned form of path"""
    return os.path.normpath(os.path.abspath(path))


def load_scan_state(path: Optional[str]) -> ScanState:
    """
    Load scan state from a JSON file

    A missing, unreadable or malformed file yields an empty state, as if
    nothing had ever been scanned.

    Args:
        path: State file path (empty or None means no persistence)

    Returns:
        State with all keys normalized
    """
    if not path:
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            raw_state = json.load(f)
    except (OSError, ValueError):
        return {}

    if not isinstance(raw_state, dict):
        return {}

    state: ScanState = {}
    for key, value in raw_state.items():
        # bool is an int subclass but never a valid timestamp
        if not isinstance(value, int) or isinstance(value, bool):
            continue
        state[normalize_path(key)] = value

    return state


def save_scan_state(path: Optional[str], state: ScanState):
    """
    Write scan state atomically

    The JSON is written to a temporary sibling file and renamed over the
    destination, so an interrupted write never leaves a truncated state file.

    Args:
        path: State file path (empty or None is a no-op)
        state: State to persist

    Raises:
        OSError: If the file cannot be written
    """
    if not path:
        return

    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    tmp_path = f"{path}.tmp"
    try:
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(state, f, indent=2, sort_keys=True)
        os.replace(tmp_path, path)
    except OSError:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def needs_scan(path: str, file_mod: int, latest_list_mod: int,
               state: ScanState) -> Tuple[str, Optional[int], bool]:
    """
    Decide whether a manifest must be (re)scanned

    A file is scanned when it has never been scanned, when it changed after
    the last scan, or when any bad-package list changed after the last scan.

    Args:
        path: Manifest path (normalized before lookup)
        file_mod: Manifest modification time in nanoseconds
        latest_list_mod: Newest list modification time in nanoseconds
        state: Current scan state

    Returns:
        (normalized state key, last scan time or None, whether to scan)
    """
    key = normalize_path(path)
    last_scan = state.get(key)

    if last_scan is None:
        return key, None, True

    need = file_mod > last_scan or latest_list_mod > last_scan
    return key, last_scan, need
