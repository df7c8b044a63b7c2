"""Manifest readers, one per dependency file format"""

from typing import Iterable, List, Optional

from .base import ManifestReader, ManifestReadError
from .maven_reader import GradleLockfileReader, PomReader
from .npm_reader import PackageLockReader, YarnLockReader

__all__ = [
    'ManifestReader',
    'ManifestReadError',
    'PackageLockReader',
    'YarnLockReader',
    'PomReader',
    'GradleLockfileReader',
    'DEFAULT_READERS',
    'default_readers',
    'select_reader',
]

# Readers in priority order: when several support the same file name the
# first one listed wins.
DEFAULT_READERS = (
    PackageLockReader,
    PomReader,
    YarnLockReader,
    GradleLockfileReader,
)


def default_readers() -> List[ManifestReader]:
    """
    Instantiate the default readers in priority order

    Returns:
        List of reader instances
    """
    return [reader_class() for reader_class in DEFAULT_READERS]


def select_reader(filename: str, readers: Iterable[ManifestReader]) -> Optional[ManifestReader]:
    """
    Pick the first reader that supports a file name

    Args:
        filename: Base name of the file
        readers: Readers in priority order

    Returns:
        Matching reader or None if no reader supports the file
    """
    for reader in readers:
        if reader.supports(filename):
            return reader
    return None
