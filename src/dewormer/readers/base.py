"""Base reader interface for dependency manifest formats"""

from abc import ABC, abstractmethod
from typing import Dict


class ManifestReadError(Exception):
    """Raised when a manifest file cannot be read or parsed"""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class ManifestReader(ABC):
    """
    Base class for manifest format readers

    Each reader is responsible for:
    1. Recognising the file names it understands
    2. Extracting a package name -> version mapping from one file

    Readers never touch the bad-package index or the scan state; matching
    and bookkeeping belong to the scanner.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Return a human-friendly reader name

        Returns:
            Reader name (usually the file name it parses)
        """
        pass

    @abstractmethod
    def supports(self, filename: str) -> bool:
        """
        Check whether this reader can parse a file with the given name

        Args:
            filename: Base name of the file (no directory part)

        Returns:
            True if supported, False otherwise
        """
        pass

    @abstractmethod
    def read_dependencies(self, path: str) -> Dict[str, str]:
        """
        Read the file at path and return its declared dependencies

        Args:
            path: Path to the manifest file

        Returns:
            Dictionary mapping package names to versions

        Raises:
            ManifestReadError: If the file is unreadable or malformed
        """
        pass

    def _read_text(self, path: str) -> str:
        """Read a whole file as UTF-8 text, wrapping I/O failures"""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestReadError(path, f"read file: {e}") from e

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
