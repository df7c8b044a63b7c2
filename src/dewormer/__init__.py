"""
Dewormer

Scans project trees for dependencies that appear on known-malicious package lists
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("dewormer")
except PackageNotFoundError:
    # Fallback for development checkouts
    __version__ = "0.0.0-dev"

from . import core
from . import readers

__all__ = ['core', 'readers', '__version__']
