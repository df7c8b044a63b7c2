"""Core components: bad-package index, matching, scan state and reporting"""

from .bad_package_index import BadPackageIndex, build_index, discover_list_files
from .list_validator import ListValidator, validate_list_file
from .matcher import find_matches
from .models import Finding, ScanResult
from .report_engine import ReportEngine
from .scan_state import load_scan_state, needs_scan, normalize_path, save_scan_state

__all__ = [
    'Finding',
    'ScanResult',
    'BadPackageIndex',
    'build_index',
    'discover_list_files',
    'find_matches',
    'load_scan_state',
    'save_scan_state',
    'needs_scan',
    'normalize_path',
    'ReportEngine',
    'ListValidator',
    'validate_list_file',
]
