"""Data models for scan findings and cycle results"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List


@dataclass
class Finding:
    """One dependency that matched a bad-package list entry"""

    package_name: str           # Package identifier (npm name or group:artifact)
    version: str                # Exact version found in the manifest
    file_path: str              # Manifest the dependency was read from
    list_name: str              # Bad-package list that contains the entry

    reader: Optional[str] = None  # Reader that extracted the dependency

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        result = {
            'package_name': self.package_name,
            'version': self.version,
            'file_path': self.file_path,
            'list_name': self.list_name,
        }

        if self.reader:
            result['reader'] = self.reader

        return result

    def __str__(self) -> str:
        return f"{self.package_name}@{self.version} in {self.file_path} (matched: {self.list_name})"


@dataclass
class ScanResult:
    """Outcome of one scan cycle"""

    findings: List[Finding] = field(default_factory=list)
    files_scanned: int = 0      # Manifests actually parsed this cycle
    files_skipped: int = 0      # Manifests left alone by the staleness policy
    files_failed: int = 0       # Manifests that could not be parsed
    duration: float = 0.0       # Seconds

    @property
    def findings_count(self) -> int:
        return len(self.findings)
