"""Exact-match engine comparing extracted dependencies to the bad-package index"""

from typing import Dict, List, Optional

from .bad_package_index import BadPackageIndex
from .models import Finding


def find_matches(dependencies: Dict[str, str], index: BadPackageIndex,
                 file_path: str, reader_name: Optional[str] = None) -> List[Finding]:
    """
    Flag dependencies whose exact name and version appear in the index

    No range or prefix matching is done: ``1.2.3`` only matches ``1.2.3``.

    Args:
        dependencies: Package name -> version read from one manifest
        index: Loaded bad-package index
        file_path: Manifest the dependencies came from
        reader_name: Name of the reader that produced the dependencies

    Returns:
        Findings ordered by package name
    """
    findings = []

    for package_name in sorted(dependencies):
        version = dependencies[package_name]
        list_name = index.lookup(package_name, version)
        if list_name is None:
            continue

        findings.append(Finding(
            package_name=package_name,
            version=version,
            file_path=file_path,
            list_name=list_name,
            reader=reader_name,
        ))

    return findings
