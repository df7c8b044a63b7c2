"""Readers for npm and yarn lockfiles"""

import json
import re
from typing import Dict

from .base import ManifestReader, ManifestReadError


CONTAINER_PREFIX = 'node_modules/'


class PackageLockReader(ManifestReader):
    """
    Reader for npm package-lock.json files

    Supports lockfileVersion 2/3 (flat ``packages`` object) and falls back to
    the nested ``dependencies`` tree of lockfileVersion 1.
    """

    @property
    def name(self) -> str:
        return 'package-lock.json'

    def supports(self, filename: str) -> bool:
        return filename == 'package-lock.json'

    def read_dependencies(self, path: str) -> Dict[str, str]:
        content = self._read_text(path)

        try:
            lock_data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ManifestReadError(path, f"invalid JSON: {e}") from e
        except RecursionError as e:
            raise ManifestReadError(path, "JSON nested too deeply") from e

        if not isinstance(lock_data, dict):
            raise ManifestReadError(path, "lockfile is not a JSON object")

        deps: Dict[str, str] = {}

        packages = lock_data.get('packages')
        if isinstance(packages, dict):
            for package_path, package_info in packages.items():
                if not package_path:  # Root project
                    continue
                if not isinstance(package_info, dict):
                    continue
                package_name = self._strip_container(package_path)
                version = package_info.get('version')
                if version:
                    deps[package_name] = str(version)

        elif isinstance(lock_data.get('dependencies'), dict):
            try:
                self._extract_lock_v1_dependencies(lock_data['dependencies'], deps)
            except RecursionError as e:
                raise ManifestReadError(path, "dependency tree nested too deeply") from e

        return deps

    @staticmethod
    def _strip_container(package_path: str) -> str:
        """Remove a single leading node_modules/ segment from a package path"""
        if package_path.startswith(CONTAINER_PREFIX):
            return package_path[len(CONTAINER_PREFIX):]
        return package_path

    def _extract_lock_v1_dependencies(self, deps: dict, output: dict, prefix: str = ""):
        """
        Recursively extract dependencies from npm lock v1 format

        Nested packages are named ``parent/node_modules/child`` so they line up
        with the path form used by newer lockfiles.

        Args:
            deps: Dependencies object from lock file
            output: Output dictionary to populate
            prefix: Package name prefix for nested dependencies
        """
        for name, info in deps.items():
            if not isinstance(info, dict):
                continue
            full_name = f"{prefix}{name}"
            version = info.get('version')
            if version:
                output[full_name] = str(version)
            if isinstance(info.get('dependencies'), dict):
                self._extract_lock_v1_dependencies(
                    info['dependencies'], output, f"{full_name}/{CONTAINER_PREFIX}")


# Entry header: "lodash@^4.17.0, lodash@^4.17.1:" or '"@scope/pkg@^1.0.0":'
YARN_HEADER_PATTERN = re.compile(r'^"?(@?[^@"\s,]+)@')
YARN_VERSION_PATTERN = re.compile(r'^\s+version:?\s+"?([^"\s]+)"?')


class YarnLockReader(ManifestReader):
    """
    Reader for classic (v1) yarn.lock files

    Yarn lock format:
        package-name@^1.0.0, package-name@^1.2.0:
          version "1.2.3"
          resolved "..."
    """

    @property
    def name(self) -> str:
        return 'yarn.lock'

    def supports(self, filename: str) -> bool:
        return filename == 'yarn.lock'

    def read_dependencies(self, path: str) -> Dict[str, str]:
        content = self._read_text(path)

        deps: Dict[str, str] = {}
        current_package = None

        for line in content.splitlines():
            if not line.strip() or line.lstrip().startswith('#'):
                continue

            # Unindented lines start a new entry
            if not line[0].isspace():
                current_package = None
                if line.rstrip().endswith(':'):
                    header_match = YARN_HEADER_PATTERN.match(line)
                    if header_match:
                        current_package = header_match.group(1)
                continue

            if current_package:
                version_match = YARN_VERSION_PATTERN.match(line)
                if version_match:
                    deps[current_package] = version_match.group(1)
                    current_package = None

        return deps
