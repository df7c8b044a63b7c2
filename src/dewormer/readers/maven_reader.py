"""Readers for Maven and Gradle build files"""

import re
from typing import Dict, Optional
from xml.etree import ElementTree as ET

from .base import ManifestReader, ManifestReadError


POM_NAMESPACE = '{http://maven.apache.org/POM/4.0.0}'

# Gradle lockfile format:
# group:artifact:version=classpath,config1,config2
GRADLE_LOCK_PATTERN = re.compile(r'^([^:=\s]+):([^:=\s]+):([^:=\s]+)=')


def _child_text(element: ET.Element, tag: str, namespace: str) -> Optional[str]:
    child = element.find(f"{namespace}{tag}")
    if child is None or child.text is None:
        return None
    return child.text.strip()


class PomReader(ManifestReader):
    """
    Reader for Maven pom.xml files

    Only the project's own ``<dependencies>`` block is read; dependency
    management and plugin dependencies are not declarations of the project.
    Works with and without the POM namespace.
    """

    @property
    def name(self) -> str:
        return 'pom.xml'

    def supports(self, filename: str) -> bool:
        return filename == 'pom.xml'

    def read_dependencies(self, path: str) -> Dict[str, str]:
        content = self._read_text(path)

        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise ManifestReadError(path, f"invalid XML: {e}") from e

        namespace = POM_NAMESPACE if root.tag.startswith(POM_NAMESPACE) else ''

        deps: Dict[str, str] = {}
        for dependency in root.findall(f"{namespace}dependencies/{namespace}dependency"):
            version = _child_text(dependency, 'version', namespace)
            if not version:
                continue

            group_id = _child_text(dependency, 'groupId', namespace) or ''
            artifact_id = _child_text(dependency, 'artifactId', namespace) or ''
            # Maven artifact format: groupId:artifactId
            deps[f"{group_id}:{artifact_id}"] = version

        return deps


class GradleLockfileReader(ManifestReader):
    """Reader for gradle.lockfile files (Gradle 7+ dependency locking)"""

    @property
    def name(self) -> str:
        return 'gradle.lockfile'

    def supports(self, filename: str) -> bool:
        return filename == 'gradle.lockfile'

    def read_dependencies(self, path: str) -> Dict[str, str]:
        content = self._read_text(path)

        deps: Dict[str, str] = {}
        for line in content.splitlines():
            line = line.strip()
            if not line or line.startswith('#'):
                continue

            match = GRADLE_LOCK_PATTERN.match(line)
            if match:
                group_id, artifact_id, version = match.groups()
                deps[f"{group_id}:{artifact_id}"] = version

        return deps
