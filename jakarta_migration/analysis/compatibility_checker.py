# Licensed to the Apache Software Foundation (ASF) under one or more
# contributor license agreements.  See the NOTICE file distributed with
# this work for additional information regarding copyright ownership.
# The ASF licenses this file to You under the Apache License, Version 2.0
# (the "License"); you may not use this file except in compliance with
# the License.  You may obtain a copy of the License at
#
#      https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Binary Compatibility Checking

The analysis engine asks a ``BinaryCompatibilityChecker`` whether an
artifact's modern replacement still provides the classes the legacy one
did. Two implementations are selected when the engine is composed:

- ArchiveCompatibilityChecker: compares class entries of the resolved jars
- UnavailableCompatibilityChecker: always answers ERROR, which the engine
  records as a degraded check instead of failing the run
"""

import zipfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol

from jakarta_migration.analysis.models import (
    Artifact,
    BinaryCompatibilityReport,
    BreakingChange,
    BreakingChangeType,
)
from jakarta_migration.analysis.namespace_classifier import to_modern_name
from jakarta_migration.config import GRADLE_CACHE, MAVEN_REPOSITORY
from jakarta_migration.utils.logging_config import get_logger

logger = get_logger(__name__)


class CompatibilityOutcome(Enum):
    COMPATIBLE = "compatible"
    INCOMPATIBLE = "incompatible"
    ERROR = "error"


@dataclass(frozen=True)
class CompatibilityCheck:
    """Answer of a checker; ``report`` is None when the outcome is ERROR."""
    outcome: CompatibilityOutcome
    report: Optional[BinaryCompatibilityReport] = None
    message: str = ""
    
    @classmethod
    def error(cls, message: str) -> "CompatibilityCheck":
        return cls(CompatibilityOutcome.ERROR, None, message)


class BinaryCompatibilityChecker(Protocol):
    def check(self, old_artifact: Artifact, new_artifact: Artifact) -> CompatibilityCheck:
        ...


class JarResolver:
    """Finds an artifact's jar in the local Gradle cache or Maven repository."""
    
    def __init__(
        self,
        gradle_cache: Optional[Path] = GRADLE_CACHE,
        maven_repository: Optional[Path] = MAVEN_REPOSITORY
    ) -> None:
        self.gradle_cache = gradle_cache
        self.maven_repository = maven_repository
    
    def resolve(self, artifact: Artifact) -> Optional[Path]:
        if artifact.version == "unknown":
            return None
        return self._from_gradle_cache(artifact) or self._from_maven_repository(artifact)
    
    def _from_gradle_cache(self, artifact: Artifact) -> Optional[Path]:
        # files-2.1/<group>/<artifact>/<version>/<sha1>/<artifact>-<version>.jar
        if self.gradle_cache is None:
            return None
        version_dir = self.gradle_cache / artifact.group_id / artifact.artifact_id / artifact.version
        if not version_dir.is_dir():
            return None
        wanted = f"{artifact.artifact_id}-{artifact.version}.jar"
        for jar in sorted(version_dir.glob(f"*/{wanted}")):
            return jar
        return None
    
    def _from_maven_repository(self, artifact: Artifact) -> Optional[Path]:
        if self.maven_repository is None:
            return None
        jar = (
            self.maven_repository.joinpath(*artifact.group_id.split("."))
            / artifact.artifact_id
            / artifact.version
            / f"{artifact.artifact_id}-{artifact.version}.jar"
        )
        return jar if jar.is_file() else None


def list_class_names(jar: Path) -> set[str]:
    """Public top-level and nested class names in a jar (anonymous classes skipped)."""
    names: set[str] = set()
    with zipfile.ZipFile(jar) as archive:
        for entry in archive.namelist():
            if not entry.endswith(".class") or entry.startswith("META-INF/"):
                continue
            simple = entry.rsplit("/", 1)[-1]
            if simple in ("module-info.class", "package-info.class"):
                continue
            if any(part.isdigit() for part in simple[:-len(".class")].split("$")[1:]):
                continue
            names.add(entry[:-len(".class")].replace("/", "."))
    return names


class ArchivePackageInspector:
    """Package names inside an artifact's resolved jar, for the namespace classifier."""
    
    def __init__(self, resolver: Optional[JarResolver] = None) -> None:
        self.resolver = resolver or JarResolver()
    
    def packages(self, artifact: Artifact) -> Optional[set[str]]:
        jar = self.resolver.resolve(artifact)
        if jar is None:
            return None
        try:
            classes = list_class_names(jar)
        except (zipfile.BadZipFile, OSError) as e:
            logger.warning(f"Could not read {jar}: {e}")
            return None
        return {name.rsplit(".", 1)[0] for name in classes if "." in name}


class ArchiveCompatibilityChecker:
    """Compares the class sets of the old and new jar after mapping javax names to jakarta."""
    
    def __init__(self, resolver: Optional[JarResolver] = None) -> None:
        self.resolver = resolver or JarResolver()
    
    def check(self, old_artifact: Artifact, new_artifact: Artifact) -> CompatibilityCheck:
        old_jar = self.resolver.resolve(old_artifact)
        if old_jar is None:
            return CompatibilityCheck.error(f"Could not resolve jar for {old_artifact.coordinate}")
        new_jar = self.resolver.resolve(new_artifact)
        if new_jar is None:
            return CompatibilityCheck.error(f"Could not resolve jar for {new_artifact.coordinate}")
        
        try:
            old_classes = list_class_names(old_jar)
            new_classes = list_class_names(new_jar)
        except (zipfile.BadZipFile, OSError) as e:
            logger.warning(f"Compatibility check {old_artifact.coordinate} -> {new_artifact.coordinate} failed: {e}")
            return CompatibilityCheck.error(str(e))
        
        missing = sorted(
            name for name in old_classes
            if to_modern_name(name) not in new_classes and name not in new_classes
        )
        if not missing:
            return CompatibilityCheck(
                CompatibilityOutcome.COMPATIBLE,
                BinaryCompatibilityReport.compatible(old_artifact, new_artifact),
            )
        
        changes = [
            BreakingChange(
                BreakingChangeType.CLASS_REMOVED,
                name,
                None,
                f"{name} has no counterpart in {new_artifact.coordinate}",
            )
            for name in missing
        ]
        report = BinaryCompatibilityReport.incompatible(old_artifact, new_artifact, changes)
        return CompatibilityCheck(CompatibilityOutcome.INCOMPATIBLE, report, report.summary)


class UnavailableCompatibilityChecker:
    """Stand-in used when no real checker is configured."""
    
    def check(self, old_artifact: Artifact, new_artifact: Artifact) -> CompatibilityCheck:
        return CompatibilityCheck.error("binary compatibility checker unavailable")
