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
Dependency Graph Builder

Turns a project's build descriptor into a DependencyGraph. Maven
``pom.xml`` and Gradle ``build.gradle`` / ``build.gradle.kts`` files are
recognized; any other parser can feed ``build_from_dependencies`` with a
raw dependency list.
"""

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol

from jakarta_migration.analysis.models import Artifact, Dependency, DependencyGraph
from jakarta_migration.errors import DependencyGraphException, ValidationError
from jakarta_migration.utils.logging_config import get_logger

logger = get_logger(__name__)

UNKNOWN = "unknown"

_PROPERTY_REF = re.compile(r"\$\{([^}]+)\}")


@dataclass(frozen=True)
class DeclaredDependency:
    """One dependency exactly as a descriptor declares it."""
    group_id: str
    artifact_id: str
    version: str = UNKNOWN
    scope: str = "compile"
    optional: bool = False


@dataclass
class ParsedDescriptor:
    """What a descriptor parser hands back: the project and its declarations."""
    project: Artifact
    dependencies: list[DeclaredDependency] = field(default_factory=list)
    descriptor_format: str = ""


class DescriptorParser(Protocol):
    """Anything that can read one kind of build descriptor."""
    
    descriptor_format: str
    file_names: tuple[str, ...]
    
    def parse(self, path: Path) -> ParsedDescriptor:
        ...


# ============================================================================
# MAVEN
# ============================================================================

def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _find(el: Optional[ET.Element], tag: str) -> Optional[ET.Element]:
    """Find a direct child by local name, whatever namespace the POM uses."""
    if el is None:
        return None
    for child in el:
        if _local_name(child.tag) == tag:
            return child
    return None


def _findall(el: Optional[ET.Element], tag: str) -> list[ET.Element]:
    if el is None:
        return []
    return [child for child in el if _local_name(child.tag) == tag]


def _findall_children(el: Optional[ET.Element]) -> list[ET.Element]:
    return list(el) if el is not None else []


def _text(el: Optional[ET.Element], tag: str) -> Optional[str]:
    child = _find(el, tag)
    if child is None or child.text is None:
        return None
    text = child.text.strip()
    return text or None


class MavenDescriptorParser:
    """Reads ``pom.xml`` including parent fallback, properties and dependencyManagement."""
    
    descriptor_format = "maven"
    file_names = ("pom.xml",)
    
    def parse(self, path: Path) -> ParsedDescriptor:
        root = ET.parse(path).getroot()
        if _local_name(root.tag) != "project":
            raise ValueError(f"{path.name} has no <project> root element")
        
        parent = _find(root, "parent")
        group_id = _text(root, "groupId") or _text(parent, "groupId") or UNKNOWN
        artifact_id = _text(root, "artifactId") or UNKNOWN
        version = _text(root, "version") or _text(parent, "version") or UNKNOWN
        
        properties = self._collect_properties(root, group_id, artifact_id, version)
        version = self._resolve(version, properties)
        project = Artifact(group_id, artifact_id, version, "compile", False)
        
        managed: dict[str, str] = {}
        management = _find(_find(root, "dependencyManagement"), "dependencies")
        for dep_el in _findall(management, "dependency"):
            g = _text(dep_el, "groupId")
            a = _text(dep_el, "artifactId")
            v = _text(dep_el, "version")
            if g and a and v:
                managed[f"{self._resolve(g, properties)}:{self._resolve(a, properties)}"] = (
                    self._resolve(v, properties)
                )
        
        declared: list[DeclaredDependency] = []
        for dep_el in _findall(_find(root, "dependencies"), "dependency"):
            g = _text(dep_el, "groupId")
            a = _text(dep_el, "artifactId")
            if not g or not a:
                logger.warning(f"Skipping dependency without coordinates in {path}")
                continue
            g = self._resolve(g, properties)
            a = self._resolve(a, properties)
            raw_version = _text(dep_el, "version")
            if raw_version:
                v = self._resolve(raw_version, properties)
            else:
                v = managed.get(f"{g}:{a}", UNKNOWN)
            declared.append(DeclaredDependency(
                group_id=g,
                artifact_id=a,
                version=v,
                scope=_text(dep_el, "scope") or "compile",
                optional=(_text(dep_el, "optional") or "").lower() == "true",
            ))
        
        return ParsedDescriptor(project, declared, self.descriptor_format)
    
    def _collect_properties(
        self,
        root: ET.Element,
        group_id: str,
        artifact_id: str,
        version: str
    ) -> dict[str, str]:
        properties = {
            "project.groupId": group_id,
            "project.artifactId": artifact_id,
            "project.version": version,
            "pom.version": version,
        }
        for prop in _findall_children(_find(root, "properties")):
            if prop.text is not None:
                properties[_local_name(prop.tag)] = prop.text.strip()
        return properties
    
    def _resolve(self, value: str, properties: dict[str, str]) -> str:
        """Substitute ${...} references; anything left unresolved becomes 'unknown'."""
        for _ in range(10):
            if "${" not in value:
                return value
            value = _PROPERTY_REF.sub(lambda m: properties.get(m.group(1), m.group(0)), value)
            if all(ref not in properties for ref in _PROPERTY_REF.findall(value)):
                break
        return UNKNOWN if "${" in value else value


# ============================================================================
# GRADLE
# ============================================================================

GRADLE_SCOPES: dict[str, str] = {
    "implementation": "compile",
    "api": "compile",
    "compile": "compile",
    "compileOnly": "provided",
    "providedCompile": "provided",
    "annotationProcessor": "provided",
    "runtimeOnly": "runtime",
    "runtime": "runtime",
    "testImplementation": "test",
    "testCompileOnly": "test",
    "testRuntimeOnly": "test",
    "testCompile": "test",
}

_GRADLE_DEPENDENCY = re.compile(
    r"^\s*(" + "|".join(GRADLE_SCOPES) + r")\s*\(?\s*['\"]"
    r"([^'\":\s]+):([^'\":\s]+)(?::([^'\":@\s]+))?[^'\"]*['\"]",
    re.MULTILINE,
)
_GRADLE_ASSIGNMENT = re.compile(r"^\s*(?:val\s+|def\s+|ext\.)?(\w+)\s*=\s*['\"]([^'\"]+)['\"]", re.MULTILINE)
_GRADLE_VARIABLE = re.compile(r"\$\{?(\w+)\}?")


class GradleDescriptorParser:
    """Reads string-notation dependencies from Groovy or Kotlin Gradle scripts."""
    
    descriptor_format = "gradle"
    file_names = ("build.gradle.kts", "build.gradle")
    
    def parse(self, path: Path) -> ParsedDescriptor:
        content = path.read_text(encoding="utf-8")
        variables = dict(_GRADLE_ASSIGNMENT.findall(content))
        
        project = Artifact(
            variables.get("group") or UNKNOWN,
            path.parent.resolve().name or UNKNOWN,
            variables.get("version") or UNKNOWN,
            "compile",
            False,
        )
        
        declared: list[DeclaredDependency] = []
        for configuration, g, a, v in _GRADLE_DEPENDENCY.findall(content):
            version = _GRADLE_VARIABLE.sub(lambda m: variables.get(m.group(1), m.group(0)), v) if v else UNKNOWN
            if "$" in version:
                version = UNKNOWN
            declared.append(DeclaredDependency(
                group_id=g,
                artifact_id=a,
                version=version,
                scope=GRADLE_SCOPES[configuration],
            ))
        
        return ParsedDescriptor(project, declared, self.descriptor_format)


# ============================================================================
# GRAPH BUILDER
# ============================================================================

class DependencyGraphBuilder:
    """Detects the descriptor at a project root and builds the dependency graph."""
    
    def __init__(self, parsers: Optional[list[DescriptorParser]] = None) -> None:
        """
        Initialize the builder.
        
        Args:
            parsers: Descriptor parsers in detection order (Maven, then Gradle)
        """
        self.parsers = parsers if parsers is not None else [
            MavenDescriptorParser(),
            GradleDescriptorParser(),
        ]
    
    def detect_descriptor(self, project_root: Path) -> Optional[tuple[DescriptorParser, Path]]:
        """Return the first parser whose descriptor exists under the root."""
        for parser in self.parsers:
            for file_name in parser.file_names:
                candidate = project_root / file_name
                if candidate.is_file():
                    return parser, candidate
        return None
    
    def build_from_project(self, project_root: Path) -> DependencyGraph:
        """
        Build the graph for the project at ``project_root``.
        
        Raises:
            DependencyGraphException: No descriptor found or it could not be parsed.
                No partially built graph is ever returned.
        """
        project_root = Path(project_root)
        if not project_root.is_dir():
            raise DependencyGraphException(f"Project root is not a directory: {project_root}")
        
        detected = self.detect_descriptor(project_root)
        if detected is None:
            raise DependencyGraphException(f"No build file found in project root: {project_root}")
        
        parser, descriptor = detected
        logger.info(f"Detected {parser.descriptor_format} descriptor: {descriptor.name}")
        try:
            parsed = parser.parse(descriptor)
        except (ET.ParseError, OSError, UnicodeDecodeError, ValueError) as e:
            # ValidationError is a ValueError: blank coordinates land here too
            raise DependencyGraphException(
                f"Failed to parse {descriptor.name}: {e}",
                descriptor_format=parser.descriptor_format,
                cause=e,
            ) from e
        
        try:
            graph = self.build_from_dependencies(parsed.project, parsed.dependencies)
        except ValidationError as e:
            raise DependencyGraphException(
                f"Invalid dependency in {descriptor.name}: {e}",
                descriptor_format=parser.descriptor_format,
                cause=e,
            ) from e
        
        logger.info(
            f"Built dependency graph for {parsed.project.identifier}: "
            f"{graph.node_count()} nodes, {graph.edge_count()} edges"
        )
        return graph
    
    def build_from_dependencies(
        self,
        project: Artifact,
        dependencies: list[DeclaredDependency]
    ) -> DependencyGraph:
        """Build a graph rooted at ``project`` from a raw declaration list."""
        graph = DependencyGraph()
        graph.add_node(project)
        for declared in dependencies:
            artifact = Artifact(
                declared.group_id,
                declared.artifact_id,
                declared.version or UNKNOWN,
                declared.scope,
                not declared.optional,
            )
            graph.add_edge(Dependency(project, artifact, declared.scope, declared.optional))
            logger.debug(f"  {project.identifier} -> {artifact.coordinate} ({declared.scope})")
        return graph
