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
Data Models for Dependency Analysis

Value records shared by the graph builder, the classifier, the mapping
service and the analysis engine. Records are frozen and validate their
fields on construction, so an out-of-range score never exists as a value;
use ``errors.validated`` to build one without raising.
"""

from dataclasses import FrozenInstanceError, dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from jakarta_migration.errors import (
    ValidationError,
    require_text,
    require_unit_interval,
    require_non_negative,
)


@dataclass(frozen=True)
class Artifact:
    """
    A versioned, coordinate-identified node of the dependency graph.
    
    Equality and hashing use the coordinate (group, artifact, version) only.
    """
    group_id: str
    artifact_id: str
    version: str
    scope: str = field(default="compile", compare=False)
    transitive: bool = field(default=False, compare=False)
    
    def __post_init__(self) -> None:
        require_text("group_id", self.group_id)
        require_text("artifact_id", self.artifact_id)
        require_text("version", self.version)
        require_text("scope", self.scope)
    
    @property
    def coordinate(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"
    
    @property
    def identifier(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"
    
    def __str__(self) -> str:
        return self.coordinate


@dataclass(frozen=True)
class Dependency:
    """Directed edge: ``source`` declares a dependency on ``target``."""
    source: Artifact
    target: Artifact
    scope: str = "compile"
    optional: bool = False
    
    def __post_init__(self) -> None:
        if not isinstance(self.source, Artifact) or not isinstance(self.target, Artifact):
            raise ValidationError("dependency", "both endpoints must be artifacts")
        require_text("scope", self.scope)


class DependencyGraph:
    """
    Mutable container of artifacts and dependency edges.
    
    Membership is structural: two equal Artifact values are the same node.
    Reads hand out copies so callers never see the internal sets change.
    A graph returned by ``frozen()`` rejects further nodes and edges.
    """
    
    def __init__(self) -> None:
        self._nodes: set[Artifact] = set()
        self._edges: set[Dependency] = set()
        self._outgoing: dict[Artifact, set[Artifact]] = {}
        self._incoming: dict[Artifact, set[Artifact]] = {}
        self._frozen = False
    
    def add_node(self, artifact: Artifact) -> None:
        self._check_mutable()
        if artifact in self._nodes:
            return
        self._nodes.add(artifact)
        self._outgoing.setdefault(artifact, set())
        self._incoming.setdefault(artifact, set())
    
    def add_edge(self, dependency: Dependency) -> None:
        """Add an edge; both endpoints become nodes."""
        self._check_mutable()
        self.add_node(dependency.source)
        self.add_node(dependency.target)
        if dependency in self._edges:
            return
        self._edges.add(dependency)
        self._outgoing[dependency.source].add(dependency.target)
        self._incoming[dependency.target].add(dependency.source)
    
    def contains_node(self, artifact: Artifact) -> bool:
        return artifact in self._nodes
    
    def contains_edge(self, dependency: Dependency) -> bool:
        return dependency in self._edges
    
    @property
    def nodes(self) -> set[Artifact]:
        return set(self._nodes)
    
    @property
    def edges(self) -> set[Dependency]:
        return set(self._edges)
    
    def node_count(self) -> int:
        return len(self._nodes)
    
    def edge_count(self) -> int:
        return len(self._edges)
    
    def successors(self, artifact: Artifact) -> set[Artifact]:
        return set(self._outgoing.get(artifact, ()))
    
    def predecessors(self, artifact: Artifact) -> set[Artifact]:
        return set(self._incoming.get(artifact, ()))
    
    def roots(self) -> list[Artifact]:
        """Nodes nothing depends on, sorted by coordinate."""
        return sorted(
            (a for a in self._nodes if not self._incoming.get(a)),
            key=lambda a: a.coordinate
        )
    
    def ancestors(self, artifact: Artifact) -> set[Artifact]:
        """Every node from which ``artifact`` is reachable (cycles tolerated)."""
        seen: set[Artifact] = set()
        stack = list(self._incoming.get(artifact, ()))
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self._incoming.get(current, ()))
        seen.discard(artifact)
        return seen
    
    def descendants(self, artifact: Artifact) -> set[Artifact]:
        """Every node reachable from ``artifact`` (cycles tolerated)."""
        seen: set[Artifact] = set()
        stack = list(self._outgoing.get(artifact, ()))
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self._outgoing.get(current, ()))
        seen.discard(artifact)
        return seen
    
    def __len__(self) -> int:
        return len(self._nodes)
    
    @property
    def is_frozen(self) -> bool:
        return self._frozen
    
    def frozen(self) -> "DependencyGraph":
        """Read-only copy of this graph."""
        if self._frozen:
            return self
        copy = DependencyGraph()
        for node in self._nodes:
            copy.add_node(node)
        for edge in self._edges:
            copy.add_edge(edge)
        copy._frozen = True
        return copy
    
    def _check_mutable(self) -> None:
        if self._frozen:
            raise FrozenInstanceError("cannot change a frozen DependencyGraph")
    
    def __repr__(self) -> str:
        return f"DependencyGraph(nodes={len(self._nodes)}, edges={len(self._edges)})"


class Namespace(Enum):
    """Which Java EE namespace an artifact's packages live in."""
    LEGACY = "legacy"    # javax.*
    MODERN = "modern"    # jakarta.*
    MIXED = "mixed"
    UNKNOWN = "unknown"
    
    @property
    def is_classified(self) -> bool:
        return self is not Namespace.UNKNOWN


class NamespaceCompatibilityMap:
    """Artifact -> Namespace lookup where a missing key reads as UNKNOWN."""
    
    def __init__(self, entries: Optional[Mapping[Artifact, Namespace]] = None) -> None:
        self._entries: dict[Artifact, Namespace] = dict(entries or {})
        self._frozen = False
    
    def put(self, artifact: Artifact, namespace: Namespace) -> None:
        if self._frozen:
            raise FrozenInstanceError("cannot change a frozen NamespaceCompatibilityMap")
        self._entries[artifact] = namespace
    
    def frozen(self) -> "NamespaceCompatibilityMap":
        """Read-only copy of this map."""
        if self._frozen:
            return self
        copy = NamespaceCompatibilityMap(self._entries)
        copy._frozen = True
        return copy
    
    def get(self, artifact: Artifact) -> Namespace:
        return self._entries.get(artifact, Namespace.UNKNOWN)
    
    def get_all(self) -> dict[Artifact, Namespace]:
        return dict(self._entries)
    
    def contains_key(self, artifact: Artifact) -> bool:
        return artifact in self._entries
    
    def count(self, namespace: Namespace) -> int:
        return sum(1 for ns in self._entries.values() if ns is namespace)
    
    def __len__(self) -> int:
        return len(self._entries)


class BlockerType(Enum):
    NO_MODERN_EQUIVALENT = "no_modern_equivalent"
    TRANSITIVE_CONFLICT = "transitive_conflict"
    BINARY_INCOMPATIBLE = "binary_incompatible"
    VERSION_INCOMPATIBLE = "version_incompatible"


@dataclass(frozen=True)
class Blocker:
    """A condition that prevents migrating one artifact."""
    artifact: Artifact
    blocker_type: BlockerType
    reason: str
    mitigation_strategies: tuple[str, ...] = ()
    confidence: float = 1.0
    
    def __post_init__(self) -> None:
        if not isinstance(self.blocker_type, BlockerType):
            raise ValidationError("blocker_type", "must be a BlockerType")
        require_text("reason", self.reason)
        require_unit_interval("confidence", self.confidence)
        object.__setattr__(self, "mitigation_strategies", tuple(self.mitigation_strategies))


@dataclass(frozen=True)
class VersionRecommendation:
    """Suggested modern replacement for a legacy artifact."""
    current_artifact: Artifact
    recommended_artifact: Artifact
    migration_path: str
    breaking_changes: tuple[str, ...] = ()
    compatibility_score: float = 1.0
    
    def __post_init__(self) -> None:
        require_text("migration_path", self.migration_path)
        require_unit_interval("compatibility_score", self.compatibility_score)
        object.__setattr__(self, "breaking_changes", tuple(self.breaking_changes))


@dataclass(frozen=True)
class RiskAssessment:
    """Aggregate migration risk with the factors behind it."""
    risk_score: float
    risk_factors: tuple[str, ...] = ()
    mitigation_suggestions: tuple[str, ...] = ()
    
    def __post_init__(self) -> None:
        require_unit_interval("risk_score", self.risk_score)
        object.__setattr__(self, "risk_factors", tuple(self.risk_factors))
        object.__setattr__(self, "mitigation_suggestions", tuple(self.mitigation_suggestions))


@dataclass(frozen=True)
class MigrationReadinessScore:
    score: float
    explanation: str
    
    def __post_init__(self) -> None:
        require_unit_interval("score", self.score)
        require_text("explanation", self.explanation)


@dataclass(frozen=True)
class TransitiveConflict:
    """Namespace mismatch found along a dependency path."""
    root_artifact: Artifact
    conflicting_artifact: Artifact
    conflict_type: str
    description: str
    
    def __post_init__(self) -> None:
        require_text("conflict_type", self.conflict_type)
        require_text("description", self.description)


@dataclass(frozen=True)
class TransitiveConflictReport:
    conflicts: tuple[TransitiveConflict, ...]
    total_conflicts: int
    summary: str
    
    def __post_init__(self) -> None:
        object.__setattr__(self, "conflicts", tuple(self.conflicts))
        require_non_negative("total_conflicts", self.total_conflicts)
        if self.total_conflicts != len(self.conflicts):
            raise ValidationError("total_conflicts", "must equal the number of conflicts")
    
    @property
    def has_conflicts(self) -> bool:
        return self.total_conflicts > 0


class BreakingChangeType(Enum):
    CLASS_REMOVED = "class_removed"
    METHOD_REMOVED = "method_removed"
    METHOD_SIGNATURE_CHANGED = "method_signature_changed"
    FIELD_REMOVED = "field_removed"
    FIELD_TYPE_CHANGED = "field_type_changed"
    INTERFACE_REMOVED = "interface_removed"
    VISIBILITY_CHANGED = "visibility_changed"
    OTHER = "other"


@dataclass(frozen=True)
class BreakingChange:
    change_type: BreakingChangeType
    class_name: str
    member_name: Optional[str]
    description: str
    
    def __post_init__(self) -> None:
        require_text("class_name", self.class_name)
        require_text("description", self.description)


@dataclass(frozen=True)
class BinaryCompatibilityReport:
    """Result of comparing an old artifact with its proposed replacement."""
    old_artifact: Artifact
    new_artifact: Artifact
    is_compatible: bool
    breaking_changes: tuple[BreakingChange, ...] = ()
    summary: str = ""
    
    def __post_init__(self) -> None:
        object.__setattr__(self, "breaking_changes", tuple(self.breaking_changes))
    
    @classmethod
    def compatible(cls, old_artifact: Artifact, new_artifact: Artifact) -> "BinaryCompatibilityReport":
        return cls(
            old_artifact, new_artifact, True, (),
            f"No breaking changes between {old_artifact.coordinate} and {new_artifact.coordinate}"
        )
    
    @classmethod
    def incompatible(
        cls,
        old_artifact: Artifact,
        new_artifact: Artifact,
        breaking_changes: list[BreakingChange]
    ) -> "BinaryCompatibilityReport":
        return cls(
            old_artifact, new_artifact, False, tuple(breaking_changes),
            f"Found {len(breaking_changes)} breaking change(s) between "
            f"{old_artifact.coordinate} and {new_artifact.coordinate}"
        )


@dataclass(frozen=True)
class DependencyAnalysisReport:
    """Everything one analysis run produced. Built once, never changed."""
    graph: DependencyGraph
    namespace_map: NamespaceCompatibilityMap
    blockers: tuple[Blocker, ...]
    recommendations: tuple[VersionRecommendation, ...]
    risk_assessment: RiskAssessment
    readiness_score: MigrationReadinessScore
    transitive_conflicts: TransitiveConflictReport
    degraded_checks: tuple[str, ...] = ()
    
    def __post_init__(self) -> None:
        object.__setattr__(self, "graph", self.graph.frozen())
        object.__setattr__(self, "namespace_map", self.namespace_map.frozen())
        object.__setattr__(self, "blockers", tuple(self.blockers))
        object.__setattr__(self, "recommendations", tuple(self.recommendations))
        object.__setattr__(self, "degraded_checks", tuple(self.degraded_checks))
    
    def blockers_for(self, artifact: Artifact) -> list[Blocker]:
        return [b for b in self.blockers if b.artifact == artifact]
    
    def blocked_artifacts(self) -> set[Artifact]:
        return {b.artifact for b in self.blockers}
    
    def to_dict(self) -> dict[str, Any]:
        """Plain structure for JSON/YAML export."""
        return {
            "readiness_score": self.readiness_score.score,
            "readiness_explanation": self.readiness_score.explanation,
            "risk_score": self.risk_assessment.risk_score,
            "risk_factors": list(self.risk_assessment.risk_factors),
            "mitigation_suggestions": list(self.risk_assessment.mitigation_suggestions),
            "artifacts": {
                a.coordinate: self.namespace_map.get(a).value
                for a in sorted(self.graph.nodes, key=lambda a: a.coordinate)
            },
            "blockers": [
                {
                    "artifact": b.artifact.coordinate,
                    "type": b.blocker_type.value,
                    "reason": b.reason,
                    "confidence": b.confidence,
                    "mitigation": list(b.mitigation_strategies),
                }
                for b in self.blockers
            ],
            "recommendations": [
                {
                    "current": r.current_artifact.coordinate,
                    "recommended": r.recommended_artifact.coordinate,
                    "path": r.migration_path,
                    "compatibility_score": r.compatibility_score,
                    "breaking_changes": list(r.breaking_changes),
                }
                for r in self.recommendations
            ],
            "transitive_conflicts": [
                {
                    "root": c.root_artifact.coordinate,
                    "conflicting": c.conflicting_artifact.coordinate,
                    "type": c.conflict_type,
                    "description": c.description,
                }
                for c in self.transitive_conflicts.conflicts
            ],
            "degraded_checks": list(self.degraded_checks),
        }


@dataclass(frozen=True)
class FileUsage:
    """Legacy namespace usage found in one source or descriptor file."""
    file_path: str
    legacy_imports: tuple[str, ...] = ()
    line_count: int = 0
    import_lines: Mapping[str, int] = field(default_factory=dict, compare=False, hash=False)
    legacy_references: tuple[str, ...] = ()  # Fully-qualified javax names outside imports
    legacy_xml_namespaces: tuple[str, ...] = ()
    
    def __post_init__(self) -> None:
        require_text("file_path", self.file_path)
        require_non_negative("line_count", self.line_count)
        object.__setattr__(self, "legacy_imports", tuple(self.legacy_imports))
        object.__setattr__(self, "legacy_references", tuple(self.legacy_references))
        object.__setattr__(self, "legacy_xml_namespaces", tuple(self.legacy_xml_namespaces))
    
    @property
    def has_legacy_usage(self) -> bool:
        return bool(self.legacy_imports or self.legacy_references or self.legacy_xml_namespaces)
    
    @property
    def is_descriptor(self) -> bool:
        return self.file_path.endswith(".xml")


@dataclass(frozen=True)
class SourceScanResult:
    usages: tuple[FileUsage, ...]
    total_files_scanned: int
    files_with_legacy_usage: int
    total_legacy_imports: int
    
    def __post_init__(self) -> None:
        object.__setattr__(self, "usages", tuple(self.usages))
        require_non_negative("total_files_scanned", self.total_files_scanned)
        require_non_negative("files_with_legacy_usage", self.files_with_legacy_usage)
        require_non_negative("total_legacy_imports", self.total_legacy_imports)
    
    @property
    def descriptor_files(self) -> list[str]:
        return [u.file_path for u in self.usages if u.is_descriptor]
    
    def usage_for(self, file_path: str) -> Optional[FileUsage]:
        for usage in self.usages:
            if usage.file_path == file_path:
                return usage
        return None
