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
Migration Blocker Detector

Evaluates the blocker rules for every artifact of a classified graph and
scans dependency paths for namespace conflicts.

Rules (independent, an artifact may collect several blockers):
- NO_MODERN_EQUIVALENT: legacy or mixed artifact without a mapping
- TRANSITIVE_CONFLICT: mixed artifact reached from several classified ancestors
- BINARY_INCOMPATIBLE: the compatibility checker reports missing classes
- VERSION_INCOMPATIBLE: the declared version constraint cannot reach the
  first modern release, or the version could not be resolved
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

from jakarta_migration.analysis.compatibility_checker import (
    BinaryCompatibilityChecker,
    CompatibilityCheck,
    CompatibilityOutcome,
    UnavailableCompatibilityChecker,
)
from jakarta_migration.analysis.mapping_service import JakartaMapping, JakartaMappingService
from jakarta_migration.analysis.models import (
    Artifact,
    Blocker,
    BlockerType,
    DependencyGraph,
    Namespace,
    NamespaceCompatibilityMap,
    TransitiveConflict,
    TransitiveConflictReport,
)
from jakarta_migration.analysis.versioning import compare_versions, parse_range
from jakarta_migration.utils.logging_config import get_logger

logger = get_logger(__name__)


# Rule confidences
LEGACY_UNMAPPED_CONFIDENCE = 0.9
MIXED_UNMAPPED_CONFIDENCE = 0.7
REMOVED_API_CONFIDENCE = 0.95
TRANSITIVE_BASE_CONFIDENCE = 0.5
TRANSITIVE_STEP_CONFIDENCE = 0.1
BINARY_BASE_CONFIDENCE = 0.6
BINARY_STEP_CONFIDENCE = 0.05
BINARY_MAX_CONFIDENCE = 0.95
RANGE_CONFLICT_CONFIDENCE = 0.85
UNRESOLVED_VERSION_CONFIDENCE = 0.3

MIGRATING = (Namespace.LEGACY, Namespace.MIXED)


@dataclass
class DetectionResult:
    """Blockers plus everything learned on the way."""
    blockers: list[Blocker] = field(default_factory=list)
    degraded_checks: list[str] = field(default_factory=list)
    compatibility: dict[Artifact, CompatibilityCheck] = field(default_factory=dict)
    mappings: dict[Artifact, JakartaMapping] = field(default_factory=dict)


@dataclass
class _ArtifactFindings:
    blockers: list[Blocker] = field(default_factory=list)
    degraded: Optional[str] = None
    check: Optional[CompatibilityCheck] = None
    mapping: Optional[JakartaMapping] = None


class MigrationBlockerDetector:
    """Applies the blocker rules to a classified dependency graph."""
    
    def __init__(
        self,
        graph: DependencyGraph,
        namespace_map: NamespaceCompatibilityMap,
        mapping_service: JakartaMappingService,
        compatibility_checker: Optional[BinaryCompatibilityChecker] = None,
        workers: int = 1
    ) -> None:
        """
        Initialize the detector.
        
        Args:
            graph: Dependency graph of the project
            namespace_map: Namespace of every node
            mapping_service: Source of legacy -> modern mappings
            compatibility_checker: Binary checker; the unavailable stand-in when None
            workers: Thread pool size for per-artifact evaluation
        """
        self.graph = graph
        self.namespace_map = namespace_map
        self.mapping_service = mapping_service
        self.compatibility_checker = compatibility_checker or UnavailableCompatibilityChecker()
        self.workers = workers
    
    def detect_all_blockers(self) -> DetectionResult:
        """Run every rule over every artifact."""
        nodes = sorted(self.graph.nodes, key=lambda a: a.coordinate)
        if self.workers > 1 and len(nodes) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                findings = list(executor.map(self._evaluate, nodes))
        else:
            findings = [self._evaluate(node) for node in nodes]
        
        result = DetectionResult()
        for artifact, found in zip(nodes, findings):
            result.blockers.extend(found.blockers)
            if found.degraded:
                result.degraded_checks.append(found.degraded)
            if found.check is not None:
                result.compatibility[artifact] = found.check
            if found.mapping is not None:
                result.mappings[artifact] = found.mapping
        
        result.blockers.sort(key=lambda b: (b.artifact.coordinate, b.blocker_type.value))
        logger.info(f"Found {len(result.blockers)} blocker(s) across {len(nodes)} artifacts")
        if result.degraded_checks:
            logger.warning(f"{len(result.degraded_checks)} compatibility check(s) could not be completed")
        return result
    
    def _evaluate(self, artifact: Artifact) -> _ArtifactFindings:
        found = _ArtifactFindings()
        namespace = self.namespace_map.get(artifact)
        if namespace not in MIGRATING:
            return found
        
        mapping = self.mapping_service.find_mapping(artifact)
        found.mapping = mapping
        
        rules = [
            self._check_no_modern_equivalent(artifact, namespace, mapping),
            self._check_transitive_conflict(artifact, namespace),
            self._check_version_constraint(artifact, mapping),
        ]
        if mapping is not None:
            check = self.compatibility_checker.check(artifact, mapping.target)
            found.check = check
            if check.outcome is CompatibilityOutcome.ERROR:
                found.degraded = f"{artifact.coordinate}: binary compatibility unknown ({check.message})"
            rules.append(self._binary_blocker(artifact, mapping, check))
        
        found.blockers = [b for b in rules if b is not None]
        for blocker in found.blockers:
            logger.debug(f"  {artifact.coordinate}: {blocker.blocker_type.name} ({blocker.confidence:.2f})")
        return found
    
    def _check_no_modern_equivalent(
        self,
        artifact: Artifact,
        namespace: Namespace,
        mapping: Optional[JakartaMapping]
    ) -> Optional[Blocker]:
        if mapping is not None:
            return None
        removal = self.mapping_service.removal_note(artifact)
        if removal:
            return Blocker(
                artifact,
                BlockerType.NO_MODERN_EQUIVALENT,
                removal,
                (
                    f"Remove the dependency on {artifact.identifier}",
                    "Replace the affected code with a supported Jakarta EE API",
                ),
                REMOVED_API_CONFIDENCE,
            )
        confidence = LEGACY_UNMAPPED_CONFIDENCE if namespace is Namespace.LEGACY else MIXED_UNMAPPED_CONFIDENCE
        return Blocker(
            artifact,
            BlockerType.NO_MODERN_EQUIVALENT,
            f"No Jakarta equivalent is known for {artifact.coordinate}",
            (
                f"Check whether a newer release of {artifact.identifier} targets jakarta.*",
                "Look for a maintained alternative library",
                "Repackage the library with the Eclipse Transformer",
            ),
            confidence,
        )
    
    def _check_transitive_conflict(self, artifact: Artifact, namespace: Namespace) -> Optional[Blocker]:
        if namespace is not Namespace.MIXED:
            return None
        classified = sorted(
            (a for a in self.graph.ancestors(artifact) if self.namespace_map.get(a).is_classified),
            key=lambda a: a.coordinate,
        )
        if len(classified) <= 1:
            return None
        confidence = min(
            1.0,
            TRANSITIVE_BASE_CONFIDENCE + TRANSITIVE_STEP_CONFIDENCE * (len(classified) - 1),
        )
        names = ", ".join(a.identifier for a in classified[:3])
        if len(classified) > 3:
            names += ", ..."
        return Blocker(
            artifact,
            BlockerType.TRANSITIVE_CONFLICT,
            f"{artifact.coordinate} mixes javax and jakarta packages and is reached from "
            f"{len(classified)} namespace-bound artifacts ({names})",
            (
                f"Exclude {artifact.identifier} from the dependants and declare a single namespace version",
                "Align the dependants on one namespace before migrating",
            ),
            confidence,
        )
    
    def _check_version_constraint(
        self,
        artifact: Artifact,
        mapping: Optional[JakartaMapping]
    ) -> Optional[Blocker]:
        if mapping is None:
            return None
        if artifact.version == "unknown":
            return Blocker(
                artifact,
                BlockerType.VERSION_INCOMPATIBLE,
                f"The version of {artifact.identifier} could not be resolved, so the "
                f"upgrade to {mapping.target.coordinate} cannot be validated",
                (
                    "Declare the version explicitly or import the BOM that manages it",
                ),
                UNRESOLVED_VERSION_CONFIDENCE,
            )
        version_range = parse_range(artifact.version)
        if version_range is None or mapping.min_modern_version is None or version_range.upper is None:
            return None
        cmp = compare_versions(version_range.upper, mapping.min_modern_version)
        if cmp > 0 or (cmp == 0 and version_range.upper_inclusive):
            return None
        return Blocker(
            artifact,
            BlockerType.VERSION_INCOMPATIBLE,
            f"Declared range {artifact.version} for {artifact.identifier} excludes "
            f"{mapping.min_modern_version}, the first release on jakarta.*",
            (
                f"Widen the declared range to allow {mapping.target.version}",
                "Check every module that pins this range",
            ),
            RANGE_CONFLICT_CONFIDENCE,
        )
    
    def _binary_blocker(
        self,
        artifact: Artifact,
        mapping: JakartaMapping,
        check: CompatibilityCheck
    ) -> Optional[Blocker]:
        if check.outcome is not CompatibilityOutcome.INCOMPATIBLE or check.report is None:
            return None
        changes = check.report.breaking_changes
        confidence = min(BINARY_MAX_CONFIDENCE, BINARY_BASE_CONFIDENCE + BINARY_STEP_CONFIDENCE * len(changes))
        examples = ", ".join(c.class_name for c in changes[:3])
        return Blocker(
            artifact,
            BlockerType.BINARY_INCOMPATIBLE,
            f"{check.report.summary}" + (f" (e.g. {examples})" if examples else ""),
            (
                f"Review code using the removed classes before switching to {mapping.target.coordinate}",
                "Run the test suite against the new artifact",
            ),
            confidence,
        )
    
    # ------------------------------------------------------------------------
    # Transitive conflicts
    # ------------------------------------------------------------------------
    
    def find_transitive_conflicts(self) -> TransitiveConflictReport:
        """
        Find dependency paths whose ends disagree on the namespace.
        
        Classified nodes are compared with each of their descendants; an
        unclassified root (usually the project itself) is reported when its
        descendants pull in both namespaces.
        """
        conflicts: list[TransitiveConflict] = []
        
        for node in sorted(self.graph.nodes, key=lambda a: a.coordinate):
            root_ns = self.namespace_map.get(node)
            if not root_ns.is_classified:
                continue
            for descendant in sorted(self.graph.descendants(node), key=lambda a: a.coordinate):
                conflict_type = self._conflict_type(root_ns, self.namespace_map.get(descendant))
                if conflict_type is None:
                    continue
                conflicts.append(TransitiveConflict(
                    node,
                    descendant,
                    conflict_type,
                    f"{node.coordinate} ({root_ns.name}) depends on "
                    f"{descendant.coordinate} ({self.namespace_map.get(descendant).name})",
                ))
        
        for root in self.graph.roots():
            if self.namespace_map.get(root).is_classified:
                continue
            descendants = sorted(self.graph.descendants(root), key=lambda a: a.coordinate)
            legacy = [d for d in descendants if self.namespace_map.get(d) is Namespace.LEGACY]
            modern = [d for d in descendants if self.namespace_map.get(d) is Namespace.MODERN]
            if not legacy or not modern:
                continue
            for artifact in legacy:
                conflicts.append(TransitiveConflict(
                    root,
                    artifact,
                    "MIXED_DESCENDANTS",
                    f"{root.identifier} pulls legacy {artifact.coordinate} alongside "
                    f"{len(modern)} jakarta artifact(s)",
                ))
        
        summary = (
            f"Found {len(conflicts)} transitive namespace conflict(s)"
            if conflicts else "No transitive namespace conflicts"
        )
        return TransitiveConflictReport(tuple(conflicts), len(conflicts), summary)
    
    @staticmethod
    def _conflict_type(root_ns: Namespace, descendant_ns: Namespace) -> Optional[str]:
        if root_ns is Namespace.MODERN and descendant_ns is Namespace.LEGACY:
            return "LEGACY_UNDER_MODERN"
        if root_ns is Namespace.LEGACY and descendant_ns is Namespace.MODERN:
            return "MODERN_UNDER_LEGACY"
        if root_ns in (Namespace.LEGACY, Namespace.MODERN) and descendant_ns is Namespace.MIXED:
            return "MIXED_UNDER_PURE"
        return None
