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
Dependency Analysis Engine

Runs the analysis pipeline for one project:

1. Build the dependency graph
2. Classify every artifact's namespace
3. Detect migration blockers
4. Recommend Jakarta versions
5. Find transitive namespace conflicts
6. Assess risk
7. Score migration readiness

Each step consumes the output of the previous one. The engine holds no
per-run state, so one instance can analyze many projects.
"""

import math
from pathlib import Path
from typing import Iterable, Optional

from jakarta_migration.analysis.blocker_detector import DetectionResult, MigrationBlockerDetector
from jakarta_migration.analysis.compatibility_checker import (
    BinaryCompatibilityChecker,
    CompatibilityOutcome,
    UnavailableCompatibilityChecker,
)
from jakarta_migration.analysis.dependency_graph_builder import DependencyGraphBuilder
from jakarta_migration.analysis.mapping_service import JakartaMappingService
from jakarta_migration.analysis.models import (
    Blocker,
    BlockerType,
    DependencyAnalysisReport,
    DependencyGraph,
    MigrationReadinessScore,
    RiskAssessment,
    TransitiveConflictReport,
    VersionRecommendation,
)
from jakarta_migration.analysis.namespace_classifier import NamespaceClassifier
from jakarta_migration.config import MigrationSettings
from jakarta_migration.errors import clamp01
from jakarta_migration.utils.logging_config import LogContext, get_logger

logger = get_logger(__name__)


# How much each blocker type weighs in the risk score (scaled by confidence)
BLOCKER_SEVERITY: dict[BlockerType, float] = {
    BlockerType.NO_MODERN_EQUIVALENT: 1.0,
    BlockerType.BINARY_INCOMPATIBLE: 0.8,
    BlockerType.TRANSITIVE_CONFLICT: 0.6,
    BlockerType.VERSION_INCOMPATIBLE: 0.5,
}

DISTANCE_PENALTY = 0.1
BREAKING_CHANGE_PENALTY = 0.05

READY_THRESHOLD = 0.8
PARTIAL_THRESHOLD = 0.5


class DependencyAnalysisEngine:
    """Scores migration readiness and enumerates blockers for a project."""
    
    def __init__(
        self,
        settings: Optional[MigrationSettings] = None,
        graph_builder: Optional[DependencyGraphBuilder] = None,
        classifier: Optional[NamespaceClassifier] = None,
        mapping_service: Optional[JakartaMappingService] = None,
        compatibility_checker: Optional[BinaryCompatibilityChecker] = None
    ) -> None:
        """
        Initialize the engine.
        
        Args:
            settings: Weights and worker count
            graph_builder: Descriptor detection and parsing
            classifier: Namespace classifier
            mapping_service: Legacy -> modern mapping table
            compatibility_checker: Binary checker; when None the unavailable
                stand-in is used and binary checks are reported as degraded
        """
        self.settings = settings or MigrationSettings()
        self.graph_builder = graph_builder or DependencyGraphBuilder()
        self.classifier = classifier or NamespaceClassifier()
        self.mapping_service = mapping_service or JakartaMappingService()
        self.compatibility_checker = compatibility_checker or UnavailableCompatibilityChecker()
    
    def analyze(self, project_root: Path) -> DependencyAnalysisReport:
        """
        Analyze the project at ``project_root``.
        
        Raises:
            DependencyGraphException: The build descriptor is missing or malformed.
        """
        with LogContext(logger, f"Dependency analysis: {project_root}"):
            logger.info("Step 1/7: Building dependency graph...")
            graph = self.graph_builder.build_from_project(Path(project_root))
            return self._analyze(graph)
    
    def analyze_graph(self, graph: DependencyGraph) -> DependencyAnalysisReport:
        """Run steps 2-7 on an already built graph."""
        return self._analyze(graph)
    
    def _analyze(self, graph: DependencyGraph) -> DependencyAnalysisReport:
        workers = self.settings.analysis_workers
        
        logger.info("Step 2/7: Classifying namespaces...")
        namespace_map = self.classifier.classify_all(graph, workers=workers)
        
        logger.info("Step 3/7: Detecting blockers...")
        detector = MigrationBlockerDetector(
            graph, namespace_map, self.mapping_service, self.compatibility_checker, workers
        )
        detection = detector.detect_all_blockers()
        
        logger.info("Step 4/7: Recommending versions...")
        recommendations = self.recommend_versions(detection)
        logger.info(f"Generated {len(recommendations)} version recommendation(s)")
        
        logger.info("Step 5/7: Scanning transitive conflicts...")
        conflicts = detector.find_transitive_conflicts()
        logger.info(conflicts.summary)
        
        logger.info("Step 6/7: Assessing risk...")
        risk = self.assess_risk(graph, detection.blockers, conflicts)
        
        logger.info("Step 7/7: Scoring readiness...")
        readiness = self.score_readiness(graph, detection.blockers, risk)
        logger.info(f"Readiness {readiness.score:.2f}, risk {risk.risk_score:.2f}")
        
        return DependencyAnalysisReport(
            graph=graph,
            namespace_map=namespace_map,
            blockers=tuple(detection.blockers),
            recommendations=tuple(recommendations),
            risk_assessment=risk,
            readiness_score=readiness,
            transitive_conflicts=conflicts,
            degraded_checks=tuple(detection.degraded_checks),
        )
    
    def reassess(
        self,
        report: DependencyAnalysisReport,
        extra_blockers: Iterable[Blocker]
    ) -> DependencyAnalysisReport:
        """
        Fold blockers discovered later (runtime verification) into a report.
        
        Returns a new report; the original is left untouched.
        """
        blockers = list(report.blockers)
        for blocker in extra_blockers:
            if blocker not in blockers:
                blockers.append(blocker)
        blockers.sort(key=lambda b: (b.artifact.coordinate, b.blocker_type.value))
        
        risk = self.assess_risk(report.graph, blockers, report.transitive_conflicts)
        readiness = self.score_readiness(report.graph, blockers, risk)
        logger.info(
            f"Reassessed with {len(blockers) - len(report.blockers)} new blocker(s): "
            f"readiness {report.readiness_score.score:.2f} -> {readiness.score:.2f}"
        )
        return DependencyAnalysisReport(
            graph=report.graph,
            namespace_map=report.namespace_map,
            blockers=tuple(blockers),
            recommendations=report.recommendations,
            risk_assessment=risk,
            readiness_score=readiness,
            transitive_conflicts=report.transitive_conflicts,
            degraded_checks=report.degraded_checks,
        )
    
    def recommend_versions(self, detection: DetectionResult) -> list[VersionRecommendation]:
        """One recommendation per mapped artifact; unmapped ones stay blockers."""
        recommendations: list[VersionRecommendation] = []
        for artifact in sorted(detection.mappings, key=lambda a: a.coordinate):
            mapping = detection.mappings[artifact]
            breaking = list(mapping.breaking_changes)
            check = detection.compatibility.get(artifact)
            if check is not None and check.outcome is CompatibilityOutcome.INCOMPATIBLE and check.report:
                breaking.extend(c.description for c in check.report.breaking_changes)
            
            score = clamp01(
                1.0
                - DISTANCE_PENALTY * mapping.distance
                - BREAKING_CHANGE_PENALTY * len(breaking)
            )
            path = f"{artifact.coordinate} -> {mapping.target.coordinate}"
            if mapping.notes:
                path += f" ({mapping.notes})"
            recommendations.append(VersionRecommendation(
                artifact, mapping.target, path, tuple(breaking), score
            ))
        return recommendations
    
    def assess_risk(
        self,
        graph: DependencyGraph,
        blockers: list[Blocker],
        conflicts: TransitiveConflictReport
    ) -> RiskAssessment:
        """
        Combine blockers and conflicts into a risk score.
        
        Blockers are merged with a noisy-OR so each extra blocker adds risk
        without ever pushing past 1; conflicts count relative to graph size.
        """
        blocker_weight, conflict_weight = self.settings.risk_weights()
        
        blocker_component = 1.0 - math.prod(
            1.0 - b.confidence * BLOCKER_SEVERITY[b.blocker_type] for b in blockers
        )
        conflict_component = min(1.0, conflicts.total_conflicts / max(1, graph.node_count()))
        risk_score = clamp01(blocker_weight * blocker_component + conflict_weight * conflict_component)
        
        factors: list[str] = []
        for blocker_type in BlockerType:
            count = sum(1 for b in blockers if b.blocker_type is blocker_type)
            if count:
                factors.append(f"{count} {blocker_type.name} blocker(s)")
        if conflicts.total_conflicts:
            factors.append(f"{conflicts.total_conflicts} transitive namespace conflict(s)")
        
        suggestions: list[str] = []
        for blocker in sorted(blockers, key=lambda b: -b.confidence * BLOCKER_SEVERITY[b.blocker_type]):
            for strategy in blocker.mitigation_strategies:
                if strategy not in suggestions:
                    suggestions.append(strategy)
        if conflicts.total_conflicts:
            suggestions.append("Align every module of the build on a single namespace")
        
        return RiskAssessment(risk_score, tuple(factors), tuple(suggestions))
    
    def score_readiness(
        self,
        graph: DependencyGraph,
        blockers: list[Blocker],
        risk: RiskAssessment
    ) -> MigrationReadinessScore:
        """``clamp01(w1 * fraction_not_blocked + w2 * (1 - risk))``"""
        w1, w2 = self.settings.readiness_weights()
        total = graph.node_count()
        blocked = len({b.artifact for b in blockers} & graph.nodes)
        fraction_not_blocked = 1.0 if total == 0 else (total - blocked) / total
        
        score = clamp01(w1 * fraction_not_blocked + w2 * (1.0 - risk.risk_score))
        if score >= READY_THRESHOLD:
            verdict = "ready to migrate"
        elif score >= PARTIAL_THRESHOLD:
            verdict = "migration possible once the blockers are addressed"
        else:
            verdict = "significant work required before migrating"
        explanation = (
            f"{total - blocked}/{total} artifacts unblocked, risk {risk.risk_score:.2f}: {verdict}"
        )
        return MigrationReadinessScore(score, explanation)
