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
Runtime Verifier

Checks a migrated project by running its packaged application, or by
static analysis of its sources when nothing has been built, and turns
migration related failures back into blockers for the analysis.
"""

from pathlib import Path
from typing import Optional

import httpx

from jakarta_migration.analysis.models import Artifact, Blocker, BlockerType, DependencyGraph
from jakarta_migration.analysis.namespace_classifier import legacy_family
from jakarta_migration.analysis.source_scanner import SourceScanner
from jakarta_migration.config import HEALTH_CHECK_TIMEOUT_SECONDS, LEGACY_PREFIX, MODERN_PREFIX
from jakarta_migration.errors import ToolExecutionError
from jakarta_migration.utils.logging_config import get_logger
from jakarta_migration.verification.error_analyzer import ErrorAnalyzer
from jakarta_migration.verification.error_pattern_matcher import ErrorPatternMatcher
from jakarta_migration.verification.models import (
    ErrorCategory,
    ErrorType,
    ExecutionMetrics,
    RuntimeErrorRecord,
    StackTrace,
    VerificationOptions,
    VerificationResult,
    VerificationStatus,
)
from jakarta_migration.verification.process_executor import ProcessExecutor

logger = get_logger(__name__)


JAR_LOCATIONS = ("target", "build/libs")
WARNING_MARKERS = ("warning", "deprecated")

BLOCKER_TYPES: dict[ErrorCategory, BlockerType] = {
    ErrorCategory.NAMESPACE_MIGRATION: BlockerType.TRANSITIVE_CONFLICT,
    ErrorCategory.CLASSPATH_ISSUE: BlockerType.VERSION_INCOMPATIBLE,
    ErrorCategory.BINARY_INCOMPATIBILITY: BlockerType.BINARY_INCOMPATIBLE,
}


def find_built_jar(project_root: Path) -> Optional[Path]:
    """Largest non-source, non-javadoc jar under target/ or build/libs/."""
    candidates: list[Path] = []
    for location in JAR_LOCATIONS:
        directory = project_root / location
        if not directory.is_dir():
            continue
        candidates.extend(
            p for p in directory.glob("*.jar")
            if not p.name.endswith(("-sources.jar", "-javadoc.jar", "-plain.jar"))
        )
    if not candidates:
        return None
    return max(candidates, key=lambda p: p.stat().st_size)


def _package_root(class_name: str) -> Optional[str]:
    """``javax.servlet.http.X`` -> ``javax.servlet``."""
    parts = class_name.split(".")
    if len(parts) < 2 or parts[0] not in ("javax", "jakarta"):
        return None
    return ".".join(parts[:2])


class RuntimeVerifier:
    """Runs post-migration checks and classifies what went wrong."""
    
    def __init__(
        self,
        executor: Optional[ProcessExecutor] = None,
        analyzer: Optional[ErrorAnalyzer] = None,
        matcher: Optional[ErrorPatternMatcher] = None
    ) -> None:
        self.matcher = matcher or ErrorPatternMatcher()
        self.executor = executor or ProcessExecutor()
        self.analyzer = analyzer or ErrorAnalyzer(self.matcher)
    
    def verify_runtime(
        self,
        jar_path: Path,
        options: Optional[VerificationOptions] = None
    ) -> VerificationResult:
        """
        Start the jar and classify its outcome.
        
        Args:
            jar_path: Packaged application
            options: Deadline and memory ceiling
            
        Returns:
            VerificationResult; never raises for a failing application
        """
        options = options or VerificationOptions()
        jar_path = Path(jar_path)
        
        if not jar_path.is_file():
            logger.error(f"JAR file not found: {jar_path}")
            message = f"JAR file not found: {jar_path}"
            missing = RuntimeErrorRecord(
                error_type=ErrorType.OTHER,
                message=message,
                stack_trace=StackTrace("FileNotFoundException", message),
                class_name=str(jar_path),
                method_name="unknown",
            )
            return VerificationResult(VerificationStatus.FAILED, errors=(missing,))
        
        try:
            metrics, stdout, stderr = self.executor.execute_jar(jar_path, options)
        except ToolExecutionError as e:
            logger.error(f"Could not run verification: {e}")
            return VerificationResult(VerificationStatus.ERROR, warnings=(str(e),))
        
        errors = self.analyzer.parse_errors(stderr, stdout)
        warnings = [
            line.strip() for line in stderr.splitlines()
            if any(marker in line.lower() for marker in WARNING_MARKERS)
        ]
        analysis = self.analyzer.analyze(errors) if errors else None
        status = self._status(metrics, errors)
        
        logger.info(
            f"Verification {status.name}: {len(errors)} error(s), {len(warnings)} warning(s)"
        )
        return VerificationResult(
            status=status,
            errors=tuple(errors),
            warnings=tuple(warnings),
            metrics=metrics,
            stdout=stdout,
            stderr=stderr,
            analysis=analysis,
        )
    
    def _status(self, metrics: ExecutionMetrics, errors: list[RuntimeErrorRecord]) -> VerificationStatus:
        if metrics.timed_out or metrics.memory_exceeded:
            return VerificationStatus.TIMEOUT
        if metrics.exit_code != 0:
            return VerificationStatus.FAILED if errors else VerificationStatus.PARTIAL
        if errors:
            return VerificationStatus.PARTIAL
        return VerificationStatus.SUCCESS
    
    def verify_project(
        self,
        project_root: Path,
        options: Optional[VerificationOptions] = None,
        excluded_dirs: Optional[tuple[str, ...]] = None
    ) -> VerificationResult:
        """Verify the built jar when there is one, otherwise the sources."""
        project_root = Path(project_root)
        jar_path = find_built_jar(project_root)
        if jar_path is not None:
            logger.info(f"Verifying built artifact {jar_path.name}")
            return self.verify_runtime(jar_path, options)
        
        logger.info("No built artifact found, falling back to static verification")
        return self.verify_sources(project_root, excluded_dirs)
    
    def verify_sources(
        self,
        project_root: Path,
        excluded_dirs: Optional[tuple[str, ...]] = None
    ) -> VerificationResult:
        """Report every javax name still present in the sources as an error."""
        scan = SourceScanner(project_root, excluded_dirs).scan()
        errors: list[RuntimeErrorRecord] = []
        
        for usage in scan.usages:
            remaining = list(usage.legacy_imports) + list(usage.legacy_references)
            for name in remaining:
                message = f"Legacy reference {name} remains in {usage.file_path}"
                errors.append(RuntimeErrorRecord(
                    error_type=ErrorType.OTHER,
                    message=message,
                    stack_trace=StackTrace("StaticVerification", message),
                    class_name=name,
                    method_name="unknown",
                    confidence=0.9,
                    category=ErrorCategory.NAMESPACE_MIGRATION,
                ))
            for uri in usage.legacy_xml_namespaces:
                message = f"Legacy XML namespace {uri} remains in {usage.file_path}"
                errors.append(RuntimeErrorRecord(
                    error_type=ErrorType.OTHER,
                    message=message,
                    stack_trace=StackTrace("StaticVerification", message),
                    class_name=usage.file_path,
                    method_name="unknown",
                    confidence=0.9,
                    category=ErrorCategory.CONFIGURATION_ERROR,
                ))
        
        status = VerificationStatus.PARTIAL if errors else VerificationStatus.SUCCESS
        analysis = self.analyzer.analyze(errors) if errors else None
        logger.info(
            f"Static verification {status.name}: "
            f"{len(errors)} legacy reference(s) in {scan.total_files_scanned} files"
        )
        return VerificationResult(status=status, errors=tuple(errors), analysis=analysis)
    
    def to_blockers(self, result: VerificationResult, graph: DependencyGraph) -> list[Blocker]:
        """
        Turn migration related runtime errors into blockers.
        
        Each blocker is attached to the graph artifact that owns the failing
        package, or to an artifact named after the package when none does.
        Repeated failures for the same artifact and type yield one blocker.
        """
        blockers: dict[tuple[Artifact, BlockerType], Blocker] = {}
        
        for error in result.migration_errors:
            blocker_type = BLOCKER_TYPES.get(error.category)
            if blocker_type is None:
                continue
            artifact = self._owning_artifact(error.class_name, graph)
            key = (artifact, blocker_type)
            if key in blockers:
                continue
            blockers[key] = Blocker(
                artifact=artifact,
                blocker_type=blocker_type,
                reason=f"Runtime verification failed: {error.message}",
                mitigation_strategies=tuple(
                    step.description
                    for step in self.analyzer.remediation(self.analyzer.analyze([error], post_migration=True))
                ),
                confidence=error.confidence,
            )
        
        if blockers:
            logger.info(f"Runtime verification produced {len(blockers)} blocker(s)")
        return list(blockers.values())
    
    def _owning_artifact(self, class_name: str, graph: DependencyGraph) -> Artifact:
        package = _package_root(class_name)
        if package is None:
            return Artifact("unknown", class_name or "unknown", "unknown")
        
        family = legacy_family(class_name)
        if family is None and class_name.startswith(MODERN_PREFIX):
            family = legacy_family(LEGACY_PREFIX + class_name[len(MODERN_PREFIX):])
        counterpart = (
            MODERN_PREFIX + package[len(LEGACY_PREFIX):]
            if package.startswith(LEGACY_PREFIX)
            else LEGACY_PREFIX + package[len(MODERN_PREFIX):]
        )
        
        nodes = sorted(graph.nodes, key=lambda a: a.coordinate)
        for artifact in nodes:
            if artifact.group_id in (package, counterpart):
                return artifact
        if family:
            leaf = family.split(".")[0]
            for artifact in nodes:
                if leaf in artifact.artifact_id:
                    return artifact
        return Artifact(package, family or package.split(".")[-1], "unknown")
    
    def health_check(self, url: str, timeout: float = HEALTH_CHECK_TIMEOUT_SECONDS) -> bool:
        """True when ``url`` answers with a 2xx status."""
        try:
            response = httpx.get(url, timeout=timeout)
            healthy = response.is_success
        except httpx.HTTPError as e:
            logger.warning(f"Health check {url} failed: {e}")
            return False
        logger.info(f"Health check {url}: {'healthy' if healthy else 'unhealthy'}")
        return healthy
