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
Migration Agent for javax to jakarta moves.

This is a lightweight wrapper that orchestrates the migration workflow
using the analysis, refactoring and verification modules.
"""

import threading
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

from jakarta_migration.analysis.compatibility_checker import (
    ArchiveCompatibilityChecker,
    ArchivePackageInspector,
    BinaryCompatibilityChecker,
)
from jakarta_migration.analysis.dependency_analysis_engine import DependencyAnalysisEngine
from jakarta_migration.analysis.models import DependencyAnalysisReport, SourceScanResult
from jakarta_migration.analysis.namespace_classifier import NamespaceClassifier
from jakarta_migration.analysis.source_scanner import SourceScanner
from jakarta_migration.config import MigrationSettings
from jakarta_migration.refactoring.change_tracker import ChangeTracker
from jakarta_migration.refactoring.migration_planner import MigrationPlanner
from jakarta_migration.refactoring.models import MigrationPlan, MigrationRun, MigrationState
from jakarta_migration.refactoring.recipe_library import RecipeLibrary
from jakarta_migration.refactoring.refactoring_engine import RefactoringEngine
from jakarta_migration.utils.logging_config import get_logger
from jakarta_migration.utils.report_formatter import get_default_formatter
from jakarta_migration.verification.models import VerificationOptions, VerificationResult, VerificationStatus
from jakarta_migration.verification.process_executor import ProcessExecutor
from jakarta_migration.verification.runtime_verifier import RuntimeVerifier

logger = get_logger(__name__)


class MigrationAgent:
    """
    Agent-like workflow for a javax to jakarta migration.
    
    Workflow:
    1. Analyze dependencies and score readiness
    2. Scan sources and plan recipe applications
    3. Apply the plan behind checkpoints
    4. Verify the migrated project
    5. Feed verification failures back into the analysis, then commit or roll back
    """
    
    def __init__(
        self,
        project_root: Path,
        settings: Optional[MigrationSettings] = None,
        compatibility_checker: Optional[BinaryCompatibilityChecker] = None,
        classifier: Optional[NamespaceClassifier] = None,
        library: Optional[RecipeLibrary] = None,
        tracker: Optional[ChangeTracker] = None,
        verifier: Optional[RuntimeVerifier] = None
    ) -> None:
        """
        Initialize the migration agent.
        
        Args:
            project_root: Root of the Java project
            settings: Session settings; defaults when None
            compatibility_checker: Binary checker; resolves jars locally when None
            classifier: Namespace classifier; inspects local jars when None
            library: Recipe catalog; the default recipes when None
            tracker: Checkpoint store shared with the refactoring engine
            verifier: Runtime verifier; runs ``java`` from settings when None
        """
        self.project_root = Path(project_root)
        self.settings = settings or MigrationSettings()
        self.engine = DependencyAnalysisEngine(
            settings=self.settings,
            classifier=classifier or NamespaceClassifier(ArchivePackageInspector()),
            compatibility_checker=compatibility_checker or ArchiveCompatibilityChecker(),
        )
        self.library = library or RecipeLibrary.with_defaults()
        self.planner = MigrationPlanner(self.library)
        self.refactoring = RefactoringEngine(self.project_root, tracker)
        self.verifier = verifier or RuntimeVerifier(ProcessExecutor(self.settings.java_executable))
        self.formatter = get_default_formatter()
        self._report: Optional[DependencyAnalysisReport] = None
        self._scan: Optional[SourceScanResult] = None
        self._plan: Optional[MigrationPlan] = None
    
    def analyze(self) -> DependencyAnalysisReport:
        """
        Analyze the project's dependencies.
        
        Raises:
            DependencyGraphException: The build descriptor is missing or malformed
        """
        self._report = self.engine.analyze(self.project_root)
        return self._report
    
    def scan(self) -> SourceScanResult:
        self._scan = SourceScanner(self.project_root, tuple(self.settings.excluded_dirs)).scan()
        return self._scan
    
    def plan(self) -> MigrationPlan:
        """Plan recipe applications for the scanned sources."""
        scan = self._scan or self.scan()
        self._plan = self.planner.create_plan(scan, self._report)
        return self._plan
    
    def migrate(
        self,
        dry_run: bool = False,
        cancel_event: Optional[threading.Event] = None
    ) -> MigrationRun:
        plan = self._plan or self.plan()
        return self.refactoring.apply_plan(plan, cancel_event=cancel_event, dry_run=dry_run)
    
    def verify(self) -> VerificationResult:
        """Verify the project with the configured deadline and memory ceiling."""
        options = VerificationOptions.from_settings(self.settings)
        result = self.verifier.verify_project(
            self.project_root, options, tuple(self.settings.excluded_dirs)
        )
        url = self.settings.health_check_url
        if url and result.passed and not self.verifier.health_check(url):
            logger.warning("Application started but the health check did not pass")
            result = replace(
                result,
                status=VerificationStatus.FAILED,
                warnings=result.warnings + (f"Health check failed: {url}",),
            )
        return result
    
    def run(
        self,
        dry_run: bool = False,
        cancel_event: Optional[threading.Event] = None
    ) -> dict[str, Any]:
        """
        Run the full migration workflow.
        
        Returns:
            Dict with report, plan, run and verification (None when skipped)
        """
        logger.info("=" * 60)
        logger.info("JAKARTA MIGRATION")
        logger.info("=" * 60)
        
        logger.info("Step 1/5: Analyzing dependencies...")
        report = self.analyze()
        logger.info(f"Found {len(report.blockers)} blocker(s)")
        
        logger.info("Step 2/5: Planning recipe applications...")
        plan = self.plan()
        logger.info(f"Planned {len(plan.entries)} application(s) across {len(plan.files)} file(s)")
        
        logger.info("Step 3/5: Applying plan...")
        run = self.migrate(dry_run=dry_run, cancel_event=cancel_event)
        result: dict[str, Any] = {"report": report, "plan": plan, "run": run, "verification": None}
        if run.state is MigrationState.ROLLED_BACK:
            # Files are already restored; release the checkpoints the run retained
            self.refactoring.rollback(run)
        if run.state is not MigrationState.PHASE_4_COMPLETE or dry_run:
            logger.info(f"Stopping after refactoring: run is {run.state.name}")
            return result
        
        logger.info("Step 4/5: Verifying migrated project...")
        verification = self.verify()
        result["verification"] = verification
        
        logger.info("Step 5/5: Recording verification outcome...")
        self.refactoring.mark_verified(run, verification)
        if run.state is MigrationState.VERIFIED:
            self.refactoring.complete(run)
            return result
        
        new_blockers = self.verifier.to_blockers(verification, report.graph)
        if new_blockers:
            result["report"] = self.engine.reassess(report, new_blockers)
            self._report = result["report"]
        self.refactoring.rollback(run)
        logger.warning(f"Migration rolled back: {len(new_blockers)} blocker(s) found at runtime")
        return result
    
    def print_report(self, result: dict[str, Any]) -> None:
        """Print a formatted report of a ``run`` result."""
        if result.get("report") is not None:
            print("\n" + self.formatter.format_analysis(result["report"]))
        if result.get("plan") is not None:
            print("\n" + self.formatter.format_plan(result["plan"]))
        if result.get("run") is not None:
            print("\n" + self.formatter.format_run(result["run"]))
        if result.get("verification") is not None:
            print("\n" + self.formatter.format_verification(result["verification"]))
        print("\n" + "=" * 60)


def run_migration(
    project_root: Path,
    settings: Optional[MigrationSettings] = None,
    dry_run: bool = False
) -> dict[str, Any]:
    """
    Convenience function to run the full migration workflow.
    
    Args:
        project_root: Root of the Java project
        settings: Session settings
        dry_run: Compute changes without writing files
    
    Returns:
        Workflow results dictionary
    """
    agent = MigrationAgent(project_root, settings)
    result = agent.run(dry_run=dry_run)
    agent.print_report(result)
    return result
