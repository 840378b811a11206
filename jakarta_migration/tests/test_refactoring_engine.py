"""
Tests for the Refactoring Engine

Tests cover:
1. Applying a plan phase by phase with checkpoints
2. Rollback on recipe failure and cancellation
3. Dry runs
4. Verification outcome, completion and explicit rollback
5. State machine guards
"""

import threading
from dataclasses import dataclass
from pathlib import Path
from unittest.mock import patch

import pytest

from jakarta_migration.analysis.source_scanner import SourceScanner
from jakarta_migration.errors import InvalidStateTransition
from jakarta_migration.refactoring.change_tracker import ChangeTracker
from jakarta_migration.refactoring.migration_planner import MigrationPlanner
from jakarta_migration.refactoring.models import (
    ChangeType,
    MigrationPlan,
    MigrationRun,
    MigrationState,
    PlanEntry,
    Recipe,
    SafetyLevel,
)
from jakarta_migration.refactoring.recipe_library import RecipeLibrary
from jakarta_migration.refactoring.refactoring_engine import RefactoringEngine
from jakarta_migration.verification.error_analyzer import ErrorAnalyzer
from jakarta_migration.verification.models import VerificationResult, VerificationStatus


ENTITY_PATH = "src/main/java/com/example/shop/Order.java"
SERVLET_PATH = "src/main/java/com/example/shop/OrderServlet.java"
PERSISTENCE_PATH = "src/main/resources/META-INF/persistence.xml"

PASSED = VerificationResult(VerificationStatus.SUCCESS)
FAILED_STARTUP = VerificationResult(
    VerificationStatus.FAILED,
    errors=ErrorAnalyzer().parse_errors(
        'Exception in thread "main" java.lang.NoClassDefFoundError: javax/servlet/Filter\n'
        "\tat com.example.shop.App.main(App.java:12)\n"
    ),
)


@dataclass(frozen=True)
class ExplodingRecipe(Recipe):
    """A recipe whose transformation always fails."""
    
    def apply(self, content: str) -> str:
        raise RuntimeError("recipe crashed")


def read(project: Path, rel_path: str) -> str:
    return (project / rel_path).read_text(encoding="utf-8")


@pytest.fixture
def library() -> RecipeLibrary:
    return RecipeLibrary.with_defaults()


@pytest.fixture
def tracker() -> ChangeTracker:
    return ChangeTracker()


@pytest.fixture
def engine(sample_project: Path, tracker: ChangeTracker) -> RefactoringEngine:
    return RefactoringEngine(sample_project, tracker)


@pytest.fixture
def plan(sample_project: Path, library: RecipeLibrary) -> MigrationPlan:
    return MigrationPlanner(library).create_plan(SourceScanner(sample_project).scan())


class TestApplyPlan:
    """Tests for plan application."""
    
    def test_migrates_sample_project(
        self,
        sample_project: Path,
        engine: RefactoringEngine,
        tracker: ChangeTracker,
        plan: MigrationPlan
    ) -> None:
        """
        Test: Apply the full plan to the sample project.
        
        Expected: Sources and persistence.xml are on jakarta, the run is
        PHASE_4_COMPLETE and one checkpoint per touched file is held.
        """
        run = engine.apply_plan(plan)
        
        assert run.state is MigrationState.PHASE_4_COMPLETE
        servlet = read(sample_project, SERVLET_PATH)
        assert "import jakarta.servlet.http.HttpServlet;" in servlet
        assert "import java.io.IOException;" in servlet
        assert "javax." not in servlet
        entity = read(sample_project, ENTITY_PATH)
        assert "@jakarta.persistence.Column" in entity
        assert "import jakarta.persistence.Id;" in entity
        persistence = read(sample_project, PERSISTENCE_PATH)
        assert 'xmlns="https://jakarta.ee/xml/ns/persistence"' in persistence
        assert 'name="jakarta.persistence.jdbc.url"' in persistence
        
        assert set(run.checkpoints) == {ENTITY_PATH, SERVLET_PATH, PERSISTENCE_PATH}
        assert tracker.checkpoint_count() == 3
        assert run.statistics()["files_changed"] == 3
    
    def test_change_details(self, engine: RefactoringEngine, plan: MigrationPlan) -> None:
        run = engine.apply_plan(plan)
        
        entity = next(c for c in run.changes if c.file_path == ENTITY_PATH)
        assert entity.applied_recipes == ("AddJakartaNamespace", "MigrateJpa")
        types = [d.change_type for d in entity.changes]
        assert types == [ChangeType.IMPORT_CHANGE, ChangeType.IMPORT_CHANGE, ChangeType.TYPE_REFERENCE_CHANGE]
        assert entity.changes[0].line_number == 3
        
        descriptor = next(c for c in run.changes if c.file_path == PERSISTENCE_PATH)
        assert descriptor.changes[0].change_type is ChangeType.XML_NAMESPACE_CHANGE
    
    def test_untouched_file_not_checkpointed(
        self,
        sample_project: Path,
        engine: RefactoringEngine,
        plan: MigrationPlan
    ) -> None:
        original = read(sample_project, "src/main/java/com/example/shop/Processor.java")
        run = engine.apply_plan(plan)
        
        assert "src/main/java/com/example/shop/Processor.java" not in run.checkpoints
        assert read(sample_project, "src/main/java/com/example/shop/Processor.java") == original
    
    def test_dry_run_writes_nothing(
        self,
        sample_project: Path,
        engine: RefactoringEngine,
        tracker: ChangeTracker,
        plan: MigrationPlan
    ) -> None:
        """
        Test: Apply the plan as a dry run.
        
        Expected: Changes are reported but no file is written and no
        checkpoint is held.
        """
        before = read(sample_project, SERVLET_PATH)
        run = engine.apply_plan(plan, dry_run=True)
        
        assert run.dry_run
        assert run.state is MigrationState.PHASE_4_COMPLETE
        assert read(sample_project, SERVLET_PATH) == before
        assert run.checkpoints == {}
        assert tracker.checkpoint_count() == 0
        assert SERVLET_PATH in run.changed_files
    
    def test_empty_plan(self, engine: RefactoringEngine) -> None:
        run = engine.apply_plan(MigrationPlan())
        
        assert run.state is MigrationState.PHASE_4_COMPLETE
        assert run.changes == []


class TestRollback:
    """Tests for automatic and explicit rollback."""
    
    def test_recipe_failure_restores_touched_files(
        self,
        sample_project: Path,
        engine: RefactoringEngine,
        tracker: ChangeTracker,
        library: RecipeLibrary
    ) -> None:
        """
        Test: The second file's recipe raises after the first file changed.
        
        Expected: The first file is restored, the run is ROLLED_BACK and the
        first file's checkpoint content is still available.
        """
        original = read(sample_project, ENTITY_PATH)
        broken = ExplodingRecipe("Explode", "always fails", "x -> y", SafetyLevel.MEDIUM)
        plan = MigrationPlan((
            PlanEntry(ENTITY_PATH, library.blanket_recipe(), 1),
            PlanEntry(SERVLET_PATH, broken, 3),
        ))
        
        run = engine.apply_plan(plan)
        
        assert run.state is MigrationState.ROLLED_BACK
        assert read(sample_project, ENTITY_PATH) == original
        assert ENTITY_PATH in run.restored_files
        assert tracker.get_original_content(run.checkpoints[ENTITY_PATH]) == original
        assert set(run.checkpoints) == {ENTITY_PATH, SERVLET_PATH}
        assert tracker.checkpoint_count() == 2
        assert run.can_rollback
        assert len(run.failures) == 1
        assert "Explode" in run.failures[0]
        assert SERVLET_PATH in run.failures[0]
    
    def test_missing_file_rolls_back(self, engine: RefactoringEngine, library: RecipeLibrary) -> None:
        plan = MigrationPlan((PlanEntry("src/Missing.java", library.blanket_recipe(), 1),))
        
        run = engine.apply_plan(plan)
        
        assert run.state is MigrationState.ROLLED_BACK
        assert run.failures
    
    def test_cancelled_before_start(
        self,
        sample_project: Path,
        engine: RefactoringEngine,
        plan: MigrationPlan
    ) -> None:
        before = read(sample_project, SERVLET_PATH)
        cancel = threading.Event()
        cancel.set()
        
        run = engine.apply_plan(plan, cancel_event=cancel)
        
        assert run.state is MigrationState.ROLLED_BACK
        assert read(sample_project, SERVLET_PATH) == before
        assert run.failures == ["Run cancelled before completion"]
    
    def test_explicit_rollback(
        self,
        sample_project: Path,
        engine: RefactoringEngine,
        tracker: ChangeTracker,
        plan: MigrationPlan
    ) -> None:
        before = read(sample_project, PERSISTENCE_PATH)
        run = engine.apply_plan(plan)
        
        engine.rollback(run)
        
        assert run.state is MigrationState.ROLLED_BACK
        assert read(sample_project, PERSISTENCE_PATH) == before
        assert sorted(run.restored_files) == sorted([ENTITY_PATH, SERVLET_PATH, PERSISTENCE_PATH])
        assert tracker.checkpoint_count() == 0
        # A second rollback is a no-op
        assert engine.rollback(run).state is MigrationState.ROLLED_BACK
    
    def test_failed_verification_then_rollback(
        self,
        sample_project: Path,
        engine: RefactoringEngine,
        tracker: ChangeTracker,
        plan: MigrationPlan
    ) -> None:
        before = read(sample_project, SERVLET_PATH)
        run = engine.apply_plan(plan)
        
        engine.mark_verified(run, FAILED_STARTUP)
        assert run.state is MigrationState.FAILED
        assert tracker.checkpoint_count() == 3
        
        engine.rollback(run)
        assert run.state is MigrationState.ROLLED_BACK
        assert read(sample_project, SERVLET_PATH) == before
        assert "Verification FAILED: javax/servlet/Filter" in run.failures
        assert tracker.checkpoint_count() == 0
    
    def test_rollback_after_recipe_failure_releases_checkpoints(
        self,
        sample_project: Path,
        engine: RefactoringEngine,
        tracker: ChangeTracker,
        library: RecipeLibrary
    ) -> None:
        """
        Test: Roll back a run that already rolled itself back.
        
        Expected: The files stay restored and the retained checkpoints are
        released.
        """
        original = read(sample_project, ENTITY_PATH)
        broken = ExplodingRecipe("Explode", "always fails", "x -> y", SafetyLevel.MEDIUM)
        run = engine.apply_plan(MigrationPlan((
            PlanEntry(ENTITY_PATH, library.blanket_recipe(), 1),
            PlanEntry(SERVLET_PATH, broken, 3),
        )))
        
        engine.rollback(run)
        
        assert run.state is MigrationState.ROLLED_BACK
        assert run.checkpoints == {}
        assert tracker.checkpoint_count() == 0
        assert not run.can_rollback
        assert read(sample_project, ENTITY_PATH) == original
    
    def test_recipe_failure_logs_rollback_outcome(self, engine: RefactoringEngine) -> None:
        broken = ExplodingRecipe("Explode", "always fails", "x -> y", SafetyLevel.MEDIUM)
        plan = MigrationPlan((PlanEntry(ENTITY_PATH, broken, 3),))
        
        with patch("jakarta_migration.refactoring.refactoring_engine.logger") as mock_logger:
            engine.apply_plan(plan)
        
        warnings = [c.args[0] for c in mock_logger.warning.call_args_list]
        infos = [c.args[0] for c in mock_logger.info.call_args_list]
        assert any("rolled back after" in message for message in warnings)
        assert not any("completed in" in message for message in infos)


class TestCompletion:
    """Tests for verification and the state machine."""
    
    def test_verified_run_completes(
        self,
        sample_project: Path,
        engine: RefactoringEngine,
        tracker: ChangeTracker,
        plan: MigrationPlan
    ) -> None:
        run = engine.apply_plan(plan)
        
        engine.mark_verified(run, PASSED)
        engine.complete(run)
        
        assert run.state is MigrationState.COMPLETE
        assert run.checkpoints == {}
        assert tracker.checkpoint_count() == 0
        assert not run.can_rollback
        assert "jakarta.servlet" in read(sample_project, SERVLET_PATH)
    
    def test_partial_without_migration_errors_is_verified(
        self,
        engine: RefactoringEngine,
        plan: MigrationPlan
    ) -> None:
        run = engine.apply_plan(plan)
        
        engine.mark_verified(run, VerificationResult(VerificationStatus.PARTIAL))
        
        assert run.state is MigrationState.VERIFIED
    
    def test_failed_without_errors_records_status(
        self,
        engine: RefactoringEngine,
        plan: MigrationPlan
    ) -> None:
        run = engine.apply_plan(plan)
        
        engine.mark_verified(run, VerificationResult(VerificationStatus.TIMEOUT))
        
        assert run.state is MigrationState.FAILED
        assert run.failures == ["Verification TIMEOUT"]
    
    def test_complete_requires_verification(self, engine: RefactoringEngine, plan: MigrationPlan) -> None:
        run = engine.apply_plan(plan)
        
        with pytest.raises(InvalidStateTransition):
            engine.complete(run)
    
    def test_completed_run_cannot_roll_back(self, engine: RefactoringEngine, plan: MigrationPlan) -> None:
        run = engine.apply_plan(plan)
        engine.mark_verified(run, PASSED)
        engine.complete(run)
        
        with pytest.raises(InvalidStateTransition):
            engine.rollback(run)
    
    def test_not_started_cannot_be_verified(self, engine: RefactoringEngine) -> None:
        with pytest.raises(InvalidStateTransition):
            engine.mark_verified(MigrationRun(), PASSED)
    
    @pytest.mark.parametrize("source,target,allowed", [
        (MigrationState.NOT_STARTED, MigrationState.IN_PROGRESS, True),
        (MigrationState.NOT_STARTED, MigrationState.PHASE_1_COMPLETE, False),
        (MigrationState.PHASE_1_COMPLETE, MigrationState.PHASE_3_COMPLETE, False),
        (MigrationState.PHASE_4_COMPLETE, MigrationState.VERIFIED, True),
        (MigrationState.VERIFIED, MigrationState.COMPLETE, True),
        (MigrationState.FAILED, MigrationState.ROLLED_BACK, True),
        (MigrationState.COMPLETE, MigrationState.ROLLED_BACK, False),
        (MigrationState.ROLLED_BACK, MigrationState.IN_PROGRESS, False),
    ])
    def test_transitions(self, source: MigrationState, target: MigrationState, allowed: bool) -> None:
        assert source.can_transition_to(target) is allowed
