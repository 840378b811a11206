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
Refactoring Engine

Applies a migration plan to the project tree under per-file checkpoints.

A run walks the plan phase by phase (NOT_STARTED -> IN_PROGRESS ->
PHASE_1_COMPLETE ... PHASE_4_COMPLETE). Before a file is first changed its
content is checkpointed. If any recipe fails, or the run is cancelled,
every file the run touched is restored from its checkpoint and the run
ends ROLLED_BACK; the checkpoints stay held until the caller rolls the
run back. After verification the caller either completes the run
(checkpoints released) or rolls it back.
"""

import threading
from datetime import datetime, timezone
from itertools import zip_longest
from pathlib import Path
from typing import Optional

from jakarta_migration.errors import InvalidStateTransition, RecipeApplicationError
from jakarta_migration.refactoring.change_tracker import ChangeTracker
from jakarta_migration.refactoring.models import (
    ChangeDetail,
    ChangeType,
    MigrationPlan,
    MigrationRun,
    MigrationState,
    PlanEntry,
    RefactoringChanges,
)
from jakarta_migration.utils.logging_config import LogContext, get_logger
from jakarta_migration.verification.models import VerificationResult

logger = get_logger(__name__)


def read_source(path: Path, encoding: str = "utf-8") -> str:
    """Read a file keeping its line endings."""
    with open(path, "r", encoding=encoding, newline="") as f:
        return f.read()


def write_source(path: Path, content: str, encoding: str = "utf-8") -> None:
    with open(path, "w", encoding=encoding, newline="") as f:
        f.write(content)


def classify_line_change(file_path: str, original: str, refactored: str) -> tuple[ChangeType, str]:
    stripped = refactored.strip()
    if stripped.startswith("import "):
        return ChangeType.IMPORT_CHANGE, "Updated import from javax to jakarta"
    if stripped.startswith("package "):
        return ChangeType.PACKAGE_CHANGE, "Updated package declaration from javax to jakarta"
    if file_path.endswith(".xml") and "https://jakarta.ee/xml/ns" in refactored:
        return ChangeType.XML_NAMESPACE_CHANGE, "Updated XML schema namespace to Jakarta EE"
    if "jakarta." in refactored:
        return ChangeType.TYPE_REFERENCE_CHANGE, "Updated qualified reference from javax to jakarta"
    return ChangeType.OTHER, "Updated line"


def diff_lines(file_path: str, original: str, refactored: str) -> list[ChangeDetail]:
    """Line-level changes; recipes rewrite in place so lines pair up one to one."""
    details: list[ChangeDetail] = []
    pairs = zip_longest(original.splitlines(), refactored.splitlines(), fillvalue="")
    for number, (before, after) in enumerate(pairs, 1):
        if before == after:
            continue
        change_type, description = classify_line_change(file_path, before, after)
        details.append(ChangeDetail(number, before, after, change_type, description))
    return details


class RefactoringEngine:
    """Runs migration plans against a project tree."""
    
    def __init__(
        self,
        project_root: Path,
        tracker: Optional[ChangeTracker] = None,
        encoding: str = "utf-8"
    ) -> None:
        """
        Initialize the engine.
        
        Args:
            project_root: Root the plan's relative paths resolve against
            tracker: Checkpoint store owned by this engine
            encoding: Source file encoding
        """
        self.project_root = Path(project_root)
        self.tracker = tracker or ChangeTracker()
        self.encoding = encoding
    
    # ------------------------------------------------------------------------
    # Plan application
    # ------------------------------------------------------------------------
    
    def apply_plan(
        self,
        plan: MigrationPlan,
        cancel_event: Optional[threading.Event] = None,
        dry_run: bool = False
    ) -> MigrationRun:
        """
        Apply every entry of ``plan`` in order.
        
        Args:
            plan: Ordered (file, recipe) applications
            cancel_event: Set from another thread to stop before the next entry
            dry_run: Compute the changes without writing or checkpointing
        
        Returns:
            The run; ``PHASE_4_COMPLETE`` on success, ``ROLLED_BACK`` when a
            recipe failed or the run was cancelled
        """
        run = MigrationRun(dry_run=dry_run, started_at=datetime.now(timezone.utc))
        originals: dict[str, str] = {}
        working: dict[str, str] = {}
        applied: dict[str, list[str]] = {}
        
        title = "Dry run" if dry_run else "Applying migration plan"
        with LogContext(logger, f"{title}: {len(plan)} entries, run {run.run_id[:8]}") as context:
            self._transition(run, MigrationState.IN_PROGRESS)
            
            if not self._apply_phases(run, plan, cancel_event, originals, working, applied):
                self._abort(run, release=False)
                context.outcome = run.state.name.lower().replace("_", " ")
                return run
            
            run.changes = [
                RefactoringChanges(
                    path,
                    originals[path],
                    working[path],
                    diff_lines(path, originals[path], working[path]),
                    applied.get(path, []),
                )
                for path in originals
            ]
            run.finished_at = datetime.now(timezone.utc)
            stats = run.statistics()
            logger.info(
                f"Changed {stats['files_changed']} file(s), {stats['lines_changed']} line(s); "
                f"{stats['checkpoints_held']} checkpoint(s) held until the run is completed"
            )
        return run
    
    def _apply_phases(
        self,
        run: MigrationRun,
        plan: MigrationPlan,
        cancel_event: Optional[threading.Event],
        originals: dict[str, str],
        working: dict[str, str],
        applied: dict[str, list[str]]
    ) -> bool:
        """Walk the plan phase by phase; False when the run has to be aborted."""
        for phase in (1, 2, 3, 4):
            for entry in plan.phases[phase]:
                if cancel_event is not None and cancel_event.is_set():
                    logger.warning("Cancellation requested; restoring touched files")
                    run.failures.append("Run cancelled before completion")
                    return False
                try:
                    self._apply_entry(run, entry, originals, working, applied)
                except RecipeApplicationError as e:
                    logger.error(str(e))
                    run.failures.append(str(e))
                    return False
            
            self._transition(run, MigrationState.phase_complete(phase))
            logger.info(f"Phase {phase} complete ({len(plan.phases[phase])} application(s))")
        return True
    
    def _apply_entry(
        self,
        run: MigrationRun,
        entry: PlanEntry,
        originals: dict[str, str],
        working: dict[str, str],
        applied: dict[str, list[str]]
    ) -> None:
        path = self.project_root / entry.file_path
        recipe = entry.recipe
        try:
            if entry.file_path not in working:
                content = read_source(path, self.encoding)
                originals[entry.file_path] = content
                working[entry.file_path] = content
                if not run.dry_run:
                    run.checkpoints[entry.file_path] = self.tracker.create_checkpoint(
                        entry.file_path,
                        content,
                        f"Before migration run {run.run_id[:8]}",
                    )
            
            before = working[entry.file_path]
            after = recipe.apply(before)
            if after != before:
                if not run.dry_run:
                    write_source(path, after, self.encoding)
                working[entry.file_path] = after
                applied.setdefault(entry.file_path, []).append(recipe.name)
                logger.debug(f"  {recipe.name} changed {entry.file_path}")
        except Exception as e:
            # Any failure inside a recipe or the file I/O rolls the run back
            raise RecipeApplicationError(recipe.name, entry.file_path, e) from e
    
    # ------------------------------------------------------------------------
    # Verification outcome, completion and rollback
    # ------------------------------------------------------------------------
    
    def mark_verified(self, run: MigrationRun, result: VerificationResult) -> MigrationRun:
        """
        Record the verification outcome of an applied run.
        
        The run becomes VERIFIED when ``result`` shows no migration related
        errors, FAILED otherwise. A FAILED run keeps its checkpoints so
        ``rollback`` can still restore the files.
        """
        if result.passed:
            self._transition(run, MigrationState.VERIFIED)
            return run
        
        reasons = [
            f"Verification {result.status.name}: {error.message}"
            for error in result.migration_errors
        ]
        run.failures.extend(reasons or [f"Verification {result.status.name}"])
        self._transition(run, MigrationState.FAILED)
        return run
    
    def complete(self, run: MigrationRun) -> MigrationRun:
        """Commit a verified run and release its checkpoints."""
        self._transition(run, MigrationState.COMPLETE)
        self._release(run)
        run.finished_at = datetime.now(timezone.utc)
        logger.info(f"Run {run.run_id[:8]} complete")
        return run
    
    def rollback(self, run: MigrationRun) -> MigrationRun:
        """
        Restore every file the run changed and release its checkpoints.
        
        A run that already rolled itself back after a failed recipe has its
        files restored; only the checkpoints it retained are released.
        """
        if run.state is MigrationState.ROLLED_BACK:
            self._release(run)
            return run
        if not run.state.can_transition_to(MigrationState.ROLLED_BACK):
            raise InvalidStateTransition(f"Cannot roll back a run in state {run.state.name}")
        self._abort(run, release=True)
        return run
    
    def _abort(self, run: MigrationRun, release: bool) -> None:
        restore_failed = False
        for file_path, checkpoint_id in list(run.checkpoints.items()):
            original = self.tracker.get_original_content(checkpoint_id)
            if original is None:
                logger.error(f"Checkpoint for {file_path} is missing; cannot restore")
                run.failures.append(f"Missing checkpoint for {file_path}")
                del run.checkpoints[file_path]
                restore_failed = True
                continue
            try:
                write_source(self.project_root / file_path, original, self.encoding)
            except OSError as e:
                logger.error(f"Could not restore {file_path}: {e}")
                run.failures.append(f"Could not restore {file_path}: {e}")
                restore_failed = True
                continue
            if release:
                self.tracker.remove_checkpoint(checkpoint_id)
                del run.checkpoints[file_path]
            if file_path not in run.restored_files:
                run.restored_files.append(file_path)
            logger.info(f"Restored {file_path}")
        
        run.finished_at = datetime.now(timezone.utc)
        if restore_failed:
            # Unrestored files keep their checkpoints for another rollback attempt
            if run.state.can_transition_to(MigrationState.FAILED):
                self._transition(run, MigrationState.FAILED)
        else:
            self._transition(run, MigrationState.ROLLED_BACK)
        if run.checkpoints:
            logger.info(f"{len(run.checkpoints)} checkpoint(s) retained until the run is rolled back")
    
    def _release(self, run: MigrationRun) -> None:
        for checkpoint_id in run.checkpoints.values():
            self.tracker.remove_checkpoint(checkpoint_id)
        run.checkpoints.clear()
    
    def _transition(self, run: MigrationRun, target: MigrationState) -> None:
        if not run.state.can_transition_to(target):
            raise InvalidStateTransition(f"Illegal transition {run.state.name} -> {target.name}")
        logger.debug(f"Run {run.run_id[:8]}: {run.state.name} -> {target.name}")
        run.state = target
