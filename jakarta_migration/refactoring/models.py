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
Data Models for Refactoring

Recipes, checkpoints, the migration state machine and the records the
planner and the refactoring engine exchange.
"""

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from fnmatch import fnmatch
from pathlib import PurePosixPath
from typing import Optional

from jakarta_migration.analysis.namespace_classifier import legacy_family, to_modern_name
from jakarta_migration.errors import ValidationError, require_non_negative, require_text


class SafetyLevel(Enum):
    """How likely a recipe is to need manual follow-up. HIGH is safest."""
    HIGH = 1
    MEDIUM = 2
    LOW = 3


class RecipeKind(Enum):
    NAMESPACE = "namespace"      # blanket import rewrite
    DESCRIPTOR = "descriptor"    # XML schema namespaces
    API_FAMILY = "api_family"    # qualified references of one API family


_IMPORT_LINE = re.compile(r"^(\s*import\s+(?:static\s+)?)(javax\.[\w.]+(?:\.\*)?)(\s*;)", re.MULTILINE)
_QUALIFIED_NAME = re.compile(r"(?<![\w.])javax\.[a-z]\w*(?:\.\w+)*")


@dataclass(frozen=True)
class Recipe:
    """
    A named, catalogued text transformation.
    
    Recipes are idempotent: their targets never contain their sources, so
    running one over already migrated content changes nothing.
    """
    name: str
    description: str
    pattern: str
    safety_level: SafetyLevel
    reversible: bool = True
    kind: RecipeKind = RecipeKind.API_FAMILY
    file_patterns: tuple[str, ...] = ("*.java",)
    families: tuple[str, ...] = ()  # API_FAMILY: javax families this recipe moves
    replacements: tuple[tuple[str, str], ...] = ()  # DESCRIPTOR: literal source -> target
    rewrite_qualified_names: bool = False  # DESCRIPTOR: also move javax class/property names
    
    def __post_init__(self) -> None:
        require_text("name", self.name)
        require_text("description", self.description)
        require_text("pattern", self.pattern)
        if not isinstance(self.safety_level, SafetyLevel):
            raise ValidationError("safety_level", "must be a SafetyLevel")
    
    @property
    def is_blanket(self) -> bool:
        return self.kind is RecipeKind.NAMESPACE
    
    def applies_to(self, file_path: str) -> bool:
        name = PurePosixPath(file_path).name
        return any(fnmatch(name, pattern) for pattern in self.file_patterns)
    
    def apply(self, content: str) -> str:
        """Return the transformed content."""
        if self.kind is RecipeKind.NAMESPACE:
            return _IMPORT_LINE.sub(
                lambda m: m.group(1) + to_modern_name(m.group(2)) + m.group(3), content
            )
        if self.kind is RecipeKind.API_FAMILY:
            return _QUALIFIED_NAME.sub(self._rewrite_family_name, content)
        
        if self.replacements:
            sources = sorted((s for s, _ in self.replacements), key=len, reverse=True)
            targets = dict(self.replacements)
            content = re.sub(
                "|".join(re.escape(s) for s in sources),
                lambda m: targets[m.group(0)],
                content,
            )
        if self.rewrite_qualified_names:
            content = _QUALIFIED_NAME.sub(lambda m: to_modern_name(m.group(0)), content)
        return content
    
    def _rewrite_family_name(self, match: re.Match) -> str:
        name = match.group(0)
        if legacy_family(name) in self.families:
            return to_modern_name(name)
        return name


@dataclass(frozen=True)
class Checkpoint:
    """Metadata of a pre-mutation snapshot; the content lives in the ChangeTracker."""
    checkpoint_id: str
    file_path: str
    timestamp: datetime
    description: str
    
    def __post_init__(self) -> None:
        require_text("checkpoint_id", self.checkpoint_id)
        require_text("file_path", self.file_path)
        if self.timestamp is None:
            raise ValidationError("timestamp", "must not be None")
        if self.description is None:
            raise ValidationError("description", "must not be None")


class MigrationState(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    PHASE_1_COMPLETE = "phase_1_complete"
    PHASE_2_COMPLETE = "phase_2_complete"
    PHASE_3_COMPLETE = "phase_3_complete"
    PHASE_4_COMPLETE = "phase_4_complete"
    VERIFIED = "verified"
    COMPLETE = "complete"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"
    
    def can_transition_to(self, target: "MigrationState") -> bool:
        return target in _TRANSITIONS[self]
    
    @property
    def is_terminal(self) -> bool:
        return self in (MigrationState.COMPLETE, MigrationState.FAILED, MigrationState.ROLLED_BACK)
    
    @classmethod
    def phase_complete(cls, phase: int) -> "MigrationState":
        return _PHASE_STATES[phase - 1]


_PHASE_STATES = (
    MigrationState.PHASE_1_COMPLETE,
    MigrationState.PHASE_2_COMPLETE,
    MigrationState.PHASE_3_COMPLETE,
    MigrationState.PHASE_4_COMPLETE,
)

_ABORT = {MigrationState.FAILED, MigrationState.ROLLED_BACK}

# FAILED may still be rolled back so its retained checkpoints get released
_TRANSITIONS: dict[MigrationState, set[MigrationState]] = {
    MigrationState.NOT_STARTED: {MigrationState.IN_PROGRESS},
    MigrationState.IN_PROGRESS: {MigrationState.PHASE_1_COMPLETE} | _ABORT,
    MigrationState.PHASE_1_COMPLETE: {MigrationState.PHASE_2_COMPLETE} | _ABORT,
    MigrationState.PHASE_2_COMPLETE: {MigrationState.PHASE_3_COMPLETE} | _ABORT,
    MigrationState.PHASE_3_COMPLETE: {MigrationState.PHASE_4_COMPLETE} | _ABORT,
    MigrationState.PHASE_4_COMPLETE: {MigrationState.VERIFIED} | _ABORT,
    MigrationState.VERIFIED: {MigrationState.COMPLETE, MigrationState.ROLLED_BACK},
    MigrationState.COMPLETE: set(),
    MigrationState.FAILED: {MigrationState.ROLLED_BACK},
    MigrationState.ROLLED_BACK: set(),
}


@dataclass(frozen=True)
class PlanEntry:
    """Apply ``recipe`` to ``file_path`` during ``phase`` (1-4)."""
    file_path: str
    recipe: Recipe
    phase: int
    
    def __post_init__(self) -> None:
        require_text("file_path", self.file_path)
        if self.phase not in (1, 2, 3, 4):
            raise ValidationError("phase", f"must be 1-4, got {self.phase}")


@dataclass(frozen=True)
class MigrationPlan:
    entries: tuple[PlanEntry, ...] = ()
    estimated_duration: timedelta = timedelta(0)
    overall_risk: float = 0.0
    
    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", tuple(self.entries))
    
    @property
    def files(self) -> list[str]:
        """Files in the order they are first touched."""
        seen: dict[str, None] = {}
        for entry in self.entries:
            seen.setdefault(entry.file_path, None)
        return list(seen)
    
    @property
    def phases(self) -> dict[int, list[PlanEntry]]:
        grouped: dict[int, list[PlanEntry]] = {phase: [] for phase in (1, 2, 3, 4)}
        for entry in self.entries:
            grouped[entry.phase].append(entry)
        return grouped
    
    def entries_for(self, file_path: str) -> list[PlanEntry]:
        return [e for e in self.entries if e.file_path == file_path]
    
    def __len__(self) -> int:
        return len(self.entries)


class ChangeType(Enum):
    IMPORT_CHANGE = "import_change"
    PACKAGE_CHANGE = "package_change"
    XML_NAMESPACE_CHANGE = "xml_namespace_change"
    TYPE_REFERENCE_CHANGE = "type_reference_change"
    OTHER = "other"


@dataclass(frozen=True)
class ChangeDetail:
    line_number: int
    original_line: str
    refactored_line: str
    change_type: ChangeType
    description: str
    
    def __post_init__(self) -> None:
        require_non_negative("line_number", self.line_number)


@dataclass(frozen=True)
class RefactoringChanges:
    """Before/after view of one file."""
    file_path: str
    original_content: str
    refactored_content: str
    changes: tuple[ChangeDetail, ...] = ()
    applied_recipes: tuple[str, ...] = ()
    
    def __post_init__(self) -> None:
        object.__setattr__(self, "changes", tuple(self.changes))
        object.__setattr__(self, "applied_recipes", tuple(self.applied_recipes))
    
    @property
    def has_changes(self) -> bool:
        return self.original_content != self.refactored_content


@dataclass
class MigrationRun:
    """State of one application of a plan. Owned by the RefactoringEngine."""
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: MigrationState = MigrationState.NOT_STARTED
    dry_run: bool = False
    checkpoints: dict[str, str] = field(default_factory=dict)  # file path -> checkpoint id
    changes: list[RefactoringChanges] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)
    restored_files: list[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    
    @property
    def can_rollback(self) -> bool:
        return bool(self.checkpoints) and self.state is not MigrationState.COMPLETE
    
    @property
    def changed_files(self) -> list[str]:
        return [c.file_path for c in self.changes if c.has_changes]
    
    def statistics(self) -> dict[str, int]:
        return {
            "files_changed": len(self.changed_files),
            "lines_changed": sum(len(c.changes) for c in self.changes),
            "failures": len(self.failures),
            "checkpoints_held": len(self.checkpoints),
        }
