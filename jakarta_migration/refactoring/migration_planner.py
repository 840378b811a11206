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
Migration Planner

Turns the analysis report and the source scan into an ordered list of
(file, recipe) applications.

Ordering:
1. The blanket import rewrite runs first (phase 1)
2. Then recipes by safety: HIGH (phase 2), MEDIUM (phase 3), LOW (phase 4)
3. Ties broken by file path, then recipe name
"""

from datetime import timedelta
from typing import Optional

from jakarta_migration.analysis.models import DependencyAnalysisReport, FileUsage, SourceScanResult
from jakarta_migration.analysis.namespace_classifier import legacy_family
from jakarta_migration.refactoring.models import MigrationPlan, PlanEntry, Recipe, SafetyLevel
from jakarta_migration.refactoring.recipe_library import RecipeLibrary
from jakarta_migration.utils.logging_config import get_logger

logger = get_logger(__name__)


# Rough review effort per application, used for the duration estimate
REVIEW_EFFORT: dict[SafetyLevel, timedelta] = {
    SafetyLevel.HIGH: timedelta(minutes=1),
    SafetyLevel.MEDIUM: timedelta(minutes=5),
    SafetyLevel.LOW: timedelta(minutes=15),
}
BLOCKER_EFFORT = timedelta(hours=2)


def phase_of(recipe: Recipe) -> int:
    """1 for the blanket rewrite, otherwise 2/3/4 by safety level."""
    if recipe.is_blanket:
        return 1
    return recipe.safety_level.value + 1


class MigrationPlanner:
    """Builds the application plan for a scanned project."""
    
    def __init__(self, library: RecipeLibrary) -> None:
        """
        Initialize the planner.
        
        Args:
            library: Recipe catalog to draw from
        """
        self.library = library
    
    def create_plan(
        self,
        scan: SourceScanResult,
        report: Optional[DependencyAnalysisReport] = None
    ) -> MigrationPlan:
        """
        Plan every file of the scan that has an applicable recipe.
        
        Files with no applicable recipe are left out of the plan.
        """
        entries: list[PlanEntry] = []
        for usage in sorted(scan.usages, key=lambda u: u.file_path):
            recipes = self._recipes_for(usage)
            if not recipes:
                logger.debug(f"No applicable recipe for {usage.file_path}")
                continue
            entries.extend(PlanEntry(usage.file_path, r, phase_of(r)) for r in recipes)
        
        entries.sort(key=lambda e: (e.phase, e.file_path, e.recipe.name))
        
        duration = sum((REVIEW_EFFORT[e.recipe.safety_level] for e in entries), timedelta(0))
        overall_risk = 0.0
        if report is not None:
            duration += BLOCKER_EFFORT * len(report.blocked_artifacts())
            overall_risk = report.risk_assessment.risk_score
        
        plan = MigrationPlan(tuple(entries), duration, overall_risk)
        logger.info(
            f"Planned {len(plan)} recipe application(s) over {len(plan.files)} file(s), "
            f"estimated review effort {plan.estimated_duration}"
        )
        return plan
    
    def _recipes_for(self, usage: FileUsage) -> list[Recipe]:
        handlers = {
            True: self._plan_descriptor,
            False: self._plan_java_source,
        }
        recipes = handlers[usage.is_descriptor](usage)
        return [r for r in recipes if r.applies_to(usage.file_path)]
    
    def _plan_descriptor(self, usage: FileUsage) -> list[Recipe]:
        if not usage.legacy_xml_namespaces:
            return []
        return self.library.descriptor_recipes(usage.file_path)
    
    def _plan_java_source(self, usage: FileUsage) -> list[Recipe]:
        recipes: list[Recipe] = []
        if usage.legacy_imports:
            blanket = self.library.blanket_recipe()
            if blanket is not None:
                recipes.append(blanket)
        
        families = {legacy_family(name) for name in (*usage.legacy_imports, *usage.legacy_references)}
        families.discard(None)
        recipes.extend(self.library.recipes_for_families(families))
        return recipes
