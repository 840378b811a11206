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
Refactoring Package

Recipe catalog, migration planner and the checkpoint-protected engine
that applies the plan to a project tree.
"""

from jakarta_migration.refactoring.models import (
    SafetyLevel,
    Recipe,
    Checkpoint,
    MigrationState,
    MigrationPlan,
    MigrationRun,
)
from jakarta_migration.refactoring.recipe_library import RecipeLibrary
from jakarta_migration.refactoring.migration_planner import MigrationPlanner
from jakarta_migration.refactoring.change_tracker import ChangeTracker
from jakarta_migration.refactoring.refactoring_engine import RefactoringEngine

__all__ = [
    "SafetyLevel",
    "Recipe",
    "Checkpoint",
    "MigrationState",
    "MigrationPlan",
    "MigrationRun",
    "RecipeLibrary",
    "MigrationPlanner",
    "ChangeTracker",
    "RefactoringEngine",
]
