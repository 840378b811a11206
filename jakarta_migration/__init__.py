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
Jakarta Migration Toolkit

Analyzes, refactors and verifies the move of a Java project from the
javax.* namespace to jakarta.*.

Main Entry Points:
    - main.py: CLI interface
    - migration_agent.py: end-to-end pipeline
    - analysis/: dependency graph, namespace classification, readiness scoring
    - refactoring/: recipes, planning and checkpointed rewriting
    - verification/: runtime and static verification
    - utils/: Shared utilities
"""

__version__ = "2.0.0"
__all__ = ["__version__"]
