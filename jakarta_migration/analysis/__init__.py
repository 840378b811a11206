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
Dependency Analysis Package

Builds the dependency graph of a Java project, classifies each artifact's
namespace and scores how ready the project is to move from javax to
jakarta.
"""

from jakarta_migration.analysis.models import (
    Artifact,
    Dependency,
    DependencyGraph,
    Namespace,
    NamespaceCompatibilityMap,
    Blocker,
    BlockerType,
    VersionRecommendation,
    RiskAssessment,
    MigrationReadinessScore,
    TransitiveConflict,
    TransitiveConflictReport,
    DependencyAnalysisReport,
    FileUsage,
    SourceScanResult,
)
from jakarta_migration.analysis.dependency_graph_builder import DependencyGraphBuilder
from jakarta_migration.analysis.namespace_classifier import NamespaceClassifier
from jakarta_migration.analysis.mapping_service import JakartaMappingService
from jakarta_migration.analysis.dependency_analysis_engine import DependencyAnalysisEngine
from jakarta_migration.analysis.source_scanner import SourceScanner

__all__ = [
    "Artifact",
    "Dependency",
    "DependencyGraph",
    "Namespace",
    "NamespaceCompatibilityMap",
    "Blocker",
    "BlockerType",
    "VersionRecommendation",
    "RiskAssessment",
    "MigrationReadinessScore",
    "TransitiveConflict",
    "TransitiveConflictReport",
    "DependencyAnalysisReport",
    "FileUsage",
    "SourceScanResult",
    "DependencyGraphBuilder",
    "NamespaceClassifier",
    "JakartaMappingService",
    "DependencyAnalysisEngine",
    "SourceScanner",
]
