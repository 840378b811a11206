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
Verification Package

Runs the migrated application (or scans its sources) and classifies
the failures that the javax to jakarta move typically causes.
"""

from jakarta_migration.verification.models import (
    ErrorType,
    ErrorCategory,
    VerificationStatus,
    RuntimeErrorRecord,
    ErrorAnalysis,
    RemediationStep,
    VerificationOptions,
    ExecutionMetrics,
    VerificationResult,
)
from jakarta_migration.verification.error_pattern_matcher import ErrorPatternMatcher
from jakarta_migration.verification.error_analyzer import ErrorAnalyzer
from jakarta_migration.verification.process_executor import ProcessExecutor
from jakarta_migration.verification.runtime_verifier import RuntimeVerifier

__all__ = [
    "ErrorType",
    "ErrorCategory",
    "VerificationStatus",
    "RuntimeErrorRecord",
    "ErrorAnalysis",
    "RemediationStep",
    "VerificationOptions",
    "ExecutionMetrics",
    "VerificationResult",
    "ErrorPatternMatcher",
    "ErrorAnalyzer",
    "ProcessExecutor",
    "RuntimeVerifier",
]
