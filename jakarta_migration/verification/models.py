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
Data Models for Runtime Verification

Records describing a verification run: options, process metrics, the
runtime errors observed and how they were classified.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from jakarta_migration.config import MigrationSettings, VERIFICATION_MAX_MEMORY_BYTES, VERIFICATION_TIMEOUT_SECONDS
from jakarta_migration.errors import ValidationError, require_non_negative, require_text, require_unit_interval


class ErrorType(Enum):
    CLASS_NOT_FOUND = "class_not_found"
    NO_CLASS_DEF_FOUND = "no_class_def_found"
    LINKAGE_ERROR = "linkage_error"
    NO_SUCH_METHOD = "no_such_method"
    NO_SUCH_FIELD = "no_such_field"
    ILLEGAL_ACCESS = "illegal_access"
    CLASS_CAST = "class_cast"
    OTHER = "other"


class ErrorCategory(Enum):
    NAMESPACE_MIGRATION = "namespace_migration"
    CLASSPATH_ISSUE = "classpath_issue"
    BINARY_INCOMPATIBILITY = "binary_incompatibility"
    CONFIGURATION_ERROR = "configuration_error"
    UNKNOWN = "unknown"
    
    @property
    def is_migration_related(self) -> bool:
        return self in (
            ErrorCategory.NAMESPACE_MIGRATION,
            ErrorCategory.CLASSPATH_ISSUE,
            ErrorCategory.BINARY_INCOMPATIBILITY,
        )


class VerificationStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PARTIAL = "partial"
    TIMEOUT = "timeout"
    PENDING = "pending"
    ERROR = "error"


@dataclass(frozen=True)
class StackTraceElement:
    class_name: str
    method_name: str
    file_name: Optional[str] = None
    line_number: int = -1


@dataclass(frozen=True)
class StackTrace:
    exception_class: str
    message: str
    elements: tuple[StackTraceElement, ...] = ()
    
    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))


@dataclass(frozen=True)
class RuntimeErrorRecord:
    """One error observed while running the migrated application."""
    error_type: ErrorType
    message: str
    stack_trace: StackTrace
    class_name: str
    method_name: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    confidence: float = 0.5
    category: ErrorCategory = ErrorCategory.UNKNOWN
    
    def __post_init__(self) -> None:
        if not isinstance(self.error_type, ErrorType):
            raise ValidationError("error_type", "must be an ErrorType")
        if self.message is None:
            raise ValidationError("message", "must not be None")
        if self.timestamp is None:
            raise ValidationError("timestamp", "must not be None")
        require_unit_interval("confidence", self.confidence)


@dataclass(frozen=True)
class ErrorAnalysis:
    category: ErrorCategory
    root_cause: str
    contributing_factors: tuple[str, ...] = ()
    similar_failures: tuple[str, ...] = ()
    suggested_fixes: tuple[str, ...] = ()
    confidence: float = 0.5
    
    def __post_init__(self) -> None:
        require_text("root_cause", self.root_cause)
        require_unit_interval("confidence", self.confidence)
        object.__setattr__(self, "contributing_factors", tuple(self.contributing_factors))
        object.__setattr__(self, "similar_failures", tuple(self.similar_failures))
        object.__setattr__(self, "suggested_fixes", tuple(self.suggested_fixes))


@dataclass(frozen=True)
class RemediationStep:
    description: str
    action: str
    details: tuple[str, ...] = ()
    priority: int = 0
    
    def __post_init__(self) -> None:
        require_text("description", self.description)
        require_text("action", self.action)
        require_non_negative("priority", self.priority)
        object.__setattr__(self, "details", tuple(self.details))


@dataclass(frozen=True)
class VerificationOptions:
    """
    Limits and capture settings for one verification.
    
    Attributes:
        timeout: Hard deadline in seconds
        max_memory_bytes: Heap ceiling passed to the JVM (0 disables it)
        capture_stdout: Keep the process's stdout
        capture_stderr: Keep the process's stderr
        jvm_args: Extra JVM arguments placed before ``-jar``
    """
    timeout: float = VERIFICATION_TIMEOUT_SECONDS
    max_memory_bytes: int = VERIFICATION_MAX_MEMORY_BYTES
    capture_stdout: bool = True
    capture_stderr: bool = True
    jvm_args: tuple[str, ...] = ()
    
    def __post_init__(self) -> None:
        if self.timeout is None or self.timeout <= 0:
            raise ValidationError("timeout", "must be positive")
        require_non_negative("max_memory_bytes", self.max_memory_bytes)
        object.__setattr__(self, "jvm_args", tuple(self.jvm_args))
    
    @classmethod
    def from_settings(cls, settings: MigrationSettings) -> "VerificationOptions":
        return cls(
            timeout=settings.verification_timeout_seconds,
            max_memory_bytes=settings.verification_max_memory_bytes,
            jvm_args=tuple(settings.jvm_args),
        )


@dataclass(frozen=True)
class ExecutionMetrics:
    execution_time: float
    memory_used_bytes: int
    exit_code: int
    timed_out: bool
    memory_exceeded: bool = False
    
    def __post_init__(self) -> None:
        require_non_negative("execution_time", self.execution_time)
        require_non_negative("memory_used_bytes", self.memory_used_bytes)
    
    @classmethod
    def empty(cls) -> "ExecutionMetrics":
        return cls(0.0, 0, -1, False)


@dataclass(frozen=True)
class VerificationResult:
    status: VerificationStatus
    errors: tuple[RuntimeErrorRecord, ...] = ()
    warnings: tuple[str, ...] = ()
    metrics: ExecutionMetrics = field(default_factory=ExecutionMetrics.empty)
    stdout: str = ""
    stderr: str = ""
    analysis: Optional[ErrorAnalysis] = None
    
    def __post_init__(self) -> None:
        object.__setattr__(self, "errors", tuple(self.errors))
        object.__setattr__(self, "warnings", tuple(self.warnings))
    
    @property
    def migration_errors(self) -> list[RuntimeErrorRecord]:
        return [e for e in self.errors if e.category.is_migration_related]
    
    @property
    def passed(self) -> bool:
        """True when nothing migration related went wrong."""
        if self.status is VerificationStatus.SUCCESS:
            return True
        return self.status is VerificationStatus.PARTIAL and not self.migration_errors
