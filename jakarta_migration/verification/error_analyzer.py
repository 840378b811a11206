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
Error Analyzer

Extracts runtime errors from a process's output, explains what most
likely caused them and proposes remediation steps.
"""

import re
from typing import Optional

from jakarta_migration.utils.logging_config import get_logger
from jakarta_migration.verification.error_pattern_matcher import ErrorPatternMatcher
from jakarta_migration.verification.models import (
    ErrorAnalysis,
    ErrorCategory,
    RemediationStep,
    RuntimeErrorRecord,
    StackTrace,
    StackTraceElement,
)

logger = get_logger(__name__)


STACK_TRACE_PATTERN = re.compile(r"at\s+([\w.$]+)\.([\w$<>]+)\(([\w.]+\.java):(\d+)\)")
NAMESPACE_CLASS_PATTERN = re.compile(r"(javax|jakarta)[./]([\w.$/]+)")
HEADER_PREFIXES = ("Caused by:", "Exception in thread")

MIGRATION_RELATED_CONFIDENCE = 0.9
OTHER_CONFIDENCE = 0.5
MAX_SIMILAR_FAILURES = 5

ROOT_CAUSES: dict[ErrorCategory, str] = {
    ErrorCategory.NAMESPACE_MIGRATION:
        "Code or a dependency still references javax classes that are no longer on the classpath",
    ErrorCategory.CLASSPATH_ISSUE:
        "Jakarta classes are referenced but no artifact on the runtime classpath provides them",
    ErrorCategory.BINARY_INCOMPATIBILITY:
        "A library compiled against one namespace is linked with classes from the other",
    ErrorCategory.CONFIGURATION_ERROR:
        "A configuration file still uses legacy javax names or schemas",
    ErrorCategory.UNKNOWN:
        "The failure could not be attributed to the namespace migration",
}


class ErrorAnalyzer:
    """Turns raw process output into classified runtime errors and advice."""
    
    def __init__(self, matcher: Optional[ErrorPatternMatcher] = None) -> None:
        self.matcher = matcher or ErrorPatternMatcher()
    
    def parse_errors(self, stderr: str, stdout: str = "") -> list[RuntimeErrorRecord]:
        """
        Find exception headers and their stack frames in the output.
        
        A line mentioning an Exception or Error starts a new error; the
        ``at pkg.Class.method(File.java:N)`` lines after it are its frames.
        """
        errors: list[RuntimeErrorRecord] = []
        header: Optional[str] = None
        frames: list[StackTraceElement] = []
        
        for line in (stderr or "").splitlines() + (stdout or "").splitlines():
            stripped = line.strip()
            if stripped.startswith("at "):
                frame = STACK_TRACE_PATTERN.match(stripped)
                if frame and header is not None:
                    frames.append(StackTraceElement(
                        frame.group(1), frame.group(2), frame.group(3), int(frame.group(4))
                    ))
                continue
            if stripped.startswith("...") or stripped.upper().startswith("WARN"):
                continue
            if "Exception" in stripped or "Error" in stripped:
                if header is not None:
                    errors.append(self._create_error(header, frames))
                header = stripped
                frames = []
        
        if header is not None:
            errors.append(self._create_error(header, frames))
        
        if errors:
            logger.info(f"Parsed {len(errors)} runtime error(s) from process output")
        return errors
    
    def _create_error(self, header: str, frames: list[StackTraceElement]) -> RuntimeErrorRecord:
        text = header
        for prefix in HEADER_PREFIXES:
            if text.startswith(prefix):
                text = text[len(prefix):].strip()
                if prefix == "Exception in thread":
                    # drop the quoted thread name
                    text = re.sub(r'^"[^"]*"\s*', "", text)
        exception_class, _, message = text.partition(":")
        exception_class = exception_class.strip()
        message = message.strip()
        
        referenced = NAMESPACE_CLASS_PATTERN.search(message)
        class_name = referenced.group(0).replace("/", ".") if referenced else exception_class
        method_name = frames[0].method_name if frames else "unknown"
        
        error_type = self.matcher.determine_error_type(text)
        category = self.matcher.determine_error_category(text, class_name)
        confidence = MIGRATION_RELATED_CONFIDENCE if category.is_migration_related else OTHER_CONFIDENCE
        
        return RuntimeErrorRecord(
            error_type=error_type,
            message=message or exception_class,
            stack_trace=StackTrace(exception_class, message, tuple(frames)),
            class_name=class_name,
            method_name=method_name,
            confidence=confidence,
            category=category,
        )
    
    def analyze(self, errors: list[RuntimeErrorRecord], post_migration: bool = True) -> ErrorAnalysis:
        """Explain the most relevant error and list contributing factors."""
        if not errors:
            return ErrorAnalysis(ErrorCategory.UNKNOWN, "No runtime errors observed", confidence=1.0)
        
        primary = next((e for e in errors if e.category.is_migration_related), errors[0])
        category = primary.category
        
        factors: list[str] = []
        if post_migration:
            factors.append("Migration completed but runtime errors detected")
        if len(errors) > 1:
            factors.append(f"Multiple errors detected ({len(errors)} total)")
        texts = [f"{e.message} {e.class_name}".lower() for e in errors]
        if any("javax" in t for t in texts) and any("jakarta" in t for t in texts):
            factors.append("Mixed javax and jakarta namespaces in codebase")
        
        similar = [
            f"{e.stack_trace.exception_class}: {e.message}"
            for e in errors
            if e is not primary and e.category is category
        ][:MAX_SIMILAR_FAILURES]
        
        analysis = ErrorAnalysis(
            category=category,
            root_cause=f"{ROOT_CAUSES[category]} ({primary.class_name})",
            contributing_factors=tuple(factors),
            similar_failures=tuple(similar),
            suggested_fixes=tuple(step.description for step in self._steps_for(category)),
            confidence=primary.confidence,
        )
        logger.info(f"Runtime errors categorized as {category.name}: {analysis.root_cause}")
        return analysis
    
    def remediation(self, analysis: ErrorAnalysis) -> list[RemediationStep]:
        """Ordered remediation steps for the analysis' category."""
        return sorted(self._steps_for(analysis.category), key=lambda s: s.priority)
    
    def _steps_for(self, category: ErrorCategory) -> list[RemediationStep]:
        handlers = {
            ErrorCategory.NAMESPACE_MIGRATION: self._namespace_steps,
            ErrorCategory.CLASSPATH_ISSUE: self._classpath_steps,
            ErrorCategory.BINARY_INCOMPATIBILITY: self._binary_steps,
            ErrorCategory.CONFIGURATION_ERROR: self._configuration_steps,
        }
        handler = handlers.get(category)
        if handler:
            return handler()
        return [RemediationStep(
            "Inspect the stack trace manually",
            "MANUAL_REVIEW",
            ("The error does not match a known migration pattern",),
            3,
        )]
    
    def _namespace_steps(self) -> list[RemediationStep]:
        return [
            RemediationStep(
                "Update import statements",
                "REPLACE_IMPORTS",
                ("Run the AddJakartaNamespace recipe over the remaining sources",),
                1,
            ),
            RemediationStep(
                "Upgrade dependencies still built against javax",
                "UPGRADE_DEPENDENCY",
                ("Apply the version recommendations from the analysis report",),
                2,
            ),
        ]
    
    def _classpath_steps(self) -> list[RemediationStep]:
        return [
            RemediationStep(
                "Add Jakarta dependency",
                "ADD_DEPENDENCY",
                ("Declare the jakarta API artifact that provides the missing class",),
                1,
            ),
            RemediationStep(
                "Check the dependency scope",
                "CHECK_SCOPE",
                ("APIs in 'provided' scope must be supplied by the runtime container",),
                2,
            ),
        ]
    
    def _binary_steps(self) -> list[RemediationStep]:
        return [
            RemediationStep(
                "Upgrade the library to a Jakarta build",
                "UPGRADE_DEPENDENCY",
                ("Look for a release of the library compiled against jakarta.*",),
                1,
            ),
            RemediationStep(
                "Transform the library bytecode",
                "TRANSFORM_ARTIFACT",
                ("Rewrite the jar with the Eclipse Transformer when no Jakarta build exists",),
                2,
            ),
        ]
    
    def _configuration_steps(self) -> list[RemediationStep]:
        return [
            RemediationStep(
                "Update configuration files",
                "UPDATE_CONFIGURATION",
                (
                    "Rename javax.* property keys to jakarta.*",
                    "Move deployment descriptors to the Jakarta EE schemas",
                ),
                1,
            ),
        ]
