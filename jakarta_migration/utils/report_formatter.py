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
Report Formatting Utilities

Renders analysis reports, migration plans, migration runs and
verification results as plain-text sections for the console.
"""

from typing import Optional

from jakarta_migration.analysis.models import DependencyAnalysisReport, Namespace
from jakarta_migration.refactoring.models import MigrationPlan, MigrationRun
from jakarta_migration.verification.models import VerificationResult

RULE = "=" * 60
THIN_RULE = "-" * 60


def _heading(title: str, rule: str = THIN_RULE) -> list[str]:
    return ["", rule, title, rule]


def _shown(limit: int, total: int) -> str:
    return f"showing {min(limit, total)} of {total}"


class ReportFormatter:
    """
    Formats pipeline results for display.
    
    Each ``format_*`` method returns a string; nothing is printed here.
    """
    
    def __init__(
        self,
        max_items: int = 10,
        show_confidence: bool = True,
        show_details: bool = True
    ) -> None:
        """
        Initialize the formatter.
        
        Args:
            max_items: Maximum entries listed per section
            show_confidence: Include confidence values for blockers and errors
            show_details: Include mitigation strategies and remediation details
        """
        self.max_items = max_items
        self.show_confidence = show_confidence
        self.show_details = show_details
    
    def format_analysis(self, report: DependencyAnalysisReport) -> str:
        lines = [RULE, "DEPENDENCY ANALYSIS REPORT", RULE]
        nm = report.namespace_map
        lines.append(f"Artifacts: {report.graph.node_count()}  Edges: {report.graph.edge_count()}")
        lines.append(
            f"Namespaces: {nm.count(Namespace.LEGACY)} javax, {nm.count(Namespace.MODERN)} jakarta, "
            f"{nm.count(Namespace.MIXED)} mixed, {nm.count(Namespace.UNKNOWN)} unknown"
        )
        lines.append(f"Readiness: {report.readiness_score.score:.2f} ({report.readiness_score.explanation})")
        lines.append(f"Risk: {report.risk_assessment.risk_score:.2f}")
        for factor in report.risk_assessment.risk_factors:
            lines.append(f"  - {factor}")
        
        if report.blockers:
            lines.extend(_heading(f"BLOCKERS ({_shown(self.max_items, len(report.blockers))})"))
            for i, blocker in enumerate(report.blockers[:self.max_items], 1):
                entry = f"{i}. [{blocker.blocker_type.name}] {blocker.artifact.coordinate}"
                if self.show_confidence:
                    entry += f" (confidence {blocker.confidence:.2f})"
                lines.append(entry)
                lines.append(f"   {blocker.reason}")
                if self.show_details:
                    for strategy in blocker.mitigation_strategies:
                        lines.append(f"     • {strategy}")
        
        if report.recommendations:
            lines.extend(_heading(
                f"VERSION RECOMMENDATIONS ({_shown(self.max_items, len(report.recommendations))})"
            ))
            for rec in report.recommendations[:self.max_items]:
                lines.append(
                    f"- {rec.current_artifact.coordinate} → {rec.recommended_artifact.coordinate} "
                    f"[{rec.compatibility_score:.2f}]"
                )
                if self.show_details and rec.breaking_changes:
                    for change in rec.breaking_changes:
                        lines.append(f"     ! {change}")
        
        if report.transitive_conflicts.has_conflicts:
            conflicts = report.transitive_conflicts.conflicts
            lines.extend(_heading(f"TRANSITIVE CONFLICTS ({_shown(self.max_items, len(conflicts))})"))
            for conflict in conflicts[:self.max_items]:
                lines.append(f"- {conflict.conflict_type}: {conflict.description}")
        
        if report.degraded_checks:
            lines.extend(_heading("DEGRADED CHECKS"))
            lines.extend(f"- {check}" for check in report.degraded_checks)
        
        return "\n".join(lines)
    
    def format_plan(self, plan: MigrationPlan) -> str:
        lines = [RULE, "MIGRATION PLAN", RULE]
        lines.append(
            f"{len(plan.entries)} steps over {len(plan.files)} files, "
            f"estimated {plan.estimated_duration}, risk {plan.overall_risk:.2f}"
        )
        for phase, entries in plan.phases.items():
            if not entries:
                continue
            lines.extend(_heading(f"PHASE {phase} ({_shown(self.max_items, len(entries))})"))
            for entry in entries[:self.max_items]:
                lines.append(
                    f"- {entry.file_path}: {entry.recipe.name} [{entry.recipe.safety_level.name}]"
                )
        return "\n".join(lines)
    
    def format_run(self, run: MigrationRun) -> str:
        stats = run.statistics()
        mode = " (dry run)" if run.dry_run else ""
        lines = [RULE, f"MIGRATION RUN {run.run_id}{mode}", RULE]
        lines.append(f"State: {run.state.name}")
        lines.append(
            f"Files changed: {stats['files_changed']}, lines changed: {stats['lines_changed']}, "
            f"checkpoints held: {stats['checkpoints_held']}"
        )
        changed = run.changed_files
        if changed:
            lines.extend(_heading(f"CHANGED FILES ({_shown(self.max_items, len(changed))})"))
            lines.extend(f"- {path}" for path in changed[:self.max_items])
        if run.failures:
            lines.extend(_heading("FAILURES"))
            lines.extend(f"- {failure}" for failure in run.failures)
        if run.restored_files:
            lines.extend(_heading("RESTORED FILES"))
            lines.extend(f"- {path}" for path in run.restored_files)
        return "\n".join(lines)
    
    def format_verification(self, result: VerificationResult) -> str:
        lines = [RULE, "VERIFICATION RESULT", RULE]
        lines.append(f"Status: {result.status.name}")
        metrics = result.metrics
        if metrics.exit_code >= 0:
            lines.append(
                f"Exit code {metrics.exit_code} after {metrics.execution_time:.1f}s, "
                f"peak memory {metrics.memory_used_bytes // (1024 * 1024)} MiB"
            )
        
        if result.errors:
            lines.extend(_heading(f"ERRORS ({_shown(self.max_items, len(result.errors))})"))
            for i, error in enumerate(result.errors[:self.max_items], 1):
                entry = f"{i}. [{error.category.name}] {error.message}"
                if self.show_confidence:
                    entry += f" (confidence {error.confidence:.2f})"
                lines.append(entry)
        
        if result.analysis is not None:
            analysis = result.analysis
            lines.extend(_heading("ANALYSIS"))
            lines.append(f"Root cause: {analysis.root_cause}")
            for factor in analysis.contributing_factors:
                lines.append(f"  - {factor}")
            if self.show_details and analysis.suggested_fixes:
                lines.append("Suggested fixes:")
                lines.extend(f"  • {fix}" for fix in analysis.suggested_fixes)
        
        if result.warnings:
            lines.extend(_heading(f"WARNINGS ({_shown(self.max_items, len(result.warnings))})"))
            lines.extend(f"- {w}" for w in result.warnings[:self.max_items])
        
        return "\n".join(lines)


# Default formatter instance
_default_formatter: Optional[ReportFormatter] = None


def get_default_formatter() -> ReportFormatter:
    """Get the default report formatter instance."""
    global _default_formatter
    if _default_formatter is None:
        _default_formatter = ReportFormatter()
    return _default_formatter
