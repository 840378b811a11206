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
Command-line interface for the Jakarta migration toolkit.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from jakarta_migration.config import load_settings
from jakarta_migration.errors import DependencyGraphException
from jakarta_migration.migration_agent import MigrationAgent
from jakarta_migration.refactoring.models import MigrationState
from jakarta_migration.utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_GRAPH_ERROR = 2

SUCCESSFUL_RUN_STATES = (MigrationState.PHASE_4_COMPLETE, MigrationState.COMPLETE)


# ============================================================================
# COMMANDS
# ============================================================================

def _analyze(agent: MigrationAgent, as_json: bool) -> int:
    report = agent.analyze()
    if as_json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(agent.formatter.format_analysis(report))
    return EXIT_OK


def _plan(agent: MigrationAgent, as_json: bool) -> int:
    agent.analyze()
    plan = agent.plan()
    if as_json:
        print(json.dumps(
            [
                {"file": e.file_path, "recipe": e.recipe.name, "phase": e.phase}
                for e in plan.entries
            ],
            indent=2,
        ))
    else:
        print(agent.formatter.format_plan(plan))
    return EXIT_OK


def _migrate(agent: MigrationAgent, as_json: bool, dry_run: bool) -> int:
    agent.analyze()
    run = agent.migrate(dry_run=dry_run)
    if as_json:
        print(json.dumps({"run_id": run.run_id, "state": run.state.value, **run.statistics()}, indent=2))
    else:
        print(agent.formatter.format_run(run))
    return EXIT_OK if run.state in SUCCESSFUL_RUN_STATES else EXIT_FAILED


def _verify(agent: MigrationAgent, as_json: bool) -> int:
    result = agent.verify()
    if as_json:
        print(json.dumps(
            {
                "status": result.status.value,
                "errors": [e.message for e in result.errors],
                "warnings": list(result.warnings),
            },
            indent=2,
        ))
    else:
        print(agent.formatter.format_verification(result))
    return EXIT_OK if result.passed else EXIT_FAILED


def _run(agent: MigrationAgent, dry_run: bool) -> int:
    result = agent.run(dry_run=dry_run)
    agent.print_report(result)
    return EXIT_OK if result["run"].state in SUCCESSFUL_RUN_STATES else EXIT_FAILED


# ============================================================================
# CLI INTERFACE
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jakarta-migrate",
        description="Analyze, refactor and verify a javax to jakarta migration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  jakarta-migrate ./my-app --analyze
  jakarta-migrate ./my-app --plan
  jakarta-migrate ./my-app --migrate --dry-run
  jakarta-migrate ./my-app --run --timeout 120
        """
    )
    parser.add_argument("project", type=Path, help="Root of the Java project")
    
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--analyze", "-a", action="store_true", help="Analyze dependencies (default)")
    mode.add_argument("--plan", "-p", action="store_true", help="Show the migration plan")
    mode.add_argument("--migrate", "-m", action="store_true", help="Apply the migration plan")
    mode.add_argument("--verify", action="store_true", help="Verify the migrated project")
    mode.add_argument("--run", "-r", action="store_true", help="Full pipeline with verification")
    
    parser.add_argument(
        "--dry-run", "-n", action="store_true",
        help="Compute changes without writing files"
    )
    parser.add_argument(
        "--config", "-c", type=str,
        help="YAML settings file (default: jakarta-migration.yaml if present)"
    )
    parser.add_argument(
        "--workers", "-w", type=int,
        help="Parallel workers for artifact analysis"
    )
    parser.add_argument(
        "--timeout", "-t", type=float,
        help="Verification deadline in seconds"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--json", action="store_true", help="Machine-readable output")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    
    setup_logging("DEBUG" if args.verbose else "INFO", force=True)
    
    try:
        settings = load_settings(
            args.config,
            overrides={
                "analysis_workers": args.workers,
                "verification_timeout_seconds": args.timeout,
            },
        )
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_FAILED
    
    agent = MigrationAgent(args.project, settings)
    try:
        if args.plan:
            return _plan(agent, args.json)
        if args.migrate:
            return _migrate(agent, args.json, args.dry_run)
        if args.verify:
            return _verify(agent, args.json)
        if args.run:
            return _run(agent, args.dry_run)
        return _analyze(agent, args.json)
    except DependencyGraphException as e:
        logger.error(f"Could not build the dependency graph: {e}")
        return EXIT_GRAPH_ERROR


if __name__ == "__main__":
    sys.exit(main())
