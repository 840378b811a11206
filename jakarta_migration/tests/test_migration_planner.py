"""
Tests for the Migration Planner

Tests cover:
1. Phase ordering (blanket rewrite first, then by safety level)
2. Descriptor planning
3. Files without applicable recipes
"""

from datetime import timedelta
from pathlib import Path

import pytest

from jakarta_migration.analysis.models import FileUsage, SourceScanResult
from jakarta_migration.analysis.source_scanner import SourceScanner
from jakarta_migration.refactoring.migration_planner import MigrationPlanner, phase_of
from jakarta_migration.refactoring.recipe_library import BLANKET_RECIPE, RecipeLibrary


ENTITY_PATH = "src/main/java/com/example/shop/Order.java"
SERVLET_PATH = "src/main/java/com/example/shop/OrderServlet.java"
PERSISTENCE_PATH = "src/main/resources/META-INF/persistence.xml"


def scan_of(*usages: FileUsage) -> SourceScanResult:
    return SourceScanResult(
        usages=usages,
        total_files_scanned=len(usages),
        files_with_legacy_usage=len(usages),
        total_legacy_imports=sum(len(u.legacy_imports) for u in usages),
    )


@pytest.fixture
def planner() -> MigrationPlanner:
    return MigrationPlanner(RecipeLibrary.with_defaults())


class TestMigrationPlanner:
    """Tests for plan construction."""
    
    def test_sample_project_plan(self, sample_project: Path, planner: MigrationPlanner) -> None:
        """
        Test: Plan the sample project.
        
        Expected: Blanket rewrites first, then the HIGH persistence.xml
        recipe, then the MEDIUM family recipes; ties by file path.
        """
        plan = planner.create_plan(SourceScanner(sample_project).scan())
        
        assert [(e.phase, e.file_path, e.recipe.name) for e in plan.entries] == [
            (1, ENTITY_PATH, BLANKET_RECIPE),
            (1, SERVLET_PATH, BLANKET_RECIPE),
            (2, PERSISTENCE_PATH, "UpdatePersistenceXml"),
            (3, ENTITY_PATH, "MigrateJpa"),
            (3, SERVLET_PATH, "MigrateServletApi"),
        ]
        assert plan.files == [ENTITY_PATH, SERVLET_PATH, PERSISTENCE_PATH]
        assert plan.estimated_duration == timedelta(minutes=13)
    
    def test_single_import_starts_with_blanket(self, planner: MigrationPlanner) -> None:
        usage = FileUsage("src/A.java", legacy_imports=("javax.ejb.Stateless",))
        plan = planner.create_plan(scan_of(usage))
        
        assert plan.entries[0].recipe.name == BLANKET_RECIPE
        assert [e.recipe.name for e in plan.entries_for("src/A.java")] == [BLANKET_RECIPE, "MigrateEjb"]
        assert plan.phases[4][0].recipe.name == "MigrateEjb"
    
    def test_references_only_skip_blanket(self, planner: MigrationPlanner) -> None:
        usage = FileUsage("src/B.java", legacy_references=("javax.inject.Inject",))
        plan = planner.create_plan(scan_of(usage))
        
        assert [(e.phase, e.recipe.name) for e in plan.entries] == [(2, "MigrateInject")]
    
    def test_unknown_descriptor_left_out(self, planner: MigrationPlanner) -> None:
        usage = FileUsage(
            "conf/custom.xml",
            legacy_xml_namespaces=("http://xmlns.jcp.org/xml/ns/javaee",),
        )
        
        assert len(planner.create_plan(scan_of(usage))) == 0
    
    def test_empty_scan(self, planner: MigrationPlanner) -> None:
        plan = planner.create_plan(scan_of())
        
        assert len(plan) == 0
        assert plan.estimated_duration == timedelta(0)
        assert plan.overall_risk == 0.0
    
    def test_phase_of(self) -> None:
        library = RecipeLibrary.with_defaults()
        
        assert phase_of(library.blanket_recipe()) == 1
        assert phase_of(library.get_by_name("MigrateJta")) == 2
        assert phase_of(library.get_by_name("MigrateJms")) == 3
        assert phase_of(library.get_by_name("MigrateFaces")) == 4
