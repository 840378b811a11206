"""
Tests for the Source Scanner

Tests cover:
1. Legacy imports and qualified references in Java sources
2. Legacy schema namespaces in deployment descriptors
3. JDK javax packages and excluded build directories
"""

from pathlib import Path

from jakarta_migration.analysis.source_scanner import SourceScanner, extract_imports

JAVA_DIR = "src/main/java/com/example/shop"
SERVLET_PATH = f"{JAVA_DIR}/OrderServlet.java"
ENTITY_PATH = f"{JAVA_DIR}/Order.java"
PROCESSOR_PATH = f"{JAVA_DIR}/Processor.java"
PERSISTENCE_PATH = "src/main/resources/META-INF/persistence.xml"


class TestSourceScanner:
    """Tests for project scanning."""
    
    def test_scan_sample_project(self, sample_project: Path) -> None:
        """
        Test: Scan the sample project.
        
        Expected: The servlet, the entity and persistence.xml use javax; the
        annotation processor (JDK javax) and target/ are ignored.
        """
        result = SourceScanner(sample_project).scan()
        
        files = {u.file_path for u in result.usages}
        assert files == {SERVLET_PATH, ENTITY_PATH, PERSISTENCE_PATH}
        assert result.total_files_scanned == 4
        assert result.files_with_legacy_usage == 3
        assert result.total_legacy_imports == 6
        assert result.descriptor_files == [PERSISTENCE_PATH]
        assert result.usage_for(PROCESSOR_PATH) is None
    
    def test_import_lines_and_references(self, sample_project: Path) -> None:
        usage = SourceScanner(sample_project).scan_file(sample_project / ENTITY_PATH)
        
        assert usage.legacy_imports == ("javax.persistence.Entity", "javax.persistence.Id")
        assert usage.import_lines["javax.persistence.Entity"] == 3
        assert usage.legacy_references == ("javax.persistence.Column",)
    
    def test_descriptor_namespace(self, sample_project: Path) -> None:
        usage = SourceScanner(sample_project).scan_file(sample_project / PERSISTENCE_PATH)
        
        assert usage.is_descriptor
        assert usage.legacy_xml_namespaces == ("http://xmlns.jcp.org/xml/ns/persistence",)
    
    def test_custom_excluded_dirs(self, sample_project: Path) -> None:
        """
        Test: Scan with an empty exclusion list.
        
        Expected: The stale file under target/ is reported too.
        """
        result = SourceScanner(sample_project, excluded_dirs=()).scan()
        
        assert result.usage_for("target/classes/Stale.java") is not None
    
    def test_static_and_wildcard_imports(self) -> None:
        content = "import static javax.ws.rs.core.MediaType.APPLICATION_JSON;\nimport javax.ws.rs.*;\n"
        
        assert extract_imports(content) == {
            "javax.ws.rs.core.MediaType.APPLICATION_JSON": 1,
            "javax.ws.rs.*": 2,
        }
