"""
Tests for namespace classification and the Jakarta mapping table

Tests cover:
1. Coordinate rules (known legacy, modern-since versions, framework families)
2. Archive package rules through an injected inspector
3. Parallel classification and blocker detection
4. Package name helpers
5. Mapping lookup and mapping distance
"""

import pytest
from unittest.mock import Mock

from jakarta_migration.analysis.blocker_detector import MigrationBlockerDetector
from jakarta_migration.analysis.mapping_service import JakartaMappingService
from jakarta_migration.analysis.models import Artifact, DependencyGraph, Dependency, Namespace
from jakarta_migration.analysis.namespace_classifier import (
    NamespaceClassifier,
    legacy_family,
    to_modern_name,
)


class TestCoordinateClassification:
    """Tests for classification from coordinates alone."""
    
    @pytest.fixture
    def classifier(self) -> NamespaceClassifier:
        return NamespaceClassifier()
    
    @pytest.mark.parametrize("artifact, expected", [
        (Artifact("javax.servlet", "javax.servlet-api", "4.0.1"), Namespace.LEGACY),
        (Artifact("jakarta.servlet", "jakarta.servlet-api", "6.0.0"), Namespace.MODERN),
        # 4.x of the jakarta coordinate still ships javax packages
        (Artifact("jakarta.servlet", "jakarta.servlet-api", "4.0.4"), Namespace.LEGACY),
        (Artifact("org.springframework", "spring-web", "5.3.30"), Namespace.LEGACY),
        (Artifact("org.springframework", "spring-web", "6.1.2"), Namespace.MODERN),
        (Artifact("javax.xml.rpc", "javax.xml.rpc-api", "1.1"), Namespace.LEGACY),
        (Artifact("org.slf4j", "slf4j-api", "2.0.9"), Namespace.UNKNOWN),
        # javax.cache never moved to jakarta
        (Artifact("javax.cache", "cache-api", "1.1.1"), Namespace.UNKNOWN),
    ])
    def test_classify(self, classifier: NamespaceClassifier, artifact: Artifact, expected: Namespace) -> None:
        assert classifier.classify(artifact) is expected
    
    def test_classify_is_deterministic(self, classifier: NamespaceClassifier) -> None:
        """
        Test: Classify the same artifact repeatedly.
        
        Expected: The same namespace every call.
        """
        artifact = Artifact("org.hibernate", "hibernate-core", "5.6.15.Final")
        results = {classifier.classify(artifact) for _ in range(5)}
        
        assert results == {Namespace.LEGACY}
    
    def test_classify_all_parallel_matches_sequential(self, classifier: NamespaceClassifier) -> None:
        project = Artifact("com.example", "shop", "1.0.0")
        graph = DependencyGraph()
        for artifact in (
            Artifact("javax.servlet", "javax.servlet-api", "4.0.1"),
            Artifact("jakarta.inject", "jakarta.inject-api", "2.0.1"),
            Artifact("org.slf4j", "slf4j-api", "2.0.9"),
        ):
            graph.add_edge(Dependency(project, artifact))
        
        sequential = classifier.classify_all(graph, workers=1)
        parallel = classifier.classify_all(graph, workers=4)
        
        assert sequential.get_all() == parallel.get_all()
        assert parallel.count(Namespace.LEGACY) == 1
        assert parallel.count(Namespace.MODERN) == 1


class TestParallelEvaluation:
    """Thread pool evaluation must match a sequential run."""
    
    @pytest.fixture
    def graph(self) -> DependencyGraph:
        project = Artifact("com.example", "shop", "1.0.0")
        servlet = Artifact("jakarta.servlet", "jakarta.servlet-api", "6.0.0")
        graph = DependencyGraph()
        for artifact in (
            Artifact("javax.servlet", "javax.servlet-api", "4.0.1"),
            Artifact("javax.persistence", "javax.persistence-api", "2.2"),
            Artifact("javax.xml.rpc", "javax.xml.rpc-api", "1.1"),
            Artifact("org.springframework", "spring-web", "5.3.30"),
            Artifact("org.hibernate", "hibernate-core", "5.6.15.Final"),
            Artifact("org.slf4j", "slf4j-api", "2.0.9"),
            servlet,
        ):
            graph.add_edge(Dependency(project, artifact))
        graph.add_edge(Dependency(servlet, Artifact("javax.activation", "activation", "1.1.1")))
        return graph
    
    def test_blocker_detection_parallel_matches_sequential(self, graph: DependencyGraph) -> None:
        """
        Test: Classify and detect blockers with one worker and with four.
        
        Expected: The same namespaces, blockers, mappings and degraded
        checks either way.
        """
        classifier = NamespaceClassifier()
        service = JakartaMappingService()
        
        sequential_map = classifier.classify_all(graph, workers=1)
        parallel_map = classifier.classify_all(graph, workers=4)
        sequential = MigrationBlockerDetector(graph, sequential_map, service, workers=1).detect_all_blockers()
        parallel = MigrationBlockerDetector(graph, parallel_map, service, workers=4).detect_all_blockers()
        
        assert parallel_map.get_all() == sequential_map.get_all()
        assert parallel.blockers == sequential.blockers
        assert parallel.mappings == sequential.mappings
        assert parallel.degraded_checks == sequential.degraded_checks
        assert set(parallel.compatibility) == set(sequential.compatibility)
        assert parallel.blockers


class TestArchiveClassification:
    """Tests for classification from the packages inside a resolved jar."""
    
    def test_mixed_packages(self) -> None:
        """
        Test: An inspector reports both javax.* and jakarta.* packages.
        
        Expected: MIXED, regardless of what the coordinate suggests.
        """
        inspector = Mock()
        inspector.packages.return_value = {"javax.servlet.http", "jakarta.servlet", "com.acme.web"}
        classifier = NamespaceClassifier(inspector)
        
        assert classifier.classify(Artifact("com.acme", "web-support", "2.0")) is Namespace.MIXED
    
    def test_jdk_packages_do_not_count_as_legacy(self) -> None:
        inspector = Mock()
        inspector.packages.return_value = {"javax.annotation.processing", "com.acme.apt"}
        classifier = NamespaceClassifier(inspector)
        
        assert classifier.classify(Artifact("com.acme", "apt", "1.0")) is Namespace.UNKNOWN
    
    def test_unresolved_archive_falls_back_to_coordinate(self) -> None:
        inspector = Mock()
        inspector.packages.return_value = None
        classifier = NamespaceClassifier(inspector)
        
        assert classifier.classify(Artifact("javax.servlet", "javax.servlet-api", "4.0.1")) is Namespace.LEGACY


class TestPackageNames:
    """Tests for javax package helpers."""
    
    @pytest.mark.parametrize("name, family", [
        ("javax.servlet.http.HttpServlet", "servlet"),
        ("javax.json.bind.Jsonb", "json.bind"),
        ("javax.json.JsonObject", "json"),
        ("javax.security.enterprise.SecurityContext", "security.enterprise"),
        ("javax.annotation.processing.Processor", None),
        ("javax.transaction.xa.XAResource", None),
        ("javax.swing.JFrame", None),
        ("jakarta.servlet.Filter", None),
    ])
    def test_legacy_family(self, name: str, family) -> None:
        assert legacy_family(name) == family
    
    def test_to_modern_name(self) -> None:
        assert to_modern_name("javax.persistence.Entity") == "jakarta.persistence.Entity"
        assert to_modern_name("javax.crypto.Cipher") == "javax.crypto.Cipher"


class TestJakartaMappingService:
    """Tests for legacy -> modern coordinate lookup."""
    
    @pytest.fixture
    def service(self) -> JakartaMappingService:
        return JakartaMappingService()
    
    def test_known_mapping(self, service: JakartaMappingService) -> None:
        mapping = service.find_mapping(Artifact("javax.servlet", "javax.servlet-api", "4.0.1", "provided"))
        
        assert mapping is not None
        assert mapping.target.identifier == "jakarta.servlet:jakarta.servlet-api"
        assert mapping.target.scope == "provided"
        assert mapping.distance == 1
    
    def test_missing_mapping_is_none(self, service: JakartaMappingService) -> None:
        """
        Test: Look up an API dropped from Jakarta EE.
        
        Expected: No mapping (a signal, not an error) and a removal note.
        """
        rpc = Artifact("javax.xml.rpc", "javax.xml.rpc-api", "1.1")
        
        assert service.find_mapping(rpc) is None
        assert not service.has_mapping(rpc)
        assert "JAX-RPC" in service.removal_note(rpc)
    
    def test_family_upgrade_keeps_coordinate(self, service: JakartaMappingService) -> None:
        mapping = service.find_mapping(Artifact("org.springframework", "spring-webmvc", "5.3.30"))
        
        assert mapping.target == Artifact("org.springframework", "spring-webmvc", "6.1.0")
        assert mapping.distance == 0
        assert mapping.min_modern_version == "6.0.0"
    
    def test_already_modern_family_has_no_mapping(self, service: JakartaMappingService) -> None:
        assert service.find_mapping(Artifact("org.springframework", "spring-webmvc", "6.0.11")) is None
    
    def test_extra_mappings_win(self) -> None:
        service = JakartaMappingService({"com.acme:legacy-web": "com.acme:jakarta-web:2.0.0"})
        
        mapping = service.find_mapping(Artifact("com.acme", "legacy-web", "1.4"))
        
        assert mapping.target == Artifact("com.acme", "jakarta-web", "2.0.0")
        assert mapping.distance == 2
