"""
Tests for Runtime Verification

Tests cover:
1. Status classification of process outcomes
2. Static verification of sources
3. Conversion of runtime errors into blockers
4. The process executor (subprocess mocked)
5. Health checks
"""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, Mock, patch

import httpx
import pytest

from jakarta_migration.analysis.models import Artifact, BlockerType
from jakarta_migration.errors import ToolExecutionError
from jakarta_migration.verification.models import (
    ErrorCategory,
    ExecutionMetrics,
    VerificationOptions,
    VerificationStatus,
)
from jakarta_migration.verification.process_executor import MEBIBYTE, ProcessExecutor, build_command, heap_flag
from jakarta_migration.verification.runtime_verifier import RuntimeVerifier, find_built_jar


NO_CLASS_DEF = (
    'Exception in thread "main" java.lang.NoClassDefFoundError: javax/servlet/Filter\n'
    "\tat com.example.shop.App.main(App.java:12)\n"
)

SERVLET_API = Artifact("javax.servlet", "javax.servlet-api", "4.0.1")
PERSISTENCE_API = Artifact("javax.persistence", "javax.persistence-api", "2.2")


def metrics(exit_code: int = 0, timed_out: bool = False, memory_exceeded: bool = False) -> ExecutionMetrics:
    return ExecutionMetrics(1.5, 64 * MEBIBYTE, exit_code, timed_out, memory_exceeded)


@pytest.fixture
def jar(tmp_path: Path) -> Path:
    path = tmp_path / "target" / "shop.jar"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"PK\x03\x04")
    return path


@pytest.fixture
def executor() -> Mock:
    executor = Mock(spec=ProcessExecutor)
    executor.execute_jar.return_value = (metrics(), "Started\n", "")
    return executor


@pytest.fixture
def verifier(executor: Mock) -> RuntimeVerifier:
    return RuntimeVerifier(executor=executor)


class TestVerifyRuntime:
    """Tests for jar verification outcomes."""
    
    def test_clean_run(self, verifier: RuntimeVerifier, jar: Path) -> None:
        result = verifier.verify_runtime(jar)
        
        assert result.status is VerificationStatus.SUCCESS
        assert result.errors == ()
        assert result.passed
        assert result.analysis is None
    
    def test_missing_jar(self, verifier: RuntimeVerifier, executor: Mock, tmp_path: Path) -> None:
        """
        Test: Verify a jar that does not exist.
        
        Expected: FAILED with one error naming the jar; nothing executed.
        """
        result = verifier.verify_runtime(tmp_path / "missing.jar")
        
        assert result.status is VerificationStatus.FAILED
        assert len(result.errors) == 1
        assert result.errors[0].message.startswith("JAR file not found")
        executor.execute_jar.assert_not_called()
    
    def test_startup_failure(self, verifier: RuntimeVerifier, executor: Mock, jar: Path) -> None:
        executor.execute_jar.return_value = (metrics(exit_code=1), "", NO_CLASS_DEF)
        
        result = verifier.verify_runtime(jar)
        
        assert result.status is VerificationStatus.FAILED
        assert result.errors[0].category is ErrorCategory.NAMESPACE_MIGRATION
        assert result.analysis.category is ErrorCategory.NAMESPACE_MIGRATION
        assert not result.passed
    
    def test_errors_with_zero_exit_are_partial(self, verifier: RuntimeVerifier, executor: Mock, jar: Path) -> None:
        executor.execute_jar.return_value = (
            metrics(), "", "java.lang.ClassNotFoundException: javax.persistence.Entity\n"
        )
        
        result = verifier.verify_runtime(jar)
        
        assert result.status is VerificationStatus.PARTIAL
        assert not result.passed
    
    def test_non_zero_exit_without_errors_is_partial(
        self,
        verifier: RuntimeVerifier,
        executor: Mock,
        jar: Path
    ) -> None:
        executor.execute_jar.return_value = (metrics(exit_code=3), "", "")
        
        result = verifier.verify_runtime(jar)
        
        assert result.status is VerificationStatus.PARTIAL
        assert result.passed
    
    @pytest.mark.parametrize("timed_out,memory_exceeded", [(True, False), (False, True)])
    def test_resource_ceilings(
        self,
        verifier: RuntimeVerifier,
        executor: Mock,
        jar: Path,
        timed_out: bool,
        memory_exceeded: bool
    ) -> None:
        executor.execute_jar.return_value = (metrics(-9, timed_out, memory_exceeded), "", "")
        
        assert verifier.verify_runtime(jar).status is VerificationStatus.TIMEOUT
    
    def test_warnings_collected(self, verifier: RuntimeVerifier, executor: Mock, jar: Path) -> None:
        stderr = "WARNING: An illegal reflective access operation\nUsing deprecated API\nplain line\n"
        executor.execute_jar.return_value = (metrics(), "", stderr)
        
        result = verifier.verify_runtime(jar)
        
        assert result.status is VerificationStatus.SUCCESS
        assert result.warnings == (
            "WARNING: An illegal reflective access operation",
            "Using deprecated API",
        )
    
    def test_tool_failure_is_error(self, verifier: RuntimeVerifier, executor: Mock, jar: Path) -> None:
        executor.execute_jar.side_effect = ToolExecutionError("java", "could not start process")
        
        result = verifier.verify_runtime(jar)
        
        assert result.status is VerificationStatus.ERROR
        assert "could not start process" in result.warnings[0]
    
    def test_options_passed_through(self, verifier: RuntimeVerifier, executor: Mock, jar: Path) -> None:
        options = VerificationOptions(timeout=5)
        verifier.verify_runtime(jar, options)
        
        executor.execute_jar.assert_called_once_with(jar, options)


class TestVerifyProject:
    """Tests for project-level verification."""
    
    def test_static_fallback(self, verifier: RuntimeVerifier, executor: Mock, sample_project: Path) -> None:
        """
        Test: Verify the unmigrated sample project with nothing built.
        
        Expected: Every remaining javax name is an error; the descriptor
        namespace is a configuration error; the process is never started.
        """
        result = verifier.verify_project(sample_project)
        
        assert result.status is VerificationStatus.PARTIAL
        categories = [e.category for e in result.errors]
        assert categories.count(ErrorCategory.NAMESPACE_MIGRATION) == 7
        assert categories.count(ErrorCategory.CONFIGURATION_ERROR) == 1
        assert not result.passed
        executor.execute_jar.assert_not_called()
    
    def test_clean_sources_pass(self, verifier: RuntimeVerifier, tmp_path: Path) -> None:
        source = tmp_path / "src" / "App.java"
        source.parent.mkdir(parents=True)
        source.write_text("import jakarta.servlet.Filter;\n", encoding="utf-8")
        
        result = verifier.verify_sources(tmp_path)
        
        assert result.status is VerificationStatus.SUCCESS
        assert result.passed
    
    def test_built_jar_preferred(self, verifier: RuntimeVerifier, executor: Mock, sample_project: Path) -> None:
        jar = sample_project / "target" / "shop.jar"
        jar.write_bytes(b"PK")
        
        verifier.verify_project(sample_project)
        
        assert executor.execute_jar.call_args[0][0] == jar
    
    def test_find_built_jar(self, tmp_path: Path) -> None:
        (tmp_path / "target").mkdir()
        (tmp_path / "build" / "libs").mkdir(parents=True)
        (tmp_path / "target" / "app.jar").write_bytes(b"x" * 10)
        (tmp_path / "target" / "app-sources.jar").write_bytes(b"x" * 100)
        (tmp_path / "build" / "libs" / "app-all.jar").write_bytes(b"x" * 50)
        
        assert find_built_jar(tmp_path) == tmp_path / "build" / "libs" / "app-all.jar"
    
    def test_no_jar(self, tmp_path: Path) -> None:
        assert find_built_jar(tmp_path) is None


class TestToBlockers:
    """Tests for converting runtime errors into blockers."""
    
    def test_namespace_error_owned_by_graph_artifact(
        self,
        verifier: RuntimeVerifier,
        executor: Mock,
        jar: Path,
        make_graph
    ) -> None:
        executor.execute_jar.return_value = (metrics(exit_code=1), "", NO_CLASS_DEF + NO_CLASS_DEF)
        result = verifier.verify_runtime(jar)
        
        blockers = verifier.to_blockers(result, make_graph(SERVLET_API, PERSISTENCE_API))
        
        assert len(blockers) == 1
        blocker = blockers[0]
        assert blocker.artifact == SERVLET_API
        assert blocker.blocker_type is BlockerType.TRANSITIVE_CONFLICT
        assert blocker.reason == "Runtime verification failed: javax/servlet/Filter"
        assert blocker.mitigation_strategies[0] == "Update import statements"
        assert blocker.confidence == 0.9
    
    def test_modern_class_maps_to_legacy_counterpart(
        self,
        verifier: RuntimeVerifier,
        executor: Mock,
        jar: Path,
        make_graph
    ) -> None:
        executor.execute_jar.return_value = (
            metrics(exit_code=1), "", "java.lang.ClassNotFoundException: jakarta.persistence.EntityManager\n"
        )
        result = verifier.verify_runtime(jar)
        
        blockers = verifier.to_blockers(result, make_graph(SERVLET_API, PERSISTENCE_API))
        
        assert [(b.artifact, b.blocker_type) for b in blockers] == [
            (PERSISTENCE_API, BlockerType.VERSION_INCOMPATIBLE)
        ]
    
    def test_unowned_package_gets_synthetic_artifact(
        self,
        verifier: RuntimeVerifier,
        executor: Mock,
        jar: Path,
        make_graph
    ) -> None:
        executor.execute_jar.return_value = (
            metrics(exit_code=1), "", "java.lang.NoClassDefFoundError: javax/mail/Session\n"
        )
        result = verifier.verify_runtime(jar)
        
        blockers = verifier.to_blockers(result, make_graph(SERVLET_API))
        
        assert blockers[0].artifact == Artifact("javax.mail", "mail", "unknown")
    
    def test_non_migration_errors_ignored(
        self,
        verifier: RuntimeVerifier,
        executor: Mock,
        jar: Path,
        make_graph
    ) -> None:
        executor.execute_jar.return_value = (metrics(exit_code=1), "", "java.lang.NullPointerException\n")
        result = verifier.verify_runtime(jar)
        
        assert verifier.to_blockers(result, make_graph(SERVLET_API)) == []


class TestProcessExecutor:
    """Tests for the process executor with subprocess mocked."""
    
    def test_build_command(self, tmp_path: Path) -> None:
        options = VerificationOptions(max_memory_bytes=512 * MEBIBYTE, jvm_args=("-Dspring.profiles.active=test",))
        
        command = build_command("java", tmp_path / "app.jar", options)
        
        assert command == ["java", "-Xmx512m", "-Dspring.profiles.active=test", "-jar", str(tmp_path / "app.jar")]
    
    def test_heap_flag_disabled(self) -> None:
        assert heap_flag(0) is None
        assert heap_flag(MEBIBYTE // 2) == "-Xmx1m"
    
    @patch("jakarta_migration.verification.process_executor.subprocess.Popen")
    def test_successful_process(self, mock_popen: Mock, tmp_path: Path) -> None:
        process = mock_popen.return_value
        process.communicate.return_value = ("Started\n", "")
        process.returncode = 0
        
        result_metrics, stdout, stderr = ProcessExecutor().execute_jar(tmp_path / "app.jar")
        
        assert result_metrics.exit_code == 0
        assert not result_metrics.timed_out
        assert not result_metrics.memory_exceeded
        assert stdout == "Started\n"
        assert mock_popen.call_args[0][0][-2:] == ["-jar", str(tmp_path / "app.jar")]
    
    @patch("jakarta_migration.verification.process_executor.subprocess.Popen")
    def test_timeout_kills_process(self, mock_popen: Mock, tmp_path: Path) -> None:
        """
        Test: The process outlives its deadline.
        
        Expected: It is killed, its remaining output collected and the
        metrics flag the timeout.
        """
        process = mock_popen.return_value
        process.communicate.side_effect = [
            subprocess.TimeoutExpired(cmd="java", timeout=1),
            ("partial output", ""),
        ]
        process.returncode = -9
        
        result_metrics, stdout, _ = ProcessExecutor().execute_jar(
            tmp_path / "app.jar", VerificationOptions(timeout=1)
        )
        
        process.kill.assert_called_once()
        assert result_metrics.timed_out
        assert result_metrics.exit_code == -9
        assert stdout == "partial output"
    
    @patch("jakarta_migration.verification.process_executor.subprocess.Popen")
    def test_out_of_memory(self, mock_popen: Mock, tmp_path: Path) -> None:
        process = mock_popen.return_value
        process.communicate.return_value = (None, "java.lang.OutOfMemoryError: Java heap space")
        process.returncode = 1
        
        result_metrics, stdout, _ = ProcessExecutor().execute_jar(tmp_path / "app.jar")
        
        assert result_metrics.memory_exceeded
        assert stdout == ""
    
    @patch("jakarta_migration.verification.process_executor.subprocess.Popen")
    def test_missing_java(self, mock_popen: Mock, tmp_path: Path) -> None:
        mock_popen.side_effect = FileNotFoundError("java")
        
        with pytest.raises(ToolExecutionError):
            ProcessExecutor("/no/such/java").execute_jar(tmp_path / "app.jar")


class TestHealthCheck:
    """Tests for the HTTP health check."""
    
    @patch("jakarta_migration.verification.runtime_verifier.httpx.get")
    def test_healthy(self, mock_get: MagicMock) -> None:
        mock_get.return_value = httpx.Response(200)
        
        assert RuntimeVerifier(executor=Mock()).health_check("http://localhost:8080/health", timeout=3)
        mock_get.assert_called_once_with("http://localhost:8080/health", timeout=3)
    
    @patch("jakarta_migration.verification.runtime_verifier.httpx.get")
    def test_server_error(self, mock_get: MagicMock) -> None:
        mock_get.return_value = httpx.Response(503)
        
        assert not RuntimeVerifier(executor=Mock()).health_check("http://localhost:8080/health")
    
    @patch("jakarta_migration.verification.runtime_verifier.httpx.get")
    def test_unreachable(self, mock_get: MagicMock) -> None:
        mock_get.side_effect = httpx.ConnectError("connection refused")
        
        assert not RuntimeVerifier(executor=Mock()).health_check("http://localhost:8080/health")
    
    @patch("jakarta_migration.verification.runtime_verifier.httpx.get")
    def test_timeout(self, mock_get: MagicMock) -> None:
        mock_get.side_effect = httpx.ReadTimeout("timed out")
        
        assert not RuntimeVerifier(executor=Mock()).health_check("http://localhost:8080/health")
