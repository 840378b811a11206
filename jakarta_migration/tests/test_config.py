"""
Tests for configuration loading
"""

from pathlib import Path

import pytest

from jakarta_migration.config import EXCLUDED_DIRS, MigrationSettings, load_settings


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep a stray jakarta-migration.yaml in the working directory out of the tests."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestMigrationSettings:
    """Tests for settings validation."""
    
    def test_defaults(self) -> None:
        settings = MigrationSettings()
        
        assert settings.readiness_weights() == (0.5, 0.5)
        assert settings.risk_weights() == pytest.approx((0.7, 0.3))
        assert settings.analysis_workers >= 1
        assert settings.excluded_dirs == list(EXCLUDED_DIRS)
        assert settings.health_check_url is None
    
    def test_weights_are_normalized(self) -> None:
        settings = MigrationSettings(readiness_blocked_weight=3, readiness_risk_weight=1)
        
        assert settings.readiness_weights() == (0.75, 0.25)
    
    def test_negative_weight_rejected(self) -> None:
        with pytest.raises(ValueError):
            MigrationSettings(risk_conflict_weight=-0.1)
    
    def test_all_zero_weights_rejected(self) -> None:
        with pytest.raises(ValueError):
            MigrationSettings(readiness_blocked_weight=0, readiness_risk_weight=0)
        with pytest.raises(ValueError):
            MigrationSettings(risk_blocker_weight=0, risk_conflict_weight=0)
    
    def test_single_zero_weight_allowed(self) -> None:
        assert MigrationSettings(readiness_risk_weight=0).readiness_weights() == (1.0, 0.0)
    
    @pytest.mark.parametrize("field,value", [
        ("analysis_workers", 0),
        ("verification_timeout_seconds", 0),
        ("verification_max_memory_bytes", -1),
    ])
    def test_bounds(self, field: str, value) -> None:
        with pytest.raises(ValueError):
            MigrationSettings(**{field: value})


class TestLoadSettings:
    """Tests for YAML loading and overrides."""
    
    def test_no_file_gives_defaults(self) -> None:
        assert load_settings() == MigrationSettings()
    
    def test_yaml_file(self, isolated_cwd: Path) -> None:
        config = isolated_cwd / "migration.yaml"
        config.write_text(
            "analysis_workers: 2\n"
            "jvm_args:\n"
            "  - -Dspring.profiles.active=test\n"
            "health_check_url: http://localhost:8080/actuator/health\n"
            "unknown_key: ignored\n",
            encoding="utf-8",
        )
        
        settings = load_settings(str(config))
        
        assert settings.analysis_workers == 2
        assert settings.jvm_args == ["-Dspring.profiles.active=test"]
        assert settings.health_check_url == "http://localhost:8080/actuator/health"
    
    def test_default_file_in_cwd(self, isolated_cwd: Path) -> None:
        (isolated_cwd / "jakarta-migration.yaml").write_text("verification_timeout_seconds: 30\n", encoding="utf-8")
        
        assert load_settings().verification_timeout_seconds == 30
    
    def test_overrides_win(self, isolated_cwd: Path) -> None:
        config = isolated_cwd / "migration.yaml"
        config.write_text("analysis_workers: 2\nverification_timeout_seconds: 30\n", encoding="utf-8")
        
        settings = load_settings(str(config), {"analysis_workers": 8, "verification_timeout_seconds": None})
        
        assert settings.analysis_workers == 8
        assert settings.verification_timeout_seconds == 30
    
    def test_missing_explicit_file(self, isolated_cwd: Path) -> None:
        assert load_settings(str(isolated_cwd / "absent.yaml")) == MigrationSettings()
    
    def test_empty_file(self, isolated_cwd: Path) -> None:
        config = isolated_cwd / "empty.yaml"
        config.write_text("", encoding="utf-8")
        
        assert load_settings(str(config)) == MigrationSettings()
    
    def test_non_mapping_rejected(self, isolated_cwd: Path) -> None:
        config = isolated_cwd / "list.yaml"
        config.write_text("- a\n- b\n", encoding="utf-8")
        
        with pytest.raises(ValueError):
            load_settings(str(config))
    
    def test_invalid_value_rejected(self, isolated_cwd: Path) -> None:
        config = isolated_cwd / "bad.yaml"
        config.write_text("readiness_blocked_weight: -1\n", encoding="utf-8")
        
        with pytest.raises(ValueError):
            load_settings(str(config))
