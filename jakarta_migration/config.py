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
Configuration settings for the Jakarta migration toolkit.

Module constants hold the defaults; ``MigrationSettings`` is the validated,
loadable view of them (YAML file plus command-line overrides).
"""

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from jakarta_migration.utils.logging_config import get_logger

logger = get_logger(__name__)


# ============================================================================
# PATHS
# ============================================================================

DEFAULT_CONFIG_PATH: str = "jakarta-migration.yaml"
MAVEN_REPOSITORY: Path = Path.home() / ".m2" / "repository"
GRADLE_CACHE: Path = Path.home() / ".gradle" / "caches" / "modules-2" / "files-2.1"

EXCLUDED_DIRS: tuple[str, ...] = ("target", "build", ".git", ".gradle", ".idea", "node_modules", "out")


# ============================================================================
# NAMESPACES
# ============================================================================

LEGACY_PREFIX: str = "javax."
MODERN_PREFIX: str = "jakarta."

# Jakarta EE API families that moved from javax.* to jakarta.*
MIGRATED_PACKAGES: tuple[str, ...] = (
    "activation", "annotation", "batch", "decorator", "ejb", "el", "enterprise",
    "faces", "inject", "interceptor", "jms", "json", "json.bind", "jws", "mail", "persistence",
    "resource", "security.auth.message", "security.enterprise", "security.jacc",
    "servlet", "transaction", "validation", "websocket", "ws.rs", "xml.bind",
    "xml.soap", "xml.ws",
)

# Subpackages of migrated families that stayed in the JDK
JDK_RETAINED_PACKAGES: tuple[str, ...] = (
    "annotation.processing",
    "transaction.xa",
)

# Legacy deployment descriptor schema namespaces and their Jakarta EE successors
LEGACY_XML_NAMESPACES: dict[str, str] = {
    "http://java.sun.com/xml/ns/javaee": "https://jakarta.ee/xml/ns/jakartaee",
    "http://xmlns.jcp.org/xml/ns/javaee": "https://jakarta.ee/xml/ns/jakartaee",
    "http://java.sun.com/xml/ns/j2ee": "https://jakarta.ee/xml/ns/jakartaee",
    "http://java.sun.com/xml/ns/persistence": "https://jakarta.ee/xml/ns/persistence",
    "http://xmlns.jcp.org/xml/ns/persistence": "https://jakarta.ee/xml/ns/persistence",
    "http://java.sun.com/xml/ns/persistence/orm": "https://jakarta.ee/xml/ns/persistence/orm",
    "http://xmlns.jcp.org/xml/ns/persistence/orm": "https://jakarta.ee/xml/ns/persistence/orm",
    "http://jboss.org/xml/ns/javax/validation/configuration": "https://jakarta.ee/xml/ns/validation/configuration",
    "http://jboss.org/xml/ns/javax/validation/mapping": "https://jakarta.ee/xml/ns/validation/mapping",
}

DESCRIPTOR_FILES: tuple[str, ...] = (
    "web.xml", "web-fragment.xml", "persistence.xml", "orm.xml", "beans.xml",
    "faces-config.xml", "ejb-jar.xml", "application.xml", "validation.xml",
)


# ============================================================================
# ANALYSIS WEIGHTS
# ============================================================================

# Readiness = w1 * fraction_not_blocked + w2 * (1 - risk), weights normalized
READINESS_BLOCKED_WEIGHT: float = 0.5
READINESS_RISK_WEIGHT: float = 0.5

# Risk = wb * blocker_component + wc * conflict_component
RISK_BLOCKER_WEIGHT: float = 0.7
RISK_CONFLICT_WEIGHT: float = 0.3

ANALYSIS_WORKERS: int = 4


# ============================================================================
# RUNTIME VERIFICATION
# ============================================================================

VERIFICATION_TIMEOUT_SECONDS: float = 300.0
VERIFICATION_MAX_MEMORY_BYTES: int = 2 * 1024 * 1024 * 1024  # 2 GiB
JAVA_EXECUTABLE: str = "java"
HEALTH_CHECK_TIMEOUT_SECONDS: float = 5.0


class MigrationSettings(BaseModel):
    """Validated settings for one migration session."""
    
    model_config = ConfigDict(extra="ignore")
    
    readiness_blocked_weight: float = READINESS_BLOCKED_WEIGHT
    readiness_risk_weight: float = READINESS_RISK_WEIGHT
    risk_blocker_weight: float = RISK_BLOCKER_WEIGHT
    risk_conflict_weight: float = RISK_CONFLICT_WEIGHT
    analysis_workers: int = Field(default=ANALYSIS_WORKERS, ge=1)
    
    verification_timeout_seconds: float = Field(default=VERIFICATION_TIMEOUT_SECONDS, gt=0)
    verification_max_memory_bytes: int = Field(default=VERIFICATION_MAX_MEMORY_BYTES, ge=0)
    java_executable: str = JAVA_EXECUTABLE
    jvm_args: list[str] = Field(default_factory=list)
    health_check_url: Optional[str] = None
    
    excluded_dirs: list[str] = Field(default_factory=lambda: list(EXCLUDED_DIRS))
    
    @field_validator(
        "readiness_blocked_weight", "readiness_risk_weight",
        "risk_blocker_weight", "risk_conflict_weight"
    )
    @classmethod
    def _non_negative_weight(cls, value: float) -> float:
        if value < 0:
            raise ValueError("weights must be >= 0")
        return value
    
    @model_validator(mode="after")
    def _weights_not_all_zero(self) -> "MigrationSettings":
        if self.readiness_blocked_weight + self.readiness_risk_weight == 0:
            raise ValueError("readiness weights must not both be 0")
        if self.risk_blocker_weight + self.risk_conflict_weight == 0:
            raise ValueError("risk weights must not both be 0")
        return self
    
    def readiness_weights(self) -> tuple[float, float]:
        """Readiness weights (w1, w2) normalized to sum to 1."""
        total = self.readiness_blocked_weight + self.readiness_risk_weight
        return self.readiness_blocked_weight / total, self.readiness_risk_weight / total
    
    def risk_weights(self) -> tuple[float, float]:
        """Risk weights (blockers, conflicts) normalized to sum to 1."""
        total = self.risk_blocker_weight + self.risk_conflict_weight
        return self.risk_blocker_weight / total, self.risk_conflict_weight / total


def load_settings(
    config_path: Optional[str] = None,
    overrides: Optional[dict[str, Any]] = None
) -> MigrationSettings:
    """
    Load settings from a YAML file and command-line overrides.
    
    Priority:
    1. Overrides (values that are not None)
    2. Config file (explicit path, or jakarta-migration.yaml in the cwd)
    3. Defaults
    
    Args:
        config_path: Path to the YAML file
        overrides: Values that win over the file
    
    Returns:
        MigrationSettings: The resolved settings
    """
    data: dict[str, Any] = {}
    
    path = Path(config_path if config_path else DEFAULT_CONFIG_PATH)
    if path.is_file():
        with open(path, "r", encoding="utf-8") as f:
            file_data = yaml.safe_load(f)
        if file_data:
            if not isinstance(file_data, dict):
                raise ValueError(f"Config file {path} must contain a mapping")
            data.update(file_data)
        logger.info(f"Loaded configuration from {path}")
    elif config_path:
        logger.warning(f"Config file not found at explicit path: {config_path}")
    
    if overrides:
        for key, value in overrides.items():
            if value is not None:
                data[key] = value
    
    return MigrationSettings(**data)
