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
Namespace Classifier

Decides whether an artifact lives in the legacy ``javax.*`` namespace, the
modern ``jakarta.*`` namespace, both, or neither. Classification is a pure
function of the coordinate and, when an archive inspector is supplied, of
the packages found inside the resolved jar.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Protocol

from jakarta_migration.analysis.mapping_service import FAMILY_UPGRADES, KNOWN_MAPPINGS, REMOVED_APIS
from jakarta_migration.analysis.models import Artifact, DependencyGraph, Namespace, NamespaceCompatibilityMap
from jakarta_migration.analysis.versioning import is_at_least
from jakarta_migration.config import JDK_RETAINED_PACKAGES, LEGACY_PREFIX, MIGRATED_PACKAGES, MODERN_PREFIX
from jakarta_migration.utils.logging_config import get_logger

logger = get_logger(__name__)


# Modern coordinates and the first version that ships jakarta.* packages.
# Earlier releases of the same coordinate are transitional javax builds.
MODERN_SINCE: dict[str, str] = {
    "jakarta.servlet:jakarta.servlet-api": "5.0.0",
    "jakarta.servlet.jsp:jakarta.servlet.jsp-api": "3.0.0",
    "jakarta.el:jakarta.el-api": "4.0.0",
    "jakarta.websocket:jakarta.websocket-api": "2.0.0",
    "jakarta.persistence:jakarta.persistence-api": "3.0.0",
    "jakarta.transaction:jakarta.transaction-api": "2.0.0",
    "jakarta.validation:jakarta.validation-api": "3.0.0",
    "jakarta.annotation:jakarta.annotation-api": "2.0.0",
    "jakarta.inject:jakarta.inject-api": "2.0.0",
    "jakarta.enterprise:jakarta.enterprise.cdi-api": "3.0.0",
    "jakarta.ejb:jakarta.ejb-api": "4.0.0",
    "jakarta.ws.rs:jakarta.ws.rs-api": "3.0.0",
    "jakarta.xml.bind:jakarta.xml.bind-api": "3.0.0",
    "jakarta.xml.ws:jakarta.xml.ws-api": "3.0.0",
    "jakarta.json:jakarta.json-api": "2.0.0",
    "jakarta.json.bind:jakarta.json.bind-api": "2.0.0",
    "jakarta.mail:jakarta.mail-api": "2.0.0",
    "jakarta.activation:jakarta.activation-api": "2.0.0",
    "jakarta.jms:jakarta.jms-api": "3.0.0",
    "jakarta.faces:jakarta.faces-api": "3.0.0",
    "jakarta.platform:jakarta.jakartaee-api": "9.0.0",
    "org.hibernate.validator:hibernate-validator": "7.0.0",
    "org.glassfish.jaxb:jaxb-runtime": "3.0.0",
    "com.sun.xml.bind:jaxb-impl": "3.0.0",
}


# ============================================================================
# PACKAGE NAME HELPERS
# ============================================================================

def legacy_family(qualified_name: str) -> Optional[str]:
    """
    Return the migrated API family of a javax name, or None.
    
    ``javax.servlet.http.HttpServlet`` -> ``servlet``; JDK packages such as
    ``javax.swing`` or ``javax.annotation.processing`` -> None.
    """
    if not qualified_name.startswith(LEGACY_PREFIX):
        return None
    rest = qualified_name[len(LEGACY_PREFIX):]
    for retained in JDK_RETAINED_PACKAGES:
        if rest == retained or rest.startswith(retained + "."):
            return None
    # Longest family first so security.enterprise wins over a shorter match
    for family in sorted(MIGRATED_PACKAGES, key=len, reverse=True):
        if rest == family or rest.startswith(family + "."):
            return family
    return None


def is_legacy_name(qualified_name: str) -> bool:
    return legacy_family(qualified_name) is not None


def is_modern_name(qualified_name: str) -> bool:
    return qualified_name.startswith(MODERN_PREFIX)


def to_modern_name(qualified_name: str) -> str:
    """Map a migrated javax name to jakarta; anything else is returned as is."""
    if legacy_family(qualified_name) is None:
        return qualified_name
    return MODERN_PREFIX + qualified_name[len(LEGACY_PREFIX):]


class ArchiveInspector(Protocol):
    """Lists the Java packages inside an artifact's archive, or None when unresolved."""
    
    def packages(self, artifact: Artifact) -> Optional[set[str]]:
        ...


class NamespaceClassifier:
    """Classifies artifacts into LEGACY, MODERN, MIXED or UNKNOWN."""
    
    def __init__(self, archive_inspector: Optional[ArchiveInspector] = None) -> None:
        """
        Initialize the classifier.
        
        Args:
            archive_inspector: Optional source of package names from resolved
                jars; coordinate rules apply whenever it has no answer
        """
        self.archive_inspector = archive_inspector
    
    def classify(self, artifact: Artifact) -> Namespace:
        if self.archive_inspector is not None:
            packages = self.archive_inspector.packages(artifact)
            if packages:
                namespace = self._classify_packages(packages)
                if namespace is not Namespace.UNKNOWN:
                    return namespace
        return self._classify_coordinate(artifact)
    
    def classify_all(self, graph: DependencyGraph, workers: int = 1) -> NamespaceCompatibilityMap:
        """
        Classify every node of the graph.
        
        Nodes are independent, so with ``workers > 1`` they are classified
        in a thread pool.
        """
        nodes = sorted(graph.nodes, key=lambda a: a.coordinate)
        if workers > 1 and len(nodes) > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                namespaces = list(executor.map(self.classify, nodes))
        else:
            namespaces = [self.classify(node) for node in nodes]
        
        namespace_map = NamespaceCompatibilityMap(dict(zip(nodes, namespaces)))
        logger.debug(
            f"Classified {len(nodes)} artifacts: "
            + ", ".join(f"{ns.name}={namespace_map.count(ns)}" for ns in Namespace)
        )
        return namespace_map
    
    def _classify_packages(self, packages: set[str]) -> Namespace:
        has_legacy = any(is_legacy_name(p) for p in packages)
        has_modern = any(is_modern_name(p) for p in packages)
        if has_legacy and has_modern:
            return Namespace.MIXED
        if has_legacy:
            return Namespace.LEGACY
        if has_modern:
            return Namespace.MODERN
        return Namespace.UNKNOWN
    
    def _classify_coordinate(self, artifact: Artifact) -> Namespace:
        identifier = artifact.identifier
        known_version = artifact.version != "unknown"
        
        modern_since = MODERN_SINCE.get(identifier)
        if modern_since is not None and known_version:
            return Namespace.MODERN if is_at_least(artifact.version, modern_since) else Namespace.LEGACY
        
        if identifier in KNOWN_MAPPINGS or identifier in REMOVED_APIS:
            return Namespace.LEGACY
        
        for upgrade in FAMILY_UPGRADES:
            if artifact.group_id == upgrade.group_id and artifact.artifact_id.startswith(upgrade.artifact_prefix):
                if not known_version:
                    return Namespace.UNKNOWN
                if is_at_least(artifact.version, upgrade.min_modern_version):
                    return Namespace.MODERN
                return Namespace.LEGACY
        
        if artifact.group_id.startswith(MODERN_PREFIX) or artifact.group_id == MODERN_PREFIX.rstrip("."):
            return Namespace.MODERN
        # javax.cache, javax.money and friends never moved to jakarta
        if is_legacy_name(artifact.group_id):
            return Namespace.LEGACY
        
        return Namespace.UNKNOWN
