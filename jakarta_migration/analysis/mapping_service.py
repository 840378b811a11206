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
Jakarta Mapping Service

Static lookup of legacy (javax) coordinates and their Jakarta EE
replacements. A missing mapping is not an error: the analysis engine turns
it into a NO_MODERN_EQUIVALENT blocker.
"""

from dataclasses import dataclass, field
from typing import Optional

from jakarta_migration.analysis.models import Artifact
from jakarta_migration.analysis.versioning import is_at_least
from jakarta_migration.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class JakartaMapping:
    """A legacy artifact and the modern coordinate that replaces it."""
    source: Artifact
    target: Artifact
    notes: str = ""
    breaking_changes: tuple[str, ...] = ()
    # First version of the source coordinate that already uses the modern
    # namespace; set only for artifacts that keep their coordinates.
    min_modern_version: Optional[str] = None
    
    @property
    def distance(self) -> int:
        """0: version bump only, 1: group renamed, 2: coordinate renamed."""
        if (self.source.group_id, self.source.artifact_id) == (self.target.group_id, self.target.artifact_id):
            return 0
        renamed_id = self.source.artifact_id.replace("javax", "jakarta")
        if self.source.artifact_id == self.target.artifact_id or renamed_id == self.target.artifact_id:
            return 1
        return 2


@dataclass(frozen=True)
class _Entry:
    group_id: str
    artifact_id: str
    version: str
    notes: str = ""
    breaking_changes: tuple[str, ...] = field(default_factory=tuple)


# legacy identifier -> modern coordinate
KNOWN_MAPPINGS: dict[str, _Entry] = {
    # Servlet, JSP, EL, WebSocket
    "javax.servlet:javax.servlet-api": _Entry(
        "jakarta.servlet", "jakarta.servlet-api", "6.0.0",
        "Servlet 6.0 requires Java 11+",
        ("SingleThreadModel and HttpSessionContext removed",),
    ),
    "javax.servlet:servlet-api": _Entry(
        "jakarta.servlet", "jakarta.servlet-api", "6.0.0",
        "Servlet 2.x artifact; replace with the Jakarta Servlet API",
        ("SingleThreadModel and HttpSessionContext removed",),
    ),
    "javax.servlet.jsp:javax.servlet.jsp-api": _Entry("jakarta.servlet.jsp", "jakarta.servlet.jsp-api", "3.1.0"),
    "org.glassfish.web:javax.servlet.jsp": _Entry("jakarta.servlet.jsp", "jakarta.servlet.jsp", "3.1.0"),
    "javax.servlet:jstl": _Entry("jakarta.servlet.jsp.jstl", "jakarta.servlet.jsp.jstl-api", "3.0.0"),
    "javax.el:javax.el-api": _Entry("jakarta.el", "jakarta.el-api", "5.0.0"),
    "org.glassfish:javax.el": _Entry("org.glassfish.expressly", "expressly", "5.0.0"),
    "javax.websocket:javax.websocket-api": _Entry("jakarta.websocket", "jakarta.websocket-api", "2.1.0"),
    "org.glassfish.tyrus:javax.websocket": _Entry("jakarta.websocket", "jakarta.websocket", "2.1.0"),
    # Persistence and transactions
    "javax.persistence:javax.persistence-api": _Entry(
        "jakarta.persistence", "jakarta.persistence-api", "3.1.0",
        "persistence.xml must use the jakarta.persistence.* property names",
        ("javax.persistence.* properties renamed to jakarta.persistence.*",),
    ),
    "javax.persistence:persistence-api": _Entry("jakarta.persistence", "jakarta.persistence-api", "3.1.0"),
    "org.hibernate.javax.persistence:hibernate-jpa-2.1-api": _Entry(
        "jakarta.persistence", "jakarta.persistence-api", "3.1.0"
    ),
    "javax.transaction:javax.transaction-api": _Entry("jakarta.transaction", "jakarta.transaction-api", "2.0.1"),
    "javax.transaction:jta": _Entry("jakarta.transaction", "jakarta.transaction-api", "2.0.1"),
    # CDI and injection
    "javax.enterprise:cdi-api": _Entry(
        "jakarta.enterprise", "jakarta.enterprise.cdi-api", "4.0.1",
        "beans.xml discovery mode defaults to annotated",
        ("Default bean discovery mode changed to annotated",),
    ),
    "javax.enterprise:javax.enterprise-api": _Entry("jakarta.enterprise", "jakarta.enterprise.cdi-api", "4.0.1"),
    "javax.inject:javax.inject": _Entry("jakarta.inject", "jakarta.inject-api", "2.0.1"),
    "javax.inject:javax.inject-api": _Entry("jakarta.inject", "jakarta.inject-api", "2.0.1"),
    "javax.interceptor:javax.interceptor-api": _Entry("jakarta.interceptor", "jakarta.interceptor-api", "2.1.0"),
    "javax.ejb:javax.ejb-api": _Entry(
        "jakarta.ejb", "jakarta.ejb-api", "4.0.1",
        "", ("EJB 2.x entity bean contracts removed",),
    ),
    # Validation
    "javax.validation:validation-api": _Entry("jakarta.validation", "jakarta.validation-api", "3.0.2"),
    "org.hibernate:hibernate-validator": _Entry("org.hibernate.validator", "hibernate-validator", "8.0.1.Final"),
    "org.hibernate.validator:hibernate-validator": _Entry(
        "org.hibernate.validator", "hibernate-validator", "8.0.1.Final"
    ),
    # JSON, REST, XML
    "javax.json:javax.json-api": _Entry("jakarta.json", "jakarta.json-api", "2.1.2"),
    "org.glassfish:javax.json": _Entry("org.eclipse.parsson", "parsson", "1.1.5"),
    "javax.json:javax.json": _Entry("org.eclipse.parsson", "parsson", "1.1.5"),
    "javax.json.bind:javax.json.bind-api": _Entry("jakarta.json.bind", "jakarta.json.bind-api", "3.0.0"),
    "javax.ws.rs:javax.ws.rs-api": _Entry(
        "jakarta.ws.rs", "jakarta.ws.rs-api", "3.1.0",
        "", ("JAXB is no longer pulled in by JAX-RS",),
    ),
    "javax.ws.rs:jsr311-api": _Entry("jakarta.ws.rs", "jakarta.ws.rs-api", "3.1.0"),
    "javax.xml.bind:jaxb-api": _Entry(
        "jakarta.xml.bind", "jakarta.xml.bind-api", "4.0.1",
        "JAXB is no longer part of the JDK; add a runtime as well",
    ),
    "org.glassfish.jaxb:jaxb-runtime": _Entry("org.glassfish.jaxb", "jaxb-runtime", "4.0.4"),
    "com.sun.xml.bind:jaxb-impl": _Entry("com.sun.xml.bind", "jaxb-impl", "4.0.4"),
    "javax.xml.ws:jaxws-api": _Entry("jakarta.xml.ws", "jakarta.xml.ws-api", "4.0.1"),
    "javax.xml.soap:javax.xml.soap-api": _Entry("jakarta.xml.soap", "jakarta.xml.soap-api", "3.0.1"),
    "javax.jws:javax.jws-api": _Entry("jakarta.jws", "jakarta.jws-api", "3.0.0"),
    # Mail, activation, messaging, annotations, faces, batch, security
    "javax.mail:javax.mail-api": _Entry("jakarta.mail", "jakarta.mail-api", "2.1.2"),
    "com.sun.mail:javax.mail": _Entry("org.eclipse.angus", "angus-mail", "2.0.2"),
    "javax.activation:javax.activation-api": _Entry("jakarta.activation", "jakarta.activation-api", "2.1.2"),
    "javax.activation:activation": _Entry("jakarta.activation", "jakarta.activation-api", "2.1.2"),
    "com.sun.activation:javax.activation": _Entry("org.eclipse.angus", "angus-activation", "2.0.1"),
    "javax.jms:javax.jms-api": _Entry("jakarta.jms", "jakarta.jms-api", "3.1.0"),
    "javax.jms:jms-api": _Entry("jakarta.jms", "jakarta.jms-api", "3.1.0"),
    "javax.annotation:javax.annotation-api": _Entry(
        "jakarta.annotation", "jakarta.annotation-api", "2.1.1",
        "@Generated stays in javax.annotation.processing (JDK)",
    ),
    "javax.annotation:jsr250-api": _Entry("jakarta.annotation", "jakarta.annotation-api", "2.1.1"),
    "javax.faces:javax.faces-api": _Entry("jakarta.faces", "jakarta.faces-api", "4.0.1"),
    "org.glassfish:javax.faces": _Entry("org.glassfish", "jakarta.faces", "4.0.5"),
    "javax.batch:javax.batch-api": _Entry("jakarta.batch", "jakarta.batch-api", "2.1.1"),
    "javax.security.enterprise:javax.security.enterprise-api": _Entry(
        "jakarta.security.enterprise", "jakarta.security.enterprise-api", "3.0.0"
    ),
    "javax.security.auth.message:javax.security.auth.message-api": _Entry(
        "jakarta.authentication", "jakarta.authentication-api", "3.0.0"
    ),
    "javax.security.jacc:javax.security.jacc-api": _Entry(
        "jakarta.authorization", "jakarta.authorization-api", "2.1.0"
    ),
    "javax.resource:javax.resource-api": _Entry("jakarta.resource", "jakarta.resource-api", "2.1.0"),
    "javax:javaee-api": _Entry(
        "jakarta.platform", "jakarta.jakartaee-api", "10.0.0",
        "Umbrella API; prefer the individual specifications",
    ),
    "javax:javaee-web-api": _Entry("jakarta.platform", "jakarta.jakartaee-web-api", "10.0.0"),
}


@dataclass(frozen=True)
class _FamilyUpgrade:
    """Artifacts that keep (or barely change) their coordinates and switch namespace at a major version."""
    group_id: str
    artifact_prefix: str
    target_version: str
    min_modern_version: str
    notes: str
    target_group_id: Optional[str] = None


FAMILY_UPGRADES: tuple[_FamilyUpgrade, ...] = (
    _FamilyUpgrade(
        "org.springframework.boot", "", "3.2.0", "3.0.0",
        "Spring Boot 3 requires Java 17 and Jakarta EE 9+",
    ),
    _FamilyUpgrade(
        "org.springframework", "spring-", "6.1.0", "6.0.0",
        "Spring Framework 6 requires Java 17 and Jakarta EE 9+",
    ),
    _FamilyUpgrade(
        "org.hibernate", "hibernate-", "6.4.0.Final", "6.0.0",
        "Hibernate ORM 6 moved to the org.hibernate.orm group",
        target_group_id="org.hibernate.orm",
    ),
    _FamilyUpgrade(
        "org.apache.tomcat.embed", "tomcat-embed-", "10.1.0", "10.0.0",
        "Tomcat 10 implements Servlet 5+",
    ),
    _FamilyUpgrade(
        "org.eclipse.jetty", "jetty-", "11.0.0", "11.0.0",
        "Jetty 11 implements Servlet 5",
    ),
)


# APIs dropped from Jakarta EE 9 without a successor
REMOVED_APIS: dict[str, str] = {
    "javax.xml.rpc:javax.xml.rpc-api": "JAX-RPC was removed from Jakarta EE 9; port clients to JAX-WS (jakarta.xml.ws)",
    "javax.xml.registry:javax.xml.registry-api": "JAXR was removed from Jakarta EE 9; no replacement exists",
    "javax.management.j2ee:javax.management.j2ee-api": "J2EE Management was removed from Jakarta EE 9",
    "javax.enterprise.deploy:javax.enterprise.deploy-api": "J2EE Deployment was removed from Jakarta EE 9",
}


class JakartaMappingService:
    """Lookup of the modern replacement for a legacy artifact."""
    
    def __init__(self, extra_mappings: Optional[dict[str, str]] = None) -> None:
        """
        Initialize the service.
        
        Args:
            extra_mappings: Additional ``legacy identifier -> group:artifact:version``
                pairs (project-specific forks, internal wrappers)
        """
        self._extra: dict[str, Artifact] = {}
        for identifier, coordinate in (extra_mappings or {}).items():
            group_id, artifact_id, version = coordinate.split(":", 2)
            self._extra[identifier] = Artifact(group_id, artifact_id, version)
    
    def find_mapping(self, artifact: Artifact) -> Optional[JakartaMapping]:
        """Return the modern equivalent of ``artifact``, or None when none is known."""
        identifier = artifact.identifier
        
        if identifier in self._extra:
            return JakartaMapping(artifact, self._with_scope(self._extra[identifier], artifact))
        
        entry = KNOWN_MAPPINGS.get(identifier)
        if entry is not None:
            target = Artifact(entry.group_id, entry.artifact_id, entry.version, artifact.scope, artifact.transitive)
            return JakartaMapping(artifact, target, entry.notes, entry.breaking_changes)
        
        for upgrade in FAMILY_UPGRADES:
            if artifact.group_id == upgrade.group_id and artifact.artifact_id.startswith(upgrade.artifact_prefix):
                if artifact.version != "unknown" and is_at_least(artifact.version, upgrade.min_modern_version):
                    return None
                target = Artifact(
                    upgrade.target_group_id or artifact.group_id,
                    artifact.artifact_id,
                    upgrade.target_version,
                    artifact.scope,
                    artifact.transitive,
                )
                return JakartaMapping(
                    artifact, target, upgrade.notes,
                    (f"{artifact.artifact_id} {upgrade.min_modern_version}+ switches to jakarta.* packages",),
                    min_modern_version=upgrade.min_modern_version,
                )
        
        return None
    
    def removal_note(self, artifact: Artifact) -> Optional[str]:
        """Explanation for APIs that were dropped rather than renamed."""
        return REMOVED_APIS.get(artifact.identifier)
    
    def has_mapping(self, artifact: Artifact) -> bool:
        return self.find_mapping(artifact) is not None
    
    def _with_scope(self, target: Artifact, source: Artifact) -> Artifact:
        return Artifact(target.group_id, target.artifact_id, target.version, source.scope, source.transitive)
