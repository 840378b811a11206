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
Recipe Library

Catalog of the text transformations the refactoring engine can apply.
The library is an ordinary object owned by whoever composes the
pipeline; ``RecipeLibrary.with_defaults()`` seeds it with the standard
javax -> jakarta recipes.
"""

import threading
from typing import Optional

from jakarta_migration.config import LEGACY_XML_NAMESPACES, MIGRATED_PACKAGES
from jakarta_migration.errors import ValidationError, require_text
from jakarta_migration.refactoring.models import Recipe, RecipeKind, SafetyLevel
from jakarta_migration.utils.logging_config import get_logger

logger = get_logger(__name__)


BLANKET_RECIPE = "AddJakartaNamespace"

_PERSISTENCE_URIS = tuple(
    (source, target) for source, target in LEGACY_XML_NAMESPACES.items() if "/persistence" in source
)
_JAVAEE_URIS = tuple(
    (source, target) for source, target in LEGACY_XML_NAMESPACES.items()
    if source.endswith(("/javaee", "/j2ee"))
)

# name, families, safety, description
_FAMILY_RECIPES: tuple[tuple[str, tuple[str, ...], SafetyLevel, str], ...] = (
    ("MigrateActivation", ("activation",), SafetyLevel.HIGH, "Jakarta Activation"),
    ("MigrateAnnotations", ("annotation",), SafetyLevel.HIGH, "Jakarta Annotations (@PostConstruct, @Resource, ...)"),
    ("MigrateBatch", ("batch",), SafetyLevel.HIGH, "Jakarta Batch"),
    ("MigrateDecorator", ("decorator",), SafetyLevel.HIGH, "CDI decorators"),
    ("MigrateEl", ("el",), SafetyLevel.HIGH, "Jakarta Expression Language"),
    ("MigrateInject", ("inject",), SafetyLevel.HIGH, "Jakarta Dependency Injection"),
    ("MigrateInterceptor", ("interceptor",), SafetyLevel.HIGH, "Jakarta Interceptors"),
    ("MigrateJavaMail", ("mail",), SafetyLevel.HIGH, "Jakarta Mail"),
    ("MigrateJta", ("transaction",), SafetyLevel.HIGH, "Jakarta Transactions"),
    ("MigrateValidator", ("validation",), SafetyLevel.HIGH, "Jakarta Bean Validation"),
    ("MigrateWebsocket", ("websocket",), SafetyLevel.HIGH, "Jakarta WebSocket"),
    ("MigrateAuthorization", ("security.auth.message", "security.enterprise", "security.jacc"),
     SafetyLevel.MEDIUM, "Jakarta Authentication, Authorization and Security"),
    ("MigrateCdi", ("enterprise",), SafetyLevel.MEDIUM, "Jakarta Contexts and Dependency Injection"),
    ("MigrateConnectors", ("resource",), SafetyLevel.MEDIUM, "Jakarta Connectors"),
    ("MigrateJaxb", ("xml.bind",), SafetyLevel.MEDIUM, "Jakarta XML Binding"),
    ("MigrateJaxrs", ("ws.rs",), SafetyLevel.MEDIUM, "Jakarta RESTful Web Services"),
    ("MigrateJms", ("jms",), SafetyLevel.MEDIUM, "Jakarta Messaging"),
    ("MigrateJpa", ("persistence",), SafetyLevel.MEDIUM, "Jakarta Persistence"),
    ("MigrateJsonb", ("json.bind",), SafetyLevel.MEDIUM, "Jakarta JSON Binding"),
    ("MigrateJsonp", ("json",), SafetyLevel.MEDIUM, "Jakarta JSON Processing"),
    ("MigrateServletApi", ("servlet",), SafetyLevel.MEDIUM, "Jakarta Servlet"),
    ("MigrateSoap", ("xml.soap",), SafetyLevel.MEDIUM, "Jakarta SOAP with Attachments"),
    ("MigrateEjb", ("ejb",), SafetyLevel.LOW, "Jakarta Enterprise Beans"),
    ("MigrateFaces", ("faces",), SafetyLevel.LOW, "Jakarta Faces"),
    ("MigrateJaxws", ("xml.ws", "jws"), SafetyLevel.LOW, "Jakarta XML Web Services"),
)


def default_recipes() -> list[Recipe]:
    """The standard javax -> jakarta catalog."""
    recipes = [
        Recipe(
            name=BLANKET_RECIPE,
            description="Rewrite javax imports of every migrated Jakarta EE API to jakarta",
            pattern="import javax.* -> import jakarta.*",
            safety_level=SafetyLevel.HIGH,
            kind=RecipeKind.NAMESPACE,
        ),
        Recipe(
            name="UpdatePersistenceXml",
            description="Move persistence.xml and orm.xml to the Jakarta Persistence schema",
            pattern="http://xmlns.jcp.org/xml/ns/persistence -> https://jakarta.ee/xml/ns/persistence",
            safety_level=SafetyLevel.HIGH,
            kind=RecipeKind.DESCRIPTOR,
            file_patterns=("persistence.xml", "orm.xml"),
            replacements=_PERSISTENCE_URIS,
            rewrite_qualified_names=True,
        ),
        Recipe(
            name="UpdateWebXml",
            description="Move web.xml and web-fragment.xml to the Jakarta EE schema",
            pattern="http://xmlns.jcp.org/xml/ns/javaee -> https://jakarta.ee/xml/ns/jakartaee",
            safety_level=SafetyLevel.MEDIUM,
            kind=RecipeKind.DESCRIPTOR,
            file_patterns=("web.xml", "web-fragment.xml"),
            replacements=_JAVAEE_URIS,
            rewrite_qualified_names=True,
        ),
        Recipe(
            name="UpdateXmlDescriptorNamespaces",
            description="Move the remaining Jakarta EE deployment descriptors to the Jakarta EE schemas",
            pattern="legacy descriptor schema namespaces -> https://jakarta.ee/xml/ns/*",
            safety_level=SafetyLevel.MEDIUM,
            kind=RecipeKind.DESCRIPTOR,
            file_patterns=("beans.xml", "faces-config.xml", "ejb-jar.xml", "application.xml", "validation.xml"),
            replacements=tuple(LEGACY_XML_NAMESPACES.items()),
            rewrite_qualified_names=True,
        ),
    ]
    for name, families, safety, api in _FAMILY_RECIPES:
        recipes.append(Recipe(
            name=name,
            description=f"Rewrite remaining qualified references to {api}",
            pattern=", ".join(f"javax.{f} -> jakarta.{f}" for f in families),
            safety_level=safety,
            kind=RecipeKind.API_FAMILY,
            families=families,
        ))
    return recipes


class RecipeLibrary:
    """Registry of recipes keyed by unique name; safe to share between threads."""
    
    def __init__(self, recipes: Optional[list[Recipe]] = None) -> None:
        self._recipes: dict[str, Recipe] = {}
        self._lock = threading.Lock()
        for recipe in recipes or []:
            self.register(recipe)
    
    @classmethod
    def with_defaults(cls) -> "RecipeLibrary":
        return cls(default_recipes())
    
    def register(self, recipe: Recipe) -> None:
        """Add a recipe; a recipe with the same name is replaced."""
        if recipe is None:
            raise ValidationError("recipe", "must not be None")
        require_text("name", recipe.name)
        with self._lock:
            if recipe.name in self._recipes:
                logger.debug(f"Replacing recipe {recipe.name}")
            self._recipes[recipe.name] = recipe
    
    def get_by_name(self, name: str) -> Optional[Recipe]:
        if not name:
            return None
        with self._lock:
            return self._recipes.get(name)
    
    def get_all(self) -> list[Recipe]:
        """All recipes sorted by name."""
        with self._lock:
            return sorted(self._recipes.values(), key=lambda r: r.name)
    
    def has_recipe(self, name: str) -> bool:
        return self.get_by_name(name) is not None
    
    def blanket_recipe(self) -> Optional[Recipe]:
        for recipe in self.get_all():
            if recipe.is_blanket:
                return recipe
        return None
    
    def recipes_for_families(self, families: set[str]) -> list[Recipe]:
        """API-family recipes covering any of ``families``."""
        return [
            r for r in self.get_all()
            if r.kind is RecipeKind.API_FAMILY and families.intersection(r.families)
        ]
    
    def descriptor_recipes(self, file_path: str) -> list[Recipe]:
        return [r for r in self.get_all() if r.kind is RecipeKind.DESCRIPTOR and r.applies_to(file_path)]
    
    def uncovered_families(self) -> list[str]:
        """Migrated families no API-family recipe handles."""
        covered = {f for r in self.get_all() if r.kind is RecipeKind.API_FAMILY for f in r.families}
        return [f for f in MIGRATED_PACKAGES if f not in covered]
    
    def __len__(self) -> int:
        with self._lock:
            return len(self._recipes)
