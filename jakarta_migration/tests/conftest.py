"""
Shared fixtures: a small Maven web application still on javax.
"""

import pytest
from pathlib import Path

from jakarta_migration.analysis.models import Artifact, DependencyGraph, Dependency


POM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <groupId>com.example</groupId>
  <artifactId>shop</artifactId>
  <version>1.0.0</version>
  <properties>
    <servlet.version>4.0.1</servlet.version>
  </properties>
  <dependencyManagement>
    <dependencies>
      <dependency>
        <groupId>javax.persistence</groupId>
        <artifactId>javax.persistence-api</artifactId>
        <version>2.2</version>
      </dependency>
    </dependencies>
  </dependencyManagement>
  <dependencies>
    <dependency>
      <groupId>javax.servlet</groupId>
      <artifactId>javax.servlet-api</artifactId>
      <version>${servlet.version}</version>
      <scope>provided</scope>
    </dependency>
    <dependency>
      <groupId>javax.persistence</groupId>
      <artifactId>javax.persistence-api</artifactId>
    </dependency>
    <dependency>
      <groupId>org.slf4j</groupId>
      <artifactId>slf4j-api</artifactId>
      <version>2.0.9</version>
    </dependency>
  </dependencies>
</project>
"""

ORDER_SERVLET = """package com.example.shop;

import java.io.IOException;
import javax.servlet.ServletException;
import javax.servlet.http.HttpServlet;
import javax.servlet.http.HttpServletRequest;
import javax.servlet.http.HttpServletResponse;

public class OrderServlet extends HttpServlet {
    @Override
    protected void doGet(HttpServletRequest req, HttpServletResponse resp)
            throws ServletException, IOException {
        resp.getWriter().write("ok");
    }
}
"""

ORDER_ENTITY = """package com.example.shop;

import javax.persistence.Entity;
import javax.persistence.Id;

@Entity
public class Order {
    @Id
    private Long id;

    @javax.persistence.Column(name = "total")
    private long total;
}
"""

PROCESSOR = """package com.example.shop;

import javax.annotation.processing.AbstractProcessor;

public abstract class Processor extends AbstractProcessor {
}
"""

PERSISTENCE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<persistence xmlns="http://xmlns.jcp.org/xml/ns/persistence" version="2.2">
  <persistence-unit name="shop">
    <properties>
      <property name="javax.persistence.jdbc.url" value="jdbc:h2:mem:shop"/>
    </properties>
  </persistence-unit>
</persistence>
"""

JAVA_DIR = "src/main/java/com/example/shop"
SERVLET_PATH = f"{JAVA_DIR}/OrderServlet.java"
ENTITY_PATH = f"{JAVA_DIR}/Order.java"
PROCESSOR_PATH = f"{JAVA_DIR}/Processor.java"
PERSISTENCE_PATH = "src/main/resources/META-INF/persistence.xml"


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """A Maven project with javax servlets, JPA entities and a persistence unit."""
    files = {
        "pom.xml": POM_XML,
        SERVLET_PATH: ORDER_SERVLET,
        ENTITY_PATH: ORDER_ENTITY,
        PROCESSOR_PATH: PROCESSOR,
        PERSISTENCE_PATH: PERSISTENCE_XML,
        # build output must never be scanned
        "target/classes/Stale.java": "import javax.servlet.Filter;\n",
    }
    for rel_path, content in files.items():
        path = tmp_path / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return tmp_path


@pytest.fixture
def project_artifact() -> Artifact:
    return Artifact("com.example", "shop", "1.0.0")


@pytest.fixture
def make_graph(project_artifact: Artifact):
    """Factory: the project node with a direct edge to each given artifact."""
    def build(*artifacts: Artifact) -> DependencyGraph:
        graph = DependencyGraph()
        graph.add_node(project_artifact)
        for artifact in artifacts:
            graph.add_edge(Dependency(project_artifact, artifact))
        return graph
    return build
