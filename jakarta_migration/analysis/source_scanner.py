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
Source Scanner

Finds legacy namespace usage in a project: ``javax.*`` imports and
fully-qualified references in Java sources, and legacy schema namespaces
in deployment descriptors. Only Jakarta EE families count; JDK packages
such as ``javax.swing`` or ``javax.crypto`` are ignored.
"""

import re
from pathlib import Path
from typing import Iterator, Optional

from jakarta_migration.analysis.models import FileUsage, SourceScanResult
from jakarta_migration.analysis.namespace_classifier import is_legacy_name
from jakarta_migration.config import DESCRIPTOR_FILES, EXCLUDED_DIRS, LEGACY_XML_NAMESPACES
from jakarta_migration.utils.logging_config import get_logger, log_progress

logger = get_logger(__name__)


IMPORT_PATTERN = re.compile(r"^\s*import\s+(?:static\s+)?([\w.]+(?:\.\*)?)\s*;")
QUALIFIED_REFERENCE = re.compile(r"(?<![\w.])javax\.[a-z][\w]*(?:\.[\w]+)*")


def read_text(path: Path) -> str:
    """Read file content, replacing undecodable bytes."""
    return path.read_text(encoding="utf-8", errors="replace")


def extract_imports(content: str) -> dict[str, int]:
    """Map each imported name to the (first) line it is imported on."""
    imports: dict[str, int] = {}
    for i, line in enumerate(content.split("\n"), 1):
        match = IMPORT_PATTERN.match(line)
        if match:
            imports.setdefault(match.group(1), i)
    return imports


class SourceScanner:
    """Scans a project tree for legacy javax usage."""
    
    def __init__(self, project_root: Path, excluded_dirs: Optional[tuple[str, ...]] = None) -> None:
        """
        Initialize the scanner.
        
        Args:
            project_root: Root of the project to scan
            excluded_dirs: Directory names never descended into (build output, VCS)
        """
        self.project_root = Path(project_root)
        self.excluded_dirs = set(excluded_dirs if excluded_dirs is not None else EXCLUDED_DIRS)
    
    def scan(self) -> SourceScanResult:
        logger.info(f"Scanning sources under {self.project_root}")
        
        files = sorted(self._iter_files())
        usages: list[FileUsage] = []
        for processed, path in enumerate(files, 1):
            usage = self.scan_file(path)
            if usage is not None and usage.has_legacy_usage:
                usages.append(usage)
            log_progress(logger, processed, len(files), "Scanning", interval=100)
        
        result = SourceScanResult(
            usages=tuple(usages),
            total_files_scanned=len(files),
            files_with_legacy_usage=len(usages),
            total_legacy_imports=sum(len(u.legacy_imports) for u in usages),
        )
        logger.info(
            f"Scanned {result.total_files_scanned} files: {result.files_with_legacy_usage} use javax, "
            f"{result.total_legacy_imports} legacy import(s)"
        )
        return result
    
    def scan_file(self, path: Path) -> Optional[FileUsage]:
        """Scan one file; unreadable files are logged and skipped."""
        try:
            content = read_text(path)
        except OSError as e:
            logger.warning(f"Could not read {path}: {e}")
            return None
        
        rel_path = self._relative(path)
        if path.suffix == ".xml":
            found = [uri for uri in LEGACY_XML_NAMESPACES if uri + '"' in content or uri + "'" in content]
            return FileUsage(
                file_path=rel_path,
                line_count=content.count("\n") + 1,
                legacy_xml_namespaces=tuple(found),
            )
        
        imports = extract_imports(content)
        legacy = [imp for imp in imports if is_legacy_name(imp)]
        
        references: list[str] = []
        for line in content.split("\n"):
            if IMPORT_PATTERN.match(line) or line.lstrip().startswith("package "):
                continue
            for match in QUALIFIED_REFERENCE.finditer(line):
                name = match.group(0)
                if is_legacy_name(name) and name not in references:
                    references.append(name)
        
        return FileUsage(
            file_path=rel_path,
            legacy_imports=tuple(legacy),
            line_count=content.count("\n") + 1,
            import_lines={imp: imports[imp] for imp in legacy},
            legacy_references=tuple(references),
        )
    
    def _iter_files(self) -> Iterator[Path]:
        for path in self.project_root.rglob("*"):
            if not path.is_file():
                continue
            rel_parts = path.relative_to(self.project_root).parts[:-1]
            if any(part in self.excluded_dirs for part in rel_parts):
                continue
            if path.suffix == ".java" or path.name in DESCRIPTOR_FILES:
                yield path
    
    def _relative(self, path: Path) -> str:
        return path.relative_to(self.project_root).as_posix()
