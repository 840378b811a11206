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
Version helpers shared by the classifier, the mapping service and the
analysis engine: lenient numeric comparison and Maven version ranges.
"""

import re
from dataclasses import dataclass
from typing import Optional


_NUMERIC_PREFIX = re.compile(r"^(\d+)")


def parse_version(version: str) -> tuple[int, ...]:
    """
    Parse a version into numeric parts.
    
    Qualifiers after '-' are ignored and a part without a numeric prefix
    counts as 0, so "6.0.0-M1" -> (6, 0, 0) and "2.x" -> (2, 0).
    """
    core = version.strip().split("-", 1)[0]
    parts = []
    for part in core.split("."):
        match = _NUMERIC_PREFIX.match(part)
        parts.append(int(match.group(1)) if match else 0)
    return tuple(parts)


def compare_versions(left: str, right: str) -> int:
    """Return -1, 0 or 1; missing trailing parts compare as 0."""
    a, b = parse_version(left), parse_version(right)
    length = max(len(a), len(b))
    a = a + (0,) * (length - len(a))
    b = b + (0,) * (length - len(b))
    return (a > b) - (a < b)


def is_at_least(version: str, minimum: str) -> bool:
    return compare_versions(version, minimum) >= 0


@dataclass(frozen=True)
class VersionRange:
    """A Maven version range such as ``[2.0,3.0)``."""
    lower: Optional[str]
    lower_inclusive: bool
    upper: Optional[str]
    upper_inclusive: bool
    
    def contains(self, version: str) -> bool:
        if self.lower is not None:
            cmp = compare_versions(version, self.lower)
            if cmp < 0 or (cmp == 0 and not self.lower_inclusive):
                return False
        if self.upper is not None:
            cmp = compare_versions(version, self.upper)
            if cmp > 0 or (cmp == 0 and not self.upper_inclusive):
                return False
        return True


def parse_range(spec: str) -> Optional[VersionRange]:
    """Parse a single Maven range; plain versions and unions return None."""
    spec = spec.strip()
    if len(spec) < 3 or spec[0] not in "[(" or spec[-1] not in "])":
        return None
    body = spec[1:-1]
    if "," not in body:
        # [1.0] pins an exact version
        if spec[0] == "[" and spec[-1] == "]" and body.strip():
            return VersionRange(body.strip(), True, body.strip(), True)
        return None
    lower, upper = (p.strip() for p in body.split(",", 1))
    if "," in upper:
        return None
    return VersionRange(lower or None, spec[0] == "[", upper or None, spec[-1] == "]")
