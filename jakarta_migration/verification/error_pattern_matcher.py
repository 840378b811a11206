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
Error Pattern Matcher

Classifies runtime error messages seen after a migration. Categories
overlap (a legacy class name inside a linkage error, say), so
``determine_error_category`` checks them in a fixed precedence order.
"""

import re
from typing import Optional

from jakarta_migration.config import LEGACY_PREFIX, MODERN_PREFIX
from jakarta_migration.verification.models import ErrorCategory, ErrorType


_EE_PACKAGES = (
    "servlet|persistence|ejb|validation|ws|xml|jms|mail|security|transaction|annotation|"
    "inject|decorator|interceptor|batch|connector|json|jsonb|jta|jpa|faces|cdi|el|enterprise|"
    "websocket|activation|resource"
)

JAVAX_CLASS_NOT_FOUND = re.compile(rf"ClassNotFoundException.*javax\.({_EE_PACKAGES})", re.IGNORECASE)
JAVAX_NO_CLASS_DEF = re.compile(rf"NoClassDefFoundError.*javax[./]({_EE_PACKAGES})", re.IGNORECASE)
JAKARTA_CLASS_NOT_FOUND = re.compile(rf"ClassNotFoundException.*jakarta\.({_EE_PACKAGES})", re.IGNORECASE)
JAKARTA_NO_CLASS_DEF = re.compile(rf"NoClassDefFoundError.*jakarta[./]({_EE_PACKAGES})", re.IGNORECASE)
LINKAGE_ERROR = re.compile(r"LinkageError.*(javax|jakarta)", re.IGNORECASE)
MIXED_NAMESPACES = re.compile(r"(javax|jakarta).*\s+(javax|jakarta)", re.IGNORECASE)

# Checked in order; the first keyword found decides
ERROR_TYPE_KEYWORDS: tuple[tuple[str, ErrorType], ...] = (
    ("classnotfoundexception", ErrorType.CLASS_NOT_FOUND),
    ("noclassdeffounderror", ErrorType.NO_CLASS_DEF_FOUND),
    ("linkageerror", ErrorType.LINKAGE_ERROR),
    ("nosuchmethoderror", ErrorType.NO_SUCH_METHOD),
    ("nosuchfielderror", ErrorType.NO_SUCH_FIELD),
    ("illegalaccesserror", ErrorType.ILLEGAL_ACCESS),
    ("classcastexception", ErrorType.CLASS_CAST),
)

CONFIGURATION_VOCABULARY = ("xml", "configuration", "properties")


class ErrorPatternMatcher:
    """Maps error messages to an ErrorType and an ErrorCategory."""
    
    def determine_error_type(self, message: Optional[str]) -> ErrorType:
        if message is None:
            return ErrorType.OTHER
        lowered = message.lower()
        for keyword, error_type in ERROR_TYPE_KEYWORDS:
            if keyword in lowered:
                return error_type
        return ErrorType.OTHER
    
    def determine_error_category(self, message: Optional[str], class_name: Optional[str]) -> ErrorCategory:
        """
        Categorize an error from its message and the class involved.
        
        Precedence:
        1. legacy namespace signal -> NAMESPACE_MIGRATION
        2. modern namespace signal -> CLASSPATH_ISSUE
        3. linkage error, or both namespaces in the text -> BINARY_INCOMPATIBILITY
        4. configuration vocabulary -> CONFIGURATION_ERROR
        5. otherwise UNKNOWN
        """
        if message is None and class_name is None:
            return ErrorCategory.UNKNOWN
        
        msg = message or ""
        cls = class_name or ""
        combined = f"{msg} {cls}"
        lower_msg = msg.lower()
        lower_cls = cls.lower()
        lower_combined = combined.lower()
        
        if (
            JAVAX_CLASS_NOT_FOUND.search(combined)
            or JAVAX_NO_CLASS_DEF.search(combined)
            or lower_cls.startswith(LEGACY_PREFIX)
            or LEGACY_PREFIX in lower_msg
        ):
            return ErrorCategory.NAMESPACE_MIGRATION
        
        if (
            JAKARTA_CLASS_NOT_FOUND.search(combined)
            or JAKARTA_NO_CLASS_DEF.search(combined)
            or lower_cls.startswith(MODERN_PREFIX)
            or MODERN_PREFIX in lower_msg
        ):
            return ErrorCategory.CLASSPATH_ISSUE
        
        if LINKAGE_ERROR.search(combined):
            return ErrorCategory.BINARY_INCOMPATIBILITY
        if "javax" in lower_combined and "jakarta" in lower_combined and MIXED_NAMESPACES.search(combined):
            return ErrorCategory.BINARY_INCOMPATIBILITY
        
        if any(word in lower_combined for word in CONFIGURATION_VOCABULARY):
            return ErrorCategory.CONFIGURATION_ERROR
        
        return ErrorCategory.UNKNOWN
    
    def is_jakarta_migration_related(self, category: ErrorCategory) -> bool:
        return category.is_migration_related
