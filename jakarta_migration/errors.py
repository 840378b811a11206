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
Error Taxonomy

Exceptions raised by the migration toolkit, plus the ``Validated`` result
used by the smart constructors of the value records.

- ValidationError: a value record was built with an invalid field
- DependencyGraphException: the build descriptor is missing or malformed
- ToolExecutionError: an external tool could not be run
- RecipeApplicationError: a recipe failed on a file (recovered by rollback)
- InvalidStateTransition: a migration run was moved to an illegal state
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar


T = TypeVar("T")


class MigrationError(Exception):
    """Base class for every error raised by the toolkit."""


class ValidationError(MigrationError, ValueError):
    """A value record was constructed with a field that breaks its invariants."""
    
    def __init__(self, field_name: str, message: str) -> None:
        super().__init__(f"{field_name}: {message}")
        self.field_name = field_name


class DependencyGraphException(MigrationError):
    """
    The dependency graph could not be built.
    
    Attributes:
        descriptor_format: Descriptor that was attempted ("maven", "gradle"),
            or None when no descriptor was found at all
        cause: Underlying exception, also chained as ``__cause__``
    """
    
    def __init__(
        self,
        message: str,
        descriptor_format: Optional[str] = None,
        cause: Optional[BaseException] = None
    ) -> None:
        super().__init__(message)
        self.descriptor_format = descriptor_format
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class ToolExecutionError(MigrationError):
    """An external tool (java, a jar inspector) failed to run."""
    
    def __init__(self, tool: str, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"{tool}: {message}")
        self.tool = tool
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class RecipeApplicationError(MigrationError):
    """Applying a recipe to a file failed."""
    
    def __init__(self, recipe_name: str, file_path: str, cause: Optional[BaseException] = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Recipe {recipe_name} failed on {file_path}{detail}")
        self.recipe_name = recipe_name
        self.file_path = file_path
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class InvalidStateTransition(MigrationError):
    """A migration run was asked to move between states that are not connected."""


@dataclass(frozen=True)
class Validated(Generic[T]):
    """Outcome of a smart constructor: either a value or the validation error."""
    value: Optional[T] = None
    error: Optional[ValidationError] = None
    
    @property
    def ok(self) -> bool:
        return self.error is None
    
    def unwrap(self) -> T:
        """Return the value, raising the stored error when construction failed."""
        if self.error is not None:
            raise self.error
        return self.value


def validated(factory: Callable[..., T], *args: Any, **kwargs: Any) -> Validated[T]:
    """
    Build a value record without letting a ValidationError escape.
    
    Example:
        result = validated(Blocker, artifact=a, blocker_type=t, reason="x", confidence=1.5)
        if not result.ok:
            logger.warning(result.error)
    """
    try:
        return Validated(value=factory(*args, **kwargs))
    except ValidationError as e:
        return Validated(error=e)


def require_text(field_name: str, value: Any) -> None:
    """Reject None or blank strings."""
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(field_name, "must be a non-blank string")


def require_unit_interval(field_name: str, value: Any) -> None:
    """Reject numbers outside the closed interval [0, 1]."""
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field_name, "must be a number in [0, 1]")
    if not 0.0 <= value <= 1.0:
        raise ValidationError(field_name, f"must be in [0, 1], got {value}")


def require_non_negative(field_name: str, value: Any) -> None:
    """Reject negative counters."""
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field_name, "must be a non-negative number")
    if value < 0:
        raise ValidationError(field_name, f"must be >= 0, got {value}")


def clamp01(value: float) -> float:
    """Clamp a float to [0, 1]."""
    return max(0.0, min(1.0, value))
