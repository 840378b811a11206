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
Change Tracker

Holds pre-mutation snapshots of files so a migration run can be undone.
Each tracker instance is owned by one refactoring engine; checkpoints are
independently keyed, so creation, lookup and removal are safe across
threads working on different files.
"""

import threading
import uuid
from datetime import datetime, timezone
from typing import Optional

from jakarta_migration.errors import ValidationError
from jakarta_migration.refactoring.models import Checkpoint
from jakarta_migration.utils.logging_config import get_logger

logger = get_logger(__name__)


class ChangeTracker:
    """In-memory store of checkpoints and the original file contents they protect."""
    
    def __init__(self) -> None:
        self._checkpoints: dict[str, Checkpoint] = {}
        self._contents: dict[str, str] = {}
        self._lock = threading.Lock()
    
    def create_checkpoint(self, file_path: str, original_content: str, description: str) -> str:
        """
        Snapshot ``original_content`` of ``file_path``.
        
        Returns:
            Opaque checkpoint id
        
        Raises:
            ValidationError: Blank path, or missing content or description
        """
        if file_path is None or not str(file_path).strip():
            raise ValidationError("file_path", "must be a non-blank path")
        if original_content is None:
            raise ValidationError("original_content", "must not be None")
        if description is None:
            raise ValidationError("description", "must not be None")
        
        checkpoint = Checkpoint(
            checkpoint_id=uuid.uuid4().hex,
            file_path=str(file_path),
            timestamp=datetime.now(timezone.utc),
            description=description,
        )
        with self._lock:
            self._checkpoints[checkpoint.checkpoint_id] = checkpoint
            self._contents[checkpoint.checkpoint_id] = original_content
        logger.debug(f"Checkpoint {checkpoint.checkpoint_id[:8]} created for {file_path}")
        return checkpoint.checkpoint_id
    
    def get_checkpoint(self, checkpoint_id: Optional[str]) -> Optional[Checkpoint]:
        if not checkpoint_id or not checkpoint_id.strip():
            return None
        with self._lock:
            return self._checkpoints.get(checkpoint_id)
    
    def get_original_content(self, checkpoint_id: Optional[str]) -> Optional[str]:
        if not checkpoint_id or not checkpoint_id.strip():
            return None
        with self._lock:
            return self._contents.get(checkpoint_id)
    
    def remove_checkpoint(self, checkpoint_id: Optional[str]) -> None:
        """Drop a checkpoint; unknown ids are ignored."""
        if not checkpoint_id:
            return
        with self._lock:
            self._checkpoints.pop(checkpoint_id, None)
            self._contents.pop(checkpoint_id, None)
    
    def has_checkpoint(self, checkpoint_id: Optional[str]) -> bool:
        if not checkpoint_id:
            return False
        with self._lock:
            return checkpoint_id in self._checkpoints
    
    def checkpoint_count(self) -> int:
        with self._lock:
            return len(self._checkpoints)
