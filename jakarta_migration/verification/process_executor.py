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
Process Executor

Runs a packaged application under a deadline and a memory ceiling and
reports what the process did.
"""

import os
import subprocess
import sys
import time
from pathlib import Path
from typing import Callable, Optional

from jakarta_migration.config import JAVA_EXECUTABLE
from jakarta_migration.errors import ToolExecutionError
from jakarta_migration.utils.logging_config import get_logger
from jakarta_migration.verification.models import ExecutionMetrics, VerificationOptions

logger = get_logger(__name__)

if os.name == "posix":
    import resource
else:
    resource = None


MEBIBYTE = 1024 * 1024

# The JVM reserves far more address space than its heap.
ADDRESS_SPACE_FACTOR = 4

OUT_OF_MEMORY_MARKER = "OutOfMemoryError"


def heap_flag(max_memory_bytes: int) -> Optional[str]:
    """``-Xmx`` flag for the ceiling, or None when the ceiling is disabled."""
    if max_memory_bytes <= 0:
        return None
    return f"-Xmx{max(1, max_memory_bytes // MEBIBYTE)}m"


def build_command(java_executable: str, jar_path: Path, options: VerificationOptions) -> list[str]:
    """Command line used to start the jar."""
    command = [java_executable]
    flag = heap_flag(options.max_memory_bytes)
    if flag:
        command.append(flag)
    command.extend(options.jvm_args)
    command.extend(["-jar", str(jar_path)])
    return command


def _children_peak_rss() -> int:
    """Largest resident set of any waited-for child, in bytes."""
    if resource is None:
        return 0
    peak = resource.getrusage(resource.RUSAGE_CHILDREN).ru_maxrss
    # Linux reports kilobytes, macOS bytes
    return peak if sys.platform == "darwin" else peak * 1024


def _address_space_limiter(max_memory_bytes: int) -> Optional[Callable[[], None]]:
    if resource is None or max_memory_bytes <= 0:
        return None
    limit = max_memory_bytes * ADDRESS_SPACE_FACTOR
    
    def apply_limit() -> None:
        resource.setrlimit(resource.RLIMIT_AS, (limit, limit))
    
    return apply_limit


class ProcessExecutor:
    """Starts ``java -jar`` for a built artifact and collects its output."""
    
    def __init__(self, java_executable: str = JAVA_EXECUTABLE) -> None:
        self.java_executable = java_executable
    
    def execute_jar(
        self,
        jar_path: Path,
        options: Optional[VerificationOptions] = None
    ) -> tuple[ExecutionMetrics, str, str]:
        """
        Run the jar until it exits or the deadline passes.
        
        Args:
            jar_path: Jar to start
            options: Deadline, memory ceiling and capture settings
            
        Returns:
            Execution metrics, captured stdout and captured stderr
            
        Raises:
            ToolExecutionError: If the java executable cannot be started
        """
        options = options or VerificationOptions()
        command = build_command(self.java_executable, jar_path, options)
        logger.info(f"Executing: {' '.join(command)}")
        
        rss_before = _children_peak_rss()
        start = time.monotonic()
        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE if options.capture_stdout else subprocess.DEVNULL,
                stderr=subprocess.PIPE if options.capture_stderr else subprocess.DEVNULL,
                text=True,
                errors="replace",
                preexec_fn=_address_space_limiter(options.max_memory_bytes),
            )
        except OSError as e:
            raise ToolExecutionError(self.java_executable, f"could not start process: {e}", e)
        
        timed_out = False
        try:
            stdout, stderr = process.communicate(timeout=options.timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"Process exceeded {options.timeout}s deadline, killing it")
            timed_out = True
            process.kill()
            stdout, stderr = process.communicate()
        elapsed = time.monotonic() - start
        
        stdout = stdout or ""
        stderr = stderr or ""
        rss_after = _children_peak_rss()
        memory_used = rss_after if rss_after > rss_before else 0
        memory_exceeded = OUT_OF_MEMORY_MARKER in stderr or OUT_OF_MEMORY_MARKER in stdout
        if options.max_memory_bytes > 0 and memory_used > options.max_memory_bytes:
            memory_exceeded = True
        
        metrics = ExecutionMetrics(
            execution_time=elapsed,
            memory_used_bytes=memory_used,
            exit_code=process.returncode if process.returncode is not None else -1,
            timed_out=timed_out,
            memory_exceeded=memory_exceeded,
        )
        logger.info(
            f"Process finished: exit={metrics.exit_code}, "
            f"time={elapsed:.1f}s, timed_out={timed_out}, memory_exceeded={memory_exceeded}"
        )
        return metrics, stdout, stderr
