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
Logging Configuration

Single place where the migration toolkit configures its loggers. Every
module asks for ``get_logger(__name__)`` and the package logger decides
where the output goes.
"""

import logging
import sys
import time
from pathlib import Path
from typing import Optional, Union


PACKAGE_LOGGER = "jakarta_migration"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_loggers: dict[str, logging.Logger] = {}
_initialized = False


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    force: bool = False
) -> None:
    """
    Configure the package logger.
    
    Args:
        level: Logging level, as a number or a name such as "DEBUG"
        log_file: Optional path to an additional log file
        format_string: Log message format
        date_format: Date format for timestamps
        force: Replace handlers installed by an earlier call (the CLI uses
            this to honour --verbose after modules were imported)
    """
    global _initialized
    
    if _initialized and not force:
        return
    
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    
    formatter = logging.Formatter(format_string, datefmt=date_format)
    
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    
    package_logger.setLevel(level)
    package_logger.addHandler(console_handler)
    package_logger.propagate = False
    
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        package_logger.addHandler(file_handler)
    
    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.
    
    Args:
        name: Logger name (typically __name__ of the calling module)
        
    Returns:
        Logger living under the package logger
        
    Example:
        logger = get_logger(__name__)
        logger.info("Scanning sources")
    """
    if not _initialized:
        setup_logging()
    
    if name != PACKAGE_LOGGER and not name.startswith(f"{PACKAGE_LOGGER}."):
        name = f"{PACKAGE_LOGGER}.{name}"
    
    if name not in _loggers:
        _loggers[name] = logging.getLogger(name)
    
    return _loggers[name]


class LogContext:
    """
    Context manager that frames a multi-step operation in the log.
    
    Usage:
        with LogContext(logger, "Analyzing dependencies"):
            logger.info("Step 1/7: ...")
    
    Set ``outcome`` inside the block when it ends early without an
    exception, e.g. ``context.outcome = "rolled back"``.
    """
    
    def __init__(self, logger: logging.Logger, context: str) -> None:
        self.logger = logger
        self.context = context
        self.outcome: Optional[str] = None
        self._started = 0.0
    
    def __enter__(self) -> "LogContext":
        self._started = time.monotonic()
        self.logger.info("=" * 60)
        self.logger.info(self.context)
        self.logger.info("=" * 60)
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        elapsed = time.monotonic() - self._started
        if exc_type:
            self.logger.error(f"{self.context} failed after {elapsed:.2f}s: {exc_val}")
        elif self.outcome:
            self.logger.warning(f"{self.context} {self.outcome} after {elapsed:.2f}s")
        else:
            self.logger.info(f"{self.context} completed in {elapsed:.2f}s")


def log_progress(
    logger: logging.Logger,
    current: int,
    total: int,
    message: str = "Progress",
    interval: int = 25
) -> None:
    """
    Log progress at regular intervals.
    
    Args:
        logger: Logger instance
        current: Current item number
        total: Total items
        message: Progress message prefix
        interval: Log every N items
    """
    if total <= 0:
        return
    if current % interval == 0 or current == total:
        percentage = (100 * current) // total
        logger.info(f"{message}: {current}/{total} ({percentage}%)")
