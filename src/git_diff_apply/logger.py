"""
git-diff-apply log output

Console: text (human readable, written to stderr)
File: JSON lines (machine readable, only when a log directory is given)
"""

from __future__ import annotations

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, TextIO

LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


class DiffApplyLogger:
    """
    Structured logger for the diff-apply pipeline

    Console: text format, filtered by level
    File: JSON format, every entry, only when log_dir is set
    """

    def __init__(
        self,
        name: str = "git-diff-apply",
        level: str = "WARNING",
        log_dir: Path | None = None,
        stream: TextIO | None = None,
    ) -> None:
        """
        Args:
            name: Logger name, used as the log file prefix
            level: Minimum level printed to the console
            log_dir: Directory for JSON log files (default: no file output)
            stream: Console stream (default: sys.stderr)
        """
        if level not in LEVELS:
            raise ValueError(f"Invalid log level: {level}. Must be one of {list(LEVELS)}")

        self.name = name
        self.level = level
        self.log_dir = Path(log_dir) if log_dir else None
        self.stream = stream
        if self.log_dir:
            self.log_dir.mkdir(parents=True, exist_ok=True)

    def _get_log_file(self) -> Path | None:
        """Today's log file path"""
        if self.log_dir is None:
            return None
        today = datetime.now().strftime("%Y%m%d")
        return self.log_dir / f"{self.name}-{today}.log"

    def log(self, level: str, message: str, **kwargs: Any) -> None:
        """
        Emit a structured log entry

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR)
            message: Log message
            **kwargs: Extra structured data, written to the file only
        """
        now = datetime.now()

        if LEVELS.get(level, 0) >= LEVELS[self.level]:
            time_str = now.strftime("%H:%M:%S")
            print(f"{time_str} [{level}] {message}", file=self.stream or sys.stderr)

        log_file = self._get_log_file()
        if log_file is None:
            return

        log_entry = {
            "timestamp": now.isoformat(),
            "level": level,
            "message": message,
            **kwargs,
        }
        with open(log_file, "a") as f:
            f.write(json.dumps(log_entry, default=str) + "\n")

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log("DEBUG", message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self.log("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log("ERROR", message, **kwargs)
