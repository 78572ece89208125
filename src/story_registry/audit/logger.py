"""
Audit log writer for the Story Registry.

Provides thread-safe, append-only logging of emitted events to JSONL files.
"""

import fcntl
import json
import logging
import os
import threading
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from .models import AuditEvent

logger = logging.getLogger(__name__)


@dataclass
class WriteResult:
    """Result of a log write operation."""

    success: bool
    event_id: str
    log_file: str
    error: str | None = None
    bytes_written: int = 0


class AuditLogger:
    """
    Thread-safe audit log writer.

    Writes emitted registry events to the audit directory with
    date-based filenames. Files are only ever appended to.
    """

    DEFAULT_AUDIT_DIR = Path("var/audit")
    LOG_PREFIX = "events_"
    LOG_SUFFIX = ".jsonl"

    def __init__(self, audit_dir: Path | None = None):
        """
        Initialize the audit logger.

        Args:
            audit_dir: Directory for audit log files (default: var/audit/)
        """
        self._audit_dir = Path(audit_dir) if audit_dir else self.DEFAULT_AUDIT_DIR
        self._audit_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    @property
    def audit_dir(self) -> Path:
        return self._audit_dir

    def _get_log_file(self, date: datetime | None = None) -> Path:
        """Get the log file path for a specific date."""
        if date is None:
            date = datetime.now(timezone.utc)
        filename = f"{self.LOG_PREFIX}{date.strftime('%Y%m%d')}{self.LOG_SUFFIX}"
        return self._audit_dir / filename

    def log(self, event: AuditEvent) -> WriteResult:
        """
        Append an event to today's log file.

        I/O failures are reported in the result rather than raised.
        """
        log_file = self._get_log_file()
        log_file_str = str(log_file)

        try:
            log_line = event.to_log_line() + "\n"
            bytes_to_write = len(log_line.encode("utf-8"))

            with self._lock:
                with open(log_file, "a", encoding="utf-8") as f:
                    # Cross-process exclusion
                    try:
                        fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                    except OSError:
                        pass

                    try:
                        f.write(log_line)
                        f.flush()
                        os.fsync(f.fileno())
                    finally:
                        try:
                            fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                        except OSError:
                            pass

            return WriteResult(
                success=True,
                event_id=event.event_id,
                log_file=log_file_str,
                bytes_written=bytes_to_write,
            )

        except OSError as e:
            logger.warning(f"Failed to write audit event {event.event_id}: {e}")
            return WriteResult(
                success=False,
                event_id=event.event_id,
                log_file=log_file_str,
                error=str(e),
            )

    def log_files(self) -> list[Path]:
        """List log files in chronological order."""
        pattern = f"{self.LOG_PREFIX}*{self.LOG_SUFFIX}"
        return sorted(self._audit_dir.glob(pattern))

    def read_events(self) -> Iterator[AuditEvent]:
        """
        Yield every stored event in file order.

        Lines that are not valid events are skipped with a warning.
        """
        for log_file in self.log_files():
            with open(log_file, encoding="utf-8", errors="replace") as f:
                for line_no, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        yield AuditEvent(**json.loads(line))
                    except (json.JSONDecodeError, ValidationError, TypeError) as e:
                        logger.warning(
                            f"Skipping malformed audit line {log_file.name}:{line_no}: {e}"
                        )

    @staticmethod
    def verify(event: AuditEvent) -> bool:
        """Return True if the stored checksum matches the event contents."""
        return event.checksum is not None and event.checksum == event.compute_checksum()
