"""
Access Tracker

Append-only audit log of authentication and secret access events,
one JSON object per line.
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class TrackingError(Exception):
    """Raised when an event cannot be recorded."""


class AccessType(str, Enum):
    AUTHENTICATION_REQUEST = "authentication_request"
    AUTHENTICATION_SUCCESS = "authentication_success"
    AUTHENTICATION_FAILURE = "authentication_failure"
    SECRET_ACCESS = "secret_access"
    SECRET_ACCESS_FAILURE = "secret_access_failure"


@dataclass(frozen=True)
class AccessRecord:
    """One immutable audit entry."""
    type: AccessType
    process_id: str
    secret_names: List[str] = field(default_factory=list)
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "timestamp": self.timestamp.isoformat(),
            "type": self.type.value,
            "process_id": self.process_id,
        }
        if self.secret_names:
            record["secret_names"] = list(self.secret_names)
        if self.error:
            record["error"] = self.error
        return record

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


class Tracker(ABC):
    """
    Records access and authentication events.

    Callers treat TrackingError as non-fatal: log it and carry on.
    """

    @abstractmethod
    def track_event(self, record: AccessRecord) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    def track_authentication_request(self, process_id: str, secret_names: List[str]) -> None:
        self.track_event(AccessRecord(AccessType.AUTHENTICATION_REQUEST, process_id, list(secret_names)))

    def track_authentication_success(self, process_id: str, secret_names: List[str]) -> None:
        self.track_event(AccessRecord(AccessType.AUTHENTICATION_SUCCESS, process_id, list(secret_names)))

    def track_authentication_failure(self, process_id: str, secret_names: List[str], error: Union[str, Exception]) -> None:
        self.track_event(AccessRecord(AccessType.AUTHENTICATION_FAILURE, process_id, list(secret_names), str(error)))

    def track_secret_access(self, process_id: str, secret_names: List[str]) -> None:
        self.track_event(AccessRecord(AccessType.SECRET_ACCESS, process_id, list(secret_names)))

    def track_secret_access_failure(self, process_id: str, secret_names: List[str], error: Union[str, Exception]) -> None:
        self.track_event(AccessRecord(AccessType.SECRET_ACCESS_FAILURE, process_id, list(secret_names), str(error)))


class FileTracker(Tracker):
    """
    JSON Lines tracker over a single shared append-mode file handle.

    Writes are serialized with a lock so records never interleave.
    """

    def __init__(self, log_path: Union[str, Path]):
        self.log_path = Path(log_path)
        self._lock = threading.Lock()
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._file = self.log_path.open("a", encoding="utf-8")
        except OSError as e:
            raise TrackingError(f"failed to open log file: {e}") from e
        logger.info(f"Tracking access events in {self.log_path}")

    def track_event(self, record: AccessRecord) -> None:
        try:
            line = record.to_json()
        except (TypeError, ValueError) as e:
            raise TrackingError(f"failed to serialize record: {e}") from e

        with self._lock:
            if self._file.closed:
                raise TrackingError("tracker is closed")
            try:
                self._file.write(line + "\n")
                self._file.flush()
            except OSError as e:
                raise TrackingError(f"failed to write to log file: {e}") from e

    def close(self) -> None:
        with self._lock:
            if not self._file.closed:
                self._file.close()
