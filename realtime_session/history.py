"""
Session journal for the realtime session client.

Every event sent or received over the connection is appended here as a
timestamped ``HistoryRecord``. The journal is persisted as a pretty-printed
JSON array::

    [
      {"type": "sent", "timestamp": "2024-05-01T12:00:00.000Z", "data": {...}},
      {"type": "received", "timestamp": "...", "data": {...}}
    ]

``restore`` parses and validates the whole file before touching the
in-memory sequence, so a failed restore leaves the journal unchanged.
"""

import copy
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from realtime_session.config.constants import DEFAULT_HISTORY_FILE_PATH
from realtime_session.exceptions import PersistenceError
from realtime_session.models.connection_state import HistoryDirection
from realtime_session.models.realtime_api import RealtimeEvent

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _parse_timestamp(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_timestamp(moment: datetime) -> str:
    return (
        moment.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


class HistoryRecord(BaseModel):
    """A single journaled event.

    Serialized with the on-disk field names ``type``, ``timestamp`` and
    ``data``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    direction: HistoryDirection = Field(alias="type")
    timestamp: str
    event: Dict[str, Any] = Field(alias="data")

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v: str) -> str:
        try:
            _parse_timestamp(v)
        except ValueError as e:
            raise ValueError(f"Invalid ISO-8601 timestamp: {v}") from e
        return v

    def to_dict(self) -> Dict[str, Any]:
        """Return the on-disk representation."""
        return self.model_dump(mode="json", by_alias=True)


class HistoryJournal:
    """Append-only, in-memory log of sent and received events."""

    def __init__(self, file_path: Optional[PathLike] = None):
        self.file_path = Path(file_path or DEFAULT_HISTORY_FILE_PATH)
        self._records: List[HistoryRecord] = []
        self._last_timestamp: Optional[datetime] = None

    def __len__(self) -> int:
        return len(self._records)

    def _next_timestamp(self) -> str:
        now = datetime.now(timezone.utc)
        if self._last_timestamp is not None and now < self._last_timestamp:
            now = self._last_timestamp
        self._last_timestamp = now
        return _format_timestamp(now)

    def append(
        self,
        direction: Union[HistoryDirection, str],
        event: Union[RealtimeEvent, Dict[str, Any]],
    ) -> HistoryRecord:
        """
        Record an event with the current timestamp.

        Args:
            direction: ``sent`` or ``received``
            event: The event, either as a ``RealtimeEvent`` or its wire dict

        Returns:
            HistoryRecord: The appended record
        """
        if isinstance(event, RealtimeEvent):
            data = event.to_wire()
        else:
            data = event
        record = HistoryRecord(
            direction=HistoryDirection(direction),
            timestamp=self._next_timestamp(),
            event=copy.deepcopy(data),
        )
        self._records.append(record)
        return record

    def all(self) -> List[HistoryRecord]:
        """Return a detached copy of the records in insertion order."""
        return [record.model_copy(deep=True) for record in self._records]

    def clear(self) -> None:
        """Drop every record."""
        self._records = []
        self._last_timestamp = None

    def persist(self, destination: Optional[PathLike] = None) -> Path:
        """
        Write the full journal as a JSON array, overwriting the destination.

        Args:
            destination: Target file; defaults to ``file_path``

        Returns:
            Path: The file written

        Raises:
            PersistenceError: If the file cannot be written
        """
        path = Path(destination) if destination is not None else self.file_path
        records = [record.to_dict() for record in self._records]

        try:
            if path.parent and not path.parent.exists():
                path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save session history to {path}: {e}")
            raise PersistenceError(f"Failed to save session history to {path}: {e}") from e

        logger.info(f"Session history saved to {path} ({len(records)} records)")
        return path

    def restore(self, source: Optional[PathLike] = None) -> List[HistoryRecord]:
        """
        Replace the in-memory journal with the contents of ``source``.

        Args:
            source: File to read; defaults to ``file_path``

        Returns:
            List[HistoryRecord]: The restored records

        Raises:
            PersistenceError: If the file is missing or malformed; the current
                journal is left unchanged
        """
        path = Path(source) if source is not None else self.file_path

        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError as e:
            raise PersistenceError(f"Session history file not found: {path}") from e
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Failed to read session history from {path}: {e}") from e

        if not isinstance(raw, list):
            raise PersistenceError(
                f"Session history in {path} must be a JSON array, got {type(raw).__name__}"
            )

        try:
            records = [HistoryRecord.model_validate(item) for item in raw]
        except ValidationError as e:
            raise PersistenceError(f"Malformed session history in {path}: {e}") from e

        self._records = records
        self._last_timestamp = (
            max(_parse_timestamp(r.timestamp) for r in records) if records else None
        )
        logger.info(f"Session history loaded from {path} ({len(records)} records)")
        return self.all()
