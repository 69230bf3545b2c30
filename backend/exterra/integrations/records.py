"""Document store for remodel records."""

from __future__ import annotations

import logging
import threading
import uuid
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from exterra.exceptions import PersistenceError, RecordNotFoundError
from exterra.models.record import RemodelRecord

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    def add(self, record: RemodelRecord) -> str:
        """Persist a new record and return its generated id."""
        ...

    def get(self, remodel_id: str) -> RemodelRecord:
        """Load a record. Raises RecordNotFoundError when missing."""
        ...


def _new_id() -> str:
    return uuid.uuid4().hex


class InMemoryRecordStore:
    """Process-local record store, used for tests and local runs."""

    def __init__(self) -> None:
        self._records: dict[str, str] = {}
        self._lock = threading.Lock()

    def add(self, record: RemodelRecord) -> str:
        remodel_id = _new_id()
        stored = record.model_copy(update={"remodel_id": remodel_id})
        with self._lock:
            self._records[remodel_id] = stored.model_dump_json()
        return remodel_id

    def get(self, remodel_id: str) -> RemodelRecord:
        with self._lock:
            raw = self._records.get(remodel_id)
        if raw is None:
            msg = f"Remodel not found: {remodel_id}"
            raise RecordNotFoundError(msg)
        return RemodelRecord.model_validate_json(raw)


class JsonFileRecordStore:
    """Stores each record as ``<id>.json`` under a directory."""

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    def add(self, record: RemodelRecord) -> str:
        remodel_id = _new_id()
        stored = record.model_copy(update={"remodel_id": remodel_id})
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            self._path(remodel_id).write_text(
                stored.model_dump_json(indent=2), encoding="utf-8"
            )
        except OSError as exc:
            msg = f"Failed to save remodel record: {exc}"
            raise PersistenceError(msg) from exc
        logger.info("Remodel entry saved with ID: %s", remodel_id)
        return remodel_id

    def get(self, remodel_id: str) -> RemodelRecord:
        if not remodel_id.isalnum():
            msg = f"Remodel not found: {remodel_id}"
            raise RecordNotFoundError(msg)
        path = self._path(remodel_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            msg = f"Remodel not found: {remodel_id}"
            raise RecordNotFoundError(msg) from exc
        except OSError as exc:
            msg = f"Failed to read remodel record: {exc}"
            raise PersistenceError(msg) from exc
        try:
            return RemodelRecord.model_validate_json(raw)
        except ValidationError as exc:
            msg = f"Stored remodel record {remodel_id} is corrupt"
            raise PersistenceError(msg) from exc

    def _path(self, remodel_id: str) -> Path:
        return self._directory / f"{remodel_id}.json"
