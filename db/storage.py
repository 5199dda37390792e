"""
Record Storage Service

Opaque key-value persistence for bridge records. A record handle is lazy:
creating one touches nothing, ``load`` reads the row, and the first ``update``
inserts it.
"""

import uuid
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from db.models import StoredRecord
from payments.exceptions import BridgeError

log = structlog.get_logger(__name__)

BANK_ACCOUNT = "Bank Account"
CREDIT_CARD = "Credit Card"
PAYMENT = "Payment"


class RecordNotFoundError(BridgeError):
    def __init__(self, record_type: str, record_id: str):
        super().__init__(f"{record_type} {record_id} not found")
        self.record_type = record_type
        self.record_id = record_id


class StorageRecord:
    """Handle on one stored record, addressed by type and id."""

    def __init__(self, session_factory: sessionmaker, record_type: str, record_id: str):
        self._session_factory = session_factory
        self.record_type = record_type
        self.id = record_id

    def get_id(self) -> str:
        return self.id

    def __repr__(self):
        return f"<StorageRecord({self.record_type!r}, {self.id!r})>"

    async def load(self) -> dict[str, Any]:
        """Return a copy of the stored document."""
        return await run_in_threadpool(self._load)

    async def update(self, fields: dict[str, Any]) -> None:
        """Merge ``fields`` into the top level of the stored document."""
        await run_in_threadpool(self._update, fields)

    def _load(self) -> dict[str, Any]:
        with self._session_factory() as session:
            row = session.get(StoredRecord, (self.record_type, self.id))
            if row is None:
                raise RecordNotFoundError(self.record_type, self.id)
            return dict(row.data or {})

    def _update(self, fields: dict[str, Any]) -> None:
        with self._session_factory() as session:
            try:
                row = session.get(StoredRecord, (self.record_type, self.id))
                if row is None:
                    row = StoredRecord(record_type=self.record_type, id=self.id, data={})
                    session.add(row)
                # Reassign so SQLAlchemy sees the JSON column change
                row.data = {**(row.data or {}), **_jsonable(fields)}
                row.updated_at = datetime.now(UTC)
                session.commit()
            except Exception:
                session.rollback()
                raise
        log.debug("storage.record_updated", record_type=self.record_type, id=self.id)


class StorageService:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def create_record(self, record_type: str, record_id: str | None = None) -> StorageRecord:
        """Return a handle for ``record_id``, or for a fresh id when omitted."""
        return StorageRecord(
            self._session_factory, record_type, record_id or uuid.uuid4().hex
        )


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value
