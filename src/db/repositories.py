from __future__ import annotations

from typing import Iterator

from sqlalchemy import select
from sqlalchemy.orm import Session

from db import models
from domain.state import StateStore


class StateEntryRepository(StateStore):
    """SQL-backed state store.

    Writes are only flushed to the session; committing or rolling back is left to
    whoever owns the transaction, so one ledger operation applies atomically.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, key: str) -> bytes | None:
        orm_entry = self._session.get(models.StateEntryOrm, key)
        if orm_entry is None:
            return None
        return orm_entry.value

    def put(self, key: str, value: bytes) -> None:
        self._session.merge(models.StateEntryOrm(key=key, value=value))
        self._session.flush()

    def range_scan(self, start_key: str, end_key: str) -> Iterator[tuple[str, bytes]]:
        stmt = select(models.StateEntryOrm).order_by(models.StateEntryOrm.key.asc())
        if start_key:
            stmt = stmt.where(models.StateEntryOrm.key >= start_key)
        if end_key:
            stmt = stmt.where(models.StateEntryOrm.key < end_key)
        for orm_entry in self._session.scalars(stmt):
            yield orm_entry.key, orm_entry.value
