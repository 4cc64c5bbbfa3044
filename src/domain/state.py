from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, Protocol


class StateStore(Protocol):
    """Transactional key/value store the ledger runs against.

    ``range_scan`` yields ``(key, value)`` pairs in key order; the start key is
    inclusive, the end key exclusive, and an empty string leaves that side
    unbounded. Writes must be visible to reads made later in the same transaction.
    """

    def get(self, key: str) -> bytes | None: ...

    def put(self, key: str, value: bytes) -> None: ...

    def range_scan(self, start_key: str, end_key: str) -> Iterator[tuple[str, bytes]]: ...


@dataclass(frozen=True)
class TransactionContext:
    store: StateStore
    tx_id: str
    timestamp: datetime

    def __post_init__(self) -> None:
        if not self.tx_id:
            raise ValueError("TransactionContext.tx_id must be non-empty")
        if self.timestamp.tzinfo is None:
            raise ValueError("TransactionContext.timestamp must be timezone-aware")
