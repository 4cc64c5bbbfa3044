from __future__ import annotations

import json
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ValidationError

from .custody import LEDGER_RECORD_ADAPTER, Item, TransferRecord


class RecordDecodeError(Exception):
    def __init__(self, raw: str, reason: str) -> None:
        super().__init__(f"Cannot decode ledger record: {reason}")
        self.raw = raw
        self.reason = reason


def canonical_encode(record: Mapping[str, Any]) -> bytes:
    """Deterministic JSON: keys sorted at every depth, compact separators, UTF-8.

    Two mappings holding the same fields produce the same bytes no matter the
    order the fields were inserted in. NaN and infinities are rejected with ``ValueError``.
    """
    text = json.dumps(record, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    return text.encode("utf-8")


def record_to_wire(record: BaseModel) -> dict[str, Any]:
    return record.model_dump(mode="json", by_alias=True, exclude_none=True)


def encode_record(record: BaseModel) -> bytes:
    return canonical_encode(record_to_wire(record))


def decode_record(raw: bytes | str) -> Item | TransferRecord:
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise RecordDecodeError(text, f"invalid JSON ({exc.msg})") from exc
    try:
        return LEDGER_RECORD_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise RecordDecodeError(text, f"{exc.error_count()} validation error(s)") from exc


def encode_sequence(records: Iterable[BaseModel | Mapping[str, Any] | str]) -> str:
    """Encode a returned sequence as a JSON array; untyped scan entries pass through unchanged."""
    payload = [record_to_wire(record) if isinstance(record, BaseModel) else record for record in records]
    return json.dumps(payload, ensure_ascii=False)
