from __future__ import annotations

import json
import logging
from datetime import timezone
from enum import StrEnum
from typing import Any, Iterable, Union

from .custody import Item, ItemId, TransactionType, TransferRecord, TxId, record_kind, transfer_record_key
from .encoding import RecordDecodeError, decode_record, encode_record
from .seed_items import seed_items
from .state import TransactionContext

logger = logging.getLogger(__name__)

# Untyped entries are whatever JSON value an undecodable record parsed to, or its raw text.
ScanEntry = Union[Item, TransferRecord, Any]


class AlreadyExistsError(Exception):
    def __init__(self, item_id: str) -> None:
        super().__init__(f"The item {item_id} already exists")
        self.item_id = item_id


class NotFoundError(Exception):
    def __init__(self, item_id: str) -> None:
        super().__init__(f"The item {item_id} does not exist")
        self.item_id = item_id


class ScanDecodePolicy(StrEnum):
    """What a range scan does with a stored value that does not decode into a record.

    - PASSTHROUGH: keep the entry in its partially decoded form (any parsed JSON value, or raw text).
    - SKIP: leave the entry out of the result.
    - FAIL: abort the scan with ``RecordDecodeError``.
    """

    PASSTHROUGH = "passthrough"
    SKIP = "skip"
    FAIL = "fail"


class CustodyLedger:
    """Custody operations over a flat keyspace shared by items and their transfer history.

    Every operation takes the ``TransactionContext`` of the invocation it runs in;
    the ledger itself holds no store state.
    """

    def __init__(self, *, decode_policy: ScanDecodePolicy = ScanDecodePolicy.PASSTHROUGH) -> None:
        self._decode_policy = decode_policy

    def init_ledger(self, ctx: TransactionContext) -> list[Item]:
        """Write the bootstrap catalogue. Not idempotent: rerunning overwrites the items and logs again."""
        seeded: list[Item] = []
        for item in seed_items():
            ctx.store.put(item.id, encode_record(item))
            self._log_transfer(ctx, item.id, item.custodian, TransactionType.INIT_LEDGER)
            seeded.append(item)
        logger.info("Seeded ledger with %d items in tx %s", len(seeded), ctx.tx_id)
        return seeded

    def item_exists(self, ctx: TransactionContext, item_id: str) -> bool:
        return bool(ctx.store.get(item_id))

    def add_item(
        self,
        ctx: TransactionContext,
        item_id: str,
        description: str,
        quantity: int | str,
        custodian: str,
        value: float | str,
    ) -> Item:
        if self.item_exists(ctx, item_id):
            raise AlreadyExistsError(item_id)

        item = Item.model_validate(
            {
                "ID": item_id,
                "Description": description,
                "Quantity": quantity,
                "Custodian": custodian,
                "Value": value,
            }
        )
        ctx.store.put(item.id, encode_record(item))
        self._log_transfer(ctx, item.id, item.custodian, TransactionType.ADD_ITEM)
        logger.info("Added item %s in custody of %s", item.id, item.custodian)
        return item

    def read_item(self, ctx: TransactionContext, item_id: str) -> Item:
        raw = ctx.store.get(item_id)
        if not raw:
            raise NotFoundError(item_id)
        logger.debug("Read item %s", item_id)
        return Item.model_validate_json(raw)

    def transfer_custody(self, ctx: TransactionContext, item_id: str, new_custodian: str) -> str:
        item = self.read_item(ctx, item_id)
        previous_custodian = item.custodian
        updated = item.model_copy(update={"custodian": new_custodian})

        ctx.store.put(updated.id, encode_record(updated))
        self._log_transfer(ctx, updated.id, new_custodian, TransactionType.TRANSFER_CUSTODY)
        logger.info("Transferred custody of %s from %s to %s", item_id, previous_custodian, new_custodian)
        return previous_custodian

    def list_items(self, ctx: TransactionContext) -> list[ScanEntry]:
        return [entry for entry in self._scan(ctx) if record_kind(entry) == "item"]

    def list_transfer_history(self, ctx: TransactionContext) -> list[ScanEntry]:
        return [entry for entry in self._scan(ctx) if record_kind(entry) == "transfer"]

    def _scan(self, ctx: TransactionContext) -> Iterable[ScanEntry]:
        for key, raw in ctx.store.range_scan("", ""):
            try:
                yield decode_record(raw)
            except RecordDecodeError as exc:
                if self._decode_policy == ScanDecodePolicy.FAIL:
                    raise
                logger.warning("Undecodable entry at key %s (%s), policy=%s", key, exc.reason, self._decode_policy)
                if self._decode_policy == ScanDecodePolicy.PASSTHROUGH:
                    yield _partially_decoded(exc.raw)

    def _log_transfer(
        self,
        ctx: TransactionContext,
        item_id: ItemId,
        custodian: str,
        transaction_type: TransactionType,
    ) -> TransferRecord:
        record = TransferRecord(
            item_id=item_id,
            custodian=custodian,
            transaction_type=transaction_type,
            timestamp=format_tx_timestamp(ctx),
            tx_id=TxId(ctx.tx_id),
        )
        ctx.store.put(transfer_record_key(item_id, ctx.tx_id), encode_record(record))
        return record


def format_tx_timestamp(ctx: TransactionContext) -> str:
    # Whole seconds, rendered like 2024-01-01T12:00:00.000Z.
    ts = ctx.timestamp.astimezone(timezone.utc).replace(microsecond=0)
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _partially_decoded(raw: str) -> Any:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        return raw
    return payload
