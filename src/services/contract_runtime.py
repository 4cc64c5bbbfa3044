from __future__ import annotations

import inspect
import logging
from datetime import datetime, timezone
from typing import Callable
from uuid import uuid4

from sqlalchemy.orm import Session

from db.repositories import StateEntryRepository
from domain.custody_ledger import CustodyLedger
from domain.encoding import encode_record, encode_sequence
from domain.state import TransactionContext

logger = logging.getLogger(__name__)


class UnknownOperationError(Exception):
    def __init__(self, operation: str) -> None:
        super().__init__(f"Unknown ledger operation: {operation}")
        self.operation = operation


class InvalidArgumentsError(Exception):
    def __init__(self, operation: str, args: tuple[str, ...], reason: str) -> None:
        super().__init__(f"Invalid arguments for {operation}: {reason}")
        self.operation = operation
        self.args_given = args
        self.reason = reason


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_tx_id() -> str:
    return uuid4().hex


class ContractRuntime:
    """Routes named ledger operations, one transaction per invocation.

    Each call gets a fresh transaction id and timestamp; the session is committed
    when the operation returns and rolled back when it raises.
    """

    OPERATIONS = (
        "InitLedger",
        "AddItem",
        "TransferCustody",
        "ReadItem",
        "ItemExists",
        "ListItems",
        "ListTransferHistory",
    )

    def __init__(
        self,
        session: Session,
        *,
        ledger: CustodyLedger | None = None,
        clock: Callable[[], datetime] = _utc_now,
        tx_id_factory: Callable[[], str] = _new_tx_id,
    ) -> None:
        self._session = session
        self._ledger = ledger or CustodyLedger()
        self._clock = clock
        self._tx_id_factory = tx_id_factory
        self._handlers: dict[str, Callable[..., str]] = {
            "InitLedger": self._init_ledger,
            "AddItem": self._add_item,
            "TransferCustody": self._ledger.transfer_custody,
            "ReadItem": self._read_item,
            "ItemExists": self._item_exists,
            "ListItems": self._list_items,
            "ListTransferHistory": self._list_transfer_history,
        }

    def invoke(self, operation: str, *args: str) -> str:
        handler = self._handlers.get(operation)
        if handler is None:
            raise UnknownOperationError(operation)
        try:
            # The first parameter of every handler is the transaction context.
            inspect.signature(handler).bind(None, *args)
        except TypeError as exc:
            raise InvalidArgumentsError(operation, args, str(exc)) from exc

        ctx = TransactionContext(
            store=StateEntryRepository(self._session),
            tx_id=self._tx_id_factory(),
            timestamp=self._clock(),
        )
        try:
            result = handler(ctx, *args)
        except Exception:
            self._session.rollback()
            logger.info("Rolled back %s in tx %s", operation, ctx.tx_id)
            raise
        self._session.commit()
        logger.info("Committed %s in tx %s", operation, ctx.tx_id)
        return result

    def _init_ledger(self, ctx: TransactionContext) -> str:
        self._ledger.init_ledger(ctx)
        return ""

    def _add_item(
        self, ctx: TransactionContext, item_id: str, description: str, quantity: str, custodian: str, value: str
    ) -> str:
        item = self._ledger.add_item(ctx, item_id, description, quantity, custodian, value)
        return encode_record(item).decode("utf-8")

    def _read_item(self, ctx: TransactionContext, item_id: str) -> str:
        return encode_record(self._ledger.read_item(ctx, item_id)).decode("utf-8")

    def _item_exists(self, ctx: TransactionContext, item_id: str) -> str:
        return "true" if self._ledger.item_exists(ctx, item_id) else "false"

    def _list_items(self, ctx: TransactionContext) -> str:
        return encode_sequence(self._ledger.list_items(ctx))

    def _list_transfer_history(self, ctx: TransactionContext) -> str:
        return encode_sequence(self._ledger.list_transfer_history(ctx))
