from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, NewType, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, TypeAdapter, model_validator

ItemId = NewType("ItemId", str)
TxId = NewType("TxId", str)

FORENSIC_ITEM_DOC_TYPE = "forensicItem"
TRANSFER_KEY_PREFIX = "transfer_"


class TransactionType(StrEnum):
    INIT_LEDGER = "InitLedger"
    ADD_ITEM = "AddItem"
    TRANSFER_CUSTODY = "TransferCustody"


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class Item(_Record):
    id: ItemId = Field(alias="ID")
    description: str = Field(alias="Description")
    quantity: int = Field(alias="Quantity", ge=0)
    custodian: str = Field(alias="Custodian")
    value: float = Field(alias="Value", allow_inf_nan=False)
    doc_type: str | None = Field(default=None, alias="DocType")

    @model_validator(mode="after")
    def _validate_id(self) -> Item:
        if not self.id:
            raise ValueError("Item.ID must be non-empty")
        return self


class TransferRecord(_Record):
    """Append-only audit entry written whenever custody is established or changes."""

    item_id: ItemId = Field(alias="ItemID")
    custodian: str = Field(alias="Custodian")
    transaction_type: TransactionType = Field(alias="TransactionType")
    timestamp: str = Field(alias="Timestamp")
    tx_id: TxId = Field(alias="TxID", min_length=1)

    @property
    def key(self) -> str:
        return transfer_record_key(self.item_id, self.tx_id)


def record_kind(raw: Any) -> str:
    """A record carrying a non-empty TxID is a transfer record; anything else is an item."""
    if isinstance(raw, dict):
        tx_id = raw.get("TxID")
    else:
        tx_id = getattr(raw, "tx_id", None)
    return "transfer" if tx_id else "item"


LedgerRecord = Annotated[
    Union[Annotated[Item, Tag("item")], Annotated[TransferRecord, Tag("transfer")]],
    Discriminator(record_kind),
]

LEDGER_RECORD_ADAPTER: TypeAdapter[Item | TransferRecord] = TypeAdapter(LedgerRecord)


def transfer_record_key(item_id: str, tx_id: str) -> str:
    return f"{TRANSFER_KEY_PREFIX}{item_id}_{tx_id}"
