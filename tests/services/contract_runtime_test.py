from __future__ import annotations

import json

import pytest
from sqlalchemy.orm import Session

from db.repositories import StateEntryRepository
from domain.custody_ledger import AlreadyExistsError, CustodyLedger, NotFoundError, ScanDecodePolicy
from services.contract_runtime import ContractRuntime, InvalidArgumentsError, UnknownOperationError
from tests.helpers.tx_context import SequentialClock, SequentialTxIds


@pytest.fixture()
def runtime(test_session: Session) -> ContractRuntime:
    return ContractRuntime(test_session, clock=SequentialClock(), tx_id_factory=SequentialTxIds())


def test_add_item_returns_canonical_item(runtime: ContractRuntime) -> None:
    result = runtime.invoke("AddItem", "evidence-1", "Knife", "1", "Reyes", "120")

    assert result == '{"Custodian":"Reyes","Description":"Knife","ID":"evidence-1","Quantity":1,"Value":120.0}'
    assert runtime.invoke("ReadItem", "evidence-1") == result
    assert runtime.invoke("ItemExists", "evidence-1") == "true"
    assert runtime.invoke("ItemExists", "ghost") == "false"


def test_transfer_custody_returns_previous_custodian(runtime: ContractRuntime) -> None:
    runtime.invoke("AddItem", "evidence-1", "Knife", "1", "Reyes", "120")

    assert runtime.invoke("TransferCustody", "evidence-1", "Lab") == "Reyes"

    history = json.loads(runtime.invoke("ListTransferHistory"))
    assert [(r["TransactionType"], r["Custodian"], r["TxID"]) for r in history] == [
        ("AddItem", "Reyes", "tx0001"),
        ("TransferCustody", "Lab", "tx0002"),
    ]
    assert history[1]["Timestamp"] == "2024-01-01T12:02:00.000Z"


def test_init_ledger_then_list_items(runtime: ContractRuntime) -> None:
    assert runtime.invoke("InitLedger") == ""

    items = json.loads(runtime.invoke("ListItems"))

    assert [item["ID"] for item in items] == ["item1", "item2", "item3", "item4", "item5", "item6"]
    assert {item["DocType"] for item in items} == {"forensicItem"}


def test_invoke_commits_writes(runtime: ContractRuntime, test_session: Session) -> None:
    runtime.invoke("AddItem", "evidence-1", "Knife", "1", "Reyes", "120")

    test_session.rollback()

    assert StateEntryRepository(test_session).get("evidence-1") is not None


def test_failed_invoke_rolls_back(runtime: ContractRuntime, test_session: Session) -> None:
    runtime.invoke("AddItem", "evidence-1", "Knife", "1", "Reyes", "120")

    with pytest.raises(AlreadyExistsError):
        runtime.invoke("AddItem", "evidence-1", "Knife", "1", "Someone", "1")
    with pytest.raises(NotFoundError):
        runtime.invoke("TransferCustody", "ghost", "Lab")

    assert len(json.loads(runtime.invoke("ListTransferHistory"))) == 1


def test_unknown_operation(runtime: ContractRuntime) -> None:
    with pytest.raises(UnknownOperationError):
        runtime.invoke("DeleteItem", "evidence-1")


def test_wrong_argument_count_raises_invalid_arguments(runtime: ContractRuntime) -> None:
    with pytest.raises(InvalidArgumentsError) as exc_info:
        runtime.invoke("ReadItem")
    assert exc_info.value.operation == "ReadItem"

    with pytest.raises(InvalidArgumentsError):
        runtime.invoke("TransferCustody", "evidence-1", "Lab", "extra")

    assert json.loads(runtime.invoke("ListTransferHistory")) == []


def test_internal_type_error_is_not_reported_as_invalid_arguments(test_session: Session) -> None:
    class _BrokenLedger(CustodyLedger):
        def read_item(self, ctx, item_id):  # type: ignore[no-untyped-def]
            raise TypeError("bug inside the ledger")

    runtime = ContractRuntime(test_session, ledger=_BrokenLedger())

    with pytest.raises(TypeError, match="bug inside the ledger"):
        runtime.invoke("ReadItem", "evidence-1")


def test_decode_policy_is_passed_to_ledger(test_session: Session) -> None:
    StateEntryRepository(test_session).put("broken", b"{oops")
    test_session.commit()
    runtime = ContractRuntime(test_session, ledger=CustodyLedger(decode_policy=ScanDecodePolicy.SKIP))

    assert json.loads(runtime.invoke("ListItems")) == []
