from typing import Annotated, Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from domain.custody_ledger import CustodyLedger
from services.contract_runtime import ContractRuntime


def get_session(request: Request) -> Generator[Session, None, None]:
    with request.app.state.sessionmaker() as session:
        yield session


def get_contract_runtime(request: Request, session: Annotated[Session, Depends(get_session)]) -> ContractRuntime:
    return ContractRuntime(session, ledger=CustodyLedger(decode_policy=request.app.state.decode_policy))
