from typing import Generator

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from db.models import Base
from db.repositories import StateEntryRepository
from domain.custody_ledger import CustodyLedger
from tests.helpers.tx_context import TxContextFactory

engine: Engine = create_engine(
    "sqlite:///:memory:", connect_args={"check_same_thread": False}, poolclass=StaticPool
)
session_factory = sessionmaker(engine)


@pytest.fixture(scope="function")
def test_session() -> Generator[Session, None, None]:
    with session_factory() as session:
        yield session


@pytest.fixture(scope="function", autouse=True)
def reset_db() -> Generator[None, None, None]:
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def store(test_session: Session) -> StateEntryRepository:
    return StateEntryRepository(test_session)


@pytest.fixture(scope="function")
def new_ctx(store: StateEntryRepository) -> TxContextFactory:
    return TxContextFactory(store=store)


@pytest.fixture(scope="function")
def ledger() -> CustodyLedger:
    return CustodyLedger()


@pytest.fixture(scope="function")
def test_session_factory() -> sessionmaker[Session]:
    return session_factory
