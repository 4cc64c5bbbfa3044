from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from db.models import Base


def create_session_factory(database_url: str, *, echo: bool = False) -> sessionmaker[Session]:
    engine: Engine = create_engine(database_url, echo=echo)
    Base.metadata.create_all(engine)
    return sessionmaker(engine)


def init_db(echo: bool = False, *, db_file: str | Path = "custody_ledger.db", reset: bool = False) -> Session:
    path = Path(db_file)
    if reset and path.exists():
        path.unlink()

    return create_session_factory(f"sqlite:///{path}", echo=echo)()
