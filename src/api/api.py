import json
import logging
from contextlib import asynccontextmanager
from time import perf_counter
from typing import Annotated, Any, AsyncGenerator, Awaitable, Callable

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from pydantic import BaseModel, ValidationError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from api.dependencies import get_contract_runtime
from config import config
from db.models import Base
from domain.custody_ledger import AlreadyExistsError, NotFoundError
from domain.encoding import RecordDecodeError
from services.contract_runtime import ContractRuntime, InvalidArgumentsError, UnknownOperationError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncGenerator[None, None]:
    settings = config()
    engine = create_engine(settings.database_url, echo=settings.sql_echo)
    Base.metadata.create_all(engine)
    fastapi_app.state.sessionmaker = sessionmaker(engine)
    fastapi_app.state.decode_policy = settings.scan_decode_policy
    yield
    engine.dispose()


app = FastAPI(lifespan=lifespan)


class InvokeRequest(BaseModel):
    args: list[str] = []


class InvokeResponse(BaseModel):
    result: str


@app.middleware("http")
async def log_process_time(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    start_time = perf_counter()
    response = await call_next(request)
    process_time = perf_counter() - start_time
    logger.info("Request time: %s %s: %.4fs", request.method, request.url, process_time)
    return response


def _invoke(runtime: ContractRuntime, operation: str, args: list[str]) -> str:
    try:
        return runtime.invoke(operation, *args)
    except (NotFoundError, UnknownOperationError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except AlreadyExistsError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except (ValidationError, InvalidArgumentsError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except RecordDecodeError as exc:
        logger.error("%s aborted on an undecodable record: %s", operation, exc.reason)
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post("/operations/{operation}")
def invoke_operation(
    operation: str,
    body: InvokeRequest,
    runtime: Annotated[ContractRuntime, Depends(get_contract_runtime)],
) -> InvokeResponse:
    return InvokeResponse(result=_invoke(runtime, operation, body.args))


@app.get("/items")
def list_items(runtime: Annotated[ContractRuntime, Depends(get_contract_runtime)]) -> list[Any]:
    return json.loads(_invoke(runtime, "ListItems", []))


@app.get("/items/{item_id}")
def read_item(item_id: str, runtime: Annotated[ContractRuntime, Depends(get_contract_runtime)]) -> dict[str, Any]:
    return json.loads(_invoke(runtime, "ReadItem", [item_id]))


@app.get("/history")
def list_transfer_history(runtime: Annotated[ContractRuntime, Depends(get_contract_runtime)]) -> list[Any]:
    return json.loads(_invoke(runtime, "ListTransferHistory", []))
