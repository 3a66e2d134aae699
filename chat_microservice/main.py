import logging
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

import uvicorn
from fastapi import APIRouter, BackgroundTasks, Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from chat_microservice.config import Settings
from chat_microservice.db_store import ExchangeStore, persist_in_background
from chat_microservice.llm import CompletionProvider, ProviderError, get_provider
from chat_microservice.logging_middleware import RequestLoggingMiddleware
from chat_microservice.schemas import (
    STATUS_FAILED,
    STATUS_RECEIVED,
    ExchangeRecord,
    InfoResponse,
    InputMessage,
)

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"
SERVICE_INFO = "This is a ChatGPT Microservice built using the OpenAI chat completions API"
PERSIST_STATUS_HEADER = "X-Persist-Status"

logger = logging.getLogger(__name__)


@dataclass
class ServiceDeps:
    """Everything a request handler needs, built once at start-up."""

    settings: Settings
    provider: CompletionProvider
    store: ExchangeStore


def get_deps(request: Request) -> ServiceDeps:
    return request.app.state.deps


router = APIRouter()


@router.get("/info", response_model=InfoResponse)
def info():
    return InfoResponse(info=SERVICE_INFO)


@router.post("/inputMsg", response_model=ExchangeRecord)
def input_msg(
    payload: InputMessage,
    response: Response,
    background_tasks: BackgroundTasks,
    deps: ServiceDeps = Depends(get_deps),
):
    logger.info("parcel=%r", payload.parcel)
    if not payload.parcel:
        return JSONResponse(status_code=400, content={"status": STATUS_FAILED})

    completion = deps.provider.complete(payload.parcel)
    record = ExchangeRecord(
        prompt=payload.parcel,
        status=STATUS_RECEIVED,
        created=completion.created,
        message=completion.message,
        total_tokens=completion.total_tokens,
    )
    logger.info("record=%s", record.model_dump())

    if deps.settings.persist_mode == "sync":
        try:
            deps.store.save(record.model_dump())
            response.headers[PERSIST_STATUS_HEADER] = "stored"
        except SQLAlchemyError:
            response.headers[PERSIST_STATUS_HEADER] = "failed"
    else:
        # written after the response is sent
        background_tasks.add_task(persist_in_background, deps.store, record.model_dump())
        response.headers[PERSIST_STATUS_HEADER] = "pending"

    return record


async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info("Rejected request body on %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"status": STATUS_FAILED})


async def provider_error_handler(request: Request, exc: ProviderError):
    logger.error("Completion provider failed on %s", request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=502,
        content={"status": STATUS_FAILED, "error": "completion provider unavailable"},
    )


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[CompletionProvider] = None,
    store: Optional[ExchangeStore] = None,
) -> FastAPI:
    """Build the service from an explicit dependency set.

    Anything not passed in is constructed from ``settings`` (or the
    environment when ``settings`` is omitted).
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT, stream=sys.stdout)

    deps = ServiceDeps(
        settings=settings,
        provider=provider or get_provider(settings),
        store=store or ExchangeStore(settings.database_url),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create DB tables on startup."""
        deps.store.init_schema()
        logger.info(
            "Serving env=%s provider=%s persist_mode=%s",
            settings.app_env,
            deps.provider.name,
            settings.persist_mode,
        )
        yield
        deps.store.dispose()

    app = FastAPI(title="Chat Microservice", version="1.0.0", lifespan=lifespan)
    app.state.deps = deps
    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(ProviderError, provider_error_handler)
    app.include_router(router)
    # mounted last so the API routes win
    app.mount("/", StaticFiles(directory=settings.public_dir, html=True), name="public")
    return app


def run() -> None:
    settings = Settings.from_env()
    service = create_app(settings)
    logger.info(f"App listening at http://localhost:{settings.port}")
    uvicorn.run(service, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
