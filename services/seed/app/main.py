from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import sqlalchemy as sa
from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from db.fixtures import load_fixtures
from db.logging import configure_logging, logger
from db.passwords import make_context
from db.seed import SeedReport, SeedStepError, seed
from services.seed.app import observability
from services.seed.app.db import get_engine, open_engine
from services.seed.app.schemas import SeedErrorResponse, SeedSuccessResponse
from services.seed.app.settings import SETTINGS, SeedServiceSettings


SEED_ERROR_HINT = "Check that the uuid-ossp extension is available on the target database"

SeedRunner = Callable[[], Awaitable[SeedReport]]


def _now() -> datetime:
    return datetime.now(tz=UTC)


router = APIRouter()


def get_seed_runner(request: Request, engine: AsyncEngine = Depends(get_engine)) -> SeedRunner:
    state = request.app.state

    async def run() -> SeedReport:
        return await seed(
            engine,
            state.fixtures,
            uuid_extension=state.settings.uuid_extension,
            password_context=state.password_context,
        )

    return run


@router.get("/healthz")
async def healthz(engine: AsyncEngine = Depends(get_engine)) -> dict:
    async with engine.connect() as conn:
        await conn.execute(sa.text("SELECT 1"))
    return {"ok": True}


@router.get("/metrics")
async def metrics() -> Response:
    return observability.metrics_response()


@router.get(
    "/seed",
    response_model=SeedSuccessResponse,
    responses={500: {"model": SeedErrorResponse}},
)
async def seed_database(run_seed: SeedRunner = Depends(get_seed_runner)) -> SeedSuccessResponse | JSONResponse:
    try:
        report = await run_seed()
    except SeedStepError as exc:
        # Single catch point: whatever was inserted before the failing step stays.
        logger.error("seed_failed", step=exc.step, error=str(exc), exc_info=exc.cause)
        observability.record_seed_run(None)
        body = SeedErrorResponse(error=str(exc), details=SEED_ERROR_HINT)
        return JSONResponse(status_code=500, content=body.model_dump())

    observability.record_seed_run(report)
    logger.info("seed_request_finished", counts=report.counts())
    return SeedSuccessResponse(timestamp=_now())


def create_app(settings: SeedServiceSettings) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.settings = settings
        # Validated up front so bad fixture files fail startup, not the first request.
        app.state.fixtures = load_fixtures(settings.fixtures_path)
        app.state.password_context = make_context(settings.bcrypt_rounds)
        async with open_engine(settings) as engine:
            if settings.otel_enabled:
                observability.instrument_sqlalchemy(engine)
            app.state.engine = engine
            yield

    app = FastAPI(title="Dashboard Seed API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.include_router(router)
    if settings.otel_enabled:
        observability.setup_tracing(app, service_name="seed")
    observability.add_metrics_middleware(app, service_name="seed")
    return app


configure_logging(SETTINGS.log_level)
app = create_app(SETTINGS)
