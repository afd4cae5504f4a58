import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ai_pulse import config
from ai_pulse.catalog import seed_catalog
from ai_pulse.database import build_engine, build_sessionmaker, init_models
from ai_pulse.errors import ValidationError, PersistenceError
from ai_pulse.routes import item_routes, vote_routes
from ai_pulse.tally import TallyAggregator
from ai_pulse.utils.geo import GeoResolver
from ai_pulse.vote_recorder import VoteRecorder

logger = logging.getLogger(__name__)


async def init_db(engine, session_factory):
    # Tiny retry so a momentary DB disconnect doesn't crash the app.
    for attempt in range(2):
        try:
            await init_models(engine)
            await seed_catalog(session_factory)
            break
        except Exception as e:
            if attempt == 0:
                logger.warning("[startup] DB init failed, retrying once: %r", e)
                await asyncio.sleep(0.5)
            else:
                # Tables and seed rows should already exist from previous runs.
                logger.error("[startup] Skipping DB init due to error: %r", e)


def create_app(
    database_url: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # One engine and one outbound client per process, handed to the components
    engine = build_engine(database_url or config.DATABASE_URL, echo=config.DB_ECHO)
    session_factory = build_sessionmaker(engine)
    owns_client = http_client is None
    geo_resolver = GeoResolver(
        http_client,
        lookup_url=config.GEO_LOOKUP_URL,
        fallback_country=config.GEO_FALLBACK_COUNTRY,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Our own client only lives while the app is serving
        if owns_client:
            geo_resolver.client = httpx.AsyncClient(timeout=config.GEO_LOOKUP_TIMEOUT)
        await init_db(engine, session_factory)
        try:
            yield
        finally:
            if owns_client:
                await geo_resolver.client.aclose()
                geo_resolver.client = None
            await engine.dispose()

    app = FastAPI(title="AI Pulse Votes API", lifespan=lifespan)

    app.state.engine = engine
    app.state.vote_recorder = VoteRecorder(session_factory, geo_resolver)
    app.state.tally_aggregator = TallyAggregator(session_factory)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        content = {"detail": str(exc), "retryable": True}
        if exc.write:
            content["recorded"] = False
        return JSONResponse(status_code=503, content=content)

    # ✅ Enable CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(item_routes.router)
    app.include_router(vote_routes.router)

    return app


app = create_app()
