"""
RecibôFast sync service: FastAPI application entry-point.
"""
import asyncio
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recibofast.auth import SupabasePasswordAuthenticator
from recibofast.cache import LocalCache
from recibofast.config import settings
from recibofast.database import Base, engine
from recibofast.pipeline.mutations import DocumentMutations
from recibofast.pipeline.reconciler import Reconciler
from recibofast.remotes import PrimaryReceiptsApi, SecondaryReceiptsStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(name)-30s  %(levelname)-5s  %(message)s",
)
logger = logging.getLogger(__name__)


def build_components(app: FastAPI, cache: LocalCache) -> None:
    """Wire cache, remote stores, reconciler and mutations onto ``app.state``."""
    primary = PrimaryReceiptsApi()
    secondary = SecondaryReceiptsStore()
    authenticator = SupabasePasswordAuthenticator()
    app.state.cache = cache
    app.state.remotes = [primary, secondary, authenticator]
    app.state.reconciler = Reconciler(
        cache, primary, secondary, payment_method=settings.DEFAULT_PAYMENT_METHOD
    )
    app.state.mutations = DocumentMutations(
        cache,
        primary,
        secondary,
        authenticator,
        default_signature_ref=settings.DEFAULT_SIGNATURE_REF,
        payment_method=settings.DEFAULT_PAYMENT_METHOD,
    )


async def _startup_sync(reconciler: Reconciler) -> None:
    report = await reconciler.run()
    logger.info("Startup sync finished: %s", report.model_dump(mode="json"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: ensure data dir + tables exist
    os.makedirs(settings.DATA_DIR, exist_ok=True)
    import recibofast.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready (%s)", settings.DATABASE_URL)

    if not hasattr(app.state, "cache"):
        build_components(app, LocalCache())

    # The local view is loaded before any remote merge can run.
    app.state.cache.load()

    app.state.startup_sync = None
    if settings.SYNC_ON_STARTUP:
        app.state.startup_sync = asyncio.create_task(_startup_sync(app.state.reconciler))

    yield

    task = app.state.startup_sync
    if task is not None and not task.done():
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
    for client in getattr(app.state, "remotes", []):
        await client.aclose()
    logger.info("Shutting down")


app = FastAPI(
    title="RecibôFast Sync",
    description="Offline-first receipt reconciliation and recurring generation",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"service": "RecibôFast Sync", "version": "0.1.0", "status": "running"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


# ── Register API routers ─────────────────────────────────────────────────
from recibofast.routers.documents import router as documents_router  # noqa: E402
from recibofast.routers.sync import router as sync_router  # noqa: E402

app.include_router(documents_router, prefix="/api", tags=["Documents"])
app.include_router(sync_router, prefix="/api", tags=["Sync"])
