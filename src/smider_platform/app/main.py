"""FastAPI application entry point for the Smider API."""

import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from smider_platform.app.config import get_settings
from smider_platform.infra.database import async_session, init_db
from smider_platform.services.demo_seed import seed_demo_contractors
from smider_platform.services.offer_monitor import offer_sweep_loop

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: initialize database and start the offer sweep."""
    await init_db()

    settings = get_settings()
    if settings.demo_mode:
        logger.warning("Demo mode is ON: category fallback and auto-accept are active")
        try:
            async with async_session() as db:
                await seed_demo_contractors(db)
        except Exception as e:
            logger.warning("Failed to seed demo contractors: %s", e)

    sweep = asyncio.create_task(offer_sweep_loop(settings.offer_sweep_interval_seconds))
    yield
    sweep.cancel()


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.debug else logging.WARNING,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

app = FastAPI(
    title="Smider API",
    lifespan=lifespan,
    debug=settings.debug,
)

_cors_origins = settings.cors_origins_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=("*" not in _cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Route includes
# ---------------------------------------------------------------------------
from smider_platform.app.routes.intake import router as intake_router
from smider_platform.app.routes.jobs import router as jobs_router, customers_router
from smider_platform.app.routes.offers import router as offers_router, contractors_router

app.include_router(intake_router)
app.include_router(jobs_router)
app.include_router(customers_router)
app.include_router(offers_router)
app.include_router(contractors_router)


@app.get("/health", tags=["health"])
async def health_check():
    """Return service health status."""
    return {"status": "ok", "service": "smider-platform"}


def run() -> None:
    """Run the application with uvicorn (used by project.scripts entry point)."""
    uvicorn.run(
        "smider_platform.app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
