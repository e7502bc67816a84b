import logging
import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request

from watchorder.api.routes_api import router as api_router
from watchorder.core.auth import CurrentUserMiddleware
from watchorder.core.config import get_settings
from watchorder.core.database import create_db_and_tables

load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    """Application lifespan context manager."""
    create_db_and_tables()
    yield


# Initialize FastAPI with overarching lifespan
app = FastAPI(
    title="Watch Order",
    description="Ordered watch lists of movies, shows, seasons and episodes",
    version="0.1.0",
    lifespan=app_lifespan,
)

app.add_middleware(CurrentUserMiddleware)


@app.middleware("http")
async def log_request_timing(request: Request, call_next):
    """Log how long each request took when running in debug mode."""
    start = time.perf_counter()
    response = await call_next(request)
    if get_settings().debug:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug("%s %s: %.0fms", request.method, request.url.path, elapsed_ms)
    return response


# Include routers
app.include_router(api_router, prefix="/api")
