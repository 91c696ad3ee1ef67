"""FastAPI application — main entry point."""

import structlog
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pricesync.config import get_settings
from pricesync.infrastructure.database import engine, Base
from pricesync.core.logging import configure_logging
from pricesync.core.middleware import setup_middleware
from pricesync.core.exceptions import AppError, app_error_handler, global_exception_handler

# Import all models so SQLAlchemy knows about them
from pricesync.domain.models.product import Product  # noqa: F401
from pricesync.domain.models.sync_log import SyncLog  # noqa: F401

# Import routers
from pricesync.interfaces.api.products import router as products_router
from pricesync.interfaces.api.sync import router as sync_router

settings = get_settings()

# Configure logging immediately
configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown events."""
    logger.info(
        "Starting pricesync",
        env=settings.ENVIRONMENT,
        odoo_mode="simulated" if settings.ODOO_SIMULATE else "jsonrpc",
        dispatch_mode=settings.SYNC_DISPATCH_MODE,
    )

    # Create DB tables (dev only, production uses migrations)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    from pricesync.scheduler.jobs import start_scheduler
    start_scheduler()

    yield

    from pricesync.scheduler.jobs import stop_scheduler
    stop_scheduler()
    logger.info("pricesync stopped")


app = FastAPI(
    title="pricesync — Product pricing with Odoo sync",
    description="Local product catalog with cost/markup pricing, pushed to and pulled from Odoo",
    version="1.0.0",
    lifespan=lifespan,
)

setup_middleware(app)

# Global Exception Handling (AppError first, Exception catches the rest)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(products_router)
app.include_router(sync_router)


@app.get("/")
def root():
    return {
        "name": "pricesync",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "healthy"}
