# backend/servicehub/main.py
from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator, Dict

from fastapi import APIRouter, FastAPI

from .core.config import settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION, BRAND_NAME
from .errors import register_error_handlers
from .routes.v1 import (
    admin_migration as admin_migration_v1,
    bookings as bookings_v1,
    commission as commission_v1,
    payments as payments_v1,
    prometheus as prometheus_v1,
    providers as providers_v1,
    reports as reports_v1,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    yield
    logger.info(f"{BRAND_NAME} API shutting down...")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

# Register unified error envelope handlers
register_error_handlers(app)

# V1 API router - all prefixes applied here
api_v1 = APIRouter(prefix="/api/v1")

api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(commission_v1.router, prefix="/commission")
api_v1.include_router(payments_v1.router, prefix="/payments")
api_v1.include_router(providers_v1.router, prefix="/providers")
api_v1.include_router(reports_v1.router, prefix="/reports")
api_v1.include_router(admin_migration_v1.router, prefix="/admin")

app.include_router(api_v1)

# =============================================================================
# INTENTIONALLY UNVERSIONED ROUTES
# =============================================================================
app.include_router(prometheus_v1.router)


@app.get("/health")
def health_check() -> Dict[str, str]:
    return {"status": "healthy", "service": f"{BRAND_NAME.lower()}-api"}
