"""
Mandi SaaS - Main Application Entry Point
Multi-tenant mandi management backend
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import structlog

from mandi_saas.core.config import get_settings
from mandi_saas.core.logging_config import configure_logging
from mandi_saas.api import auth, tenants, subscriptions, reports

settings = get_settings()
configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Initializing Mandi SaaS backend")
    # Tables are created by Alembic migrations, not auto-generated
    yield
    logger.info("Shutting down Mandi SaaS backend")


app = FastAPI(
    title="Mandi SaaS API",
    description="Multi-tenant mandi management with subscription billing",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Subscription-Warning"],
)

prefix = settings.API_V1_PREFIX
app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["auth"])
app.include_router(tenants.router, prefix=f"{prefix}/tenants", tags=["tenants"])
app.include_router(subscriptions.router, prefix=f"{prefix}/subscriptions", tags=["subscriptions"])
app.include_router(reports.router, prefix=f"{prefix}/reports", tags=["reports"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "mandi-saas-api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "mandi_saas.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level="info",
    )
