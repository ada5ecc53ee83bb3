"""
SellerOps API — FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import get_settings
from core.errors import DataError

settings = get_settings()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("SellerOps API starting up", version=settings.app_version)
    yield
    logger.info("SellerOps API shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Inventory profitability and reorder recommendation engine",
    lifespan=lifespan,
)


@app.exception_handler(DataError)
async def data_error_handler(request: Request, exc: DataError):
    """Unusable order rows (strict reads) and invalid stored settings surface as 422."""
    logger.warning("api.data_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Import and register routers
from api.v1.routers import inventory, reports, tenant_settings

app.include_router(inventory.router)
app.include_router(reports.router)
app.include_router(tenant_settings.router)


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers."""
    return {"status": "healthy", "version": settings.app_version}
