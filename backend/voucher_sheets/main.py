from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import logging

from voucher_sheets.api.router import api_router
from voucher_sheets.core.config import settings
from voucher_sheets.core.error_handlers import (
    app_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from voucher_sheets.core.exceptions import VoucherSheetsException
from voucher_sheets.core.logging_config import setup_logging

setup_logging(
    log_dir=settings.LOG_DIR,
    level=settings.LOG_LEVEL,
    enable_json=settings.LOG_JSON,
    enable_files=settings.LOG_TO_FILE,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up Voucher Sheets Backend...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")
    yield
    logger.info("Shutting down Voucher Sheets Backend...")


app = FastAPI(
    title="Voucher Sheets Backend",
    description="Voucher sheet storage and grid formula evaluation",
    version=settings.VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)
app.state.settings = settings

# Add exception handlers
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(VoucherSheetsException, app_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

allowed_origins = list(settings.BACKEND_CORS_ORIGINS)

# Only allow all origins in development
if settings.ENVIRONMENT == "development" and settings.DEBUG:
    allowed_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

# Include API routes
app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/")
async def root():
    return {
        "message": "Voucher Sheets Backend API",
        "version": settings.VERSION,
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "services": {
            "sheet_store": settings.SHEET_STORE,
            "api": "running"
        }
    }
