# app/main.py

import logging
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Configuration and core
from app.core.config import settings as config
from app.core.exceptions import StorefrontError
from app.core.logging_config import setup_logging

# FastAPI routers
from app.routers import builder, cart, catalog, order

# --- Init ---
logger = logging.getLogger(__name__)

# --- Exception handlers: every error body is {"error": ...} ---
async def storefront_error_handler(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} for request {request.method} {request.url}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} for request {request.method} {request.url}: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query parameters are InvalidArgument (400)."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = f"{location}: {first.get('msg', 'invalid value')}" if location else "Invalid request."
    logger.info(f"Validation error for request {request.method} {request.url}: {message}")
    return JSONResponse(status_code=400, content={"error": message})


async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Global handler for all unhandled exceptions.
    Logs the error with traceback and hides the details from the client.
    """
    logger.critical(f"Unhandled exception for request: {request.method} {request.url}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error."},
    )

# --- Lifespan manager ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(config.LOG_LEVEL)
    logger.info("Application lifespan startup...")
    yield
    logger.info("Application shutting down.")

# --- FastAPI application ---
app = FastAPI(
    title="PC Parts Storefront",
    description="Cart sync and PC builder backend for the storefront",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers ---
app.add_exception_handler(StorefrontError, storefront_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
api_router = APIRouter(prefix="/api")

api_router.include_router(cart.router, tags=["Cart"])
api_router.include_router(builder.router, tags=["PC Builder"])
api_router.include_router(catalog.router, tags=["Catalog"])
api_router.include_router(order.router, tags=["Orders"])

app.include_router(api_router)
