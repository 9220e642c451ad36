from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded
import time
import uuid

from .config import settings
from .database import create_tables
from .exceptions import HotelAdminError
from .utils.logging_config import clear_request_context, get_logger, set_request_context, setup_logging
from .utils.rate_limiter import limiter

from .routers import availability, bookings, calendar, hotels, roles, room_types, rooms, users

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    setup_logging(level=settings.log_level, json_format=settings.log_json)

    logger.info(f"Starting hotel-admin ({settings.environment})")
    logger.info(f"CORS origins: {settings.cors_origins}")

    # Production schemas are managed by alembic
    if not settings.is_production:
        create_tables()

    yield

    logger.info("Shutting down hotel-admin")


app = FastAPI(
    title="Hotel Admin API",
    description="Back-office API for hotel catalog, availability and bookings",
    version="1.0.0",
    lifespan=lifespan
)

# Rate limiter state
app.state.limiter = limiter


# ================================
# CORS MIDDLEWARE - MUST BE FIRST!
# ================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


# Security Headers Middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


# Request ID Middleware
class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])
        request.state.request_id = request_id
        set_request_context(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            logger.api_request(
                request.method,
                request.url.path,
                response.status_code,
                round((time.perf_counter() - started) * 1000, 2)
            )
        finally:
            clear_request_context()
        response.headers["X-Request-ID"] = request_id
        return response


# Add other middleware AFTER CORS
app.add_middleware(RequestIdMiddleware)
app.add_middleware(SecurityHeadersMiddleware)


@app.exception_handler(HotelAdminError)
async def hotel_admin_error_handler(request: Request, exc: HotelAdminError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Rate limit handler
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests, try again later"}
    )


# Include routers
app.include_router(hotels.router)
app.include_router(room_types.router)
app.include_router(rooms.router)
app.include_router(availability.router)
app.include_router(bookings.router)
app.include_router(calendar.router)
app.include_router(users.router)
app.include_router(roles.router)


@app.get("")
@app.get("/")
async def root():
    return {
        "message": "Hotel Admin API",
        "version": "1.0.0",
        "docs": "/docs",
        "status": "running"
    }


@app.get("/health")
@app.get("/health/")
async def health_check():
    return {"status": "healthy"}
