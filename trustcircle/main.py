"""Application entrypoint.

Centralized settings + structured logging + membership routes.
"""
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
import logging

from trustcircle.core.errors import MembershipError
from trustcircle.core.logging import configure_logging
from trustcircle.core.settings import settings
from trustcircle.database.db import Base, engine
from trustcircle.database import models  # noqa: F401  registers tables on Base
from trustcircle.middleware.errors import (
    membership_error_handler,
    unhandled_error_handler,
    validation_error_handler,
)
from trustcircle.middleware.rate_limit import limiter, _rate_limit_exceeded_handler
from trustcircle.routes import circle_routes, user_routes

configure_logging(settings.log_level, settings.log_json)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version="v1", openapi_tags=[
    {"name": "users", "description": "User creation"},
    {"name": "circles", "description": "Circles of trust and their membership"},
])

# Attach rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(MembershipError, membership_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

REQUEST_COUNT = Counter("http_requests_total", "Total HTTP requests", ["method", "path", "status"])
REQUEST_LATENCY = Histogram("http_request_duration_seconds", "Request latency", ["path"])

@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    path = request.url.path
    method = request.method
    with REQUEST_LATENCY.labels(path=path).time():
        response = await call_next(request)
    REQUEST_COUNT.labels(method=method, path=path, status=response.status_code).inc()
    return response

# Create database tables on startup
@app.on_event("startup")
def startup():
    """Ensures all database tables are created when the application starts."""
    Base.metadata.create_all(bind=engine)
    logger.info(f"Loaded {settings.app_name} ({settings.environment}); tables created/checked.")

app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.cors_allow_origins.split(',')],
    allow_credentials=True,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Include routers
app.include_router(user_routes.router, prefix="/api/users", tags=["users"])
app.include_router(circle_routes.router, prefix="/api/circles", tags=["circles"])

@app.get("/")
async def root():
    """Root endpoint for the API."""
    return {"msg": "ok", "app": settings.app_name, "environment": settings.environment}

@app.get("/metrics")
def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
