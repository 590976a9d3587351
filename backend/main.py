"""
DROMIC-IS - Disaster Response Operations Monitoring and Information Center
Authentication, audit and dashboard API
"""

import os
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from routers import auth, user, dashboard, locations, health, settings
from routers.health import APP_VERSION

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

CORS_ORIGINS = [o.strip() for o in os.environ.get("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"DROMIC-IS starting up ({os.environ.get('ENVIRONMENT', 'development')})")
    yield
    # Shutdown
    logger.info("DROMIC-IS shutting down...")

app = FastAPI(
    title="DROMIC-IS API",
    description="Disaster Response Operations Monitoring and Information Center",
    version=APP_VERSION,
    lifespan=lifespan
)

# CORS (credentials need explicit origins for the auth cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    return JSONResponse(status_code=400, content={"detail": "Validation failed", "errors": errors})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Routers
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(user.router, prefix="/api/user", tags=["User"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(locations.router, prefix="/api/locations", tags=["Locations"])
app.include_router(health.router, prefix="/api/health", tags=["Health"])
app.include_router(settings.router, prefix="/api/settings", tags=["Settings"])

@app.get("/")
async def root():
    return {"status": "ok", "service": "DROMIC-IS API", "version": APP_VERSION}
