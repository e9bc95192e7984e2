"""
Mi Asesor Vial Backend - Main FastAPI Application
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import time

from app.config import settings
from app.exceptions import LikeError
from app.api.routes import (
    ai,
    auth,
    users,
    articles,
)
from app.services.like_coordinator import like_sessions

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# Define lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup and shutdown events"""
    # Startup
    logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)
    logger.info("Debug mode: %s, dev mode: %s", settings.DEBUG, settings.DEV_MODE)
    if settings.DEBUG_MOCK_GEMINI or not settings.GOOGLE_API_KEY:
        logger.warning("Gemini calls are mocked")

    yield

    # Shutdown: release every counter subscription
    await like_sessions.close_all()
    logger.info("Shutting down %s", settings.APP_NAME)


# Create FastAPI application with lifespan
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Mi Asesor Vial API - Traffic-law articles, favorites and AI advice",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time to response headers"""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


@app.exception_handler(LikeError)
async def like_error_handler(request: Request, exc: LikeError):
    """Favorite failures carry their own status and a user-facing message"""
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.code, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.public_message, "code": exc.code},
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions"""
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred",
        },
    )


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(articles.router)
app.include_router(ai.router)


# Health check endpoint
@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - API health check"""
    return {
        "status": "online",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "message": "Bienvenido a la API de Mi Asesor Vial",
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check endpoint"""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "debug_mode": settings.DEBUG,
        "firebase_configured": bool(
            settings.FIREBASE_CREDENTIALS_JSON
            or settings.FIREBASE_CREDENTIALS_PATH
            or settings.FIREBASE_EMULATOR_HOST
        ),
        "realtime_database_configured": bool(
            settings.FIREBASE_DATABASE_URL or settings.FIREBASE_DATABASE_EMULATOR_HOST
        ),
        "gemini_configured": bool(settings.GOOGLE_API_KEY),
        "active_like_sessions": len(like_sessions),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG
    )
