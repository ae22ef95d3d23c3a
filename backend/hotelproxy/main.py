"""
TBO Hotel Proxy - Backend Main Application
FastAPI entry point

Endpoints:
    /api/hotels   - Static data (cached), live search, card info, rooms, prebook/book
    /api/payment  - Razorpay orders, payment verification, booking history
    /api/sync     - Admin: pull static data into the cache
    /health       - Health check
    /metrics      - Prometheus metrics
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hotelproxy.api.v1.hotel_routes import router as hotel_router
from hotelproxy.api.v1.payment_routes import router as payment_router
from hotelproxy.api.v1.sync_routes import router as sync_router
from hotelproxy.core.container import ServiceContainer
from hotelproxy.core.errors import TBOApiError, map_tbo_error
from hotelproxy.core.metrics import setup_metrics

# ═══════════════════════════════════════════════════════════════════
# LOGGING
# ═══════════════════════════════════════════════════════════════════

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("HotelProxy-Backend")


# ═══════════════════════════════════════════════════════════════════
# LIFESPAN (Startup & Shutdown)
# ═══════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events"""

    # ─────────── STARTUP ───────────
    logger.info("🚀 Starting TBO Hotel Proxy...")

    if getattr(app.state, "services", None) is None:
        app.state.services = ServiceContainer.from_settings()

    services: ServiceContainer = app.state.services
    logger.info(f"TBO API base URL: {services.settings.tbo_base_url}")
    logger.info("✅ TBO Hotel Proxy started successfully")

    yield

    # ─────────── SHUTDOWN ───────────
    logger.info("🛑 Shutting down TBO Hotel Proxy...")
    await services.close()
    logger.info("👋 TBO Hotel Proxy stopped")


# ═══════════════════════════════════════════════════════════════════
# FASTAPI APP
# ═══════════════════════════════════════════════════════════════════

def create_app(services: Optional[ServiceContainer] = None) -> FastAPI:
    app = FastAPI(
        title="TBO Hotel Proxy",
        description="Hotel search and booking proxy between the storefront, TBO and Razorpay",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.services = services

    setup_metrics(app)

    # ─────────── MIDDLEWARE ───────────

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"{request.method} {request.url.path}")
        return await call_next(request)

    # ─────────── ROUTERS ───────────

    app.include_router(hotel_router, prefix="/api")    # /api/hotels/...
    app.include_router(payment_router, prefix="/api")  # /api/payment/...
    app.include_router(sync_router, prefix="/api")     # /api/sync/...

    # ─────────── ROOT ENDPOINTS ───────────

    @app.get("/")
    async def root():
        """API root - basic info"""
        return {
            "name": "TBO Hotel Proxy",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health"
        }

    @app.get("/health")
    async def health_check():
        health = {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": "TBO Hotels Proxy Server",
            "checks": {}
        }

        try:
            await app.state.services.store.ping()
            health["checks"]["cache"] = "connected"
        except Exception as e:
            health["checks"]["cache"] = f"error: {str(e)}"
            health["status"] = "degraded"

        return health

    # ─────────── ERROR HANDLERS ───────────

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        required = []
        for error in exc.errors():
            field = str(error["loc"][-1]) if error.get("loc") else "body"
            if field not in required:
                required.append(field)
        return JSONResponse(
            status_code=400,
            content={"error": "Missing required fields", "required": required}
        )

    @app.exception_handler(TBOApiError)
    async def tbo_exception_handler(request: Request, exc: TBOApiError):
        status, body = map_tbo_error(exc, "TBO API error")
        return JSONResponse(status_code=status, content=body)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler"""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": str(exc)
            }
        )

    return app


app = create_app()


# ═══════════════════════════════════════════════════════════════════
# RUN (for development)
# ═══════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    import uvicorn
    from hotelproxy.core.config import get_settings

    uvicorn.run(
        "hotelproxy.main:app",
        host="0.0.0.0",
        port=get_settings().port,
        reload=True,
        log_level="info"
    )
