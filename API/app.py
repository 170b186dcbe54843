"""
Merchant Billing API - Main Application

Daily recurring billing for the merchant fulfillment platform:
- /api/v1/billing/...        → Daily charges, billing runs, payment status
- /api/v1/subscriptions/...  → Merchant service subscriptions
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from database import init_db, db
from database.seed import seed_services
from core.config import settings
from routers import billing_router, subscriptions_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("🚀 Starting Merchant Billing API...")

    try:
        settings.validate()
        init_db()
        logger.info("✅ Database initialized")

        with db.get_session() as session:
            seed_services(session)

    except Exception as e:
        logger.error(f"❌ Database initialization failed: {e}")
        raise

    logger.info("✅ Merchant Billing API started successfully!")

    yield

    db.dispose()
    logger.info("👋 Shutting down Merchant Billing API...")


# Create FastAPI application
app = FastAPI(
    title="Merchant Billing API",
    description="""
    Daily usage-based billing for merchants of the fulfillment platform.

    * **Billing** - Daily charges preview, billing runs, payment status, history
    * **Subscriptions** - Service subscriptions with frozen unit prices
    """,
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Internal server error",
            "detail": str(exc) if settings.debug else None
        }
    )


# ==================== HEALTH ====================

@app.get("/", tags=["Health"])
async def root():
    return {
        "message": "Merchant Billing API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    from sqlalchemy import text
    try:
        with db.get_session() as session:
            session.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "disconnected", "error": str(e)}
        )


# ==================== ROUTES ====================

app.include_router(
    billing_router,
    prefix="/api/v1/billing",
    tags=["Billing"]
)
app.include_router(
    subscriptions_router,
    prefix="/api/v1/subscriptions",
    tags=["Subscriptions"]
)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
