"""
Federation Rankings - FastAPI web server

Public site API (rankings, competitions, selections) and admin API.
Data source: Supabase
"""
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.config import get_settings
from app.admin import admin_router
from app.public import public_router
from ranking import AGE_CATEGORY_ORDER

settings = get_settings()

# FastAPI app
app = FastAPI(
    title="Federation Rankings",
    description="Athlete rankings, competition results and team selections",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Public site
app.include_router(public_router, prefix="/api")

# Admin backend
app.include_router(admin_router, prefix="/api")


# ==================== API Endpoints ====================

@app.on_event("startup")
async def startup_event():
    logger.info(
        f"Server started (Supabase: {'configured' if settings.SUPABASE_URL else 'not configured'})"
    )


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Server stopped")


@app.get("/health")
async def health():
    return {"status": "ok", "time": datetime.now().isoformat()}


@app.get("/api/status")
async def api_status():
    """Service status"""
    return {
        "supabase_configured": bool(settings.SUPABASE_URL),
        "age_categories": [c.value for c in AGE_CATEGORY_ORDER],
        "version": app.version,
    }


# ==================== Run server ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.server:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        log_level="info"
    )
