"""FastAPI application for the asset register.

This is the main entry point for the register reporting API server.
"""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.dependencies import (
    close_register_client,
    get_register_client,
    init_register_client,
)
from .api.router import router

load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Handles startup and shutdown events:
    - Startup: Initialize the shared register client
    - Shutdown: Close the register client
    """
    logger.info("Starting Asset Register API...")

    # Raises ConfigurationError when REGISTER_API_BASE_URL is unset
    await init_register_client()

    yield

    logger.info("Shutting down Asset Register API...")
    await close_register_client()


# Create FastAPI application
app = FastAPI(
    title="Asset Register Reporting API",
    description="""
    Station reports and register maintenance on top of the asset register backend.

    ## Features

    - **Station Report**: Assets assigned to a station, grouped Asset -> Batch -> Item
    - **Print**: Standalone HTML for station reports and station/department directories
    - **Export**: Station reports as CSV or Excel
    - **Batches**: Per-asset batch valuation and new purchase batches
    - **Analytics**: Dashboard totals and top stations, employees, and assets

    ## Authentication

    Send the backend session token as `Authorization: Bearer <token>`.
    """,
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)

app.include_router(router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Asset Register Reporting API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
async def health():
    """Global health check, including the backend circuit breaker."""
    try:
        circuit = get_register_client().circuit_status
    except RuntimeError:
        return {"status": "starting", "circuit": None}

    healthy = circuit is None or circuit.get("state") != "open"
    return {"status": "healthy" if healthy else "degraded", "circuit": circuit}


# Entry point for running with uvicorn
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.darb.register.app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
