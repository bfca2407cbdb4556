"""
FastAPI Main Application

Entry point for the training funds request API.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from .auth import Identity, get_current_identity
from .routes import decisions_router, fund_requests_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting Training Funds Request API...")
    yield
    logger.info("Shutting down Training Funds Request API...")


app = FastAPI(
    title="Training Funds Request API",
    description="Submission, approval and disbursement routing for training funds requests",
    version=__version__,
    lifespan=lifespan,
)

# CORS configuration
cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(fund_requests_router, prefix="/api")
app.include_router(decisions_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Training Funds Request API",
        "version": __version__,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/api/me", response_model=Identity)
async def me(identity: Identity = Depends(get_current_identity)) -> Identity:
    """Current identity and roles."""
    return identity


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "training_funds.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=os.getenv("ENVIRONMENT", "production") == "development",
    )
