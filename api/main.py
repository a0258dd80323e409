"""
Tienda POS API - Main Application.

FastAPI application with CORS enabled for the till frontend.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from api import __version__
from repositories.database import get_engine, read_connection
from repositories.schema import create_schema

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tables and the walk-in customer must exist before the first request
    create_schema(get_engine())
    logger.info("Tienda POS API %s ready", __version__)
    yield


# Create FastAPI application
app = FastAPI(
    title="Tienda POS API",
    description="REST API for the point-of-sale terminal: catalog, customers, sales and reports",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configure CORS - the till frontend runs on its own origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Reports the API version and whether the store answers a trivial query.
    A store that cannot be reached turns the status into "degraded".
    """
    try:
        with read_connection() as conn:
            conn.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error("Health check could not reach the database: %s", e)
        database = "unavailable"

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "version": __version__,
        "service": "tienda-pos-api",
        "database": database,
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Tienda POS API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import categories, customers, products, reports, sales

app.include_router(products.router, prefix="/api/v1", tags=["Products"])
app.include_router(categories.router, prefix="/api/v1", tags=["Categories"])
app.include_router(customers.router, prefix="/api/v1", tags=["Customers"])
app.include_router(sales.router, prefix="/api/v1", tags=["Sales"])
app.include_router(reports.router, prefix="/api/v1", tags=["Reports"])
