"""
Test Case Manager - FastAPI Application Entry Point

Serves the folder and step tree operations of a test case management
application: batch step editing, folder moves and deletion, and restore of
soft-deleted cases.

Authentication and authorization are handled in front of this service;
requests reaching these routes are already authorized.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .database import engine, init_db
from .exceptions import register_exception_handlers
from .logging_setup import configure_logging
from .migrations.add_is_deleted_to_cases import migrate as migrate_case_soft_delete
from .migrations.add_parent_step_id_to_steps import migrate as migrate_nested_steps
from .routers import cases, folders, steps

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    configure_logging()
    # Startup: Initialize database
    init_db()
    # Run migrations for existing databases
    migrate_case_soft_delete(engine)
    migrate_nested_steps(engine)
    yield


app = FastAPI(
    title=settings.service_name,
    description="Folder and step tree engine for test case management",
    version=settings.service_version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register global exception handlers
register_exception_handlers(app)


@app.get("/")
async def root():
    """Root endpoint returning API information."""
    return {
        "name": settings.service_name,
        "version": settings.service_version,
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# Register routers
app.include_router(folders.router)
app.include_router(cases.router)
app.include_router(steps.router)
