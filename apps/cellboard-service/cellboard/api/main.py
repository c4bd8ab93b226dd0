"""
FastAPI app assembly: logging, middleware, error envelope and router wiring.
"""
import logging
import os

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from cellboard import __version__
from cellboard.api.envelope import http_exception_handler, success, validation_exception_handler
from cellboard.api.cells import router as cells_router
from cellboard.api.members import router as members_router
from cellboard.api.admin import router as admin_router

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)

# Database schema is managed by Alembic migrations.

app = FastAPI(
    title="Cellboard Service",
    description="API for managing youth ministry cells: people, cell leadership and yearly memberships.",
    version=__version__,
)

# Avoid implicit trailing-slash redirects for predictable URLs
app.router.redirect_slashes = False

origins = [
    origin.strip()
    for origin in os.getenv("CELLBOARD_CORS_ORIGINS", "http://localhost,http://localhost:3000,http://localhost:8000").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.include_router(members_router)
app.include_router(cells_router)
app.include_router(admin_router)


@app.get("/health")
def health_check():
    return success({"service": "cellboard-service", "version": __version__})
