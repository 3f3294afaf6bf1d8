"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from storefront.api import router as api_router
from storefront.api.handlers import register_exception_handlers
from storefront.core.config import settings
from storefront.services.storage import LocalStorageBackend, build_storage_backend

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
# Timestamps carry a Z suffix, so format them in UTC.
logging.Formatter.converter = time.gmtime

app = FastAPI(
    title="Storefront API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV != "prod" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Chosen once per process; routes receive it through the get_storage dependency.
app.state.storage = build_storage_backend(settings)
if isinstance(app.state.storage, LocalStorageBackend):
    app.state.storage.upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(
        "/uploads",
        StaticFiles(directory=app.state.storage.upload_dir),
        name="uploads",
    )

app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/")
def root() -> dict[str, object]:
    """Root route; minimal payload for discovery."""
    return {
        "message": "Storefront API",
        "version": app.version,
        "endpoints": {
            "auth": f"{settings.API_PREFIX}/auth",
            "products": f"{settings.API_PREFIX}/products",
            "users": f"{settings.API_PREFIX}/users",
            "health": f"{settings.API_PREFIX}/health",
        },
    }
