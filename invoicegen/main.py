from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from invoicegen.config import get_settings
from invoicegen.dependencies.services import get_asset_loader_cached

from invoicegen.health import router as health_router
from invoicegen.routes.invoices import router as invoices_router
from invoicegen.routes.templates import router as templates_router
from invoicegen.routes.totals import router as totals_router
from invoicegen.routes.uploads import router as uploads_router


def configure_logging(level: str = "INFO") -> None:
    """Apply ``level`` to the root logger, installing a stderr handler if none exists."""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level.upper(),
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        root_logger.setLevel(level.upper())

# Configure logging as soon as the module is loaded
configure_logging(get_settings().log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("Application settings on startup: %s", settings.model_dump(mode="json"))

    loader = get_asset_loader_cached()
    logger.info("Application startup complete.")

    try:
        yield
    finally:
        logger.info("Closing asset loader.")
        await loader.close()
        logger.info("Application shutdown complete.")


# --- Application Setup ---

settings = get_settings()
settings.upload_dir.mkdir(parents=True, exist_ok=True)

app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
    redirect_slashes=False
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Include Routers and Mounts ---

app.include_router(invoices_router, prefix="/api/invoices")
app.include_router(templates_router, prefix="/api/templates")
app.include_router(totals_router, prefix="/api/totals")
app.include_router(uploads_router, prefix="/api/upload")
app.include_router(health_router)

app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")
