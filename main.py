"""Main FastAPI application"""
import os
import logging
import logging.config
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

# Load environment variables from .env before anything reads them
load_dotenv()

from config import get_settings  # noqa: E402
from routes import limiter, router as api_router  # noqa: E402

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Logging: one Rich console handler shared by uvicorn and the app ---
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(name)s - %(message)s"},
    },
    "handlers": {
        "console": {
            "class": "rich.logging.RichHandler",
            "formatter": "plain",
            "level": "DEBUG",
            "rich_tracebacks": True,
            "show_path": False,
            "markup": False,
            "log_time_format": "%Y-%m-%d %H:%M:%S",
        },
    },
    "loggers": {
        **{name: {"handlers": ["console"], "level": "INFO", "propagate": False} for name in UVICORN_LOGGERS},
        "": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}

logging.config.dictConfig(LOGGING_CONFIG)
logger = logging.getLogger(__name__)

PUBLIC_DIR = Path(__file__).resolve().parent / "public"
CORS_ORIGINS = [o for o in os.getenv("CORS_ORIGINS", "").split(",") if o]


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    missing = [
        name for name, value in (
            ("AIRTABLE_API_KEY", settings.airtable_api_key),
            ("AIRTABLE_BASE_ID", settings.airtable_base_id),
            ("AIRTABLE_RESTAURANT_VIEW_ID", settings.airtable_restaurant_view_id),
            ("SITE_PASSWORD", settings.site_password),
            ("MAPBOX_PUBLIC_TOKEN", settings.mapbox_public_token),
        ) if not value
    ]
    if missing:
        logger.warning(f"Missing configuration: {', '.join(missing)}. Affected endpoints will return 500.")
    logger.info(f"Configuration: HOME_CITY = {settings.home_city}, "
                f"UNRECOGNIZED_SPEND_TYPE = {settings.unrecognized_spend_type}, APP_ENV = {settings.app_env}")
    yield
    logger.info("Shutting down.")


app = FastAPI(
    title="Food Spending Dashboard API",
    description="Password-gated Airtable proxy with spending insights and achievements.",
    version="0.1.0",
    lifespan=lifespan,
)

# --- Rate Limiter State and Handler ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Cross-origin access only for explicitly listed origins
if CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )


@app.get("/health", summary="Health")
def health():
    return {"ok": True, "service": app.title}


app.include_router(api_router, prefix="/api", tags=["api"])

# Mount static files directory (MUST be after API router)
if PUBLIC_DIR.exists():
    app.mount("/", StaticFiles(directory=str(PUBLIC_DIR), html=True), name="static")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("APP_ENV", "production").lower() == "development",
    )
