"""FastAPI application initialization."""

import logging
import sys
from contextlib import asynccontextmanager

import logfire
from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from pydantic import ValidationError

from outline_exporter.api import health
from outline_exporter.api.metrics import build_metrics_router
from outline_exporter.config import Settings, get_settings
from outline_exporter.constants import APP_TITLE, APP_VERSION
from outline_exporter.logging_config import setup_logfire
from outline_exporter.services.collector import OutlineCollector

logger = logging.getLogger(__name__)

HOME_PAGE = """<html>
<head><title>{title}</title></head>
<body>
<h1>{title}</h1>
<p><a href="{metrics_path}">Metrics</a></p>
</body>
</html>"""


def create_app(settings: Settings) -> FastAPI:
    """Build the exporter application for the given settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        setup_logfire(app, settings)

        logfire.info(
            f"Starting {APP_TITLE}",
            listen_address=settings.listen_address,
            metrics_path=settings.metrics_path,
            outline_api_url=settings.outline_api_url,
            page_limit=settings.page_limit,
            scrape_timeout_seconds=settings.scrape_timeout,
            environment=settings.env,
        )
        if settings.debug:
            logfire.info("Debug mode enabled")

        yield

        logfire.info("Application shutdown complete")

    app = FastAPI(
        title=APP_TITLE,
        description="Prometheus exporter for Outline wiki collections, documents and users",
        version=APP_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.collector = OutlineCollector(settings)

    app.include_router(health.router, tags=["health"])
    app.include_router(build_metrics_router(settings.metrics_path), tags=["metrics"])

    @app.get("/", response_class=HTMLResponse)
    def root():
        """Home page linking to the metrics endpoint."""
        return HOME_PAGE.format(title=APP_TITLE, metrics_path=settings.metrics_path)

    return app


def load_settings_or_exit() -> Settings:
    """Load settings; a missing API key ends the process."""
    try:
        return get_settings()
    except ValidationError as e:
        missing = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        logger.critical("Invalid configuration: %s", ", ".join(missing))
        if "outline_api_key" in missing:
            logger.critical("OUTLINE_API_KEY environment variable is required")
        sys.exit(1)


def run() -> None:
    """Console entry point: serve the exporter with uvicorn."""
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    settings = load_settings_or_exit()
    uvicorn.run(
        create_app(settings),
        host=settings.listen_host,
        port=settings.listen_port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    run()
