import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from research_relay.api.health import metrics_router
from research_relay.api.health import router as health_router
from research_relay.api.research import router as research_router
from research_relay.config import Settings
from research_relay.errors import RelayError
from research_relay.observability import RelayMetrics, configure_logging
from research_relay.schemas import RelayErrorResponse
from research_relay.security import setup_cors

logger = logging.getLogger("research_relay")


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    logger.error("relay failed on %s: %s", request.url.path, exc.detail, exc_info=exc)
    body = RelayErrorResponse(details=exc.detail)
    return JSONResponse(status_code=500, content=body.model_dump())


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings)

    settings.upload_dir.mkdir(parents=True, exist_ok=True)

    app = FastAPI(title="Research Relay", version="0.1.0")
    app.state.settings = settings
    app.state.metrics = RelayMetrics() if settings.enable_metrics else None

    setup_cors(app, settings)
    app.add_exception_handler(RelayError, relay_error_handler)

    app.include_router(health_router)
    if settings.enable_metrics:
        app.include_router(metrics_router)
    app.include_router(research_router)

    # catch-all mount, must stay after the routers
    if settings.public_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.public_dir, html=True), name="public")
    else:
        logger.info("public directory %s not found, static assets disabled", settings.public_dir)

    return app


def run() -> None:
    settings = Settings.from_env()
    app = create_app(settings)
    logger.info("Relay server running on port %s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
