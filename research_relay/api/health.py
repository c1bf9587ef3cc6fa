from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from research_relay.api.dependencies import get_settings
from research_relay.config import Settings
from research_relay.schemas import HealthResponse

router = APIRouter(tags=["health"])

metrics_router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        service="research-relay",
        upstream_base_url=settings.upstream_base_url,
    )


@metrics_router.get("/metrics", include_in_schema=False)
def metrics(request: Request) -> PlainTextResponse:
    return PlainTextResponse(request.app.state.metrics.render_prometheus())
