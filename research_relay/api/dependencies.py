from collections.abc import AsyncIterator

from fastapi import Request
from starlette.datastructures import UploadFile

from research_relay.config import Settings
from research_relay.observability import RelayMetrics
from research_relay.services.relay import UPLOAD_FIELD


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_metrics(request: Request) -> RelayMetrics | None:
    return request.app.state.metrics


async def get_upload(request: Request) -> AsyncIterator[UploadFile | None]:
    # a text part under the upload field counts as no upload at all
    async with request.form() as form:
        part = form.get(UPLOAD_FIELD)
        yield part if isinstance(part, UploadFile) else None
