from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from research_relay.api.dependencies import get_metrics, get_settings, get_upload
from research_relay.config import Settings
from research_relay.observability import RelayMetrics
from research_relay.schemas import RelayErrorResponse
from research_relay.services.relay import PROCESS_ENDPOINT, QUERY_ENDPOINT, relay_upload

router = APIRouter(prefix="/api/research", tags=["research"])

_error_responses = {500: {"model": RelayErrorResponse}}


@router.post("/process", responses=_error_responses)
async def process_document(
    request: Request,
    upload: UploadFile | None = Depends(get_upload),
    settings: Settings = Depends(get_settings),
    metrics: RelayMetrics | None = Depends(get_metrics),
) -> JSONResponse:
    data = await relay_upload(PROCESS_ENDPOINT, upload, request.query_params, settings, metrics)
    return JSONResponse(content=data)


@router.post("/query", responses=_error_responses)
async def query_document(
    request: Request,
    upload: UploadFile | None = Depends(get_upload),
    settings: Settings = Depends(get_settings),
    metrics: RelayMetrics | None = Depends(get_metrics),
) -> JSONResponse:
    data = await relay_upload(QUERY_ENDPOINT, upload, request.query_params, settings, metrics)
    return JSONResponse(content=data)
