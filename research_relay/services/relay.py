import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, quote_plus

import httpx
from starlette.datastructures import UploadFile

from research_relay.adapter.http import post_multipart
from research_relay.config import Settings
from research_relay.errors import MissingUploadError, RelayError, StagingError, UpstreamError
from research_relay.observability import RelayMetrics
from research_relay.services.uploads import stage_upload

logger = logging.getLogger("research_relay.relay")

UPLOAD_FIELD = "file"


def form_encode(value: str) -> str:
    return quote_plus(value, safe="*").replace("~", "%7E")


def component_encode(value: str) -> str:
    return quote(value, safe="!~*'()")


@dataclass(frozen=True)
class RelayEndpoint:
    name: str
    path: str
    params: tuple[str, ...]
    encode: Callable[[str], str] = form_encode


PROCESS_ENDPOINT = RelayEndpoint(
    name="process",
    path="/api/research/process",
    params=("author", "title", "year", "publisher"),
    encode=form_encode,
)

QUERY_ENDPOINT = RelayEndpoint(
    name="query",
    path="/api/research/query",
    params=("query",),
    encode=component_encode,
)


def forwarded_params(endpoint: RelayEndpoint, query: Mapping[str, str]) -> list[tuple[str, str]]:
    return [(key, query[key]) for key in endpoint.params if query.get(key)]


def build_upstream_url(base_url: str, endpoint: RelayEndpoint, query: Mapping[str, str]) -> str:
    url = f"{base_url.rstrip('/')}{endpoint.path}"
    pairs = forwarded_params(endpoint, query)
    if not pairs:
        return url
    encoded = "&".join(f"{key}={endpoint.encode(value)}" for key, value in pairs)
    return f"{url}?{encoded}"


async def relay_upload(
    endpoint: RelayEndpoint,
    upload: UploadFile | None,
    query: Mapping[str, str],
    settings: Settings,
    metrics: RelayMetrics | None = None,
) -> Any:
    extra: dict[str, Any] = {"endpoint": endpoint.name}
    latency_ms: float | None = None
    try:
        if upload is None:
            raise MissingUploadError(f"no file uploaded in field '{UPLOAD_FIELD}'")

        extra["upstream_url"] = build_upstream_url(settings.upstream_base_url, endpoint, query)
        async with stage_upload(settings.upload_dir, upload) as staged:
            extra["storage_name"] = staged.storage_name
            try:
                content = staged.read_bytes()
            except OSError as exc:
                raise StagingError(f"could not read staged upload: {exc}") from exc

            files = {UPLOAD_FIELD: (staged.storage_name, content, staged.content_type)}
            start = time.perf_counter()
            try:
                status_code, body = await post_multipart(
                    extra["upstream_url"], files, timeout_s=settings.upstream_timeout_s
                )
            except httpx.HTTPStatusError as exc:
                extra["upstream_status"] = exc.response.status_code
                raise UpstreamError(str(exc)) from exc
            except httpx.HTTPError as exc:
                raise UpstreamError(str(exc)) from exc
            finally:
                latency_ms = round((time.perf_counter() - start) * 1000.0, 2)
            extra["upstream_status"] = status_code
    except Exception as exc:
        outcome = _outcome_for(exc)
        if metrics is not None:
            metrics.record(endpoint.name, outcome, latency_ms)
        logger.warning("relay_failed", extra={**extra, "outcome": outcome, "latency_ms": latency_ms})
        if isinstance(exc, RelayError):
            raise
        raise RelayError(str(exc) or type(exc).__name__) from exc

    if metrics is not None:
        metrics.record(endpoint.name, "ok", latency_ms)
    logger.info("relay_complete", extra={**extra, "outcome": "ok", "latency_ms": latency_ms})
    return body


def _outcome_for(exc: Exception) -> str:
    if isinstance(exc, MissingUploadError):
        return "missing_upload"
    if isinstance(exc, StagingError):
        return "staging_error"
    if isinstance(exc, UpstreamError):
        return "upstream_error"
    return "error"
