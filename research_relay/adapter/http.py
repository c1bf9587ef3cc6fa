import json
from typing import Any

import httpx


def _reject_constant(token: str) -> Any:
    raise ValueError(f"non-standard JSON constant {token}")


def decode_body(response: httpx.Response) -> Any:
    # bodies that are not strict JSON pass through as raw text
    try:
        return json.loads(response.text, parse_constant=_reject_constant)
    except ValueError:
        return response.text


async def post_multipart(
    url: str,
    files: dict[str, tuple[str, bytes, str]],
    timeout_s: float = 30.0,
) -> tuple[int, Any]:
    async with httpx.AsyncClient(timeout=timeout_s) as client:
        response = await client.post(url, files=files)
        response.raise_for_status()
        return response.status_code, decode_body(response)
