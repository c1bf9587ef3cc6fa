import re
from pathlib import Path

import httpx
from fastapi.testclient import TestClient
from respx import MockRouter

from research_relay.config import Settings
from research_relay.main import create_app

PDF = ("paper.pdf", b"%PDF-1.4 sample", "application/pdf")


def _stored_names(router: MockRouter) -> list[str]:
    return [
        re.search(rb'filename="([^"]+)"', call.request.content).group(1).decode()
        for call in router.calls
    ]


def test_process_relays_file_and_params(
    client: TestClient, settings: Settings, respx_mock: MockRouter
) -> None:
    route = respx_mock.post(host="upstream.test", path="/api/research/process").mock(
        return_value=httpx.Response(200, json={"summary": "ok", "pages": 3})
    )

    resp = client.post(
        "/api/research/process?author=A&year=2020&ignored=1",
        files={"file": PDF},
    )

    assert resp.status_code == 200
    assert resp.json() == {"summary": "ok", "pages": 3}
    assert route.call_count == 1
    sent = route.calls.last.request
    assert str(sent.url) == "https://upstream.test/api/research/process?author=A&year=2020"
    assert b'name="file"' in sent.content
    assert b"%PDF-1.4 sample" in sent.content
    assert list(settings.upload_dir.iterdir()) == []


def test_process_without_params_sends_bare_url(client: TestClient, respx_mock: MockRouter) -> None:
    route = respx_mock.post(host="upstream.test", path="/api/research/process").mock(
        return_value=httpx.Response(200, json={"ok": True})
    )

    resp = client.post("/api/research/process", files={"file": PDF})

    assert resp.status_code == 200
    assert str(route.calls.last.request.url) == "https://upstream.test/api/research/process"


def test_query_relays_encoded_query(
    client: TestClient, settings: Settings, respx_mock: MockRouter
) -> None:
    route = respx_mock.post(host="upstream.test", path="/api/research/query").mock(
        return_value=httpx.Response(200, json=[{"answer": "transformers"}])
    )

    resp = client.post("/api/research/query", params={"query": "neural nets"}, files={"file": PDF})

    assert resp.status_code == 200
    assert resp.json() == [{"answer": "transformers"}]
    assert route.call_count == 1
    assert str(route.calls.last.request.url).endswith("/api/research/query?query=neural%20nets")
    assert list(settings.upload_dir.iterdir()) == []


def test_missing_file_fails_without_upstream_call(
    client: TestClient, settings: Settings, respx_mock: MockRouter
) -> None:
    resp = client.post("/api/research/query?query=x")

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Failed to process request"
    assert "no file uploaded" in body["details"]
    assert len(respx_mock.calls) == 0
    assert list(settings.upload_dir.iterdir()) == []


def test_connection_refused_returns_failure_shape(
    client: TestClient, settings: Settings, respx_mock: MockRouter
) -> None:
    respx_mock.post(host="upstream.test", path="/api/research/process").mock(
        side_effect=httpx.ConnectError("Connection refused")
    )

    resp = client.post("/api/research/process?title=T", files={"file": PDF})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to process request", "details": "Connection refused"}
    assert list(settings.upload_dir.iterdir()) == []


def test_upstream_error_status_is_reported_as_500(
    client: TestClient, settings: Settings, respx_mock: MockRouter
) -> None:
    respx_mock.post(host="upstream.test", path="/api/research/query").mock(
        return_value=httpx.Response(502, json={"detail": "bad gateway"})
    )

    resp = client.post("/api/research/query", files={"file": PDF})

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Failed to process request"
    assert "502" in body["details"]
    assert list(settings.upload_dir.iterdir()) == []


def test_repeated_uploads_use_distinct_transient_files(
    client: TestClient, respx_mock: MockRouter
) -> None:
    respx_mock.post(host="upstream.test", path="/api/research/process").mock(
        return_value=httpx.Response(200, json={"ok": True})
    )

    for _ in range(2):
        assert client.post("/api/research/process", files={"file": PDF}).status_code == 200

    first, second = _stored_names(respx_mock)
    assert first != second
    assert first.endswith(".pdf") and second.endswith(".pdf")


def test_upload_dir_created_on_startup(tmp_path: Path) -> None:
    upload_dir = tmp_path / "nested" / "uploads"
    create_app(Settings(upload_dir=upload_dir, public_dir=tmp_path / "missing"))

    assert upload_dir.is_dir()


def test_text_part_named_file_is_treated_as_missing_upload(
    client: TestClient, settings: Settings, respx_mock: MockRouter
) -> None:
    resp = client.post("/api/research/query", data={"file": "not a file"})

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Failed to process request"
    assert "no file uploaded" in body["details"]
    assert len(respx_mock.calls) == 0
    assert list(settings.upload_dir.iterdir()) == []


def test_non_json_upstream_body_passes_through_as_text(
    client: TestClient, settings: Settings, respx_mock: MockRouter
) -> None:
    respx_mock.post(host="upstream.test", path="/api/research/process").mock(
        return_value=httpx.Response(200, text="processed")
    )

    resp = client.post("/api/research/process", files={"file": PDF})

    assert resp.status_code == 200
    assert resp.json() == "processed"
    assert list(settings.upload_dir.iterdir()) == []


def test_empty_upstream_body_passes_through_as_empty_string(
    client: TestClient, respx_mock: MockRouter
) -> None:
    respx_mock.post(host="upstream.test", path="/api/research/query").mock(
        return_value=httpx.Response(200, content=b"")
    )

    resp = client.post("/api/research/query", files={"file": PDF})

    assert resp.status_code == 200
    assert resp.json() == ""


def test_upstream_body_with_nan_is_returned_as_raw_text(
    client: TestClient, respx_mock: MockRouter
) -> None:
    respx_mock.post(host="upstream.test", path="/api/research/process").mock(
        return_value=httpx.Response(
            200, content=b'{"score": NaN}', headers={"content-type": "application/json"}
        )
    )

    resp = client.post("/api/research/process", files={"file": PDF})

    assert resp.status_code == 200
    assert resp.json() == '{"score": NaN}'


def test_unexpected_failure_gets_uniform_failure_shape(
    client: TestClient, settings: Settings, respx_mock: MockRouter, monkeypatch
) -> None:
    async def _invalid_url(*_args, **_kwargs):
        raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")

    monkeypatch.setattr("research_relay.services.relay.post_multipart", _invalid_url)

    resp = client.post("/api/research/process", files={"file": PDF})

    assert resp.status_code == 500
    assert resp.headers["content-type"] == "application/json"
    assert resp.json() == {
        "error": "Failed to process request",
        "details": "Invalid non-printable ASCII character in URL",
    }
    assert list(settings.upload_dir.iterdir()) == []
