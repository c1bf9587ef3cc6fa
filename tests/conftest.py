from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from research_relay.config import Settings
from research_relay.main import create_app

UPSTREAM = "https://upstream.test"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        upstream_base_url=UPSTREAM,
        upload_dir=tmp_path / "uploads",
        public_dir=tmp_path / "public",
        log_json=False,
    )


@pytest.fixture
def client(settings: Settings) -> TestClient:
    return TestClient(create_app(settings))
