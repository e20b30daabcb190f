"""Test configuration for the OpsDocs API."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Generator

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from opsdocs.config import reset_settings_cache  # noqa: E402
from opsdocs.database import reset_database_state  # noqa: E402
from opsdocs.observability import metrics_registry  # noqa: E402
from opsdocs.services.events import change_notifier  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Generator[None, None, None]:
    """Provide an isolated database and fresh registries for each test."""

    db_path = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("OPSDOCS_REPAIR_ON_READ", "1")
    reset_settings_cache()
    reset_database_state()
    metrics_registry.reset()
    change_notifier.reset()
    yield
    reset_settings_cache()
    reset_database_state()
    metrics_registry.reset()
    change_notifier.reset()


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    """Return a test client for the FastAPI application."""

    from opsdocs.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def make_section(client: TestClient):
    """Create a section through the API and return its payload."""

    def _make(title: str, description: str = "") -> dict:
        response = client.post(
            "/api/sections", json={"title": title, "description": description}
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture()
def make_document(client: TestClient):
    """Create a document through the API and return its payload."""

    def _make(title: str, section_id: int | None = None, parent_id: int | None = None, content: str = "") -> dict:
        response = client.post(
            "/api/documents",
            json={
                "title": title,
                "content": content,
                "section_id": section_id,
                "parent_id": parent_id,
            },
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _make
