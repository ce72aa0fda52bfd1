"""
Web Bootstrap Tests - Test Configuration.

Provides pytest fixtures for testing the web bootstrap service: a populated
static root, settings pointing at it, and an in-process HTTP client.
"""

from pathlib import Path
from typing import Any, AsyncGenerator, List

import pytest
import pytest_asyncio
from fastapi import Depends, FastAPI, Request
from httpx import ASGITransport, AsyncClient

from web_bootstrap.app import create_app
from web_bootstrap.body_parsing import get_parsed_body
from web_bootstrap.config import Settings

ALLOWED_ORIGIN = "http://allowed.example"
SECOND_ALLOWED_ORIGIN = "http://dashboard.example"
DISALLOWED_ORIGIN = "http://evil.example"


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    """
    Static root populated with a few assets.

    Returns:
        Path to the static root directory
    """
    root = tmp_path / "public"
    root.mkdir()
    (root / "hello.txt").write_text("Hello, static world")
    (root / "css").mkdir()
    (root / "css" / "site.css").write_text("body { color: black; }")
    (root / "docs").mkdir()
    (root / "docs" / "index.html").write_text("<h1>Docs</h1>")
    (root / ".env").write_text("SECRET=1")
    (root / "digits.txt").write_text("0123456789")
    return root


@pytest.fixture
def app_settings(static_dir: Path) -> Settings:
    """
    Settings for tests: 1kb body limit and two allowed origins.

    Returns:
        Settings instance
    """
    return Settings(
        STATIC_ROOT=str(static_dir),
        CORS_ORIGIN=f"{ALLOWED_ORIGIN}, {SECOND_ALLOWED_ORIGIN}",
        BODY_LIMIT="1kb",
        PARAMETER_LIMIT=50,
    )


@pytest.fixture
def echo_calls() -> List[Any]:
    """Bodies seen by the echo route, in call order."""
    return []


@pytest.fixture
def test_app(app_settings: Settings, echo_calls: List[Any]) -> FastAPI:
    """
    Application under test with an extra ``POST /echo`` route.

    The echo route records every parsed body it receives so tests can
    assert that rejected requests never reach a handler.
    """
    app = create_app(app_settings)

    @app.post("/echo")
    async def echo(request: Request, body: Any = Depends(get_parsed_body)) -> Any:
        echo_calls.append(body)
        raw = await request.body()
        return {"body": body, "raw_length": len(raw)}

    return app


@pytest_asyncio.fixture
async def client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """In-process HTTP client bound to the application under test."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


def pytest_configure(config: Any) -> None:
    """
    Configure pytest with custom markers.

    Args:
        config: Pytest configuration object
    """
    config.addinivalue_line(
        "markers",
        "unit: mark test as unit test",
    )
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test",
    )
