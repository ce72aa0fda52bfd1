"""
Web Bootstrap Tests - CORS Policy Tests.

Tests cross-origin annotation of simple requests and preflight answers.
"""

import pytest
from httpx import AsyncClient

from tests.conftest import ALLOWED_ORIGIN, DISALLOWED_ORIGIN, SECOND_ALLOWED_ORIGIN


@pytest.mark.asyncio
@pytest.mark.parametrize("origin", [ALLOWED_ORIGIN, SECOND_ALLOWED_ORIGIN])
async def test_allowed_origin_is_echoed_with_credentials(
    client: AsyncClient, origin: str
) -> None:
    """
    Test an allow-listed origin receives permissive headers.

    Verifies the origin is mirrored, credentials are allowed and caches
    are told the response varies by Origin.
    """
    response = await client.get("/", headers={"Origin": origin})

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == origin
    assert response.headers["access-control-allow-credentials"] == "true"
    assert "Origin" in response.headers["vary"]


@pytest.mark.asyncio
async def test_disallowed_origin_gets_no_allow_origin(client: AsyncClient) -> None:
    """
    Test an origin outside the allow-list is not granted access.

    The server still answers; only the permissive header is omitted.
    """
    response = await client.get("/", headers={"Origin": DISALLOWED_ORIGIN})

    assert response.status_code == 200
    assert response.text == "App is running"
    assert "access-control-allow-origin" not in response.headers


@pytest.mark.asyncio
async def test_same_origin_request_has_no_cors_headers(client: AsyncClient) -> None:
    """Test requests without an Origin header are left alone."""
    response = await client.get("/")

    assert "access-control-allow-origin" not in response.headers


@pytest.mark.asyncio
async def test_preflight_for_allowed_origin(client: AsyncClient) -> None:
    """
    Test a preflight from an allowed origin lists methods and headers.

    Verifies the full method set and the Authorization header are allowed.
    """
    response = await client.options(
        "/",
        headers={
            "Origin": ALLOWED_ORIGIN,
            "Access-Control-Request-Method": "PATCH",
            "Access-Control-Request-Headers": "Authorization, Content-Type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
    assert response.headers["access-control-allow-credentials"] == "true"

    methods = {m.strip() for m in response.headers["access-control-allow-methods"].split(",")}
    assert methods == {"GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"}

    allowed_headers = response.headers["access-control-allow-headers"]
    assert "Authorization" in allowed_headers
    assert "Content-Type" in allowed_headers


@pytest.mark.asyncio
async def test_preflight_for_disallowed_origin(client: AsyncClient) -> None:
    """Test a preflight from an unknown origin is refused without allow-origin."""
    response = await client.options(
        "/",
        headers={
            "Origin": DISALLOWED_ORIGIN,
            "Access-Control-Request-Method": "GET",
        },
    )

    assert response.status_code == 400
    assert "access-control-allow-origin" not in response.headers


@pytest.mark.asyncio
async def test_preflight_with_unlisted_header_is_refused(client: AsyncClient) -> None:
    """Test request headers outside the allowed set fail the preflight."""
    response = await client.options(
        "/",
        headers={
            "Origin": ALLOWED_ORIGIN,
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "X-Custom-Token",
        },
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_cors_headers_on_rejected_body(client: AsyncClient) -> None:
    """Test error responses from the body parser still carry CORS headers."""
    response = await client.post(
        "/echo",
        content=b"{broken",
        headers={"Content-Type": "application/json", "Origin": ALLOWED_ORIGIN},
    )

    assert response.status_code == 400
    assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
