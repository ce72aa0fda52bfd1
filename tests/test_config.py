"""
Tests for configuration loading and byte-size parsing.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from web_bootstrap.config import DEFAULT_CORS_ORIGIN, Settings, parse_byte_size


@pytest.mark.parametrize(
    "value,expected",
    [
        ("16kb", 16 * 1024),
        ("16KB", 16 * 1024),
        ("1mb", 1024 * 1024),
        ("2 gb", 2 * 1024**3),
        ("100", 100),
        ("100b", 100),
        ("1.5kb", 1536),
        ("0.3kb", 307),
        (512, 512),
    ],
)
def test_parse_byte_size(value, expected: int) -> None:
    """Test size strings are converted with binary units and floored."""
    assert parse_byte_size(value) == expected


@pytest.mark.parametrize("value", ["", "kb", "16 kilobytes", "-1kb", "ten", True])
def test_parse_byte_size_rejects_invalid(value) -> None:
    """Test unparseable or negative sizes raise ValueError."""
    with pytest.raises(ValueError):
        parse_byte_size(value)


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Test settings defaults without environment overrides.

    Verifies body limit, static root and the single default CORS origin.
    """
    for name in ("CORS_ORIGIN", "BODY_LIMIT", "STATIC_ROOT", "PORT"):
        monkeypatch.delenv(name, raising=False)

    config = Settings(_env_file=None)

    assert config.BODY_LIMIT == "16kb"
    assert config.body_limit_bytes == 16384
    assert config.STATIC_ROOT == "public"
    assert config.static_root_path == Path("public").resolve()
    assert config.cors_origins_list == [DEFAULT_CORS_ORIGIN]
    assert config.PARAMETER_LIMIT == 1000
    assert config.URLENCODED_EXTENDED is True
    assert config.PORT == 8000


def test_cors_origin_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test CORS_ORIGIN is split on commas with whitespace trimmed."""
    monkeypatch.setenv(
        "CORS_ORIGIN", "https://app.example.com, https://admin.example.com ,"
    )

    config = Settings(_env_file=None)

    assert config.cors_origins_list == [
        "https://app.example.com",
        "https://admin.example.com",
    ]


def test_blank_cors_origin_falls_back_to_default() -> None:
    """Test an origin list with no entries uses the default origin."""
    config = Settings(_env_file=None, CORS_ORIGIN=" , ")

    assert config.cors_origins_list == [DEFAULT_CORS_ORIGIN]


def test_body_limit_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test BODY_LIMIT is read from the environment."""
    monkeypatch.setenv("BODY_LIMIT", "64kb")

    config = Settings(_env_file=None)

    assert config.body_limit_bytes == 64 * 1024


def test_invalid_body_limit_is_rejected() -> None:
    """Test an unparseable body limit fails validation."""
    with pytest.raises(ValidationError):
        Settings(_env_file=None, BODY_LIMIT="lots")


def test_invalid_port_is_rejected() -> None:
    """Test the port range is validated."""
    with pytest.raises(ValidationError):
        Settings(_env_file=None, PORT=70000)
