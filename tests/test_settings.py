import pytest
from pydantic import ValidationError

from akhbarna.app.core.config import Settings


def test_cors_origins_accepts_host_without_json(monkeypatch) -> None:
    monkeypatch.setenv("CORS_ORIGINS", "akhbarna.ma")

    settings = Settings(_env_file=None)
    assert settings.cors_origins == ["http://akhbarna.ma", "https://akhbarna.ma"]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ('["http://localhost:3000"]', ["http://localhost:3000"]),
        ("https://a.example, https://a.example", ["https://a.example"]),
        ("*", ["*"]),
        ("[]", []),
        ("", []),
    ],
)
def test_cors_origins_parsing_variants(monkeypatch, raw: str, expected: list[str]) -> None:
    monkeypatch.setenv("CORS_ORIGINS", raw)

    settings = Settings(_env_file=None)
    assert settings.cors_origins == expected


def test_rate_limit_defaults(monkeypatch) -> None:
    monkeypatch.delenv("RATE_LIMIT_ENABLED", raising=False)
    monkeypatch.delenv("RATE_LIMIT_SWEEP_INTERVAL_SECONDS", raising=False)
    monkeypatch.delenv("RATE_LIMIT_DEFAULT_MAX_WINDOW_MS", raising=False)

    settings = Settings(_env_file=None)
    assert settings.rate_limit_enabled is True
    assert settings.rate_limit_sweep_interval_seconds == 300
    assert settings.rate_limit_default_max_window_ms == 3_600_000


def test_rate_limit_settings_from_env(monkeypatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
    monkeypatch.setenv("RATE_LIMIT_SWEEP_INTERVAL_SECONDS", "30")

    settings = Settings(_env_file=None)
    assert settings.rate_limit_enabled is False
    assert settings.rate_limit_sweep_interval_seconds == 30


@pytest.mark.parametrize("value", ["0", "3601"])
def test_sweep_interval_bounds(monkeypatch, value: str) -> None:
    monkeypatch.setenv("RATE_LIMIT_SWEEP_INTERVAL_SECONDS", value)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_max_window_must_be_positive(monkeypatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_DEFAULT_MAX_WINDOW_MS", "0")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_log_format_is_normalized(monkeypatch) -> None:
    monkeypatch.setenv("LOG_FORMAT", " JSON ")
    assert Settings(_env_file=None).log_format == "json"

    monkeypatch.setenv("LOG_FORMAT", "xml")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
