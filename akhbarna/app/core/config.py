import json
import re
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_cors_origins(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, list):
        items = [str(v).strip() for v in raw]
        return [v for v in items if v]

    raw = str(raw).strip()
    if not raw or raw == "[]":
        return []
    if raw == "*":
        return ["*"]

    # JSON is the documented format; plain comma/space separated hosts are
    # accepted as well so a hand-edited .env does not break startup.
    if raw.startswith("["):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            items = [str(v).strip() for v in parsed]
            return [v for v in items if v]

    origins: list[str] = []
    for part in (p for p in re.split(r"[,\s]+", raw) if p):
        if part == "*":
            return ["*"]
        if "://" in part:
            origins.append(part)
        else:
            origins.append(f"http://{part}")
            origins.append(f"https://{part}")

    # Deduplicate while preserving order.
    seen: set[str] = set()
    result: list[str] = []
    for origin in origins:
        if origin in seen:
            continue
        seen.add(origin)
        result.append(origin)
    return result


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    Per-endpoint quotas are not configurable here; they live in the policy
    table in ``akhbarna.app.middleware.rate_limit.policies``.
    """

    # Debug mode - enables detailed error responses
    debug: bool = False

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    # Rate limiting settings
    rate_limit_enabled: bool = True
    rate_limit_sweep_interval_seconds: int = 300  # Sweep idle keys every 5 minutes
    rate_limit_default_max_window_ms: int = 60 * 60 * 1000  # Used until a policy registers a window

    # CORS settings
    cors_origins: Annotated[list[str], NoDecode] = ["*"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def decode_cors_origins(cls, v: Any) -> list[str]:
        return _parse_cors_origins(v)

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate the log format is one of the supported formatters."""
        v = v.strip().lower()
        if v not in ("text", "structured", "json"):
            raise ValueError("log_format must be one of: text, structured, json")
        return v

    @field_validator("rate_limit_sweep_interval_seconds")
    @classmethod
    def validate_sweep_interval(cls, v: int) -> int:
        """Validate the sweep interval is reasonable."""
        if v < 1:
            raise ValueError("rate_limit_sweep_interval_seconds must be at least 1 second")
        if v > 3600:
            raise ValueError("rate_limit_sweep_interval_seconds should not exceed 1 hour")
        return v

    @field_validator("rate_limit_default_max_window_ms")
    @classmethod
    def validate_max_window_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("rate_limit_default_max_window_ms must be positive")
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
