from __future__ import annotations

from .config import DEFAULT_ALLOWED_ORIGINS, DEFAULT_CORS_CONFIG, CorsConfig


def parse_allowed_origins(raw: str | None) -> frozenset[str]:
    """Split a comma-separated origin list, falling back to the dev default."""
    origins = {o.strip() for o in (raw or "").split(",") if o.strip()}
    if not origins:
        origins = {DEFAULT_ALLOWED_ORIGINS}
    return frozenset(origins)


def is_origin_allowed(origin: str | None, allowed_origins: frozenset[str] | set[str]) -> bool:
    if not origin:
        return False
    return origin in allowed_origins


def cors_headers(origin: str | None, config: CorsConfig = DEFAULT_CORS_CONFIG) -> dict[str, str]:
    """
    Headers sent with every response, error responses included.

    The caller's origin is echoed only when it is on the allow-list.
    """
    allowed = is_origin_allowed(origin, parse_allowed_origins(config.allowed_origins))
    return {
        "Access-Control-Allow-Origin": origin if allowed and origin else "",
        "Access-Control-Allow-Methods": config.allowed_methods,
        "Access-Control-Allow-Headers": config.allowed_headers,
        "Access-Control-Allow-Credentials": "true" if config.allow_credentials else "false",
        "Content-Type": "application/json",
    }
