from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class TracingConfig:
    api_key: str | None = os.getenv("OPIK_API_KEY") or None
    url: str = os.getenv("OPIK_URL_OVERRIDE", "https://www.comet.com/opik/api")
    project_name: str | None = os.getenv("OPIK_PROJECT_NAME") or None
    workspace: str | None = os.getenv("OPIK_WORKSPACE") or None
    enabled: bool = os.getenv("OPIK_ENABLED", "true").lower() in ("1", "true", "yes")
    environment_tag: str = os.getenv("TRACE_ENVIRONMENT_TAG", "production")
    trace_name: str = "movie-recommendation-request"


DEFAULT_TRACING_CONFIG = TracingConfig()
