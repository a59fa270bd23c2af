from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class RetrievalConfig:
    url: str = os.getenv("QDRANT_URL", "http://localhost:6333")
    api_key: str | None = os.getenv("QDRANT_API_KEY") or None
    collection_name: str = os.getenv("QDRANT_COLLECTION", "movies")
    content_field: str = "content"
    match_threshold: float = float(os.getenv("MATCH_THRESHOLD", "0.2"))
    match_count: int = int(os.getenv("MATCH_COUNT", "6"))
    timeout: float = 10.0


@dataclass(frozen=True)
class PipelineConfig:
    # One deadline shared by embed, search and generate
    timeout: float = float(os.getenv("PIPELINE_TIMEOUT_SECONDS", "30"))


DEFAULT_RETRIEVAL_CONFIG = RetrievalConfig()
DEFAULT_PIPELINE_CONFIG = PipelineConfig()
