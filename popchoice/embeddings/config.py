from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class EmbeddingConfig:
    api_key: str = os.getenv("OPENAI_API_KEY", "")
    base_url: str | None = os.getenv("OPENAI_BASE_URL") or None
    model_name: str = "text-embedding-3-small"
    dimension: int = 1536
    encoding_format: str = "float"
    timeout: float = 10.0


DEFAULT_EMBEDDING_CONFIG = EmbeddingConfig()
