from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

# Local development frontend
DEFAULT_ALLOWED_ORIGINS = "http://localhost:5173"


@dataclass(frozen=True)
class CorsConfig:
    allowed_origins: str = os.getenv("ALLOWED_ORIGINS", "") or DEFAULT_ALLOWED_ORIGINS
    allowed_methods: str = "POST, OPTIONS"
    allowed_headers: str = "Content-Type, Authorization"
    allow_credentials: bool = True


DEFAULT_CORS_CONFIG = CorsConfig()
