from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response

from .cors.config import DEFAULT_CORS_CONFIG, CorsConfig
from .cors.policy import cors_headers, is_origin_allowed, parse_allowed_origins
from .embeddings.encoder import EmbeddingClient
from .llm.openai_client import ExplanationGenerator
from .observability.tracing import build_trace_sink
from .recommendations.errors import MethodNotAllowed, OriginNotAllowed, PipelineError
from .recommendations.pipeline import RecommendationPipeline
from .recommendations.retrieval import MovieRetriever
from .recommendations.validation import parse_body

logger = logging.getLogger(__name__)

app = FastAPI(title="PopChoice Movie Recommendation API", version="1.0.0")

# Every method is routed so that unsupported ones get a JSON 405 with CORS headers.
ROUTED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


# ── Dependencies ─────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def get_pipeline() -> RecommendationPipeline:
    return RecommendationPipeline(
        embedder=EmbeddingClient(),
        retriever=MovieRetriever(),
        generator=ExplanationGenerator(),
        trace_sink=build_trace_sink(),
    )


def get_cors_config() -> CorsConfig:
    return DEFAULT_CORS_CONFIG


def _json(status_code: int, content: Any, headers: dict[str, str]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _error(exc: PipelineError, headers: dict[str, str]) -> JSONResponse:
    return _json(exc.status_code, exc.to_payload(), headers)


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.api_route("/", methods=ROUTED_METHODS)
async def recommend(
    request: Request,
    pipeline: RecommendationPipeline = Depends(get_pipeline),
    cors_config: CorsConfig = Depends(get_cors_config),
) -> Response:
    origin = request.headers.get("origin")
    headers = cors_headers(origin, cors_config)

    # 1. Preflight
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=headers)

    # 2. Origin gate
    if not is_origin_allowed(origin, parse_allowed_origins(cors_config.allowed_origins)):
        logger.info("Rejected request from origin %r", origin)
        return _error(OriginNotAllowed(), headers)

    # 3. Method gate
    if request.method != "POST":
        return _error(MethodNotAllowed(request.method), headers)

    # 4. Validate, then embed -> search -> generate
    try:
        preferences = parse_body(await request.body())
        response = await pipeline.run(preferences)
    except PipelineError as exc:
        return _error(exc, headers)
    except Exception as exc:
        logger.error("Unexpected pipeline error", exc_info=True)
        return _json(500, {"error": "Unexpected pipeline error", "details": str(exc)}, headers)

    return _json(200, response.model_dump(by_alias=True, mode="json"), headers)
