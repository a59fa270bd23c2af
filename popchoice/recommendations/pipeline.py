"""
Recommendation request pipeline.

Responsibilities:
- Run embed -> search -> generate strictly in order, each stage feeding the next.
- Fail fast: the first stage error ends the request, nothing is retried and no
  partial result is returned.
- Bracket every remote call with a trace span and account tokens and cost.
- Finalize and flush the trace before the caller gets a result or an error.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Protocol, TypeVar

from starlette.concurrency import run_in_threadpool

from ..embeddings.encoder import EmbeddingClient, build_embedding_text
from ..llm.openai_client import (
    ExplanationGenerator,
    Generation,
    build_messages,
    build_movie_context,
)
from ..observability.config import DEFAULT_TRACING_CONFIG, TracingConfig
from ..observability.metrics import calculate_cost, estimate_tokens, score_summary
from ..observability.tracing import TraceRecord, TraceRecorder, TraceSink
from .config import (
    DEFAULT_PIPELINE_CONFIG,
    DEFAULT_RETRIEVAL_CONFIG,
    PipelineConfig,
    RetrievalConfig,
)
from .errors import (
    UpstreamEmbeddingError,
    UpstreamError,
    UpstreamGenerationError,
    UpstreamRetrievalError,
)
from .models import CandidateMovie, PreferenceSet, RecommendationResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Retriever(Protocol):
    async def search(
        self, vector: list[float], match_threshold: float, match_count: int,
    ) -> list[CandidateMovie]: ...


class RecommendationPipeline:
    def __init__(
        self,
        embedder: EmbeddingClient,
        retriever: Retriever,
        generator: ExplanationGenerator,
        trace_sink: TraceSink,
        retrieval_config: RetrievalConfig = DEFAULT_RETRIEVAL_CONFIG,
        pipeline_config: PipelineConfig = DEFAULT_PIPELINE_CONFIG,
        tracing_config: TracingConfig = DEFAULT_TRACING_CONFIG,
    ) -> None:
        self.embedder = embedder
        self.retriever = retriever
        self.generator = generator
        self.trace_sink = trace_sink
        self.retrieval_config = retrieval_config
        self.pipeline_config = pipeline_config
        self.tracing_config = tracing_config

    async def run(self, preferences: PreferenceSet) -> RecommendationResponse:
        recorder = self._open_trace(preferences)
        deadline = asyncio.get_running_loop().time() + self.pipeline_config.timeout

        try:
            vector = await self._embed(preferences, recorder, deadline)
            candidates = await self._search(vector, recorder, deadline)
            generation = await self._generate(preferences, candidates, recorder, deadline)
        except UpstreamError as exc:
            logger.warning("Pipeline failed at %s stage: %s", exc.stage, exc.details)
            recorder.finalize(False, {"error": exc.message}, exc.details)
            await self._flush(recorder.record)
            raise
        except Exception as exc:
            recorder.finalize(False, {"error": "Unexpected pipeline error"}, str(exc))
            await self._flush(recorder.record)
            raise

        response = RecommendationResponse.from_result(generation.result)
        recorder.finalize(True, response.model_dump(by_alias=True))
        await self._flush(recorder.record)
        return response

    # ── Stages ───────────────────────────────────────────────────────────

    async def _embed(
        self, preferences: PreferenceSet, recorder: TraceRecorder, deadline: float,
    ) -> list[float]:
        text = build_embedding_text(preferences)
        model = self.embedder.model_name
        with recorder.span(
            "generate-embedding",
            "general",
            {"text": text, "model": model, "inputLength": len(text)},
        ) as span:
            vector = await self._within_deadline(
                self.embedder.embed(text), deadline, UpstreamEmbeddingError,
            )
            # Embedding responses carry no usage; input side only.
            tokens = estimate_tokens(text)
            recorder.add_usage(calculate_cost(tokens, 0, model), tokens)
            span.output = {"dimensions": len(vector)}
        return vector

    async def _search(
        self, vector: list[float], recorder: TraceRecorder, deadline: float,
    ) -> list[CandidateMovie]:
        threshold = self.retrieval_config.match_threshold
        count = self.retrieval_config.match_count
        with recorder.span(
            "vector-search",
            "general",
            {"threshold": threshold, "matchCount": count, "embeddingDimensions": len(vector)},
        ) as span:
            candidates = await self._within_deadline(
                self.retriever.search(vector, threshold, count),
                deadline,
                UpstreamRetrievalError,
            )
            span.output = {"resultsCount": len(candidates), **score_summary(candidates)}
        return candidates

    async def _generate(
        self,
        preferences: PreferenceSet,
        candidates: list[CandidateMovie],
        recorder: TraceRecorder,
        deadline: float,
    ) -> Generation:
        messages = build_messages(preferences, candidates, self.retrieval_config.match_count)
        model = self.generator.model_name
        with recorder.span(
            "llm-generation",
            "llm",
            {
                "model": model,
                "temperature": self.generator.temperature,
                "systemPromptLength": len(messages[0]["content"]),
                "userPromptLength": len(messages[1]["content"]),
                "movieContextLength": len(build_movie_context(candidates)),
            },
        ) as span:
            generation = await self._within_deadline(
                self.generator.generate(messages, candidates),
                deadline,
                UpstreamGenerationError,
            )
            usage = generation.usage
            recorder.add_usage(
                calculate_cost(usage.prompt_tokens, usage.completion_tokens, model),
                usage.total_tokens,
            )
            span.output = {
                "responseLength": len(generation.text),
                "promptTokens": usage.prompt_tokens,
                "completionTokens": usage.completion_tokens,
                "totalTokens": usage.total_tokens,
            }
            span.metadata = {
                "usage": {
                    "promptTokens": usage.prompt_tokens,
                    "completionTokens": usage.completion_tokens,
                    "totalTokens": usage.total_tokens,
                },
            }
        return generation

    # ── Helpers ──────────────────────────────────────────────────────────

    def _open_trace(self, preferences: PreferenceSet) -> TraceRecorder:
        return TraceRecorder(
            name=self.tracing_config.trace_name,
            input={
                "numberOfPeople": preferences.number_of_people,
                "availableRunTime": preferences.available_time,
                "userResponses": preferences.joined_answers,
                "peopleResponsesCount": len(preferences.participants),
            },
            tags=[
                self.tracing_config.environment_tag,
                f"people-{preferences.number_of_people}",
                f"runtime-{preferences.available_time}",
            ],
        )

    async def _within_deadline(
        self,
        call: Awaitable[T],
        deadline: float,
        error_cls: type[UpstreamError],
    ) -> T:
        remaining = deadline - asyncio.get_running_loop().time()
        try:
            return await asyncio.wait_for(call, timeout=max(remaining, 0.0))
        except asyncio.TimeoutError as exc:
            raise error_cls(
                f"Pipeline deadline of {self.pipeline_config.timeout}s exceeded"
            ) from exc

    async def _flush(self, record: TraceRecord) -> None:
        try:
            await run_in_threadpool(self._export_and_flush, record)
        except Exception:
            logger.error("Failed to export trace %s", record.trace_id, exc_info=True)

    def _export_and_flush(self, record: TraceRecord) -> None:
        self.trace_sink.export(record)
        self.trace_sink.flush()
