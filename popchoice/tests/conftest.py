from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from popchoice.app import app, get_cors_config, get_pipeline
from popchoice.cors.config import CorsConfig
from popchoice.embeddings.config import EmbeddingConfig
from popchoice.embeddings.encoder import EmbeddingClient
from popchoice.llm.config import LLMConfig
from popchoice.llm.openai_client import ExplanationGenerator
from popchoice.observability.config import TracingConfig
from popchoice.recommendations.config import PipelineConfig, RetrievalConfig
from popchoice.recommendations.pipeline import RecommendationPipeline
from popchoice.recommendations.retrieval import MovieRetriever

ALLOWED_ORIGIN = "http://localhost:5173"
OTHER_ALLOWED_ORIGIN = "https://popchoice.example"

SAMPLE_MOVIES = [
    ("m1", "Die Hard: 1988 | R | 132 min. An NYPD officer takes on terrorists in a skyscraper.", 0.9),
    ("m2", "Superbad: 2007 | R | 113 min. Two co-dependent teens try to score alcohol for a party.", 0.5),
    ("m3", "Rush Hour: 1998 | PG-13 | 98 min. A Hong Kong detective teams up with an LAPD cop.", 0.3),
]

GENERATED_TEXT = (
    "Die Hard is a perfect pick for the action fan.\n\n"
    "Superbad will keep the comedy lover laughing.\n\n"
    "Rush Hour blends both worlds."
)


class RecordingSink:
    """Trace sink that keeps exported traces in memory."""

    def __init__(self) -> None:
        self.exported = []
        self.flushes = 0
        self.events: list[str] = []

    def export(self, record) -> None:
        self.exported.append(record)
        self.events.append("export")

    def flush(self) -> None:
        self.flushes += 1
        self.events.append("flush")


def embedding_response(dimension: int = 1536) -> SimpleNamespace:
    return SimpleNamespace(data=[SimpleNamespace(embedding=[0.01] * dimension)])


def chat_response(content: str | None, usage: SimpleNamespace | None = None) -> SimpleNamespace:
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=usage)


def usage(prompt: int, completion: int) -> SimpleNamespace:
    return SimpleNamespace(
        prompt_tokens=prompt, completion_tokens=completion, total_tokens=prompt + completion,
    )


def query_response(movies=SAMPLE_MOVIES) -> SimpleNamespace:
    return SimpleNamespace(points=[SimpleNamespace(id=mid, score=score) for mid, _, score in movies])


def retrieve_response(movies=SAMPLE_MOVIES) -> list[SimpleNamespace]:
    return [SimpleNamespace(id=mid, payload={"content": content}) for mid, content, _ in movies]


def sample_payload() -> dict:
    return {
        "movieSetUpPreferences": {"numberOfPeople": "2", "time": "120 minutes"},
        "peopleResponses": [
            {
                "userResponses": "I like action movies",
                "stringifiedQueryAndResponses": "What's your favourite genre? I like action movies",
            },
            {
                "userResponses": "I like comedies",
                "stringifiedQueryAndResponses": "What's your favourite genre? I like comedies",
            },
        ],
    }


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def embedding_api() -> MagicMock:
    api = MagicMock()
    api.embeddings.create = AsyncMock(return_value=embedding_response())
    return api


@pytest.fixture
def qdrant() -> MagicMock:
    store = MagicMock()
    store.query_points = AsyncMock(return_value=query_response())
    store.retrieve = AsyncMock(return_value=retrieve_response())
    return store


@pytest.fixture
def chat_api() -> MagicMock:
    api = MagicMock()
    api.chat.completions.create = AsyncMock(
        return_value=chat_response(GENERATED_TEXT, usage(1000, 500)),
    )
    return api


@pytest.fixture
def pipeline(sink, embedding_api, qdrant, chat_api) -> RecommendationPipeline:
    retrieval_config = RetrievalConfig(match_threshold=0.2, match_count=6)
    return RecommendationPipeline(
        embedder=EmbeddingClient(EmbeddingConfig(api_key="test-key"), client=embedding_api),
        retriever=MovieRetriever(retrieval_config, client=qdrant),
        generator=ExplanationGenerator(LLMConfig(api_key="test-key"), client=chat_api),
        trace_sink=sink,
        retrieval_config=retrieval_config,
        pipeline_config=PipelineConfig(timeout=5.0),
        tracing_config=TracingConfig(environment_tag="test"),
    )


@pytest.fixture
def client(pipeline):
    cors_config = CorsConfig(allowed_origins=f"{ALLOWED_ORIGIN}, {OTHER_ALLOWED_ORIGIN}")
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    app.dependency_overrides[get_cors_config] = lambda: cors_config
    yield TestClient(app)
    app.dependency_overrides.clear()
