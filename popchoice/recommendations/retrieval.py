from __future__ import annotations

import logging
from typing import Any

from qdrant_client import AsyncQdrantClient

from .config import DEFAULT_RETRIEVAL_CONFIG, RetrievalConfig
from .errors import UpstreamRetrievalError
from .models import CandidateMovie

logger = logging.getLogger(__name__)


class MovieRetriever:
    """Nearest-neighbour movie lookup against a Qdrant collection."""

    def __init__(
        self,
        config: RetrievalConfig = DEFAULT_RETRIEVAL_CONFIG,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        self.config = config
        self._client = client

    @property
    def client(self) -> AsyncQdrantClient:
        if self._client is None:
            self._client = AsyncQdrantClient(
                url=self.config.url,
                api_key=self.config.api_key,
                timeout=int(self.config.timeout),
            )
        return self._client

    async def search(
        self,
        vector: list[float],
        match_threshold: float,
        match_count: int,
    ) -> list[CandidateMovie]:
        """
        Return up to ``match_count`` movies scoring at least ``match_threshold``.

        Ordering follows the store (score-descending). Full content is fetched
        per matched id.
        """
        try:
            response = await self.client.query_points(
                collection_name=self.config.collection_name,
                query=vector,
                limit=match_count,
                score_threshold=match_threshold,
                with_payload=False,
            )
            hits = [p for p in response.points if p.score >= match_threshold]
            if not hits:
                return []

            records = await self.client.retrieve(
                collection_name=self.config.collection_name,
                ids=[p.id for p in hits],
                with_payload=[self.config.content_field],
            )
        except Exception as exc:
            logger.error("Vector search failed", exc_info=True)
            raise UpstreamRetrievalError(str(exc)) from exc

        content_by_id = {str(r.id): self._content_of(r.payload) for r in records}
        return [
            CandidateMovie(
                id=str(p.id),
                content=content_by_id.get(str(p.id), ""),
                score=float(p.score),
            )
            for p in hits
        ]

    def _content_of(self, payload: dict[str, Any] | None) -> str:
        value = (payload or {}).get(self.config.content_field)
        return str(value) if value else ""
