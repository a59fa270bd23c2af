from __future__ import annotations

import logging

from openai import AsyncOpenAI

from ..recommendations.errors import UpstreamEmbeddingError
from ..recommendations.models import PreferenceSet
from .config import DEFAULT_EMBEDDING_CONFIG, EmbeddingConfig

logger = logging.getLogger(__name__)


def build_embedding_text(preferences: PreferenceSet) -> str:
    """Available time first, then every participant's answers, one per line."""
    return f"{preferences.available_time}\n{preferences.joined_answers}"


class EmbeddingClient:
    def __init__(
        self,
        config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.config = config
        self._client = client

    @property
    def model_name(self) -> str:
        return self.config.model_name

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.config.api_key or None,
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                max_retries=0,
            )
        return self._client

    async def embed(self, text: str) -> list[float]:
        """Encode a single string into a 1-D embedding vector."""
        try:
            response = await self.client.embeddings.create(
                model=self.config.model_name,
                input=text,
                encoding_format=self.config.encoding_format,
            )
            vector = list(response.data[0].embedding)
        except Exception as exc:
            logger.error("Embedding request failed", exc_info=True)
            raise UpstreamEmbeddingError(str(exc)) from exc

        if len(vector) != self.config.dimension:
            raise UpstreamEmbeddingError(
                f"Expected {self.config.dimension} dimensions, got {len(vector)}"
            )
        return vector
