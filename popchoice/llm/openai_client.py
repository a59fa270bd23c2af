from __future__ import annotations

import logging
from dataclasses import dataclass

from openai import AsyncOpenAI

from ..recommendations.errors import UpstreamGenerationError
from ..recommendations.models import CandidateMovie, PreferenceSet, RecommendationResult
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

NO_MATCH_SENTENCE = (
    "Sorry, I don't know a movie at the moment. "
    "Lets have another go with the questions from the previous section."
)
# Prefix match on the sentinel's first clause; the full sentence always contains it.
NO_MATCH_MARKER = "Sorry, I don't know a movie at the moment"

SYSTEM_PROMPT_TEMPLATE = (
    "You are an expert movie buff and a recommendation buddy who enjoys helping "
    "people find movies that match their preferences.\n\n"
    "There are {people} people in the group who have provided their responses "
    "to the questions about movies.\n"
    "You will be given the questions and answers from {people} people.\n"
    "You will also be given {count} movie recommendations that most align with "
    "the preferences based on their answers.\n"
    "Your main job is to formulate a short answer to the questions using the "
    "provided questions and answers.\n"
    "Formulate {count} short paragraphs, one for each movie recommendation, with "
    "more details about the movie. DO NOT SUGGEST MOVIES FROM THE RESPONSES. "
    "ONLY USE THE MOVIE RECOMMENDATIONS.\n"
    "If you are unsure and cannot find the users answers or have no movie "
    'recommendation or more details about the movie, say, "{sentinel}" '
    "Please do not make up the answer. Also dont repeat the users answers.\n\n"
    "Here is the format of the response:\n"
    "{{\n"
    '  "movieRecommendations": [\n'
    "    {{\n"
    '      "title": "Movie Title",\n'
    '      "releaseYear": "2024",\n'
    '      "content": "Short paragraph about the movie ..."\n'
    "    }}\n"
    "  ]\n"
    "}}"
)


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class Generation:
    text: str
    usage: TokenUsage
    result: RecommendationResult


def build_movie_context(candidates: list[CandidateMovie]) -> str:
    return "\n\n".join(c.content for c in candidates if c.content)


def build_messages(
    preferences: PreferenceSet,
    candidates: list[CandidateMovie],
    match_count: int,
) -> list[dict[str, str]]:
    people = preferences.number_of_people
    system = SYSTEM_PROMPT_TEMPLATE.format(
        people=people, count=match_count, sentinel=NO_MATCH_SENTENCE,
    )
    user = (
        f"Questions and Answers from {people} people: {preferences.joined_transcripts}\n"
        f" Movie Recommendations: {build_movie_context(candidates)}"
    )
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


def is_no_match(text: str) -> bool:
    return NO_MATCH_MARKER in text


def to_result(text: str, candidates: list[CandidateMovie]) -> RecommendationResult:
    if is_no_match(text):
        return RecommendationResult(explanation="", candidates=None, no_match=True)
    return RecommendationResult(explanation=text, candidates=list(candidates), no_match=False)


class ExplanationGenerator:
    def __init__(
        self,
        config: LLMConfig = DEFAULT_LLM_CONFIG,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.config = config
        self._client = client

    @property
    def model_name(self) -> str:
        return self.config.model

    @property
    def temperature(self) -> float:
        return self.config.temperature

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

    async def generate(
        self,
        messages: list[dict[str, str]],
        candidates: list[CandidateMovie],
    ) -> Generation:
        """
        Ask the chat model to explain the candidates to the group.

        The reply is free text; only the sentinel sentence is interpreted.
        Missing usage data is reported as zero tokens.
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.config.model,
                messages=messages,
                temperature=self.config.temperature,
            )
        except Exception as exc:
            logger.error("Chat completion failed", exc_info=True)
            raise UpstreamGenerationError(str(exc)) from exc

        text = ""
        if response.choices:
            text = response.choices[0].message.content or ""

        usage = response.usage
        token_usage = TokenUsage(
            prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
            total_tokens=getattr(usage, "total_tokens", 0) or 0,
        )
        return Generation(text=text, usage=token_usage, result=to_result(text, candidates))
