from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, StrictStr

# ── Inbound wire models ──────────────────────────────────────────────────


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MovieSetUpPreferences(_WireModel):
    number_of_people: StrictStr = Field(..., alias="numberOfPeople")
    time: StrictStr


class PersonResponse(_WireModel):
    user_responses: StrictStr = Field(..., alias="userResponses")
    stringified_query_and_responses: StrictStr = Field(
        ..., alias="stringifiedQueryAndResponses"
    )


class RecommendationRequest(_WireModel):
    movie_set_up_preferences: MovieSetUpPreferences = Field(..., alias="movieSetUpPreferences")
    people_responses: list[PersonResponse] = Field(..., alias="peopleResponses", min_length=1)


# ── Request-scoped domain objects ────────────────────────────────────────


@dataclass(frozen=True)
class ParticipantResponse:
    raw_answer: str
    transcript: str


@dataclass(frozen=True)
class PreferenceSet:
    number_of_people: str
    available_time: str
    participants: tuple[ParticipantResponse, ...]

    @property
    def joined_answers(self) -> str:
        return "\n".join(p.raw_answer for p in self.participants)

    @property
    def joined_transcripts(self) -> str:
        return "\n".join(p.transcript for p in self.participants)


# ── Outbound models ──────────────────────────────────────────────────────


class CandidateMovie(BaseModel):
    id: str
    content: str
    score: float


class RecommendationResult(BaseModel):
    explanation: str
    candidates: list[CandidateMovie] | None
    no_match: bool


class RecommendationResponse(_WireModel):
    movie_recommendations: list[CandidateMovie] | None = Field(..., alias="movieRecommendations")
    content: str
    no_match_from_llm: bool = Field(..., alias="noMatchFromLLM")

    @classmethod
    def from_result(cls, result: RecommendationResult) -> "RecommendationResponse":
        return cls(
            movie_recommendations=result.candidates,
            content=result.explanation,
            no_match_from_llm=result.no_match,
        )
