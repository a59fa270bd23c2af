from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from .errors import MalformedRequest
from .models import ParticipantResponse, PreferenceSet, RecommendationRequest


def parse_preferences(payload: Any) -> PreferenceSet:
    """
    Validate a decoded request body and convert it into a ``PreferenceSet``.

    Raises ``MalformedRequest`` when required fields are missing or have the
    wrong shape, before any remote call is attempted.
    """
    try:
        request = RecommendationRequest.model_validate(payload)
    except ValidationError as exc:
        raise MalformedRequest(_summarise(exc)) from exc

    prefs = request.movie_set_up_preferences
    return PreferenceSet(
        number_of_people=prefs.number_of_people,
        available_time=prefs.time,
        participants=tuple(
            ParticipantResponse(
                raw_answer=p.user_responses,
                transcript=p.stringified_query_and_responses,
            )
            for p in request.people_responses
        ),
    )


def parse_body(body: bytes) -> PreferenceSet:
    try:
        payload = json.loads(body or b"null")
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise MalformedRequest(f"Request body is not valid JSON: {exc}") from exc
    return parse_preferences(payload)


def _summarise(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "body"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)
