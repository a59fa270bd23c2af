from __future__ import annotations

import logging
import math
from typing import Iterable

import numpy as np

logger = logging.getLogger(__name__)

FALLBACK_MODEL = "gpt-4o-mini"

# USD per token
PRICING: dict[str, dict[str, float]] = {
    "gpt-4o-mini": {
        "input": 0.15 / 1_000_000,
        "output": 0.60 / 1_000_000,
    },
    "text-embedding-3-small": {
        "input": 0.02 / 1_000_000,
        "output": 0.0,
    },
}


def calculate_cost(prompt_tokens: int, completion_tokens: int, model: str) -> float:
    """
    Price a call as ``prompt * input_rate + completion * output_rate``.

    Unknown models are priced as ``gpt-4o-mini``.
    """
    rates = PRICING.get(model)
    if rates is None:
        logger.warning("No pricing for model %r, using %s rates", model, FALLBACK_MODEL)
        rates = PRICING[FALLBACK_MODEL]
    return prompt_tokens * rates["input"] + completion_tokens * rates["output"]


def estimate_tokens(text: str) -> int:
    """Roughly one token per four characters."""
    return math.ceil(len(text) / 4)


def _scores(results: Iterable) -> np.ndarray:
    return np.array([float(r.score) for r in results], dtype=float)


def calculate_top_score(results: Iterable) -> float:
    scores = _scores(results)
    return float(scores.max()) if scores.size else 0.0


def calculate_average_score(results: Iterable) -> float:
    scores = _scores(results)
    return float(scores.mean()) if scores.size else 0.0


def calculate_min_score(results: Iterable) -> float:
    scores = _scores(results)
    return float(scores.min()) if scores.size else 0.0


def score_summary(results: Iterable) -> dict[str, float]:
    results = list(results)
    return {
        "topScore": calculate_top_score(results),
        "avgScore": calculate_average_score(results),
        "minScore": calculate_min_score(results),
    }
