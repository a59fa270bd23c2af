from __future__ import annotations

import logging

import pytest

from popchoice.observability.metrics import (
    calculate_average_score,
    calculate_cost,
    calculate_min_score,
    calculate_top_score,
    estimate_tokens,
    score_summary,
)
from popchoice.recommendations.models import CandidateMovie


def _candidates(*scores: float) -> list[CandidateMovie]:
    return [CandidateMovie(id=str(i), content=f"movie {i}", score=s) for i, s in enumerate(scores)]


def test_cost_for_chat_model():
    assert calculate_cost(1000, 500, "gpt-4o-mini") == pytest.approx(0.00045)


def test_cost_for_embedding_model_prices_input_only():
    assert calculate_cost(1_000_000, 1_000_000, "text-embedding-3-small") == pytest.approx(0.02)


def test_unknown_model_falls_back_to_gpt_4o_mini_pricing(caplog):
    with caplog.at_level(logging.WARNING, logger="popchoice.observability.metrics"):
        cost = calculate_cost(1000, 500, "some-new-model")
    assert cost == calculate_cost(1000, 500, "gpt-4o-mini")
    assert "some-new-model" in caplog.text


def test_estimate_tokens_rounds_up():
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2


def test_score_stats_on_empty_list_are_zero():
    assert calculate_top_score([]) == 0
    assert calculate_average_score([]) == 0
    assert calculate_min_score([]) == 0
    assert score_summary([]) == {"topScore": 0.0, "avgScore": 0.0, "minScore": 0.0}


def test_score_stats():
    results = _candidates(0.9, 0.5, 0.3)
    assert calculate_top_score(results) == pytest.approx(0.9)
    assert calculate_min_score(results) == pytest.approx(0.3)
    assert calculate_average_score(results) == pytest.approx(0.5667, abs=1e-4)


def test_score_summary_accepts_generators():
    summary = score_summary(c for c in _candidates(0.4, 0.8))
    assert summary["topScore"] == pytest.approx(0.8)
    assert summary["avgScore"] == pytest.approx(0.6)
