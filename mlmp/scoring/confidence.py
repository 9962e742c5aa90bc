"""
Confidence Scoring — turns a candidate's feature vector into a 0–1 score.

Two modes:
  - heuristic (default): fixed additive weights per feature, clamped to [0, 1]
  - trained: 0.1 + match boost + Σ value·weight, squashed with a sigmoid

The scorer picks trained mode whenever the weight cache holds a fresh
snapshot, and nudges the cache to refresh in the background otherwise.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Mapping, Optional

from .weight_cache import TrainedWeightsCache, normalize_weights

log = logging.getLogger(__name__)

BASE_SCORE = 0.1

# Starting weights for a trainer with nothing to learn from
DEFAULT_WEIGHTS: Dict[str, float] = {
    "token_count": 0.1,
    "has_digits": -0.5,
    "has_currency": -0.3,
    "is_all_caps": 0.8,
    "is_title_case": 0.6,
    "price_same_line": 0.7,
    "price_next_lines_1to3": 0.5,
    "under_entree_header": 0.9,
    "punct_density": -0.2,
    "next_line_description": -0.3,
    "prev_line_header": 0.4,
    "uppercase_ratio": 0.3,
    "letters_ratio": 0.4,
    "avg_token_len": 0.2,
    "starts_with_article": -0.1,
    "ends_with_stop": -0.2,
    "font_size_ratio": 0.6,
}


def clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def sigmoid(x: float) -> float:
    # split form keeps math.exp from overflowing on large |x|
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def _f(features: Any, name: str) -> float:
    if isinstance(features, Mapping):
        v = features.get(name, 0.0)
    else:
        v = getattr(features, name, 0.0)
    try:
        v = float(v)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(v) else v


def _boost(match: Any) -> float:
    if match is None:
        return 0.0
    return float(getattr(match, "confidence_boost", 0.0) or 0.0)


def heuristic_score(features: Any, match: Any = None) -> float:
    score = BASE_SCORE + _boost(match)

    tokens = _f(features, "token_count")
    if 2 <= tokens <= 6:
        score += 0.3
    elif tokens == 1 or tokens > 8:
        score -= 0.2

    if _f(features, "price_same_line"):
        score += 0.2
    if _f(features, "price_next_lines_1to3"):
        score += 0.15
    if _f(features, "under_entree_header"):
        score += 0.25

    # typography
    if _f(features, "is_title_case"):
        score += 0.2
    if _f(features, "is_all_caps"):
        score += 0.35

    ratio = _f(features, "font_size_ratio")
    if ratio > 1.5:
        score += 0.35
    elif ratio > 1.3:
        score += 0.3
    elif ratio > 1.1:
        score += 0.2
    elif ratio > 1.0:
        score += 0.15
    elif ratio < 0.8:
        score -= 0.15

    # negatives
    if _f(features, "has_digits"):
        score -= 0.3
    if _f(features, "has_currency"):
        score -= 0.2
    if _f(features, "punct_density") > 0.1:
        score -= 0.15

    if _f(features, "next_line_description"):
        score += 0.1
    if _f(features, "letters_ratio") < 0.7:
        score -= 0.2

    return clamp01(score)


def trained_score(features: Any, weights: Mapping[str, float], match: Any = None) -> float:
    score = BASE_SCORE + _boost(match)
    for name, weight in normalize_weights(weights).items():
        score += _f(features, name) * weight
    return clamp01(sigmoid(score))


class ConfidenceScorer:
    """Scores features with trained weights when fresh, heuristics otherwise. Never raises."""

    def __init__(self, cache: Optional[TrainedWeightsCache] = None):
        self.cache = cache

    @property
    def mode(self) -> str:
        if self.cache is not None and self.cache.snapshot():
            return "trained"
        return "heuristic"

    def score(self, features: Any, match: Any = None) -> float:
        weights = None
        if self.cache is not None:
            try:
                weights = self.cache.snapshot()
                if weights is None:
                    self.cache.maybe_refresh()
            except Exception as e:
                log.warning("Weight cache unavailable, scoring heuristically: %s", e)
                weights = None
        try:
            if weights:
                return trained_score(features, weights, match)
            return heuristic_score(features, match)
        except (TypeError, ValueError, OverflowError) as e:
            log.warning("Scoring failed, returning base score: %s", e)
            return BASE_SCORE
