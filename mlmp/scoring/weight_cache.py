# mlmp/scoring/weight_cache.py
"""
Trained-weight cache — value + timestamp + validity window.

The scorer reads a snapshot and, separately, asks the cache to maybe refresh.
Reading never blocks on the store:

  snapshot()      → weights while fresh, else None (stale weights are never used)
  maybe_refresh() → starts one background fetch if stale and none is running
  refresh_now()   → synchronous fetch (CLIs, tests)
  set_weights()   → prime directly

`fetch` is any zero-arg callable returning a {feature: weight} mapping or
None. Fetch failures are logged and swallowed; the scorer stays heuristic.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable, Dict, Mapping, Optional

log = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0

# camelCase weight keys written by older trainers
CAMEL_TO_SNAKE: Dict[str, str] = {
    "tokenCount": "token_count",
    "hasDigits": "has_digits",
    "hasCurrency": "has_currency",
    "isAllCaps": "is_all_caps",
    "isTitleCase": "is_title_case",
    "priceSameLine": "price_same_line",
    "priceNextLines1to3": "price_next_lines_1to3",
    "underEntreeHeader": "under_entree_header",
    "punctDensity": "punct_density",
    "nextLineDescription": "next_line_description",
    "prevLineHeader": "prev_line_header",
    "uppercaseRatio": "uppercase_ratio",
    "lettersRatio": "letters_ratio",
    "avgTokenLen": "avg_token_len",
    "startsWithArticle": "starts_with_article",
    "endsWithStop": "ends_with_stop",
    "fontSizeRatio": "font_size_ratio",
}

KNOWN_FEATURES = frozenset(CAMEL_TO_SNAKE.values())

WeightFetch = Callable[[], Optional[Mapping[str, float]]]


def normalize_weights(raw: Optional[Mapping[str, float]]) -> Dict[str, float]:
    """Map camelCase keys to feature names, drop unknown keys and non-numeric or non-finite values."""
    out: Dict[str, float] = {}
    for key, value in (raw or {}).items():
        name = CAMEL_TO_SNAKE.get(key, key)
        if name not in KNOWN_FEATURES:
            continue
        try:
            weight = float(value)
        except (TypeError, ValueError):
            continue
        if math.isfinite(weight):
            out[name] = weight
    return out


class TrainedWeightsCache:
    def __init__(
        self,
        fetch: Optional[WeightFetch] = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.fetch = fetch
        self.ttl_seconds = float(ttl_seconds)
        self.clock = clock
        self._lock = threading.Lock()
        self._weights: Optional[Dict[str, float]] = None
        self._stamp: float = 0.0
        self._refreshing = False
        self._thread: Optional[threading.Thread] = None

    # ---- reads ----

    def _fresh(self) -> bool:
        return self._weights is not None and (self.clock() - self._stamp) < self.ttl_seconds

    def snapshot(self) -> Optional[Dict[str, float]]:
        with self._lock:
            if not self._fresh():
                return None
            return dict(self._weights or {})

    @property
    def refreshing(self) -> bool:
        with self._lock:
            return self._refreshing

    # ---- writes ----

    def set_weights(self, weights: Mapping[str, float]) -> None:
        normalized = normalize_weights(weights)
        with self._lock:
            self._weights = normalized
            self._stamp = self.clock()

    def refresh_now(self) -> Optional[Dict[str, float]]:
        """Fetch synchronously; returns the stored weights or None."""
        if self.fetch is None:
            return None
        try:
            raw = self.fetch()
        except Exception as e:
            log.warning("Trained weight refresh failed: %s", e)
            return None
        if not raw:
            log.debug("Trained weight refresh returned nothing; staying heuristic")
            return None
        self.set_weights(raw)
        log.info("Trained weights refreshed (%d features)", len(raw))
        return self.snapshot()

    def _run_refresh(self) -> None:
        try:
            self.refresh_now()
        finally:
            with self._lock:
                self._refreshing = False

    def maybe_refresh(self) -> bool:
        """Start a background refresh if stale; False if fresh, running, or no fetch."""
        if self.fetch is None:
            return False
        with self._lock:
            if self._fresh() or self._refreshing:
                return False
            self._refreshing = True
        t = threading.Thread(target=self._run_refresh, name="mlmp-weight-refresh", daemon=True)
        self._thread = t
        t.start()
        return True

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the in-flight background refresh (if any) finishes."""
        t = self._thread
        if t is not None:
            t.join(timeout)
