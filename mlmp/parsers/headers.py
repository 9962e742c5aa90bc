# mlmp/parsers/headers.py
"""
Section Header Detection — which lines title a group of dishes.

Each non-blank line is scored by term-frequency cosine similarity against
every header in the lexicon (max wins), then penalized:
  - price on the line          −0.5
  - more than 4 meaningful words −0.3
  - a common food noun present −0.4
Lines scoring above 0.5 are kept.

Headers are transient: derived per page, never persisted.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from .lexicon import Lexicon, default_lexicon
from .text_utils import count_meaningful_words, match_vocabulary

HEADER_THRESHOLD = 0.5
PRICE_PENALTY = 0.5
WORDY_PENALTY = 0.3
FOOD_WORD_PENALTY = 0.4
MAX_HEADER_WORDS = 4
DEFAULT_MAX_DISTANCE = 10

_PUNCT_RE = re.compile(r"[^\w\s]", re.UNICODE)
_WS_RE = re.compile(r"\s+")
_HEADER_PRICE_RE = re.compile(r"[$€£¥]\s?\d|^\d+[.,]\d{2}$")


@dataclass(frozen=True)
class SectionHeader:
    text: str          # normalized
    confidence: float  # 0.0–1.0
    line_index: int


def normalize_header_text(text: str) -> str:
    t = _PUNCT_RE.sub("", (text or "").lower())
    return _WS_RE.sub(" ", t).strip()


def cosine_similarity(a: str, b: str) -> float:
    """Bag-of-words cosine over term frequencies."""
    va = Counter(a.split())
    vb = Counter(b.split())
    if not va or not vb:
        return 0.0
    dot = sum(va[w] * vb[w] for w in va.keys() & vb.keys())
    na = math.sqrt(sum(c * c for c in va.values()))
    nb = math.sqrt(sum(c * c for c in vb.values()))
    return dot / (na * nb)


def header_score(text: str, lexicon: Optional[Lexicon] = None) -> float:
    lex = lexicon or default_lexicon()
    norm = normalize_header_text(text)
    if not norm:
        return 0.0

    best = 0.0
    for h in lex.section_headers:
        best = max(best, cosine_similarity(norm, normalize_header_text(h)))

    score = best
    if _HEADER_PRICE_RE.search(text.strip()):
        score -= PRICE_PENALTY
    if count_meaningful_words(norm, lex) > MAX_HEADER_WORDS:
        score -= WORDY_PENALTY
    if match_vocabulary(norm, lex.header_food_words):
        score -= FOOD_WORD_PENALTY
    return max(0.0, min(1.0, score))


def detect_section_headers(
    lines: Sequence[Union[str, object]],
    lexicon: Optional[Lexicon] = None,
) -> List[SectionHeader]:
    """Score every line; accepts OcrLine-like objects (with .text) or plain strings."""
    lex = lexicon or default_lexicon()
    headers: List[SectionHeader] = []
    for i, line in enumerate(lines):
        text = str(getattr(line, "text", line) or "").strip()
        if not text:
            continue
        score = header_score(text, lex)
        if score > HEADER_THRESHOLD:
            headers.append(SectionHeader(text=normalize_header_text(text), confidence=score, line_index=i))
    return headers


def find_nearest_header_above(
    index: int,
    headers: Sequence[SectionHeader],
    max_distance: int = DEFAULT_MAX_DISTANCE,
) -> Optional[SectionHeader]:
    nearest: Optional[SectionHeader] = None
    for h in headers:
        if h.line_index < index and index - h.line_index <= max_distance:
            if nearest is None or h.line_index > nearest.line_index:
                nearest = h
    return nearest


def is_under_entree_header(
    index: int,
    headers: Sequence[SectionHeader],
    max_distance: int = DEFAULT_MAX_DISTANCE,
    lexicon: Optional[Lexicon] = None,
) -> bool:
    nearest = find_nearest_header_above(index, headers, max_distance)
    if nearest is None:
        return False
    lex = lexicon or default_lexicon()
    text = nearest.text.lower()
    return any(kw in text for kw in lex.entree_header_keywords)


def header_context(
    index: int,
    headers: Sequence[SectionHeader],
    max_distance: int = DEFAULT_MAX_DISTANCE,
) -> Optional[str]:
    nearest = find_nearest_header_above(index, headers, max_distance)
    return nearest.text if nearest else None


def prev_line_is_header(index: int, headers: Sequence[SectionHeader]) -> bool:
    return any(h.line_index == index - 1 for h in headers)
