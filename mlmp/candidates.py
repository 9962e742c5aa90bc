# mlmp/candidates.py
"""
Candidate Extraction — OCR lines in, ranked dish-name candidates out.

Per line, in order (each step may end processing of the line):
  1. skip blank / sub-2-char lines
  2. skip blacklisted categories and section headers
  3. skip restaurant names, venue headers and description prose
  4. all-caps fast path:   base + 0.4 + 0.3·hierarchy, emit if > 0.1
  5. visual-hierarchy path (hierarchy > 0.5): compound split first, else one
     candidate at base + 0.4·hierarchy, emit if > 0.1
  6. default path: name+price split → named compound split → raw price split;
     each part cleaned, re-filtered, scored, emitted if > 0.03

Every emitted text has passed price removal and the entree-name validity gate.
Result is stable-sorted by confidence (desc) and cut to top N.

Thresholds live in config.ExtractionConfig; vocabulary in parsers.lexicon.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np

from .config import ExtractionConfig
from .entree_lookup import EntreeLookup, EntreeMatch
from .ocr_types import OcrBoundingBox, OcrLine
from .parsers.headers import (
    SectionHeader,
    detect_section_headers,
    header_context,
    is_under_entree_header,
    prev_line_is_header,
)
from .parsers.lexicon import Lexicon, default_lexicon
from .parsers.price_removal import (
    contains_any_price,
    extract_all_prices,
    normalize_text_with_price_removal,
    parse_price_values,
    remove_all_prices,
    validate_no_prices,
)
from .parsers.split_rules import match_compound, matches_venue_name
from .parsers.text_utils import (
    average_token_length,
    contains_blacklisted_terms,
    count_meaningful_words,
    ends_with_stop_word,
    is_all_caps,
    is_all_caps_text,
    is_section_header,
    is_title_case,
    letter_ratio,
    match_vocabulary,
    punctuation_density,
    starts_with_article,
    uppercase_ratio,
)
from .scoring.confidence import ConfidenceScorer
from .scoring.weight_cache import CAMEL_TO_SNAKE

log = logging.getLogger(__name__)


# ── Features ─────────────────────────────────────────

FEATURE_NAMES = (
    "token_count",
    "has_digits",
    "has_currency",
    "is_all_caps",
    "is_title_case",
    "price_same_line",
    "price_next_lines_1to3",
    "under_entree_header",
    "punct_density",
    "next_line_description",
    "prev_line_header",
    "uppercase_ratio",
    "letters_ratio",
    "avg_token_len",
    "starts_with_article",
    "ends_with_stop",
    "font_size_ratio",
)

# Model-input order: normalized token count, binary flags, continuous measures
_VECTOR_ORDER = (
    "token_count",
    "has_digits", "has_currency", "is_all_caps", "is_title_case",
    "price_same_line", "price_next_lines_1to3", "under_entree_header",
    "next_line_description", "prev_line_header", "starts_with_article", "ends_with_stop",
    "punct_density", "uppercase_ratio", "letters_ratio", "avg_token_len",
    "font_size_ratio",
)


@dataclass
class CandidateFeatures:
    token_count: float = 0.0
    has_digits: float = 0.0
    has_currency: float = 0.0
    is_all_caps: float = 0.0
    is_title_case: float = 0.0
    price_same_line: float = 0.0
    price_next_lines_1to3: float = 0.0
    under_entree_header: float = 0.0
    punct_density: float = 0.0
    next_line_description: float = 0.0
    prev_line_header: float = 0.0
    uppercase_ratio: float = 0.0
    letters_ratio: float = 0.0
    avg_token_len: float = 0.0
    starts_with_article: float = 0.0
    ends_with_stop: float = 0.0
    font_size_ratio: float = 1.0
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        d = {name: float(getattr(self, name)) for name in FEATURE_NAMES}
        d["confidence"] = float(self.confidence)
        return d

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "CandidateFeatures":
        """Accepts feature names or the camelCase keys stored by older clients."""
        values: Dict[str, float] = {}
        for key, v in (raw or {}).items():
            name = CAMEL_TO_SNAKE.get(key, key)
            if name in FEATURE_NAMES or name == "confidence":
                try:
                    values[name] = float(v)
                except (TypeError, ValueError):
                    continue
        return cls(**values)


_VECTOR_SCALE = {"token_count": 5.0, "avg_token_len": 10.0}


def features_to_vector(features: CandidateFeatures) -> np.ndarray:
    """Normalized model input: token count → (n-1)/5 clamped, avg token length → /10."""
    out = []
    for name in _VECTOR_ORDER:
        v = float(getattr(features, name))
        if name == "token_count":
            v = min(1.0, max(0.0, (v - 1.0) / _VECTOR_SCALE[name]))
        elif name in _VECTOR_SCALE:
            v = v / _VECTOR_SCALE[name]
        out.append(v)
    return np.asarray(out, dtype=float)


def vector_weights_to_features(coefs: Sequence[float]) -> Dict[str, float]:
    """Per-feature weights on raw feature values from coefficients learned on features_to_vector()."""
    return {name: float(c) / _VECTOR_SCALE.get(name, 1.0) for name, c in zip(_VECTOR_ORDER, coefs)}


# ── Candidate ────────────────────────────────────────

@dataclass
class Candidate:
    page: int
    text: str
    features: CandidateFeatures
    confidence: float
    bbox: Optional[OcrBoundingBox] = None
    header_context: Optional[str] = None
    database_match: Optional[EntreeMatch] = None
    price_context: List[str] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "page": self.page,
            "text": self.text,
            "bbox": self.bbox.to_dict() if self.bbox else None,
            "header_context": self.header_context,
            "price_context": list(self.price_context),
            "features": self.features.to_dict(),
            "confidence": self.confidence,
            "database_match": self.database_match.to_dict() if self.database_match else None,
        }


# ── Visual signals ───────────────────────────────────

def calculate_font_size_ratio(line: OcrLine, all_lines: Sequence[OcrLine]) -> float:
    """Line height over the page's average line height (1.0 when unknown)."""
    if line.bbox is None or not line.bbox.h:
        return 1.0
    heights = [ln.bbox.h for ln in all_lines if ln.bbox is not None and ln.bbox.h > 0]
    if not heights:
        return 1.0
    return line.bbox.h / (sum(heights) / len(heights))


def is_bold_text(line: OcrLine, all_lines: Sequence[OcrLine]) -> bool:
    """Bold reads as lower-than-average OCR confidence, or a larger font."""
    if not line.confidence:
        return False
    confs = [ln.confidence for ln in all_lines if ln.confidence is not None]
    if not confs:
        return False
    avg = sum(confs) / len(confs)
    return line.confidence < avg * 0.8 or calculate_font_size_ratio(line, all_lines) > 1.1


def calculate_spacing_score(all_lines: Sequence[OcrLine], index: int) -> float:
    if index <= 0 or index >= len(all_lines):
        return 0.0
    line, prev = all_lines[index], all_lines[index - 1]
    if line.bbox is None or prev.bbox is None or not prev.bbox.h:
        return 0.0

    gaps = []
    for a, b in zip(all_lines, all_lines[1:]):
        if a.bbox is None or b.bbox is None or not a.bbox.h:
            continue
        gap = b.bbox.y - a.bbox.bottom
        if gap > 0:
            gaps.append(gap)
    if not gaps:
        return 0.0

    ratio = (line.bbox.y - prev.bbox.bottom) / (sum(gaps) / len(gaps))
    if ratio > 2.0:
        return 0.2
    if ratio > 1.5:
        return 0.15
    if ratio > 1.2:
        return 0.1
    return 0.0


def calculate_visual_hierarchy_score(all_lines: Sequence[OcrLine], index: int) -> float:
    line = all_lines[index]
    score = 0.0

    if is_all_caps_text(line.text):
        score += 0.5

    ratio = calculate_font_size_ratio(line, all_lines)
    if ratio > 1.5:
        score += 0.4
    elif ratio > 1.3:
        score += 0.35
    elif ratio > 1.1:
        score += 0.25
    elif ratio > 1.0:
        score += 0.15

    if is_bold_text(line, all_lines):
        score += 0.3

    if contains_any_price(line.text):
        score += 0.3
    lo, hi = max(0, index - 2), min(len(all_lines), index + 3)
    if any(j != index and contains_any_price(all_lines[j].text) for j in range(lo, hi)):
        score += 0.15

    score += calculate_spacing_score(all_lines, index)
    return min(1.0, score)


# ── Text classifiers ─────────────────────────────────

_CAPS_LINE_RE = re.compile(r"^[A-ZÀ-ÖØ-Þ\s\-'&]+$")
_TITLE_NAME_RE = re.compile(r"^[A-Z][a-z]+(\s+[A-Z][a-z]+)*$")
_CAPS_NAME_RE = re.compile(r"^[A-Z\s]+$")
_MID_PUNCT_RE = re.compile(r"[.,]\s")
_ONLY_PRICE_JUNK_RE = re.compile(r"^[\d\s$€£¥.,\-/]+$")
_NEXT_DESC_PUNCT_RE = re.compile(r"[,;:]")
_HAS_LETTER_RE = re.compile(r"[^\W\d_]")
_DIGIT_RE = re.compile(r"\d")
_UPPER_RE = re.compile(r"[A-Z]")
_WS_RE = re.compile(r"\s+")


def _line_text(lines: Sequence[str], index: int) -> str:
    if 0 <= index < len(lines):
        return lines[index].strip()
    return ""


def _is_caps_line(text: str) -> bool:
    return bool(_CAPS_LINE_RE.match(text)) and len(text) > 3


def is_description_text(
    text: str,
    index: int,
    all_lines: Sequence[str],
    lexicon: Optional[Lexicon] = None,
    has_price: Optional[bool] = None,
) -> bool:
    """
    Ingredient / preparation prose rather than a dish name.

    `has_price` overrides the price check for a span cut out of a priced line.
    """
    lex = lexicon or default_lexicon()
    norm = text.lower().strip()
    words = norm.split()

    is_long = len(words) > 6
    has_no_price = not (contains_any_price(text) if has_price is None else has_price)
    commas = text.count(",")
    high_comma = commas >= 2 or (commas > 0 and len(words) > 4)
    descriptive = match_vocabulary(norm, lex.descriptive_words) is not None

    prev = _line_text(all_lines, index - 1)
    nxt = _line_text(all_lines, index + 1)
    prev_shorter = len(prev) < len(text) * 0.8
    prev_caps = _is_caps_line(prev)
    next_has_price = contains_any_price(nxt)

    short_simple = len(words) <= 3 and not descriptive and not high_comma
    anchored = (
        len(words) <= 5
        and not descriptive
        and not high_comma
        and any(w in lex.dish_anchor_nouns for w in words)
    )
    if not has_no_price or short_simple or anchored:
        return False

    return (
        (is_long and descriptive)
        or high_comma
        or (prev_shorter and next_has_price)
        or (prev_caps and is_long)
    )


def is_restaurant_name_or_header(
    text: str,
    index: int,
    headers: Sequence[SectionHeader],
    all_lines: Sequence[str],
    lexicon: Optional[Lexicon] = None,
    lookahead: int = 5,
    has_price: Optional[bool] = None,
) -> bool:
    lex = lexicon or default_lexicon()
    priced = contains_any_price(text) if has_price is None else has_price
    if is_section_header(text, lex):
        return True

    stripped = text.strip()
    short = len(stripped.split()) <= 4
    early = index < len(all_lines) * 0.2
    name_cased = bool(_TITLE_NAME_RE.match(stripped) or _CAPS_NAME_RE.match(stripped))
    header_follows = any(index < h.line_index <= index + lookahead for h in headers)
    if short and early and name_cased and not priced and header_follows:
        return True

    if matches_venue_name(stripped, lex):
        return True
    return is_description_text(text, index, all_lines, lex, has_price=priced)


def is_valid_entree_name(text: str, lexicon: Optional[Lexicon] = None) -> bool:
    lex = lexicon or default_lexicon()
    norm = text.lower().strip()
    if any(norm.startswith(w + " ") for w in lex.invalid_start_words):
        return False
    if _MID_PUNCT_RE.search(text):
        return False
    if len(norm) < 4:
        return False
    if len(norm.split()) < 2:
        return False
    return validate_no_prices(text)


# ── Line splitting ───────────────────────────────────

_NAME_PRICE_RE = re.compile(r"([A-Za-z][A-Za-z\s\-'&]+?)\s*([$€£¥]\s?\d{1,4}(?:[.,]\d{2})?)")
_SPLIT_PRICE_RE = re.compile(
    r"(?<!\w)[$€£¥]\s?\d{1,4}(?:[.,]\d{2})?(?!\w)"
    r"|(?<!\w)\d{1,3}[.,]\d{2}(?!\w)"
    r"|(?<!\w)\d{1,4}(?:[.,]\d{2})?\s*$"
)
_EDGE_PUNCT_RE = re.compile(r"^[^\w\s\-'&]+|[^\w\s\-'&]+$")
_LONE_PUNCT_RE = re.compile(r"\s+[^\w\s\-'&]+\s+")


def detect_compound_menu_items(
    text: str,
    lexicon: Optional[Lexicon] = None,
    allow_generic: bool = True,
) -> List[str]:
    """Split a two-dish line; returns [text] when no rule applies."""
    split = match_compound(text, lexicon, allow_generic=allow_generic)
    if split is None:
        return [text]
    log.debug("Compound split %r via %s → %s", text, split.rule, split.parts)
    return list(split.parts)


def _clean_part(part: str) -> str:
    out = _EDGE_PUNCT_RE.sub("", part)
    out = _WS_RE.sub(" ", out)
    out = _LONE_PUNCT_RE.sub(" ", out)
    return out.strip()


def split_line_by_prices(text: str, lexicon: Optional[Lexicon] = None) -> List[str]:
    """
    Split a line holding several "name price" items:
      1. repeated "name + price" scan
      2. compound-item rules
      3. raw split on price tokens with per-part cleanup
    Falls back to the whole line.
    """
    text = text.strip()
    if not extract_all_prices(text):
        return [text]

    named = [m.group(1).strip() for m in _NAME_PRICE_RE.finditer(text)]
    named = [n for n in named if len(n) >= 3 and _HAS_LETTER_RE.search(n)]
    if named:
        return named

    compound = detect_compound_menu_items(text, lexicon)
    if len(compound) > 1:
        return compound

    parts = [p.strip() for p in _SPLIT_PRICE_RE.split(text) if p and p.strip()]
    if len(parts) <= 1:
        return [text]

    kept: List[str] = []
    for part in parts:
        if len(part) < 3 or _ONLY_PRICE_JUNK_RE.match(part):
            continue
        clean = _clean_part(part)
        if len(clean) >= 2 and _HAS_LETTER_RE.search(clean) and is_valid_entree_name(clean, lexicon):
            kept.append(clean)
    return kept or [text]


# ── Final-storage helpers ────────────────────────────

def normalize_candidate_text(text: str) -> str:
    return normalize_text_with_price_removal(text)


def validate_entree_name(text: str) -> bool:
    """Final gate for stored entrees: ≥2 words, ≥4 chars, ≥70% letters, no prices."""
    norm = normalize_candidate_text(text)
    if len(norm.split()) < 2 or len(norm) < 4:
        return False
    if len(_HAS_LETTER_RE.findall(norm)) / len(norm) < 0.7:
        return False
    return validate_no_prices(norm)


# ── Extractor ────────────────────────────────────────

def _coerce_lines(lines: Sequence[Union[OcrLine, Mapping[str, Any], str]]) -> List[OcrLine]:
    out: List[OcrLine] = []
    for ln in lines or []:
        if isinstance(ln, OcrLine):
            out.append(ln)
        elif isinstance(ln, Mapping):
            out.append(OcrLine.from_dict(ln))
        else:
            out.append(OcrLine(text=str(ln or "")))
    return out


class CandidateExtractor:
    def __init__(
        self,
        lookup: Optional[EntreeLookup] = None,
        scorer: Optional[ConfidenceScorer] = None,
        lexicon: Optional[Lexicon] = None,
        config: Optional[ExtractionConfig] = None,
    ):
        self.lookup = lookup
        self.scorer = scorer or ConfidenceScorer()
        self.lexicon = lexicon or default_lexicon()
        self.config = config or ExtractionConfig()

    # ---- per-candidate helpers ----

    def _lookup(self, text: str, prefetched: Mapping[str, Optional[EntreeMatch]]) -> Optional[EntreeMatch]:
        if self.lookup is None:
            return None
        if text in prefetched:
            return prefetched[text]
        return self.lookup.find_match(text)

    def prefetch_matches(self, texts: Sequence[str]) -> Dict[str, Optional[EntreeMatch]]:
        """
        Batch dictionary lookups for every cleaned span the line loop may score:
        the whole line, its compound parts and its price-split parts.
        """
        if self.lookup is None:
            return {}
        spans: List[str] = []
        seen = set()
        for raw in texts:
            text = (raw or "").strip()
            if len(text) < self.config.min_line_chars:
                continue
            if contains_blacklisted_terms(text, self.lexicon) or is_section_header(text, self.lexicon):
                continue
            pieces = [text]
            pieces.extend(detect_compound_menu_items(text, self.lexicon, allow_generic=True))
            pieces.extend(split_line_by_prices(text, self.lexicon))
            for piece in pieces:
                clean = remove_all_prices(piece)
                if len(clean) >= self.config.min_line_chars and clean not in seen:
                    seen.add(clean)
                    spans.append(clean)
        return self.lookup.find_matches(spans, batch_size=self.config.lookup_batch_size)

    def extract_features(
        self,
        text: str,
        index: int,
        texts: Sequence[str],
        headers: Sequence[SectionHeader],
        lines: Sequence[OcrLine],
    ) -> CandidateFeatures:
        lex = self.lexicon
        source = _line_text(texts, index)
        has_currency = contains_any_price(text)

        next_desc = False
        nxt = _line_text(texts, index + 1)
        if nxt:
            next_desc = (
                bool(_NEXT_DESC_PUNCT_RE.search(nxt))
                and len(nxt) < len(texts[index]) * 0.8
                and match_vocabulary(nxt, lex.description_cue_words) is not None
            )

        price_next = any(contains_any_price(_line_text(texts, index + k)) for k in range(1, 4))

        return CandidateFeatures(
            token_count=float(count_meaningful_words(text, lex)),
            has_digits=float(bool(_DIGIT_RE.search(text))),
            has_currency=float(has_currency),
            is_all_caps=float(is_all_caps(text)),
            is_title_case=float(is_title_case(text)),
            price_same_line=float(has_currency or contains_any_price(source)),
            price_next_lines_1to3=float(price_next),
            under_entree_header=float(
                is_under_entree_header(index, headers, self.config.header_window, lex)
            ),
            punct_density=punctuation_density(text),
            next_line_description=float(next_desc),
            prev_line_header=float(index > 0 and prev_line_is_header(index, headers)),
            uppercase_ratio=uppercase_ratio(text),
            letters_ratio=letter_ratio(text),
            avg_token_len=average_token_length(text),
            starts_with_article=float(starts_with_article(text, lex)),
            ends_with_stop=float(ends_with_stop_word(text, lex)),
            font_size_ratio=calculate_font_size_ratio(lines[index], lines) if index < len(lines) else 1.0,
        )

    def _make(
        self,
        page: int,
        text: str,
        line: OcrLine,
        index: int,
        headers: Sequence[SectionHeader],
        features: CandidateFeatures,
        confidence: float,
        match: Optional[EntreeMatch],
    ) -> Candidate:
        features.confidence = confidence
        return Candidate(
            page=page,
            text=text,
            bbox=line.bbox,
            header_context=header_context(index, headers, self.config.header_window),
            features=features,
            confidence=confidence,
            database_match=match,
        )

    def _should_check_compounds(self, text: str) -> bool:
        if len(text.split()) >= 4 and _UPPER_RE.search(text):
            return True
        return match_compound(text, self.lexicon, allow_generic=False) is not None

    # ---- main loop ----

    def extract(
        self,
        lines: Sequence[Union[OcrLine, Mapping[str, Any], str]],
        page_number: int = 1,
        top_n: Optional[int] = None,
    ) -> List[Candidate]:
        cfg = self.config
        lex = self.lexicon
        ocr_lines = _coerce_lines(lines)
        texts = [ln.text for ln in ocr_lines]
        headers = detect_section_headers(texts, lex)
        prefetched = self.prefetch_matches(texts)
        limit = cfg.top_n if top_n is None else top_n

        candidates: List[Candidate] = []

        for i, line in enumerate(ocr_lines):
            text = (line.text or "").strip()
            if len(text) < cfg.min_line_chars:
                continue

            if contains_blacklisted_terms(text, lex) or is_section_header(text, lex):
                log.debug("line %d skipped (blacklist/header): %r", i, text)
                continue

            if is_restaurant_name_or_header(text, i, headers, texts, lex, cfg.restaurant_header_lookahead):
                log.debug("line %d skipped (venue/description): %r", i, text)
                continue

            hierarchy = calculate_visual_hierarchy_score(ocr_lines, i)

            # all-caps fast path
            if is_all_caps_text(text):
                clean = remove_all_prices(text)
                if len(clean) < cfg.min_clean_chars:
                    continue
                features = self.extract_features(clean, i, texts, headers, ocr_lines)
                match = self._lookup(clean, prefetched)
                base = self.scorer.score(features, match)
                boosted = min(1.0, base + cfg.all_caps_flat_boost + hierarchy * cfg.all_caps_hierarchy_weight)
                if boosted > cfg.fast_path_min_confidence and is_valid_entree_name(clean, lex):
                    candidates.append(self._make(page_number, clean, line, i, headers, features, boosted, match))
                    log.debug("line %d all-caps → %r (%.3f)", i, clean, boosted)
                    continue

            # high visual-hierarchy path
            if hierarchy > cfg.hierarchy_gate:
                if self._should_check_compounds(text):
                    items = detect_compound_menu_items(text, lex, allow_generic=True)
                    if len(items) > 1:
                        for item in items:
                            clean = remove_all_prices(item)
                            if len(clean) < cfg.min_clean_chars:
                                continue
                            features = self.extract_features(clean, i, texts, headers, ocr_lines)
                            match = self._lookup(clean, prefetched)
                            base = self.scorer.score(features, match)
                            boosted = min(1.0, base + hierarchy * cfg.hierarchy_boost_weight)
                            if boosted > cfg.fast_path_min_confidence and is_valid_entree_name(clean, lex):
                                candidates.append(
                                    self._make(page_number, clean, line, i, headers, features, boosted, match)
                                )
                        continue

                clean = remove_all_prices(text)
                if len(clean) < cfg.min_clean_chars:
                    continue
                features = self.extract_features(clean, i, texts, headers, ocr_lines)
                base = self.scorer.score(features)
                boosted = min(1.0, base + hierarchy * cfg.hierarchy_boost_weight)
                if boosted > cfg.fast_path_min_confidence and is_valid_entree_name(clean, lex):
                    candidates.append(self._make(page_number, clean, line, i, headers, features, boosted, None))
                    log.debug("line %d hierarchy %.2f → %r (%.3f)", i, hierarchy, clean, boosted)
                    continue

            # default path
            parts = split_line_by_prices(text, lex)
            line_priced = contains_any_price(text)
            named = match_compound(text, lex, allow_generic=False)
            if named is not None:
                parts = list(named.parts)

            for part in parts:
                part_text = remove_all_prices(part)
                if len(part_text) < cfg.min_line_chars or _ONLY_PRICE_JUNK_RE.match(part_text):
                    continue
                if is_restaurant_name_or_header(
                    part_text, i, headers, texts, lex, cfg.restaurant_header_lookahead, has_price=line_priced
                ):
                    continue
                features = self.extract_features(part_text, i, texts, headers, ocr_lines)
                match = self._lookup(part_text, prefetched)
                confidence = self.scorer.score(features, match)
                if confidence > cfg.default_path_min_confidence and is_valid_entree_name(part_text, lex):
                    candidates.append(self._make(page_number, part_text, line, i, headers, features, confidence, match))
                    log.debug(
                        "line %d part → %r (%.3f) prices=%s", i, part_text, confidence, parse_price_values(text)
                    )

        ranked = sorted(candidates, key=lambda c: -c.confidence)[: max(0, limit)]
        log.info(
            "Extracted %d candidates (kept %d) from %d lines, %d headers, page %d",
            len(candidates), len(ranked), len(ocr_lines), len(headers), page_number,
        )
        return ranked


def extract_candidates(
    lines: Sequence[Union[OcrLine, Mapping[str, Any], str]],
    page_number: int = 1,
    top_n: int = 100,
    *,
    lookup: Optional[EntreeLookup] = None,
    scorer: Optional[ConfidenceScorer] = None,
    lexicon: Optional[Lexicon] = None,
    config: Optional[ExtractionConfig] = None,
) -> List[Candidate]:
    extractor = CandidateExtractor(lookup=lookup, scorer=scorer, lexicon=lexicon, config=config)
    return extractor.extract(lines, page_number=page_number, top_n=top_n)
