# mlmp/parsers/text_utils.py
"""
Text Utilities — stateless predicates and metrics over one line of text.

Everything here is pure and deterministic. Vocabulary checks take an optional
Lexicon; the default lexicon is used when none is passed.

Ratios floor their denominator at 1 so an empty string yields 0.0, never NaN.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import List, Optional, Pattern

from .lexicon import Lexicon, default_lexicon


# ── Price patterns ───────────────────────────────────
# Currency symbols: $ € £ ¥

CURRENCY_SYMBOLS = "$€£¥"

PRICE_PATTERNS: List[Pattern[str]] = [
    # $12.00, $12, $ 12.00
    re.compile(r"(?<!\w)\$\s?\d{1,3}(?:[.,]\d{2})?(?!\w)"),
    # €12,50, € 12.50, 12€
    re.compile(r"(?<!\w)€\s?\d{1,3}(?:[.,]\d{2})?(?!\w)|(?<!\w)\d{1,3}(?:[.,]\d{2})?\s?€(?!\w)"),
    # £12.00, £ 12.00
    re.compile(r"(?<!\w)£\s?\d{1,3}(?:[.,]\d{2})?(?!\w)"),
    # ¥1200, ¥ 1200
    re.compile(r"(?<!\w)¥\s?\d{1,4}(?!\w)"),
    # bare two-decimal numbers (12.00, 12,50)
    re.compile(r"(?<!\w)\d{1,3}[.,]\d{2}(?!\w)"),
    # number at end of line (menus without currency symbols)
    re.compile(r"(?<!\w)\d{1,3}(?:[.,]\d{2})?\s*$"),
    # number at start of line ("24 Grilled Salmon")
    re.compile(r"^\s*\d{1,3}(?:[.,]\d{2})?\s+(?=\D)"),
    # "market price" is a price indicator
    re.compile(r"\bmarket\s+price\b", re.IGNORECASE),
]

_LETTER_RE = re.compile(r"[^\W\d_]", re.UNICODE)
_PUNCT_DENSITY_RE = re.compile(r"[,;:]")
_NON_WORD_RE = re.compile(r"[^\w\s]", re.UNICODE)
_WS_RE = re.compile(r"\s+")
_CAPS_IGNORABLE_RE = re.compile(r"[\s\-'&]")


def contains_price(text: str) -> bool:
    """True if any price pattern matches (symbol + number, bare decimals, edge numbers, market price)."""
    if not text:
        return False
    return any(p.search(text) for p in PRICE_PATTERNS)


def extract_prices(text: str) -> List[str]:
    """Return every price-like substring, pattern by pattern (may overlap)."""
    prices: List[str] = []
    if not text:
        return prices
    for p in PRICE_PATTERNS:
        prices.extend(m.group(0).strip() for m in p.finditer(text))
    return prices


# ── Normalization ────────────────────────────────────

def normalize_text(text: str) -> str:
    """Lowercase, drop punctuation, collapse whitespace."""
    t = (text or "").lower().strip()
    t = _NON_WORD_RE.sub("", t)
    return _WS_RE.sub(" ", t).strip()


def words(text: str) -> List[str]:
    return [w for w in _WS_RE.split((text or "").strip()) if w]


def word_count(text: str) -> int:
    return len(words(text))


# ── Vocabulary matching (word-boundary) ──────────────

def _term_pattern(term: str) -> str:
    # \b only works next to word chars; fall back to whitespace/edge lookarounds otherwise
    left = r"\b" if re.match(r"\w", term[0]) else r"(?<!\S)"
    right = r"\b" if re.match(r"\w", term[-1]) else r"(?!\S)"
    return left + re.escape(term) + right


@lru_cache(maxsize=64)
def _vocab_regex(terms: tuple) -> Optional[Pattern[str]]:
    parts = [_term_pattern(t) for t in sorted(terms, key=len, reverse=True) if t]
    if not parts:
        return None
    return re.compile("|".join(parts), re.IGNORECASE)


def match_vocabulary(text: str, terms: tuple) -> Optional[str]:
    """Return the first vocabulary term found in `text` as whole words, else None."""
    rx = _vocab_regex(terms)
    if rx is None or not text:
        return None
    m = rx.search(text)
    return m.group(0).lower() if m else None


def contains_blacklisted_terms(text: str, lexicon: Optional[Lexicon] = None) -> bool:
    """Disallowed category words (appetizers, desserts, allergen notes...) as whole words."""
    lex = lexicon or default_lexicon()
    return match_vocabulary(text.lower().strip(), lex.blacklist_terms) is not None


def is_section_header(text: str, lexicon: Optional[Lexicon] = None) -> bool:
    """
    Header vocabulary check, either direction:
      - a header term appears in the line as whole words ("Our Entrees")
      - the whole line appears inside a header term ("Main" ⊂ "main courses")
    """
    lex = lexicon or default_lexicon()
    norm = text.lower().strip()
    if not norm:
        return False
    if match_vocabulary(norm, lex.section_headers):
        return True
    if len(norm) < 3:
        return False
    inner = re.compile(_term_pattern(norm), re.IGNORECASE)
    return any(inner.search(h) for h in lex.section_headers)


def count_meaningful_words(text: str, lexicon: Optional[Lexicon] = None) -> int:
    lex = lexicon or default_lexicon()
    stop = set(lex.stop_words)
    return sum(1 for w in words(text.lower()) if w not in stop)


def starts_with_article(text: str, lexicon: Optional[Lexicon] = None) -> bool:
    lex = lexicon or default_lexicon()
    ws = words(text.lower())
    return bool(ws) and ws[0] in lex.articles


def ends_with_stop_word(text: str, lexicon: Optional[Lexicon] = None) -> bool:
    lex = lexicon or default_lexicon()
    ws = words(text.lower())
    return bool(ws) and ws[-1] in lex.stop_words


# ── Case classifiers ─────────────────────────────────

def is_all_caps(text: str) -> bool:
    """Every letter is uppercase and there is at least one letter."""
    letters = _LETTER_RE.findall(text or "")
    return bool(letters) and all(c.isupper() for c in letters)


def is_all_caps_text(text: str) -> bool:
    """All-caps check used by the extractor fast path (ignores space, - ' &)."""
    return is_all_caps(_CAPS_IGNORABLE_RE.sub("", text or ""))


def is_title_case(text: str) -> bool:
    """Every word: first character uppercase, remainder lowercase."""
    ws = words(text)
    if not ws or not _LETTER_RE.search(text):
        return False
    return all(w[0] == w[0].upper() and w[1:] == w[1:].lower() for w in ws)


# ── Ratio metrics ────────────────────────────────────

def letter_ratio(text: str) -> float:
    t = text or ""
    return len(_LETTER_RE.findall(t)) / max(len(t), 1)


def uppercase_ratio(text: str) -> float:
    letters = _LETTER_RE.findall(text or "")
    upper = sum(1 for c in letters if c.isupper())
    return upper / max(len(letters), 1)


def punctuation_density(text: str) -> float:
    t = text or ""
    return len(_PUNCT_DENSITY_RE.findall(t)) / max(len(t), 1)


def average_token_length(text: str) -> float:
    tokens = words(text)
    return sum(len(t) for t in tokens) / max(len(tokens), 1)
