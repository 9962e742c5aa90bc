"""
Price Removal — strips every price-like fragment from a dish-name span.

Removal runs an ordered battery of rules, then drops leftover currency
symbols and 2–4 digit standalone numbers and collapses whitespace. The whole
battery repeats until the text stops changing, so removing one price can
never expose another (e.g. "Salmon 2 24" → "Salmon 2" → "Salmon").

Guarantees:
  remove_all_prices(remove_all_prices(t)) == remove_all_prices(t)
  validate_no_prices(remove_all_prices(t)) is True
"""

from __future__ import annotations

import re
from typing import List

from .text_utils import contains_price

# ---- Removal rules (order matters) ----
_REMOVAL_RULES = [
    # currency symbol before the number: $12.99, € 8,50
    re.compile(r"[$€£¥]\s?\d{1,4}(?:[.,]\d{2})?"),
    # currency symbol after the number: 12.99€
    re.compile(r"\d{1,4}(?:[.,]\d{2})?\s?[$€£¥]"),
    # bare two-decimal numbers
    re.compile(r"\d{1,3}[.,]\d{2}"),
    # trailing number
    re.compile(r"\d{1,4}(?:[.,]\d{2})?\s*$"),
    # leading number
    re.compile(r"^\s*\d{1,4}(?:[.,]\d{2})?\s+"),
    # number + currency word
    re.compile(r"\d{1,4}(?:[.,]\d{2})?\s*(?:euros?|dollars?|cents?|pounds?|yen)\b", re.I),
    # 3–4 digit standalone numbers
    re.compile(r"(?<!\w)\d{3,4}(?!\w)"),
    # OCR-split decimals: "12 . 99"
    re.compile(r"\d{1,4}\s*[.,]\s*\d{2}"),
    re.compile(r"\bmarket\s+price\b", re.I),
]

_STANDALONE_NUM_RE = re.compile(r"\b\d{2,4}\b")
_CURRENCY_RE = re.compile(r"[$€£¥]")
_MARKET_RE = re.compile(r"\bmarket\s+price\b", re.I)
_WS_RE = re.compile(r"\s+")

# Price values for inspection (symbol either side, or bare two-decimal)
_VALUE_RE = re.compile(
    r"[$€£¥]\s?(\d{1,4}(?:[.,]\d{2})?)"
    r"|(\d{1,4}(?:[.,]\d{2})?)\s?[$€£¥]"
    r"|(?<![\w.,])(\d{1,3}[.,]\d{2})(?!\w)"
)


def _remove_once(text: str) -> str:
    out = text
    for rule in _REMOVAL_RULES:
        out = rule.sub(" ", out)
    out = _STANDALONE_NUM_RE.sub(" ", out)
    out = _CURRENCY_RE.sub("", out)
    return _WS_RE.sub(" ", out).strip()


def remove_all_prices(text: str) -> str:
    """Strip every price fragment from `text` (idempotent)."""
    if not text:
        return ""
    out = _WS_RE.sub(" ", text).strip()
    while True:
        nxt = _remove_once(out)
        if nxt == out:
            return out
        out = nxt


def contains_any_price(text: str) -> bool:
    """True if any detection pattern or removal rule would match."""
    if not text:
        return False
    if contains_price(text):
        return True
    return any(rule.search(text) for rule in _REMOVAL_RULES)


def validate_no_prices(text: str) -> bool:
    """Stricter post-check: False if any currency symbol, 2–4 digit number or 'market price' remains."""
    if not text:
        return True
    if contains_price(text):
        return False
    if _STANDALONE_NUM_RE.search(text):
        return False
    if _CURRENCY_RE.search(text):
        return False
    if _MARKET_RE.search(text):
        return False
    return True


def extract_all_prices(text: str) -> List[str]:
    """Debug helper: every fragment a removal rule would strip, in rule order."""
    found: List[str] = []
    for rule in _REMOVAL_RULES:
        for m in rule.finditer(text or ""):
            frag = m.group(0).strip()
            if frag:
                found.append(frag)
    return found


_NAME_PUNCT_RE = re.compile(r"[^\w\s\-'&]")
_DIGITS_RE = re.compile(r"\d+")


def normalize_text_with_price_removal(text: str) -> str:
    """Price removal, then drop punctuation (except - ' &) and digits."""
    out = remove_all_prices(text)
    out = _NAME_PUNCT_RE.sub(" ", out)
    out = _DIGITS_RE.sub(" ", out)
    out = out.replace("_", " ")
    return _WS_RE.sub(" ", out).strip()


def parse_price_values(text: str) -> List[float]:
    """Numeric values of the prices in `text` ("8,50" reads as 8.5)."""
    values: List[float] = []
    for m in _VALUE_RE.finditer(text or ""):
        raw = next(g for g in m.groups() if g)
        try:
            values.append(float(raw.replace(",", ".")))
        except ValueError:
            continue
    return values
