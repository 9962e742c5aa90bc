# mlmp/parsers/split_rules.py
"""
Split / Filter Rule Tables — declarative rules for compound lines and venue names.

Compound rules split one OCR line holding two dishes into two spans:
  "Combination Platter Lobster Newburg $40" → "Combination Platter $40", "Lobster Newburg $40"
  "Tomato Pasta Salmon Rolls $25"           → "Tomato Pasta $25", "Salmon Rolls $25"
  "Chicken Fajita Greek Steak"              → "Chicken Fajita", "Greek Steak"

Rules are tried in order; the first rule whose split passes validation wins.
Each rule is built from lexicon anchors, so new anchors need no code change:
  - prefix   : a known dish phrase opens the line
  - tail     : second dish is "<word> <tail noun>", first dish ends in a dish noun
  - lead     : second dish opens with a lead word ("greek", "kale")
  - generic  : two-plus-two (or three) plain words; only used where the caller
               explicitly allows it (high visual-hierarchy lines)

Venue rules flag restaurant names ("Joe's Restaurant", "Marco Italian Bistro").
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Pattern, Tuple

from .lexicon import Lexicon, default_lexicon

MIN_PART_CHARS = 3
MIN_PART_WORDS = 2

# Trailing price carried over to each split part
_TRAILING_PRICE_RE = re.compile(r"^(.*?)\s*([$€£¥]\s?\d{1,4}(?:[.,]\d{2})?|\d{1,4}[.,]\d{2})\s*$")
_HAS_LETTER_RE = re.compile(r"[^\W\d_]")
_WS_RE = re.compile(r"\s+")


# ── Compound rules ───────────────────────────────────

@dataclass(frozen=True)
class CompoundRule:
    name: str
    pattern: Pattern[str]
    generic: bool = False
    # first part must itself end in a dish noun
    left_needs_dish_noun: bool = False


@dataclass(frozen=True)
class CompoundSplit:
    rule: str
    parts: Tuple[str, ...]
    generic: bool


def _alt(terms) -> str:
    return "|".join(
        r"\s+".join(re.escape(w) for w in t.split())
        for t in sorted(terms, key=len, reverse=True)
    )


@lru_cache(maxsize=16)
def build_compound_rules(lexicon: Lexicon) -> Tuple[CompoundRule, ...]:
    rules: List[CompoundRule] = []
    for phrase in lexicon.compound_prefix_phrases:
        rules.append(CompoundRule(
            name=f"prefix:{phrase}",
            pattern=re.compile(rf"^({_alt([phrase])})\s+(.+)$", re.I),
        ))
    for tail in lexicon.compound_tail_nouns:
        rules.append(CompoundRule(
            name=f"tail:{tail}",
            pattern=re.compile(rf"^(.+)\s+(\S+\s+{re.escape(tail)})$", re.I),
            left_needs_dish_noun=True,
        ))
    for lead in lexicon.compound_lead_words:
        rules.append(CompoundRule(
            name=f"lead:{lead}",
            pattern=re.compile(rf"^(.+?)\s+({re.escape(lead)}\s+.+)$", re.I),
        ))
    rules.append(CompoundRule(
        name="generic",
        pattern=re.compile(r"^([a-z]+\s+[a-z]+)\s+([a-z]+\s+[a-z]+(?:\s+[a-z]+)?)$", re.I),
        generic=True,
    ))
    return tuple(rules)


def _dish_nouns(lexicon: Lexicon) -> frozenset:
    return frozenset(lexicon.compound_tail_nouns) | frozenset(lexicon.dish_anchor_nouns)


def _part_ok(part: str) -> bool:
    return (
        len(part) >= MIN_PART_CHARS
        and bool(_HAS_LETTER_RE.search(part))
        and len(part.split()) >= MIN_PART_WORDS
    )


def split_trailing_price(text: str) -> Tuple[str, str]:
    """'Tomato Pasta Salmon Rolls $25' → ('Tomato Pasta Salmon Rolls', '$25')."""
    m = _TRAILING_PRICE_RE.match(text.strip())
    if not m or not m.group(1).strip():
        return text.strip(), ""
    return m.group(1).strip(), m.group(2).strip()


def match_compound(
    text: str,
    lexicon: Optional[Lexicon] = None,
    *,
    allow_generic: bool = True,
) -> Optional[CompoundSplit]:
    """Return the first valid two-dish split of `text`, or None."""
    lex = lexicon or default_lexicon()
    base, price = split_trailing_price(text)
    base = _WS_RE.sub(" ", base)
    dish_nouns = _dish_nouns(lex)

    for rule in build_compound_rules(lex):
        if rule.generic and not allow_generic:
            continue
        m = rule.pattern.match(base)
        if not m:
            continue
        left, right = m.group(1).strip(), m.group(2).strip()
        if not (_part_ok(left) and _part_ok(right)):
            continue
        if rule.left_needs_dish_noun and left.split()[-1].lower() not in dish_nouns:
            continue
        parts = tuple(f"{p} {price}" if price else p for p in (left, right))
        return CompoundSplit(rule=rule.name, parts=parts, generic=rule.generic)
    return None


# ── Venue / restaurant-name rules ────────────────────

@lru_cache(maxsize=16)
def build_venue_patterns(lexicon: Lexicon) -> Tuple[Pattern[str], ...]:
    venues = _alt(lexicon.venue_words)
    cuisines = _alt(lexicon.cuisine_words)
    name = r"[A-Za-z][a-z]+"
    return (
        # "Joe's Restaurant", "Marys Cafe"
        re.compile(rf"^[A-Za-z][a-z]*'?s\s+(?:{venues})$", re.I),
        # "Joe & Jane's"
        re.compile(rf"^{name}\s+&\s+{name}'?s$", re.I),
        # "Marco Italian Restaurant"
        re.compile(rf"^{name}\s+(?:{cuisines})\s+(?:{venues})$", re.I),
        # "Blue Harbor Grill"
        re.compile(rf"^{name}\s+{name}\s+(?:{venues})$", re.I),
        # "The Anchor Bistro"
        re.compile(rf"^(?:the\s+)?{name}\s+(?:{venues})$", re.I),
    )


def matches_venue_name(text: str, lexicon: Optional[Lexicon] = None) -> bool:
    lex = lexicon or default_lexicon()
    t = text.strip()
    return any(p.match(t) for p in build_venue_patterns(lex))
