# mlmp/parsers/lexicon.py
"""
Menu Lexicon — single source of truth for every vocabulary list.

Used by text_utils (blacklist / header / stop-word checks), headers
(section-header similarity + entree-category keywords), split_rules
(compound-item anchors) and candidates (description heuristic, validity gate).

Vocabularies are grouped per language (en / fr / it / es) and flattened
into a frozen Lexicon on load. A JSON file with the same keys can override
any vocabulary; missing keys keep the built-in defaults. Values in the file
may be a flat list or a {language: [terms]} mapping.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, Mapping, Sequence, Tuple, Union

LEXICON_VERSION = "2024.1"

LANGUAGES: Tuple[str, ...] = ("en", "fr", "it", "es")


# ── Section headers (things that title a group of dishes) ──

SECTION_HEADERS: Dict[str, Tuple[str, ...]] = {
    "en": (
        "entrees", "entrées", "mains", "main courses", "main", "specialties", "specialities",
        "plates", "a la carte", "a la carte menu", "from the grill", "chef's specials",
        "house specialties", "signature dishes", "featured items",
    ),
    "fr": ("plats principaux", "plats", "spécialités", "specialites", "à la carte"),
    "it": ("secondi", "secondi piatti", "piatti principali", "specialità", "specialita", "alla griglia"),
    "es": ("platos principales", "platos", "especialidades", "a la carta"),
}

# Headers that introduce main-course dishes
ENTREE_HEADER_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "en": ("entree", "entrée", "mains", "main courses"),
    "fr": ("plats principaux",),
    "it": ("secondi", "piatti principali"),
    "es": ("platos principales",),
}

# Category words that disqualify a line from being a dish name
BLACKLIST_TERMS: Dict[str, Tuple[str, ...]] = {
    "en": (
        # section headers
        "appetizers", "appetisers", "starters", "hors d'oeuvres", "soups", "salads",
        "sides", "side dishes", "desserts", "beverages", "drinks", "beer",
        "cocktails", "coffee", "breakfast", "lunch",
        # allergens / dietary info
        "gluten free", "contains nuts", "dairy free", "mild",
        # course indicators
        "first course", "second course", "third course", "main course",
        # service notes
        "ask server",
    ),
    "fr": ("hors d'œuvre", "potages", "salades", "boissons", "apéritifs", "sans gluten", "contient des noix"),
    "it": ("antipasti", "contorni", "dolci", "bevande", "senza glutine", "primi piatti"),
    "es": ("entrantes", "sopas", "ensaladas", "postres", "bebidas", "sin gluten"),
}

STOP_WORDS: Dict[str, Tuple[str, ...]] = {
    "en": (
        "a", "an", "and", "the", "of", "in", "on", "at", "to", "for", "with", "by",
        "from", "up", "about", "into", "through", "during", "before", "after",
        "above", "below", "between", "among", "under", "over", "around", "near",
    ),
    "fr": (
        "le", "la", "les", "un", "une", "des", "du", "de", "dans", "sur", "avec", "pour",
        "par", "sans", "sous", "entre", "chez", "vers", "depuis", "jusqu", "pendant",
    ),
}

ARTICLES: Dict[str, Tuple[str, ...]] = {
    "en": ("a", "an", "the"),
    "fr": ("le", "la", "les", "un", "une"),
    "it": ("il", "lo", "la"),
    "es": ("el", "los", "las"),
}

# Words that mark a line as ingredient / preparation prose
DESCRIPTIVE_WORDS: Dict[str, Tuple[str, ...]] = {
    "en": (
        "with", "served", "topped", "garnished", "fresh", "local", "organic",
        "garlic", "lemon", "butter", "sourdough", "crumbs", "grilled", "baguette",
        "seasoned", "marinated", "roasted", "fried", "steamed",
        "accompanied", "drizzled", "sprinkled", "finished",
    ),
    "fr": (
        "avec", "servi", "garni", "frais", "local", "bio", "organique",
        "ail", "citron", "beurre", "pain", "miettes", "grillé", "baguette",
        "assaisonné", "mariné", "rôti", "frit", "cuit à la vapeur",
        "accompagné", "arrosé", "sauté", "fini", "sauce", "jus",
        "cuit", "préparé", "mélangé", "haché", "coupé", "émincé", "tranché",
    ),
}

# Next-line cues used for the next-line-is-description feature
DESCRIPTION_CUE_WORDS: Dict[str, Tuple[str, ...]] = {
    "en": ("and", "with", "served", "topped", "garnished", "fresh", "local", "organic"),
}

# Food nouns that mean a line is a dish rather than a section title
HEADER_FOOD_WORDS: Dict[str, Tuple[str, ...]] = {
    "en": ("chicken", "beef", "pork", "fish", "salmon", "pasta", "pizza", "soup", "salad", "bread", "rice", "noodles"),
}

# Dish nouns that always read as a dish name in the description heuristic
DISH_ANCHOR_NOUNS: Dict[str, Tuple[str, ...]] = {
    "en": ("crab", "scallop", "cake", "steak", "ribs", "skins", "platter", "newburg"),
}

# A dish name never starts with these
INVALID_START_WORDS: Dict[str, Tuple[str, ...]] = {
    "en": ("and", "or", "with", "including", "served", "topped", "garnished"),
    "fr": ("et", "ou", "avec", "servi"),
    "es": ("con",),
}

# Venue nouns / cuisine adjectives for restaurant-name patterns
VENUE_WORDS: Dict[str, Tuple[str, ...]] = {
    "en": ("restaurant", "cafe", "bistro", "grill", "kitchen", "dining", "eatery", "bar", "lounge"),
}

CUISINE_WORDS: Dict[str, Tuple[str, ...]] = {
    "en": ("italian", "french", "chinese", "mexican", "thai", "indian", "japanese", "american"),
}

# Compound-line anchors: "<dish A> <dish B ending in tail noun>"
COMPOUND_TAIL_NOUNS: Dict[str, Tuple[str, ...]] = {
    "en": ("rolls", "roll", "pasta", "steak", "salad", "newburg"),
}

# Words that open a second dish mid-line ("Chicken Fajita | Greek Steak")
COMPOUND_LEAD_WORDS: Dict[str, Tuple[str, ...]] = {
    "en": ("greek", "kale"),
}

# Phrases that prefix a second dish ("Combination Platter | Lobster Newburg")
COMPOUND_PREFIX_PHRASES: Dict[str, Tuple[str, ...]] = {
    "en": ("combination platter",),
}


# ── Lexicon container ────────────────────────────────

@dataclass(frozen=True)
class Lexicon:
    version: str
    section_headers: Tuple[str, ...]
    entree_header_keywords: Tuple[str, ...]
    blacklist_terms: Tuple[str, ...]
    stop_words: Tuple[str, ...]
    articles: Tuple[str, ...]
    descriptive_words: Tuple[str, ...]
    description_cue_words: Tuple[str, ...]
    header_food_words: Tuple[str, ...]
    dish_anchor_nouns: Tuple[str, ...]
    invalid_start_words: Tuple[str, ...]
    venue_words: Tuple[str, ...]
    cuisine_words: Tuple[str, ...]
    compound_tail_nouns: Tuple[str, ...]
    compound_lead_words: Tuple[str, ...]
    compound_prefix_phrases: Tuple[str, ...]


_DEFAULT_TABLES: Dict[str, Mapping[str, Sequence[str]]] = {
    "section_headers": SECTION_HEADERS,
    "entree_header_keywords": ENTREE_HEADER_KEYWORDS,
    "blacklist_terms": BLACKLIST_TERMS,
    "stop_words": STOP_WORDS,
    "articles": ARTICLES,
    "descriptive_words": DESCRIPTIVE_WORDS,
    "description_cue_words": DESCRIPTION_CUE_WORDS,
    "header_food_words": HEADER_FOOD_WORDS,
    "dish_anchor_nouns": DISH_ANCHOR_NOUNS,
    "invalid_start_words": INVALID_START_WORDS,
    "venue_words": VENUE_WORDS,
    "cuisine_words": CUISINE_WORDS,
    "compound_tail_nouns": COMPOUND_TAIL_NOUNS,
    "compound_lead_words": COMPOUND_LEAD_WORDS,
    "compound_prefix_phrases": COMPOUND_PREFIX_PHRASES,
}


def _flatten(table: Union[Mapping[str, Sequence[str]], Sequence[str]]) -> Tuple[str, ...]:
    """Flatten a per-language table (or flat list) into a de-duplicated, lowercased tuple."""
    if isinstance(table, Mapping):
        ordered = [lang for lang in LANGUAGES if lang in table]
        ordered += [lang for lang in table if lang not in LANGUAGES]
        terms: Iterable[str] = (t for lang in ordered for t in table[lang])
    else:
        terms = table
    seen: Dict[str, None] = {}
    for t in terms:
        key = str(t).strip().lower()
        if key:
            seen.setdefault(key, None)
    return tuple(seen)


def build_lexicon(
    overrides: Mapping[str, Union[Mapping[str, Sequence[str]], Sequence[str]]] | None = None,
    *,
    version: str = LEXICON_VERSION,
) -> Lexicon:
    overrides = overrides or {}
    values = {name: _flatten(overrides.get(name, table)) for name, table in _DEFAULT_TABLES.items()}
    return Lexicon(version=version, **values)


@lru_cache(maxsize=1)
def default_lexicon() -> Lexicon:
    return build_lexicon()


def load_lexicon(path: Union[str, Path]) -> Lexicon:
    """Load a JSON override file. Unknown keys are ignored."""
    with Path(path).open("r", encoding="utf-8") as f:
        raw = json.load(f)
    known = {f.name for f in fields(Lexicon)} - {"version"}
    overrides = {k: v for k, v in raw.items() if k in known}
    return build_lexicon(overrides, version=str(raw.get("version") or LEXICON_VERSION))


def with_terms(lexicon: Lexicon, **extra: Sequence[str]) -> Lexicon:
    """Return a copy of `lexicon` with extra terms appended to the named vocabularies."""
    merged = {name: _flatten(list(getattr(lexicon, name)) + list(terms)) for name, terms in extra.items()}
    return replace(lexicon, **merged)
