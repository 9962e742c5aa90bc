"""
Entree lookup — exact / partial / fuzzy matching against the reference dictionary.

Covers both the in-memory dictionary and the sqlite `common_entrees` table,
plus failure isolation (a broken store costs the boost, never the extraction).

Run: python -m pytest tests/test_entree_lookup.py -v
"""

import sys
import os

import pytest
from rapidfuzz.distance import Levenshtein

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from mlmp.entree_lookup import (
    EXACT_BOOST,
    FUZZY_BOOST,
    PARTIAL_BOOST,
    EntreeLookup,
    EntreeRecord,
    InMemoryEntreeDictionary,
    SqliteEntreeDictionary,
    fuzzy_match_score,
    levenshtein_distance,
    normalize_entree_text,
    partial_match_score,
    word_similarity,
)
from mlmp.errors import DictionaryUnavailableError


def _memory_lookup():
    return EntreeLookup(InMemoryEntreeDictionary([
        EntreeRecord.create(1, "Grilled Salmon", category="seafood"),
        EntreeRecord.create(2, "Lobster Newburg", synonyms=["Lobster Newberg"]),
        EntreeRecord.create(3, "Chicken Parmesan", category="poultry"),
    ]))


class _BrokenDictionary:
    def exact(self, normalized):
        raise RuntimeError("connection reset")

    def partial(self, normalized, limit):
        raise RuntimeError("connection reset")

    def sample(self, limit):
        raise RuntimeError("connection reset")


class TestSimilarity:
    def test_levenshtein(self):
        assert levenshtein_distance("kitten", "sitting") == 3
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("same", "same") == 0

    def test_partial_score(self):
        assert partial_match_score("abc", "abc") == 1.0
        assert partial_match_score("grilled salmons", "grilled salmon") == pytest.approx(14 / 15)

    def test_scores_follow_rapidfuzz(self):
        pairs = [("kitten", "sitting"), ("", "abc"), ("lobster newberg", "lobster newburg"), ("salmon", "salmon")]
        for a, b in pairs:
            assert levenshtein_distance(a, b) == Levenshtein.distance(a, b)
            assert partial_match_score(a, b) == pytest.approx(Levenshtein.normalized_similarity(a, b))
            assert word_similarity(a, b) == pytest.approx(Levenshtein.normalized_similarity(a, b))

    def test_word_similarity_empty(self):
        assert word_similarity("", "") == 1.0

    def test_fuzzy_ignores_short_words(self):
        """Words of two letters or fewer don't take part."""
        assert fuzzy_match_score("a b", "c d") == 0.0

    def test_fuzzy_full_word_hit(self):
        assert fuzzy_match_score("salmon", "grilled salmon") == pytest.approx(1.0)

    def test_normalize(self):
        assert normalize_entree_text("  GRILLED  Salmon! ") == "grilled salmon"


class TestInMemoryLookup:
    def test_exact(self):
        m = _memory_lookup().find_match("GRILLED SALMON!")
        assert m is not None
        assert m.match_type == "exact"
        assert m.confidence_boost == EXACT_BOOST
        assert m.category == "seafood"

    def test_partial(self):
        m = _memory_lookup().find_match("Grilled Salmons")
        assert m is not None
        assert m.match_type == "partial"
        assert m.confidence_boost == PARTIAL_BOOST

    def test_partial_via_synonym(self):
        m = _memory_lookup().find_match("Lobster Newberg")
        assert m is not None
        assert m.name == "Lobster Newburg"
        assert m.match_type == "partial"

    def test_fuzzy(self):
        """A single word too short for a partial hit still matches fuzzily."""
        m = _memory_lookup().find_match("Salmon")
        assert m is not None
        assert m.match_type == "fuzzy"
        assert m.confidence_boost == FUZZY_BOOST
        assert m.name == "Grilled Salmon"

    def test_no_match(self):
        assert _memory_lookup().find_match("Vegetable Curry") is None

    def test_blank_text(self):
        assert _memory_lookup().find_match("  !! ") is None

    def test_to_dict(self):
        d = _memory_lookup().find_match("Grilled Salmon").to_dict()
        assert d["match_type"] == "exact"
        assert d["name"] == "Grilled Salmon"


class TestFailureIsolation:
    def test_store_failure_returns_none(self):
        assert EntreeLookup(_BrokenDictionary()).find_match("Grilled Salmon") is None

    def test_batch_lookup(self):
        texts = ["Grilled Salmon", "Vegetable Curry", "Chicken Parmesan", "Lobster Newburg", "Salmon"]
        results = _memory_lookup().find_matches(texts, batch_size=2)
        assert set(results) == set(texts)
        assert results["Vegetable Curry"] is None
        assert results["Chicken Parmesan"].match_type == "exact"

    def test_batch_with_broken_store(self):
        results = EntreeLookup(_BrokenDictionary()).find_matches(["A dish", "Another dish"])
        assert results == {"A dish": None, "Another dish": None}


class TestSqliteDictionary:
    def _seeded(self, tmp_path):
        d = SqliteEntreeDictionary(tmp_path / "entrees.db")
        n = d.add_entrees([
            ("Grilled Salmon", "seafood", ()),
            ("Lobster Newburg", None, ("Lobster Newberg",)),
        ])
        assert n == 2
        return d

    def test_exact(self, tmp_path):
        m = EntreeLookup(self._seeded(tmp_path)).find_match("grilled salmon")
        assert m is not None and m.match_type == "exact"
        assert m.category == "seafood"

    def test_partial_either_direction(self, tmp_path):
        m = EntreeLookup(self._seeded(tmp_path)).find_match("Grilled Salmons")
        assert m is not None and m.match_type == "partial"

    def test_partial_via_synonym(self, tmp_path):
        m = EntreeLookup(self._seeded(tmp_path)).find_match("Lobster Newberg")
        assert m is not None and m.name == "Lobster Newburg"

    def test_partial_synonym_inside_query(self, tmp_path):
        """A synonym contained in the query hits in sqlite just as in memory."""
        d = SqliteEntreeDictionary(tmp_path / "entrees.db")
        d.add_entrees([
            ("Grilled Salmon", "seafood", ()),
            ("Seared Salmon Fillet", "seafood", ("salmon filet",)),
        ])
        memory = InMemoryEntreeDictionary([
            EntreeRecord.create(1, "Grilled Salmon"),
            EntreeRecord.create(2, "Seared Salmon Fillet", synonyms=["salmon filet"]),
        ])
        assert [r.name for r in d.partial("salmon filets", 5)] == ["Seared Salmon Fillet"]
        assert [r.name for r in memory.partial("salmon filets", 5)] == ["Seared Salmon Fillet"]

    def test_partial_respects_limit(self, tmp_path):
        d = SqliteEntreeDictionary(tmp_path / "entrees.db")
        d.add_entrees([("Salmon Plate", None, ()), ("Salmon Bowl", None, ()), ("Salmon Wrap", None, ())])
        assert len(d.partial("salmon", 2)) == 2

    def test_missing_table_raises(self, tmp_path):
        d = SqliteEntreeDictionary(tmp_path / "empty.db")
        with pytest.raises(DictionaryUnavailableError):
            d.exact("grilled salmon")

    def test_missing_table_lookup_is_none(self, tmp_path):
        lookup = EntreeLookup(SqliteEntreeDictionary(tmp_path / "empty.db"))
        assert lookup.find_match("Grilled Salmon") is None
