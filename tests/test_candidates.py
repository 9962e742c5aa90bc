"""
Candidate extraction — end-to-end menu scenarios plus the helpers the loop uses.

Scenarios:
  - all-caps dish line takes the fast path and loses its price
  - "name $price, description" keeps only the dish name
  - a bare "market price" line yields nothing
  - header line is excluded and sets context for the dish below it
  - description line under a dish is filtered
  - compound lines split into two dishes (default path and visual-hierarchy path)

Run: python -m pytest tests/test_candidates.py -v
"""

import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from mlmp.candidates import (
    FEATURE_NAMES,
    CandidateExtractor,
    CandidateFeatures,
    calculate_font_size_ratio,
    calculate_visual_hierarchy_score,
    extract_candidates,
    features_to_vector,
    is_bold_text,
    is_description_text,
    is_valid_entree_name,
    normalize_candidate_text,
    split_line_by_prices,
    validate_entree_name,
    vector_weights_to_features,
)
from mlmp.config import ExtractionConfig
from mlmp.entree_lookup import EntreeLookup, EntreeRecord, InMemoryEntreeDictionary
from mlmp.ocr_types import OcrBoundingBox, OcrLine
from mlmp.parsers.price_removal import validate_no_prices


def _texts(candidates):
    return [c.text for c in candidates]


MIXED_MENU = [
    "Bella Vista",
    "ENTREES",
    "Grilled Salmon $24",
    "Served with lemon butter, seasonal greens and fresh herbs",
    "Ribeye Steak $42",
    "SAUTEED MAINE SEA SCALLOP $24",
    "Tomato Pasta Salmon Rolls $25",
    "Lobster Market Price",
    "DESSERTS",
    "Chocolate Cake 9",
    "Gluten free options available",
]


class TestScenarios:
    def test_all_caps_fast_path(self):
        """One candidate, no currency or digits, boosted confidence."""
        found = extract_candidates(["SAUTEED MAINE SEA SCALLOP $24"])
        assert _texts(found) == ["SAUTEED MAINE SEA SCALLOP"]
        c = found[0]
        assert "$" not in c.text and not any(ch.isdigit() for ch in c.text)
        assert c.confidence > 0.5
        assert c.features.is_all_caps == 1.0
        assert c.features.price_same_line == 1.0

    def test_name_price_then_description(self):
        """Only the dish name survives; the trailing clause is not emitted."""
        found = extract_candidates(["Lobster Newburg $18.50, a rich buttery bisque with sherry"])
        assert _texts(found) == ["Lobster Newburg"]

    def test_market_price_line(self):
        assert extract_candidates(["market price"]) == []

    def test_header_sets_context(self):
        """Header excluded; dish below it is under the entree header."""
        found = extract_candidates(["ENTREES", "Grilled Salmon $24"])
        assert _texts(found) == ["Grilled Salmon"]
        c = found[0]
        assert c.features.under_entree_header == 1.0
        assert c.features.prev_line_header == 1.0
        assert c.header_context == "entrees"

    def test_description_line_filtered(self):
        found = extract_candidates([
            "Ribeye Steak $42",
            "Served with garlic mashed potatoes and seasonal vegetables",
        ])
        assert _texts(found) == ["Ribeye Steak"]

    def test_compound_line_default_path(self):
        """A named compound rule replaces the whole-line part."""
        found = extract_candidates(["Tomato Pasta Salmon Rolls $25"])
        assert _texts(found) == ["Tomato Pasta", "Salmon Rolls"]

    def test_compound_line_visual_hierarchy(self):
        """Large, bold line near prices takes the hierarchy path and splits."""
        lines = [
            OcrLine("Chicken Fajita Greek Steak", OcrBoundingBox(0, 0, 300, 40), confidence=0.9),
            OcrLine("Beef Stew $12", OcrBoundingBox(0, 60, 200, 10), confidence=0.9),
            OcrLine("Pork Chop $14", OcrBoundingBox(0, 80, 200, 10), confidence=0.9),
        ]
        texts = _texts(extract_candidates(lines))
        assert "Chicken Fajita" in texts
        assert "Greek Steak" in texts
        assert "Chicken Fajita Greek Steak" not in texts
        assert "Beef Stew" in texts and "Pork Chop" in texts

    def test_blacklisted_and_blank_lines(self):
        found = extract_candidates(["", "x", "DESSERTS", "Gluten free options available"])
        assert found == []


class TestExtractorInvariants:
    def test_outputs_are_clean(self):
        """Every emitted text is price-free and passes the validity gate."""
        found = extract_candidates(MIXED_MENU)
        assert found
        for c in found:
            assert validate_no_prices(c.text)
            assert is_valid_entree_name(c.text)
            assert 0.0 <= c.confidence <= 1.0
            assert c.features.confidence == c.confidence

    def test_sorted_descending(self):
        confs = [c.confidence for c in extract_candidates(MIXED_MENU)]
        assert confs == sorted(confs, reverse=True)

    def test_deterministic(self):
        a = extract_candidates(MIXED_MENU)
        b = extract_candidates(MIXED_MENU)
        assert [(c.text, c.confidence) for c in a] == [(c.text, c.confidence) for c in b]

    def test_top_n(self):
        found = extract_candidates(MIXED_MENU, top_n=2)
        assert len(found) == 2

    def test_top_n_zero(self):
        assert extract_candidates(MIXED_MENU, top_n=0) == []

    def test_page_number(self):
        found = extract_candidates(["Grilled Salmon $24"], page_number=3)
        assert found[0].page == 3

    def test_empty_input(self):
        assert extract_candidates([]) == []

    def test_accepts_dict_lines(self):
        found = extract_candidates([{"text": "ENTREES"}, {"text": "Grilled Salmon $24", "bbox": [0, 20, 100, 12]}])
        assert _texts(found) == ["Grilled Salmon"]
        assert found[0].bbox == OcrBoundingBox(0, 20, 100, 12)

    def test_config_threshold(self):
        """Raising the default-path threshold above every score empties the result."""
        cfg = ExtractionConfig(default_path_min_confidence=1.0)
        assert extract_candidates(["Ribeye Steak $42"], config=cfg) == []

    def test_database_match_attached(self):
        lookup = EntreeLookup(InMemoryEntreeDictionary([EntreeRecord.create(7, "Grilled Salmon")]))
        found = CandidateExtractor(lookup=lookup).extract(["Grilled Salmon $24"])
        assert found[0].database_match is not None
        assert found[0].database_match.match_type == "exact"
        assert found[0].to_dict()["database_match"]["id"] == "7"

    def test_broken_lookup_does_not_fail_extraction(self):
        class Broken:
            def exact(self, normalized):
                raise RuntimeError("down")

            partial = sample = exact

        found = CandidateExtractor(lookup=EntreeLookup(Broken())).extract(["Grilled Salmon $24"])
        assert _texts(found) == ["Grilled Salmon"]
        assert found[0].database_match is None

    def test_lookups_batched_with_configured_size(self):
        """Cleaned spans are looked up up front in batches; the line loop reads the results."""
        class RecordingLookup(EntreeLookup):
            def __init__(self, dictionary):
                super().__init__(dictionary)
                self.batch_sizes = []
                self.batched = []

            def find_matches(self, texts, batch_size=10):
                self.batch_sizes.append(batch_size)
                self.batched.extend(texts)
                return super().find_matches(texts, batch_size=batch_size)

        lookup = RecordingLookup(InMemoryEntreeDictionary([EntreeRecord.create(7, "Grilled Salmon")]))
        cfg = ExtractionConfig(lookup_batch_size=3)
        found = CandidateExtractor(lookup=lookup, config=cfg).extract(
            ["ENTREES", "Grilled Salmon $24", "Ribeye Steak $42"]
        )
        assert lookup.batch_sizes == [3]
        assert "Grilled Salmon" in lookup.batched and "Ribeye Steak" in lookup.batched
        assert "ENTREES" not in lookup.batched
        by_text = {c.text: c for c in found}
        assert by_text["Grilled Salmon"].database_match.match_type == "exact"
        assert by_text["Ribeye Steak"].database_match is None

    def test_no_lookup_no_prefetch(self):
        assert CandidateExtractor().prefetch_matches(["Grilled Salmon $24"]) == {}


class TestVisualSignals:
    LINES = [
        OcrLine("A", OcrBoundingBox(0, 0, 10, 10), confidence=0.9),
        OcrLine("B", OcrBoundingBox(0, 20, 10, 10), confidence=0.9),
        OcrLine("C", OcrBoundingBox(0, 40, 10, 20), confidence=0.5),
    ]

    def test_font_size_ratio(self):
        assert calculate_font_size_ratio(self.LINES[2], self.LINES) == pytest.approx(1.5)

    def test_font_size_ratio_without_bbox(self):
        assert calculate_font_size_ratio(OcrLine("x"), self.LINES) == 1.0

    def test_bold(self):
        """Low OCR confidence relative to the page reads as bold."""
        assert is_bold_text(self.LINES[2], self.LINES)
        assert not is_bold_text(self.LINES[0], self.LINES)

    def test_hierarchy_bounded(self):
        lines = [OcrLine("GRILLED SALMON $24", OcrBoundingBox(0, 0, 100, 40), confidence=0.2),
                 OcrLine("Beef Stew $12", OcrBoundingBox(0, 100, 100, 10), confidence=0.9)]
        score = calculate_visual_hierarchy_score(lines, 0)
        assert 0.5 < score <= 1.0


class TestTextHelpers:
    def test_description(self):
        lines = ["Ribeye Steak $42", "Served with garlic mashed potatoes and seasonal vegetables"]
        assert is_description_text(lines[1], 1, lines)
        assert not is_description_text(lines[0], 0, lines)

    def test_anchor_noun_not_description(self):
        """Short lines with a dish anchor noun stay dish names."""
        lines = ["Crab Cake Platter"]
        assert not is_description_text(lines[0], 0, lines)

    def test_valid_entree_name(self):
        assert is_valid_entree_name("Grilled Salmon")
        assert not is_valid_entree_name("Salmon")
        assert not is_valid_entree_name("With Fries")
        assert not is_valid_entree_name("Salmon, grilled")
        assert not is_valid_entree_name("Grilled Salmon 24")

    def test_split_line_by_prices(self):
        assert split_line_by_prices("Burger $12 Fries $5") == ["Burger", "Fries"]
        assert split_line_by_prices("Grilled Salmon") == ["Grilled Salmon"]

    def test_final_gate(self):
        assert normalize_candidate_text("Fish & Chips $12") == "Fish & Chips"
        assert validate_entree_name("Grilled Salmon $24")
        assert not validate_entree_name("Soup")


class TestFeatures:
    def test_round_trip_camel_case(self):
        f = CandidateFeatures.from_dict({"tokenCount": 3, "isAllCaps": 1, "fontSizeRatio": 1.2, "junk": 5})
        assert f.token_count == 3.0
        assert f.is_all_caps == 1.0
        assert f.font_size_ratio == 1.2
        assert set(f.to_dict()) == set(FEATURE_NAMES) | {"confidence"}

    def test_vector(self):
        v = features_to_vector(CandidateFeatures(token_count=1, avg_token_len=5))
        assert v.shape == (len(FEATURE_NAMES),)
        assert v[0] == 0.0
        assert 0.5 in v.tolist()

    def test_vector_weights_back_to_features(self):
        """Coefficients on scaled slots map back onto raw feature weights."""
        w = vector_weights_to_features([1.0] * len(FEATURE_NAMES))
        assert set(w) == set(FEATURE_NAMES)
        assert w["token_count"] == pytest.approx(0.2)
        assert w["avg_token_len"] == pytest.approx(0.1)
        assert w["is_title_case"] == 1.0
