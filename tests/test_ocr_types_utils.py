"""
OCR records and the Tesseract word-table adapter (no Tesseract binary needed).

Run: python -m pytest tests/test_ocr_types_utils.py -v
"""

import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from mlmp.ocr_types import OcrBoundingBox, OcrLine, OcrResult, lines_from_payload
from mlmp.ocr_utils import lines_from_tesseract_data, union_bbox


def _tesseract_table():
    # words deliberately out of x-order inside line 1
    return {
        "text": ["", "Salmon", "Grilled", "$24", "Ribeye", "Steak", "~"],
        "conf": ["-1", "80", "90", "70", "95", "85", "10"],
        "left": [0, 80, 10, 150, 10, 90, 200],
        "top": [0, 10, 10, 10, 40, 40, 40],
        "width": [300, 60, 60, 30, 60, 50, 5],
        "height": [100, 12, 12, 12, 12, 12, 5],
        "page_num": [1] * 7,
        "block_num": [1] * 7,
        "par_num": [1] * 7,
        "line_num": [0, 1, 1, 1, 2, 2, 2],
    }


class TestBoundingBox:
    def test_from_dict_width_height(self):
        assert OcrBoundingBox.from_any({"x": 1, "y": 2, "width": 3, "height": 4}) == OcrBoundingBox(1, 2, 3, 4)

    def test_from_sequence(self):
        assert OcrBoundingBox.from_any([1.4, 2, 3, 4]) == OcrBoundingBox(1, 2, 3, 4)

    def test_unreadable(self):
        assert OcrBoundingBox.from_any([1, 2, 3]) is None
        assert OcrBoundingBox.from_any({"x": 1}) is None
        assert OcrBoundingBox.from_any(None) is None

    def test_bottom(self):
        assert OcrBoundingBox(0, 10, 5, 7).bottom == 17


class TestRecords:
    def test_percent_confidence(self):
        assert OcrLine.from_dict({"text": "A", "confidence": 87}).confidence == pytest.approx(0.87)

    def test_missing_confidence(self):
        assert OcrLine.from_dict({"text": "A"}).confidence is None

    def test_payload_list(self):
        lines = lines_from_payload([{"text": "ENTREES"}, {"text": "Grilled Salmon $24"}, "junk"])
        assert [ln.text for ln in lines] == ["ENTREES", "Grilled Salmon $24"]

    def test_payload_result(self):
        result = OcrResult.from_dict({"lines": [{"text": "x"}], "processingTime": 1.5, "confidence": 0.9})
        assert result.processing_time == 1.5
        assert len(lines_from_payload({"lines": [{"text": "x"}]})) == 1

    def test_to_dict(self):
        d = OcrLine("Grilled Salmon", OcrBoundingBox(0, 0, 10, 10), confidence=0.5).to_dict()
        assert d["bbox"] == {"x": 0, "y": 0, "w": 10, "h": 10}
        assert d["words"] == []


class TestTesseractAdapter:
    def test_groups_words_into_lines(self):
        lines = lines_from_tesseract_data(_tesseract_table())
        assert [ln.text for ln in lines] == ["Grilled Salmon $24", "Ribeye Steak ~"]

    def test_line_geometry_and_confidence(self):
        first = lines_from_tesseract_data(_tesseract_table())[0]
        assert first.bbox == OcrBoundingBox(10, 10, 170, 12)
        assert first.confidence == pytest.approx(0.8)
        assert len(first.words) == 3

    def test_min_conf_filter(self):
        lines = lines_from_tesseract_data(_tesseract_table(), min_conf=50)
        assert lines[1].text == "Ribeye Steak"

    def test_empty(self):
        assert lines_from_tesseract_data({}) == []


class TestHelpers:
    def test_union_bbox(self):
        box = union_bbox([OcrBoundingBox(0, 0, 10, 10), OcrBoundingBox(20, 5, 10, 10)])
        assert box == OcrBoundingBox(0, 0, 30, 15)
        assert union_bbox([]) is None
