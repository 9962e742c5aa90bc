"""
MLMP OCR Utils — Tesseract adapter + small geometry/stat helpers.

The OCR engine itself is an external collaborator. This module only turns
Tesseract's word table (pytesseract.image_to_data, Output.DICT) into the
ordered OcrLine records the extractor consumes.

Grouping:
- Words are keyed by (page, block, paragraph, line) as Tesseract numbers them.
- Line bbox = union of word boxes; line confidence = mean word confidence.
- Lines are ordered top-to-bottom, then left-to-right.
"""

from __future__ import annotations

import os
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pytesseract
from PIL import Image

from .ocr_types import OcrBoundingBox, OcrLine, OcrResult, OcrWord


# =============================
# Tesseract
# =============================

def configure_tesseract_from_env() -> None:
    cmd = os.environ.get("TESSERACT_CMD")
    if cmd and os.path.isfile(cmd):
        pytesseract.pytesseract.tesseract_cmd = cmd


def check_tesseract() -> dict:
    try:
        configure_tesseract_from_env()
        ver = pytesseract.get_tesseract_version()
        return {"found_on_disk": True, "version": str(ver)}
    except Exception as e:
        return {"found_on_disk": False, "version": None, "error": str(e)}


# =============================
# Geometry helpers
# =============================

def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def union_bbox(boxes: Sequence[OcrBoundingBox]) -> Optional[OcrBoundingBox]:
    if not boxes:
        return None
    x1 = min(b.x for b in boxes)
    y1 = min(b.y for b in boxes)
    x2 = max(b.x + b.w for b in boxes)
    y2 = max(b.y + b.h for b in boxes)
    return OcrBoundingBox(x=x1, y=y1, w=x2 - x1, h=y2 - y1)


# =============================
# image_to_data → OcrLine
# =============================

def _cell(data: Mapping[str, Sequence[Any]], key: str, i: int, default: Any = 0) -> Any:
    col = data.get(key)
    if col is None or i >= len(col):
        return default
    return col[i]


def _to_float(v: Any, default: float = -1.0) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return default


def lines_from_tesseract_data(
    data: Mapping[str, Sequence[Any]],
    *,
    min_conf: float = 0.0,
) -> List[OcrLine]:
    """
    Group a pytesseract `image_to_data(..., output_type=Output.DICT)` table into lines.

    Rows with empty text or conf < 0 (Tesseract's layout rows) are skipped, as are
    words below `min_conf` (0–100 scale).
    """
    texts = data.get("text") or []
    groups: Dict[Tuple[int, int, int, int], List[OcrWord]] = {}

    for i, raw in enumerate(texts):
        text = (str(raw) if raw is not None else "").strip()
        if not text:
            continue
        conf = _to_float(_cell(data, "conf", i, -1))
        if conf < 0 or conf < min_conf:
            continue
        bbox = OcrBoundingBox.from_any((
            _cell(data, "left", i),
            _cell(data, "top", i),
            _cell(data, "width", i),
            _cell(data, "height", i),
        ))
        key = (
            int(_to_float(_cell(data, "page_num", i, 1), 1)),
            int(_to_float(_cell(data, "block_num", i, 0), 0)),
            int(_to_float(_cell(data, "par_num", i, 0), 0)),
            int(_to_float(_cell(data, "line_num", i, 0), 0)),
        )
        groups.setdefault(key, []).append(OcrWord(text=text, bbox=bbox, confidence=clamp(conf / 100.0, 0.0, 1.0)))

    lines: List[OcrLine] = []
    for words in groups.values():
        ordered = sorted(words, key=lambda w: w.bbox.x if w.bbox else 0)
        boxes = [w.bbox for w in ordered if w.bbox is not None]
        conf = sum(w.confidence for w in ordered) / max(len(ordered), 1)
        lines.append(OcrLine(
            text=" ".join(w.text for w in ordered),
            bbox=union_bbox(boxes),
            words=tuple(ordered),
            confidence=round(conf, 4),
        ))

    lines.sort(key=lambda ln: (ln.bbox.y, ln.bbox.x) if ln.bbox else (0, 0))
    return lines


def ocr_image(
    image: Union[str, os.PathLike, Image.Image],
    *,
    lang: str = "eng",
    config: str = "--oem 1 --psm 6",
) -> OcrResult:
    """Run Tesseract on one page image and return an OcrResult."""
    configure_tesseract_from_env()
    started = time.perf_counter()
    img = image if isinstance(image, Image.Image) else Image.open(image)
    data = pytesseract.image_to_data(img, lang=lang, config=config, output_type=pytesseract.Output.DICT)
    lines = lines_from_tesseract_data(data)
    words = tuple(w for ln in lines for w in ln.words)
    page_conf = sum(w.confidence for w in words) / max(len(words), 1)
    return OcrResult(
        lines=tuple(lines),
        words=words,
        confidence=round(page_conf, 4),
        processing_time=time.perf_counter() - started,
    )
