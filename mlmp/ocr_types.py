"""
MLMP OCR Types — read-only records produced by the OCR collaborator.

One page's OCR pass yields an ordered (top-to-bottom) sequence of OcrLine
records. Boxes are page pixel coordinates. Confidences are normalized to
0.0–1.0 (Tesseract reports 0–100; see ocr_utils.lines_from_tesseract_data).

Records are frozen; the extractor never mutates its input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple


# ────────────────────────────────────────────────
# 🧩 Base geometric unit: bounding box
# ────────────────────────────────────────────────

@dataclass(frozen=True)
class OcrBoundingBox:
    x: int
    y: int
    w: int
    h: int

    @property
    def bottom(self) -> int:
        return self.y + self.h

    def to_xyxy(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.x + self.w, self.y + self.h)

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}

    @classmethod
    def from_any(cls, raw: Any) -> Optional["OcrBoundingBox"]:
        """Accept {x,y,w,h} / {x,y,width,height} dicts or (x, y, w, h) sequences.

        Returns None for anything that can't be read as four numbers.
        """
        if raw is None:
            return None
        if isinstance(raw, OcrBoundingBox):
            return raw
        try:
            if isinstance(raw, Mapping):
                w = raw.get("w", raw.get("width"))
                h = raw.get("h", raw.get("height"))
                vals = (raw.get("x"), raw.get("y"), w, h)
            else:
                vals = tuple(raw)
            if len(vals) != 4 or any(v is None for v in vals):
                return None
            x, y, w, h = (int(round(float(v))) for v in vals)
        except (TypeError, ValueError):
            return None
        return cls(x=x, y=y, w=w, h=h)


# ────────────────────────────────────────────────
# 🔤 OCR primitives
# ────────────────────────────────────────────────

@dataclass(frozen=True)
class OcrWord:
    text: str
    bbox: Optional[OcrBoundingBox] = None
    confidence: float = 0.0  # 0.0–1.0

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "OcrWord":
        return cls(
            text=str(raw.get("text") or ""),
            bbox=OcrBoundingBox.from_any(raw.get("bbox")),
            confidence=_as_conf(raw.get("confidence", raw.get("conf"))),
        )


@dataclass(frozen=True)
class OcrLine:
    text: str
    bbox: Optional[OcrBoundingBox] = None
    words: Tuple[OcrWord, ...] = field(default_factory=tuple)
    confidence: Optional[float] = None  # 0.0–1.0

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "OcrLine":
        words = tuple(OcrWord.from_dict(w) for w in (raw.get("words") or []) if isinstance(w, Mapping))
        conf = raw.get("confidence", raw.get("conf"))
        return cls(
            text=str(raw.get("text") or ""),
            bbox=OcrBoundingBox.from_any(raw.get("bbox")),
            words=words,
            confidence=None if conf is None else _as_conf(conf),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "bbox": self.bbox.to_dict() if self.bbox else None,
            "words": [
                {"text": w.text, "bbox": w.bbox.to_dict() if w.bbox else None, "confidence": w.confidence}
                for w in self.words
            ],
            "confidence": self.confidence,
        }


# ────────────────────────────────────────────────
# 📦 Page-level container
# ────────────────────────────────────────────────

@dataclass(frozen=True)
class OcrResult:
    lines: Tuple[OcrLine, ...]
    words: Tuple[OcrWord, ...] = field(default_factory=tuple)
    confidence: float = 0.0
    processing_time: float = 0.0  # seconds

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "OcrResult":
        lines = tuple(OcrLine.from_dict(ln) for ln in (raw.get("lines") or []) if isinstance(ln, Mapping))
        words = tuple(OcrWord.from_dict(w) for w in (raw.get("words") or []) if isinstance(w, Mapping))
        return cls(
            lines=lines,
            words=words,
            confidence=_as_conf(raw.get("confidence")),
            processing_time=float(raw.get("processing_time", raw.get("processingTime")) or 0.0),
        )


def lines_from_payload(payload: Any) -> List[OcrLine]:
    """Accept either a list of line dicts or an OcrResult-shaped dict."""
    if isinstance(payload, Mapping):
        return list(OcrResult.from_dict(payload).lines)
    return [OcrLine.from_dict(ln) for ln in (payload or []) if isinstance(ln, Mapping)]


def _as_conf(value: Any) -> float:
    """Normalize a confidence to 0.0–1.0 (values > 1 are read as percentages)."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    if v < 0:
        return 0.0
    if v > 1.0:
        v = v / 100.0
    return min(v, 1.0)
