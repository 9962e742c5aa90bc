# mlmp/cli.py
"""
Command line entry points.

  python -m mlmp.cli extract page1.json [--page 1] [--top-n 50] [--db mlmp.db]
  python -m mlmp.cli ocr menu.png [--page 1]
  python -m mlmp.cli seed-entrees entrees.json [--db mlmp.db]
  python -m mlmp.cli stats [--db mlmp.db]
  python -m mlmp.cli health

`extract` reads OCR lines as JSON (a list of line dicts or an OcrResult-shaped
object) and prints the ranked candidates as JSON. `ocr` runs Tesseract on an
image first. Settings come from the environment / .env (see config.py).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional, Sequence

from .candidates import Candidate, CandidateExtractor
from .config import ExtractionConfig, Settings, load_settings
from .entree_lookup import EntreeLookup, SqliteEntreeDictionary
from .errors import MlmpError
from .feedback import FeedbackStore
from .ocr_types import OcrLine, lines_from_payload
from .parsers.lexicon import default_lexicon, load_lexicon
from .scoring.confidence import ConfidenceScorer
from .scoring.weight_cache import TrainedWeightsCache

log = logging.getLogger(__name__)


def build_extractor(settings: Settings, db_path: Optional[Path] = None) -> CandidateExtractor:
    """Wire lexicon, dictionary lookup and scorer from settings."""
    lexicon = load_lexicon(settings.lexicon_path) if settings.lexicon_path else default_lexicon()
    db = Path(db_path or settings.db_path)

    lookup = None
    cache = None
    if db.exists():
        lookup = EntreeLookup(SqliteEntreeDictionary(db))
        store = FeedbackStore(db)
        cache = TrainedWeightsCache(fetch=store.load_latest_weights, ttl_seconds=settings.weights_ttl_seconds)
        cache.refresh_now()
    else:
        log.info("No database at %s; extracting without dictionary or trained weights", db)

    return CandidateExtractor(
        lookup=lookup,
        scorer=ConfidenceScorer(cache),
        lexicon=lexicon,
        config=ExtractionConfig(top_n=settings.top_n, lookup_batch_size=settings.lookup_batch_size),
    )


def _dump(candidates: Sequence[Candidate]) -> str:
    return json.dumps([c.to_dict() for c in candidates], indent=2, ensure_ascii=False)


def _read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


# ----------------------------
# Commands
# ----------------------------

def cmd_extract(args: argparse.Namespace, settings: Settings) -> int:
    lines: List[OcrLine] = lines_from_payload(_read_json(args.lines))
    extractor = build_extractor(settings, args.db)
    found = extractor.extract(lines, page_number=args.page, top_n=args.top_n)
    print(_dump(found))
    return 0


def cmd_ocr(args: argparse.Namespace, settings: Settings) -> int:
    from .ocr_utils import ocr_image

    result = ocr_image(args.image)
    extractor = build_extractor(settings, args.db)
    found = extractor.extract(list(result.lines), page_number=args.page, top_n=args.top_n)
    print(_dump(found))
    return 0


def cmd_seed(args: argparse.Namespace, settings: Settings) -> int:
    """Load [{"name", "category", "synonyms"}] (or plain names) into common_entrees."""
    raw = _read_json(args.entrees)
    rows = []
    for item in raw or []:
        if isinstance(item, str):
            rows.append((item, None, ()))
        elif isinstance(item, dict) and item.get("name"):
            rows.append((item["name"], item.get("category"), tuple(item.get("synonyms") or ())))
    d = SqliteEntreeDictionary(Path(args.db or settings.db_path))
    d.ensure_schema()
    n = d.add_entrees(rows)
    print(f"[OK] Seeded {n} entrees into {d.db_path}")
    return 0


def cmd_stats(args: argparse.Namespace, settings: Settings) -> int:
    store = FeedbackStore(Path(args.db or settings.db_path))
    print(json.dumps(store.training_stats(), indent=2))
    return 0


def cmd_health(args: argparse.Namespace, settings: Settings) -> int:
    from .ocr_utils import check_tesseract

    info = check_tesseract()
    print(json.dumps(info, indent=2))
    return 0 if info.get("found_on_disk") else 1


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="mlmp", description="Menu dish-name candidate extraction")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("extract", help="Extract candidates from OCR lines JSON")
    p.add_argument("lines", help="JSON file with OCR lines")
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--top-n", type=int, default=None)
    p.add_argument("--db", type=str, default=None)
    p.set_defaults(func=cmd_extract)

    p = sub.add_parser("ocr", help="OCR an image with Tesseract, then extract")
    p.add_argument("image")
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--top-n", type=int, default=None)
    p.add_argument("--db", type=str, default=None)
    p.set_defaults(func=cmd_ocr)

    p = sub.add_parser("seed-entrees", help="Load reference entrees into the dictionary table")
    p.add_argument("entrees", help="JSON list of names or {name, category, synonyms}")
    p.add_argument("--db", type=str, default=None)
    p.set_defaults(func=cmd_seed)

    p = sub.add_parser("stats", help="Show feedback / training counts")
    p.add_argument("--db", type=str, default=None)
    p.set_defaults(func=cmd_stats)

    p = sub.add_parser("health", help="Check the Tesseract install")
    p.set_defaults(func=cmd_health)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return int(args.func(args, settings))
    except (OSError, ValueError, MlmpError) as e:
        print(f"[ERR] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
