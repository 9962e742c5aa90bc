# mlmp/config.py
"""
Runtime settings — environment driven.

Values come from the process environment, optionally seeded from a `.env`
file via python-dotenv. Extraction thresholds live in ExtractionConfig so
callers can tune them per run without touching the environment.

Environment keys
----------------
MLMP_DB_PATH               sqlite file for the entree dictionary + feedback tables
MLMP_LEXICON_PATH          optional JSON lexicon override
MLMP_WEIGHTS_TTL_SECONDS   trained-weight cache validity window (default 300)
MLMP_TOP_N                 max candidates returned per page (default 100)
MLMP_LOOKUP_BATCH_SIZE     concurrent dictionary lookups per batch (default 10)
MLMP_LOG_LEVEL             logging level for the CLI (default WARNING)
TESSERACT_CMD              explicit tesseract binary path
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]   # project root
DEFAULT_DB_PATH = ROOT / "mlmp.db"


# ── Extraction thresholds ────────────────────────────

@dataclass(frozen=True)
class ExtractionConfig:
    """Tunable thresholds for the candidate extractor.

    The fast paths and the default path use different emission thresholds;
    both are kept as separate knobs.
    """
    fast_path_min_confidence: float = 0.1
    default_path_min_confidence: float = 0.03
    all_caps_flat_boost: float = 0.4
    all_caps_hierarchy_weight: float = 0.3
    hierarchy_boost_weight: float = 0.4
    hierarchy_gate: float = 0.5
    min_line_chars: int = 2
    min_clean_chars: int = 3
    header_window: int = 10
    restaurant_header_lookahead: int = 5
    lookup_batch_size: int = 10
    top_n: int = 100


# ── Environment settings ─────────────────────────────

def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class Settings:
    db_path: Path = DEFAULT_DB_PATH
    lexicon_path: Optional[Path] = None
    weights_ttl_seconds: float = 300.0
    top_n: int = 100
    lookup_batch_size: int = 10
    log_level: str = "WARNING"
    tesseract_cmd: Optional[str] = None


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Read settings from the environment (after loading `.env` if present)."""
    load_dotenv(env_file or (ROOT / ".env"))

    lexicon = os.getenv("MLMP_LEXICON_PATH") or ""
    return Settings(
        db_path=Path(os.getenv("MLMP_DB_PATH") or DEFAULT_DB_PATH),
        lexicon_path=Path(lexicon) if lexicon else None,
        weights_ttl_seconds=_env_float("MLMP_WEIGHTS_TTL_SECONDS", 300.0),
        top_n=_env_int("MLMP_TOP_N", 100),
        lookup_batch_size=max(1, _env_int("MLMP_LOOKUP_BATCH_SIZE", 10)),
        log_level=(os.getenv("MLMP_LOG_LEVEL") or "WARNING").upper(),
        tesseract_cmd=os.getenv("TESSERACT_CMD") or None,
    )
