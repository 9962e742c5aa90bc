# mlmp/entree_lookup.py
"""
Entree Lookup — fuzzy matcher against a reference dictionary of known dishes.

Match policy, tried in order:
  1. exact   — case/punctuation-insensitive equality            → boost 0.95
  2. partial — containment either way (synonyms included),
               best record by normalized Levenshtein, > 0.7    → boost 0.80
  3. fuzzy   — per-word best similarity, 0.7·avg + 0.3·ratio,
               over a 20-record pool, > 0.6                     → boost 0.70

Store failures never escape: find_match() logs and returns None, so a missing
dictionary only costs the confidence boost.

Dictionaries:
  - InMemoryEntreeDictionary: list of EntreeRecord (tests, seeding)
  - SqliteEntreeDictionary:   `common_entrees` table
"""

from __future__ import annotations

import json
import logging
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

from rapidfuzz.distance import Levenshtein

from .errors import DictionaryUnavailableError
from .parsers.text_utils import normalize_text

log = logging.getLogger(__name__)

EXACT_BOOST = 0.95
PARTIAL_BOOST = 0.8
FUZZY_BOOST = 0.7
PARTIAL_MIN_SCORE = 0.7
FUZZY_MIN_SCORE = 0.6
WORD_MATCH_THRESHOLD = 0.7
PARTIAL_LIMIT = 5
FUZZY_POOL = 20
DEFAULT_BATCH_SIZE = 10


def normalize_entree_text(text: str) -> str:
    return normalize_text(text)


# ── Records ──────────────────────────────────────────

@dataclass(frozen=True)
class EntreeRecord:
    id: str
    name: str
    normalized_name: str = ""
    category: Optional[str] = None
    synonyms: Tuple[str, ...] = field(default_factory=tuple)
    popularity_score: Optional[float] = None

    @classmethod
    def create(cls, id: Union[str, int], name: str, **kw) -> "EntreeRecord":
        syns = tuple(normalize_entree_text(s) for s in (kw.pop("synonyms", None) or ()) if s)
        return cls(id=str(id), name=name, normalized_name=normalize_entree_text(name), synonyms=syns, **kw)


@dataclass(frozen=True)
class EntreeMatch:
    id: str
    name: str
    normalized_name: str
    confidence_boost: float
    match_type: str  # "exact" | "partial" | "fuzzy"
    category: Optional[str] = None
    popularity_score: Optional[float] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "normalized_name": self.normalized_name,
            "category": self.category,
            "popularity_score": self.popularity_score,
            "confidence_boost": self.confidence_boost,
            "match_type": self.match_type,
        }


def _to_match(rec: EntreeRecord, boost: float, match_type: str) -> EntreeMatch:
    return EntreeMatch(
        id=rec.id,
        name=rec.name,
        normalized_name=rec.normalized_name,
        confidence_boost=boost,
        match_type=match_type,
        category=rec.category,
        popularity_score=rec.popularity_score,
    )


# ── Dictionary stores ────────────────────────────────

def _contains_either_way(rec: EntreeRecord, normalized: str) -> bool:
    """Query inside the name or a synonym, or the name or a synonym inside the query."""
    for name in (rec.normalized_name,) + tuple(rec.synonyms):
        if name and (normalized in name or name in normalized):
            return True
    return False


class EntreeDictionary(Protocol):
    def exact(self, normalized: str) -> Optional[EntreeRecord]: ...

    def partial(self, normalized: str, limit: int) -> List[EntreeRecord]: ...

    def sample(self, limit: int) -> List[EntreeRecord]: ...


class InMemoryEntreeDictionary:
    def __init__(self, records: Iterable[EntreeRecord] = ()):
        self.records: List[EntreeRecord] = list(records)

    def exact(self, normalized: str) -> Optional[EntreeRecord]:
        for rec in self.records:
            if rec.normalized_name == normalized:
                return rec
        return None

    def partial(self, normalized: str, limit: int) -> List[EntreeRecord]:
        return [rec for rec in self.records if _contains_either_way(rec, normalized)][:limit]

    def sample(self, limit: int) -> List[EntreeRecord]:
        return self.records[:limit]


class SqliteEntreeDictionary:
    """
    `common_entrees` table:
        id, entree_name, normalized_name, category, synonyms (JSON list), popularity_score
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)

    def db_connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise DictionaryUnavailableError(f"cannot open {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    def ensure_schema(self) -> None:
        with self.db_connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS common_entrees (
                  id               INTEGER PRIMARY KEY AUTOINCREMENT,
                  entree_name      TEXT NOT NULL,
                  normalized_name  TEXT NOT NULL,
                  category         TEXT,
                  synonyms         TEXT,            -- JSON list of normalized names
                  popularity_score REAL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_entrees_norm ON common_entrees(normalized_name)")
            conn.commit()

    def add_entrees(self, entries: Iterable[Tuple[str, Optional[str], Sequence[str]]]) -> int:
        """Insert (name, category, synonyms) rows; returns count inserted."""
        self.ensure_schema()
        n = 0
        with self.db_connect() as conn:
            for name, category, synonyms in entries:
                conn.execute(
                    "INSERT INTO common_entrees (entree_name, normalized_name, category, synonyms) VALUES (?, ?, ?, ?)",
                    (
                        name,
                        normalize_entree_text(name),
                        category,
                        json.dumps([normalize_entree_text(s) for s in synonyms or ()]),
                    ),
                )
                n += 1
            conn.commit()
        return n

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> EntreeRecord:
        try:
            syns = tuple(json.loads(row["synonyms"] or "[]"))
        except (TypeError, ValueError):
            syns = ()
        return EntreeRecord(
            id=str(row["id"]),
            name=row["entree_name"],
            normalized_name=row["normalized_name"] or normalize_entree_text(row["entree_name"]),
            category=row["category"],
            synonyms=syns,
            popularity_score=row["popularity_score"],
        )

    def _query(self, sql: str, params: Tuple) -> List[sqlite3.Row]:
        try:
            with self.db_connect() as conn:
                return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise DictionaryUnavailableError(f"common_entrees query failed: {e}") from e

    def exact(self, normalized: str) -> Optional[EntreeRecord]:
        rows = self._query(
            "SELECT * FROM common_entrees WHERE normalized_name = ? LIMIT 1",
            (normalized,),
        )
        return self._row_to_record(rows[0]) if rows else None

    def partial(self, normalized: str, limit: int) -> List[EntreeRecord]:
        # synonyms are a JSON column; rows carrying any are checked element-wise below
        rows = self._query(
            """
            SELECT * FROM common_entrees
             WHERE normalized_name LIKE '%' || ? || '%'
                OR ? LIKE '%' || normalized_name || '%'
                OR (synonyms IS NOT NULL AND synonyms <> '[]')
             ORDER BY id
            """,
            (normalized, normalized),
        )
        hits: List[EntreeRecord] = []
        for row in rows:
            rec = self._row_to_record(row)
            if _contains_either_way(rec, normalized):
                hits.append(rec)
                if len(hits) >= limit:
                    break
        return hits

    def sample(self, limit: int) -> List[EntreeRecord]:
        rows = self._query("SELECT * FROM common_entrees ORDER BY id LIMIT ?", (int(limit),))
        return [self._row_to_record(r) for r in rows]


# ── String similarity ────────────────────────────────

def levenshtein_distance(a: str, b: str) -> int:
    return Levenshtein.distance(a or "", b or "")


def partial_match_score(text1: str, text2: str) -> float:
    """1 - distance / longer length; two empty strings score 1.0."""
    return Levenshtein.normalized_similarity(text1 or "", text2 or "")


def word_similarity(w1: str, w2: str) -> float:
    return Levenshtein.normalized_similarity(w1 or "", w2 or "")


def fuzzy_match_score(text1: str, text2: str) -> float:
    words1 = [w for w in (text1 or "").split() if len(w) > 2]
    words2 = [w for w in (text2 or "").split() if len(w) > 2]
    if not words1 or not words2:
        return 0.0

    total = 0.0
    matched = 0
    for w1 in words1:
        best = max(word_similarity(w1, w2) for w2 in words2)
        total += best
        if best > WORD_MATCH_THRESHOLD:
            matched += 1

    avg = total / len(words1)
    ratio = matched / len(words1)
    return avg * 0.7 + ratio * 0.3


# ── Lookup ───────────────────────────────────────────

class EntreeLookup:
    def __init__(self, dictionary: EntreeDictionary):
        self.dictionary = dictionary

    def _match(self, normalized: str) -> Optional[EntreeMatch]:
        rec = self.dictionary.exact(normalized)
        if rec is not None:
            return _to_match(rec, EXACT_BOOST, "exact")

        partials = self.dictionary.partial(normalized, PARTIAL_LIMIT)
        if partials:
            best = max(partials, key=lambda r: partial_match_score(normalized, r.normalized_name))
            if partial_match_score(normalized, best.normalized_name) > PARTIAL_MIN_SCORE:
                return _to_match(best, PARTIAL_BOOST, "partial")

        if any(len(w) > 2 for w in normalized.split()):
            pool = self.dictionary.sample(FUZZY_POOL)
            if pool:
                best = max(pool, key=lambda r: fuzzy_match_score(normalized, r.normalized_name))
                if fuzzy_match_score(normalized, best.normalized_name) > FUZZY_MIN_SCORE:
                    return _to_match(best, FUZZY_BOOST, "fuzzy")
        return None

    def find_match(self, text: str) -> Optional[EntreeMatch]:
        normalized = normalize_entree_text(text)
        if not normalized:
            return None
        try:
            match = self._match(normalized)
        except Exception as e:
            log.warning("Entree lookup failed for %r: %s", text, e)
            return None
        log.debug("Entree lookup %r → %s", normalized, match.match_type if match else "none")
        return match

    def find_matches(self, texts: Sequence[str], batch_size: int = DEFAULT_BATCH_SIZE) -> Dict[str, Optional[EntreeMatch]]:
        """Look up many texts, at most `batch_size` in flight at a time."""
        results: Dict[str, Optional[EntreeMatch]] = {}
        size = max(1, int(batch_size))
        with ThreadPoolExecutor(max_workers=size) as executor:
            for start in range(0, len(texts), size):
                batch = list(texts[start:start + size])
                for text, match in zip(batch, executor.map(self.find_match, batch)):
                    results[text] = match
        return results
