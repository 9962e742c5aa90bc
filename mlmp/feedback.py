# mlmp/feedback.py
"""
Feedback Store — predictions, user labels and trained model versions.

Three sqlite tables:
  mlmp_predictions     one row per emitted candidate (features JSON + confidence)
  mlmp_labels          approve / deny / edit per (prediction, user)
  mlmp_model_versions  trained weight tables with training metrics

load_latest_weights() is the fetch callback for the scorer's weight cache.
Retraining is due every 10 labels (see training_stats()["pending_retrain"]).
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .candidates import Candidate, CandidateFeatures, validate_entree_name, normalize_candidate_text
from .config import DEFAULT_DB_PATH
from .errors import FeedbackStoreError, WeightFetchError

log = logging.getLogger(__name__)

VALID_ACTIONS = ("approve", "deny", "edit")
RETRAIN_EVERY = 10


@dataclass
class TrainingSample:
    pred_id: str
    text: str
    features: CandidateFeatures
    label: str                      # approve | deny | edit
    edited_text: Optional[str] = None
    confidence: float = 0.0

    @property
    def is_positive(self) -> bool:
        return self.label in ("approve", "edit")


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


class FeedbackStore:
    def __init__(self, db_path: Union[str, Path] = DEFAULT_DB_PATH):
        self.db_path = Path(db_path)
        self._ensure_schema()

    def db_connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    # ------------------------------------------------------------
    # Schema (idempotent)
    # ------------------------------------------------------------
    def _ensure_schema(self) -> None:
        try:
            with self.db_connect() as conn:
                cur = conn.cursor()
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS mlmp_predictions (
                      pred_id    TEXT PRIMARY KEY,
                      menu_id    TEXT,
                      user_id    TEXT,
                      text       TEXT NOT NULL,
                      features   TEXT NOT NULL,      -- JSON CandidateFeatures
                      confidence REAL NOT NULL DEFAULT 0,
                      created_at TEXT NOT NULL
                    )
                    """
                )
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS mlmp_labels (
                      pred_id     TEXT NOT NULL,
                      user_id     TEXT NOT NULL,
                      label       TEXT NOT NULL CHECK (label IN ('approve', 'deny', 'edit')),
                      edited_text TEXT,
                      created_at  TEXT NOT NULL,
                      PRIMARY KEY (pred_id, user_id),
                      FOREIGN KEY (pred_id) REFERENCES mlmp_predictions(pred_id) ON DELETE CASCADE
                    )
                    """
                )
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS mlmp_model_versions (
                      id         INTEGER PRIMARY KEY AUTOINCREMENT,
                      version    TEXT NOT NULL,
                      metrics    TEXT NOT NULL,      -- JSON {weights, accuracy, training_samples}
                      created_at TEXT NOT NULL
                    )
                    """
                )
                cur.execute("CREATE INDEX IF NOT EXISTS idx_preds_menu ON mlmp_predictions(menu_id)")
                cur.execute("CREATE INDEX IF NOT EXISTS idx_labels_label ON mlmp_labels(label)")
                conn.commit()
        except sqlite3.Error as e:
            raise FeedbackStoreError(f"cannot initialise feedback tables in {self.db_path}: {e}") from e

    # ------------------------------------------------------------
    # Predictions / labels
    # ------------------------------------------------------------
    def save_predictions(self, candidates: Iterable[Candidate], menu_id: str, user_id: str) -> int:
        rows = [
            (c.id, menu_id, user_id, c.text, json.dumps(c.features.to_dict()), float(c.confidence), _now())
            for c in candidates
        ]
        try:
            with self.db_connect() as conn:
                conn.executemany(
                    """
                    INSERT OR REPLACE INTO mlmp_predictions
                      (pred_id, menu_id, user_id, text, features, confidence, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    rows,
                )
                conn.commit()
        except sqlite3.Error as e:
            raise FeedbackStoreError(f"saving predictions failed: {e}") from e
        log.info("Saved %d predictions for menu %s", len(rows), menu_id)
        return len(rows)

    def save_feedback(
        self,
        pred_id: str,
        user_id: str,
        action: str,
        edited_text: Optional[str] = None,
    ) -> None:
        action = (action or "").strip().lower()
        if action not in VALID_ACTIONS:
            raise ValueError(f"invalid feedback action: {action!r}")
        if action == "edit" and not (edited_text or "").strip():
            raise ValueError("edit feedback requires edited_text")
        text = edited_text.strip() if action == "edit" and edited_text else None

        try:
            with self.db_connect() as conn:
                row = conn.execute(
                    "SELECT 1 FROM mlmp_predictions WHERE pred_id = ?", (pred_id,)
                ).fetchone()
                if not row:
                    raise FeedbackStoreError(f"unknown prediction: {pred_id}")
                conn.execute(
                    """
                    INSERT OR REPLACE INTO mlmp_labels (pred_id, user_id, label, edited_text, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (pred_id, user_id, action, text, _now()),
                )
                if text:
                    conn.execute("UPDATE mlmp_predictions SET text = ? WHERE pred_id = ?", (text, pred_id))
                conn.commit()
        except sqlite3.Error as e:
            raise FeedbackStoreError(f"saving feedback failed: {e}") from e

    def collect_training_data(self) -> List[TrainingSample]:
        with self.db_connect() as conn:
            rows = conn.execute(
                """
                SELECT p.pred_id, p.text, p.features, p.confidence, l.label, l.edited_text
                  FROM mlmp_labels l
                  JOIN mlmp_predictions p ON p.pred_id = l.pred_id
                 ORDER BY l.rowid
                """
            ).fetchall()

        samples: List[TrainingSample] = []
        for r in rows:
            try:
                feats = CandidateFeatures.from_dict(json.loads(r["features"] or "{}"))
            except ValueError:
                log.debug("Skipping prediction %s with unreadable features", r["pred_id"])
                continue
            samples.append(TrainingSample(
                pred_id=r["pred_id"],
                text=r["text"],
                features=feats,
                label=r["label"],
                edited_text=r["edited_text"],
                confidence=float(r["confidence"] or 0.0),
            ))
        return samples

    def approved_entrees(self, menu_id: Optional[str] = None) -> List[str]:
        """Normalized names of approved/edited predictions that pass the final entree gate."""
        sql = """
            SELECT p.text
              FROM mlmp_predictions p
              JOIN mlmp_labels l ON l.pred_id = p.pred_id
             WHERE l.label IN ('approve', 'edit')
        """
        params: tuple = ()
        if menu_id is not None:
            sql += " AND p.menu_id = ?"
            params = (menu_id,)
        with self.db_connect() as conn:
            texts = [r["text"] for r in conn.execute(sql + " ORDER BY p.rowid", params).fetchall()]

        out: List[str] = []
        for t in texts:
            norm = normalize_candidate_text(t)
            if validate_entree_name(norm) and norm not in out:
                out.append(norm)
        return out

    # ------------------------------------------------------------
    # Model versions
    # ------------------------------------------------------------
    def save_model_version(
        self,
        version: str,
        weights: Mapping[str, float],
        accuracy: float,
        training_samples: int = 0,
    ) -> None:
        metrics = {
            "weights": {k: float(v) for k, v in weights.items()},
            "accuracy": float(accuracy),
            "training_samples": int(training_samples),
        }
        try:
            with self.db_connect() as conn:
                conn.execute(
                    "INSERT INTO mlmp_model_versions (version, metrics, created_at) VALUES (?, ?, ?)",
                    (version, json.dumps(metrics), _now()),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise FeedbackStoreError(f"saving model version failed: {e}") from e
        log.info("Saved model version %s (accuracy %.3f)", version, accuracy)

    def load_latest_weights(self) -> Optional[Dict[str, float]]:
        try:
            with self.db_connect() as conn:
                row = conn.execute(
                    "SELECT metrics FROM mlmp_model_versions ORDER BY id DESC LIMIT 1"
                ).fetchone()
        except sqlite3.Error as e:
            raise WeightFetchError(f"loading trained weights failed: {e}") from e
        if not row:
            return None
        try:
            metrics: Dict[str, Any] = json.loads(row["metrics"] or "{}")
        except ValueError as e:
            raise WeightFetchError(f"stored weights are not valid JSON: {e}") from e
        weights = metrics.get("weights")
        return dict(weights) if weights else None

    def training_stats(self) -> Dict[str, Any]:
        with self.db_connect() as conn:
            total_preds = conn.execute("SELECT COUNT(*) FROM mlmp_predictions").fetchone()[0]
            counts = {
                r["label"]: r["n"]
                for r in conn.execute("SELECT label, COUNT(*) AS n FROM mlmp_labels GROUP BY label").fetchall()
            }
            last = conn.execute(
                "SELECT version FROM mlmp_model_versions ORDER BY id DESC LIMIT 1"
            ).fetchone()

        total_labels = sum(counts.values())
        return {
            "total_predictions": int(total_preds),
            "total_labels": int(total_labels),
            "approved": int(counts.get("approve", 0)),
            "denied": int(counts.get("deny", 0)),
            "edited": int(counts.get("edit", 0)),
            "last_model_version": last["version"] if last else None,
            "pending_retrain": total_labels >= RETRAIN_EVERY and total_labels % RETRAIN_EVERY == 0,
        }
