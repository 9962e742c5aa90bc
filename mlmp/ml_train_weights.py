# mlmp/ml_train_weights.py
"""
Feature-Weight Trainer — learns the scorer's per-feature weights from user labels.

Purpose
-------
Turn approve / deny / edit labels collected by the FeedbackStore into a flat
{feature_name: weight} table. The Confidence Scorer picks the latest table up
through its weight cache (trained mode).

Method
------
- Needs at least 10 labeled samples.
- Edit counts as approve (the dish was real, only the text was wrong).
- Both classes present: scikit-learn LogisticRegression on the normalized
  feature vectors (features_to_vector); coefficients are scaled back onto raw
  feature values. If fitting fails, falls back to (approved mean − denied
  mean) per feature.
- Only one class present: the default weight table.

Outputs
-------
- A new row in mlmp_model_versions (version "trained-<epoch ms>")
- Optional joblib bundle (weights + metadata) via --bundle

Usage
-----
python -m mlmp.ml_train_weights --db mlmp.db
python -m mlmp.ml_train_weights --db mlmp.db --bundle models/weights.pkl
"""

from __future__ import annotations

import argparse
import logging
import math
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
from joblib import dump, load

from .candidates import FEATURE_NAMES, features_to_vector, vector_weights_to_features
from .feedback import FeedbackStore, TrainingSample
from .scoring.confidence import DEFAULT_WEIGHTS, sigmoid
from .scoring.weight_cache import normalize_weights

log = logging.getLogger(__name__)


@dataclass
class TrainConfig:
    min_samples: int = 10
    max_iter: int = 500
    C: float = 1.0
    random_state: int = 17


@dataclass
class TrainingResult:
    success: bool
    model_version: str
    training_samples: int
    accuracy: Optional[float] = None
    weights: Dict[str, float] = field(default_factory=dict)
    algo: str = "heuristic"
    error: Optional[str] = None


def _matrix(samples: Sequence[TrainingSample]) -> np.ndarray:
    return np.asarray(
        [[float(getattr(s.features, name)) for name in FEATURE_NAMES] for s in samples],
        dtype=float,
    )


def _model_matrix(samples: Sequence[TrainingSample]) -> np.ndarray:
    return np.vstack([features_to_vector(s.features) for s in samples])


def _labels(samples: Sequence[TrainingSample]) -> np.ndarray:
    return np.asarray([1 if s.is_positive else 0 for s in samples], dtype=int)


def mean_difference_weights(samples: Sequence[TrainingSample]) -> Dict[str, float]:
    X, y = _matrix(samples), _labels(samples)
    pos, neg = X[y == 1], X[y == 0]
    if len(pos) == 0 or len(neg) == 0:
        return dict(DEFAULT_WEIGHTS)
    diff = pos.mean(axis=0) - neg.mean(axis=0)
    return {name: float(w) for name, w in zip(FEATURE_NAMES, diff)}


def weights_accuracy(samples: Sequence[TrainingSample], weights: Dict[str, float]) -> float:
    """Share of samples where sigmoid(Σ value·weight) > 0.5 agrees with the label."""
    if not samples:
        return 0.0
    correct = 0
    for s in samples:
        z = sum(float(getattr(s.features, k, 0.0)) * w for k, w in weights.items())
        predicted = 1 if sigmoid(z) > 0.5 else 0
        correct += int(predicted == (1 if s.is_positive else 0))
    return correct / len(samples)


def train_feature_weights(
    samples: Sequence[TrainingSample],
    cfg: Optional[TrainConfig] = None,
) -> TrainingResult:
    cfg = cfg or TrainConfig()
    n = len(samples)
    if n < cfg.min_samples:
        return TrainingResult(
            success=False,
            model_version="heuristic",
            training_samples=n,
            error=f"Insufficient training data (need at least {cfg.min_samples} samples)",
        )

    version = f"trained-{int(time.time() * 1000)}"
    y = _labels(samples)

    if len(set(y.tolist())) < 2:
        weights = dict(DEFAULT_WEIGHTS)
        log.info("Only one label class in %d samples; using default weights", n)
        return TrainingResult(
            success=True,
            model_version=version,
            training_samples=n,
            accuracy=weights_accuracy(samples, weights),
            weights=weights,
            algo="default",
        )

    from sklearn.linear_model import LogisticRegression

    X = _model_matrix(samples)
    try:
        clf = LogisticRegression(max_iter=cfg.max_iter, C=cfg.C, random_state=cfg.random_state)
        clf.fit(X, y)
        coefs = clf.coef_[0]
        if not all(math.isfinite(float(c)) for c in coefs):
            raise ValueError("non-finite coefficients")
        weights = vector_weights_to_features(coefs)
        accuracy = float(clf.score(X, y))
        algo = "LogisticRegression"
    except (ValueError, ArithmeticError) as e:
        log.warning("LogisticRegression failed (%s); falling back to mean difference", e)
        weights = mean_difference_weights(samples)
        accuracy = weights_accuracy(samples, weights)
        algo = "mean_difference"

    log.info("Trained %s on %d samples (accuracy %.3f)", algo, n, accuracy)
    return TrainingResult(
        success=True,
        model_version=version,
        training_samples=n,
        accuracy=accuracy,
        weights=weights,
        algo=algo,
    )


# ----------------------------
# Bundles
# ----------------------------

def save_weights_bundle(result: TrainingResult, path: Union[str, Path]) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    bundle = {
        "weights": dict(result.weights),
        "model_version": result.model_version,
        "accuracy": result.accuracy,
        "training_samples": result.training_samples,
        "algo": result.algo,
        "feature_names": list(FEATURE_NAMES),
        "created_at": int(time.time()),
    }
    dump(bundle, out)
    return out


def load_weights_bundle(path: Union[str, Path]) -> Optional[Dict[str, float]]:
    """Weights from a joblib bundle; usable as a weight-cache fetch callback."""
    p = Path(path)
    if not p.exists():
        return None
    bundle = load(p)
    return normalize_weights(bundle.get("weights")) or None


def retrain_from_store(store: FeedbackStore, cfg: Optional[TrainConfig] = None) -> TrainingResult:
    samples = store.collect_training_data()
    result = train_feature_weights(samples, cfg)
    if result.success:
        store.save_model_version(
            result.model_version,
            result.weights,
            result.accuracy or 0.0,
            training_samples=result.training_samples,
        )
    return result


# ----------------------------
# CLI
# ----------------------------

def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Train confidence-scorer feature weights from user labels.")
    ap.add_argument("--db", type=str, required=True, help="sqlite file holding the mlmp_* tables")
    ap.add_argument("--bundle", type=str, default=None, help="Also write a joblib weights bundle here")
    ap.add_argument("--min-samples", type=int, default=TrainConfig.min_samples)
    args = ap.parse_args(argv)

    store = FeedbackStore(args.db)
    result = retrain_from_store(store, TrainConfig(min_samples=args.min_samples))
    if not result.success:
        print(f"[ERR] {result.error}", file=sys.stderr)
        return 1

    print(f"[OK] Saved model version {result.model_version} ({result.algo})")
    if args.bundle:
        out = save_weights_bundle(result, args.bundle)
        print(f"[OK] Saved bundle → {out}")
    print(f"[METRICS] samples={result.training_samples} accuracy={result.accuracy:.3f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
