"""
Feedback store — predictions, approve/deny/edit labels, model versions.

Run: python -m pytest tests/test_feedback_store.py -v
"""

import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from mlmp.candidates import Candidate, CandidateFeatures
from mlmp.errors import FeedbackStoreError, WeightFetchError
from mlmp.feedback import FeedbackStore


def _candidate(text, **feats):
    return Candidate(page=1, text=text, features=CandidateFeatures(**feats), confidence=0.8)


@pytest.fixture
def store(tmp_path):
    return FeedbackStore(tmp_path / "mlmp.db")


class TestPredictionsAndLabels:
    def test_save_predictions(self, store):
        n = store.save_predictions([_candidate("Grilled Salmon"), _candidate("Ribeye Steak")], "menu-1", "u1")
        assert n == 2
        assert store.training_stats()["total_predictions"] == 2

    def test_approve_collects_sample(self, store):
        c = _candidate("Grilled Salmon", token_count=2, is_title_case=1)
        store.save_predictions([c], "menu-1", "u1")
        store.save_feedback(c.id, "u1", "approve")

        samples = store.collect_training_data()
        assert len(samples) == 1
        s = samples[0]
        assert s.pred_id == c.id
        assert s.is_positive
        assert s.features.token_count == 2.0
        assert s.confidence == pytest.approx(0.8)

    def test_relabel_replaces(self, store):
        """One label per (prediction, user); the latest wins."""
        c = _candidate("Grilled Salmon")
        store.save_predictions([c], "menu-1", "u1")
        store.save_feedback(c.id, "u1", "approve")
        store.save_feedback(c.id, "u1", "deny")
        stats = store.training_stats()
        assert stats["total_labels"] == 1
        assert stats["denied"] == 1
        assert not store.collect_training_data()[0].is_positive

    def test_edit_updates_text(self, store):
        c = _candidate("Grilld Salmon")
        store.save_predictions([c], "menu-1", "u1")
        store.save_feedback(c.id, "u1", "edit", edited_text="Grilled Salmon")
        s = store.collect_training_data()[0]
        assert s.label == "edit" and s.is_positive
        assert s.edited_text == "Grilled Salmon"
        assert s.text == "Grilled Salmon"

    def test_invalid_action(self, store):
        with pytest.raises(ValueError):
            store.save_feedback("x", "u1", "maybe")

    def test_edit_needs_text(self, store):
        with pytest.raises(ValueError):
            store.save_feedback("x", "u1", "edit", edited_text="  ")

    def test_unknown_prediction(self, store):
        with pytest.raises(FeedbackStoreError):
            store.save_feedback("missing", "u1", "approve")

    def test_approved_entrees(self, store):
        """Approved names pass the final gate; denied and one-word names don't."""
        keep = _candidate("Grilled Salmon")
        denied = _candidate("Ribeye Steak")
        short = _candidate("Soup")
        store.save_predictions([keep, denied, short], "menu-1", "u1")
        store.save_feedback(keep.id, "u1", "approve")
        store.save_feedback(denied.id, "u1", "deny")
        store.save_feedback(short.id, "u1", "approve")
        assert store.approved_entrees("menu-1") == ["Grilled Salmon"]
        assert store.approved_entrees("other-menu") == []


class TestModelVersions:
    def test_no_weights_yet(self, store):
        assert store.load_latest_weights() is None

    def test_latest_wins(self, store):
        store.save_model_version("trained-1", {"token_count": 0.1}, 0.7, training_samples=10)
        store.save_model_version("trained-2", {"token_count": 0.2}, 0.8, training_samples=20)
        assert store.load_latest_weights() == {"token_count": 0.2}
        assert store.training_stats()["last_model_version"] == "trained-2"

    def test_corrupt_metrics(self, store):
        with store.db_connect() as conn:
            conn.execute(
                "INSERT INTO mlmp_model_versions (version, metrics, created_at) VALUES ('bad', '{nope', 'now')"
            )
            conn.commit()
        with pytest.raises(WeightFetchError):
            store.load_latest_weights()


class TestStats:
    def test_pending_retrain_every_ten(self, store):
        cands = [_candidate(f"Dish Number {chr(65 + i)}") for i in range(11)]
        store.save_predictions(cands, "menu-1", "u1")
        for c in cands[:9]:
            store.save_feedback(c.id, "u1", "approve")
        assert not store.training_stats()["pending_retrain"]
        store.save_feedback(cands[9].id, "u1", "deny")
        stats = store.training_stats()
        assert stats["total_labels"] == 10
        assert stats["approved"] == 9
        assert stats["pending_retrain"]
        store.save_feedback(cands[10].id, "u1", "approve")
        assert not store.training_stats()["pending_retrain"]
