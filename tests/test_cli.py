"""
CLI — extract from a lines JSON file, seed the dictionary, show stats.

Run: python -m pytest tests/test_cli.py -v
"""

import sys
import os
import json

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from mlmp.cli import build_extractor, build_parser, main
from mlmp.config import Settings


def _lines_file(tmp_path):
    path = tmp_path / "page1.json"
    path.write_text(json.dumps([{"text": "ENTREES"}, {"text": "Grilled Salmon $24"}]), encoding="utf-8")
    return path


class TestCli:
    def test_parser(self):
        args = build_parser().parse_args(["extract", "page.json", "--page", "2", "--top-n", "5"])
        assert args.command == "extract"
        assert args.page == 2 and args.top_n == 5

    def test_extract_without_db(self, tmp_path, capsys):
        code = main(["extract", str(_lines_file(tmp_path)), "--db", str(tmp_path / "none.db")])
        assert code == 0
        out = json.loads(capsys.readouterr().out)
        assert [c["text"] for c in out] == ["Grilled Salmon"]
        assert out[0]["header_context"] == "entrees"
        assert out[0]["database_match"] is None

    def test_seed_then_extract(self, tmp_path, capsys):
        db = tmp_path / "mlmp.db"
        seed = tmp_path / "entrees.json"
        seed.write_text(json.dumps(["Grilled Salmon", {"name": "Ribeye Steak", "category": "beef"}]), encoding="utf-8")
        assert main(["seed-entrees", str(seed), "--db", str(db)]) == 0
        assert "[OK] Seeded 2" in capsys.readouterr().out

        assert main(["extract", str(_lines_file(tmp_path)), "--db", str(db)]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out[0]["database_match"]["match_type"] == "exact"

    def test_stats(self, tmp_path, capsys):
        assert main(["stats", "--db", str(tmp_path / "mlmp.db")]) == 0
        stats = json.loads(capsys.readouterr().out)
        assert stats["total_predictions"] == 0

    def test_missing_file(self, tmp_path, capsys):
        assert main(["extract", str(tmp_path / "missing.json")]) == 1
        assert "[ERR]" in capsys.readouterr().err

    def test_lookup_batch_size_wired(self, tmp_path):
        db = tmp_path / "mlmp.db"
        seed = tmp_path / "entrees.json"
        seed.write_text(json.dumps(["Grilled Salmon"]), encoding="utf-8")
        assert main(["seed-entrees", str(seed), "--db", str(db)]) == 0
        extractor = build_extractor(Settings(lookup_batch_size=4, top_n=7), db)
        assert extractor.config.lookup_batch_size == 4
        assert extractor.config.top_n == 7
        assert extractor.lookup is not None
