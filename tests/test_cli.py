"""Tests for review.cli module."""

import argparse
import json
import sys

import pytest
from unittest.mock import patch

from review.cli import apply_overrides, main, print_summary
from review.config import AnalysisConfig
from review.errors import InputError
from review.saved import saved_analysis_from_dict

SAVED = {
    "players": {
        "white": {"username": "alice", "rating": "1720"},
        "black": {"username": "bob", "rating": "1650"},
    },
    "results": {"accuracies": {"white": 91.2, "black": 78.4}, "sources": {"cloud": 10, "local": 31}},
}


def namespace(**kwargs):
    defaults = {'depth': None, 'concurrency': None, 'no_cloud': False,
                'engine': None, 'worker_timeout': None}
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


class TestApplyOverrides:
    """Tests for apply_overrides function."""

    def test_no_flags_keeps_config(self):
        config = AnalysisConfig(depth=12)

        assert apply_overrides(config, namespace()) == config

    def test_flags_override(self):
        config = apply_overrides(AnalysisConfig(), namespace(
            depth=20, concurrency=2, no_cloud=True, engine="/opt/sf", worker_timeout=30.0
        ))

        assert config.depth == 20
        assert config.concurrency == 2
        assert config.cloud_enabled is False
        assert config.engine_path == "/opt/sf"
        assert config.worker_timeout == 30.0

    def test_flags_are_validated(self):
        with pytest.raises(InputError):
            apply_overrides(AnalysisConfig(), namespace(depth=99))


class TestPrintSummary:
    def test_summary(self, capsys):
        print_summary(saved_analysis_from_dict(SAVED))

        out = capsys.readouterr().out
        assert "White: alice (1720)  accuracy 91.2%" in out
        assert "Black: bob (1650)  accuracy 78.4%" in out
        assert "Positions: 10 cloud, 31 local" in out

    def test_missing_accuracies(self, capsys):
        data = {"players": SAVED["players"], "results": {"accuracies": None}}

        print_summary(saved_analysis_from_dict(data))

        assert "accuracy -" in capsys.readouterr().out


class TestMain:
    """Tests for the main entry point."""

    def run_main(self, *args):
        with patch.object(sys, 'argv', ['review', *args]):
            with pytest.raises(SystemExit) as exc_info:
                main()
        return exc_info.value.code

    def test_load_saved_analysis(self, tmp_path, capsys):
        saved_file = tmp_path / "game.json"
        saved_file.write_text(json.dumps(SAVED))

        assert self.run_main('--load', str(saved_file)) == 0
        assert "alice" in capsys.readouterr().out

    def test_load_invalid_file(self, tmp_path, capsys):
        saved_file = tmp_path / "game.json"
        saved_file.write_text("[]")

        assert self.run_main('--load', str(saved_file)) == 1
        assert "Error: Invalid savefile." in capsys.readouterr().out

    def test_missing_pgn_file(self, tmp_path, capsys):
        assert self.run_main(str(tmp_path / "missing.pgn")) == 1
        assert "Cannot read" in capsys.readouterr().out

    def test_pgn_required(self):
        assert self.run_main() == 2

    def test_review_writes_output(self, tmp_path, capsys, fake_cloud, short_pgn):
        """A full review through the CLI, with every position answered by the cloud."""
        pgn_file = tmp_path / "game.pgn"
        pgn_file.write_text(short_pgn)
        output = tmp_path / "out.json"

        def create(config, report_builder):
            from review.orchestrator import Orchestrator
            return Orchestrator(config, cloud=fake_cloud(hits=100), report_builder=report_builder)

        with patch('review.cli.create_orchestrator', side_effect=create), \
             patch.object(sys, 'argv', ['review', str(pgn_file), '-d', '6', '-o', str(output)]):
            main()

        saved = json.loads(output.read_text())
        assert saved['players']['white']['username'] == 'alice'
        assert saved['results']['sources'] == {'cloud': 3, 'local': 0}
        assert "Analysis complete." in capsys.readouterr().out
