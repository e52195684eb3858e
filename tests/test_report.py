"""Tests for review.report module."""

import pytest

from review.errors import ReportError
from review.report import DEFAULT_BUILDER, evaluation_summary, generate_report, resolve_builder


def evaluated(worker):
    return {"fen": "fen", "move": None, "worker": worker, "top_lines": []}


class TestEvaluationSummary:
    """Tests for the default report builder."""

    def test_counts_sources(self):
        positions = [evaluated("cloud"), evaluated("local"), evaluated("local")]

        report = evaluation_summary(positions)

        assert report["sources"] == {"cloud": 1, "local": 2}
        assert report["positions"] == positions
        assert report["accuracies"] is None

    def test_rejects_empty_game(self):
        with pytest.raises(ValueError):
            evaluation_summary([])


class TestGenerateReport:
    """Tests for generate_report function."""

    def test_builder_output_returned(self):
        assert generate_report([evaluated("cloud")], lambda p: {"n": len(p)}) == {"n": 1}

    def test_builder_exception_becomes_report_error(self):
        def builder(positions):
            raise KeyError("top_lines")

        with pytest.raises(ReportError, match="Failed to generate report.") as exc_info:
            generate_report([evaluated("local")], builder)
        assert isinstance(exc_info.value.__cause__, KeyError)

    def test_non_dict_report_rejected(self):
        with pytest.raises(ReportError):
            generate_report([evaluated("local")], lambda p: None)

    def test_builder_called_once(self):
        calls = []

        def builder(positions):
            calls.append(positions)
            raise RuntimeError("boom")

        with pytest.raises(ReportError):
            generate_report([evaluated("local")], builder)
        assert len(calls) == 1


class TestResolveBuilder:
    """Tests for resolve_builder function."""

    def test_default(self):
        assert resolve_builder(DEFAULT_BUILDER) is evaluation_summary

    def test_missing_module(self):
        with pytest.raises(ValueError, match="Cannot load report builder"):
            resolve_builder("no_such_module:build")

    def test_not_callable(self):
        with pytest.raises(ValueError, match="not callable"):
            resolve_builder("review.report:DEFAULT_BUILDER")
