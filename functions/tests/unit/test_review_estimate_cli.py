"""Unit tests for the review_estimate script."""

import io
import json

import pytest

from scripts.review_estimate import EXIT_ACCEPTED, EXIT_INVALID, EXIT_REJECTED, main
from tests.fixtures.sample_estimates import PROSE_DOCUMENT, WATER_LOSS_ESTIMATE, get_scenario_d_cost_items


@pytest.fixture
def estimate_file(tmp_path):
    path = tmp_path / "estimate.txt"
    path.write_text(WATER_LOSS_ESTIMATE, encoding="utf-8")
    return path


class TestReviewEstimateScript:
    """Tests for exit codes and output."""

    def test_accepted(self, estimate_file, tmp_path):
        out = tmp_path / "review.json"

        assert main(["--input", str(estimate_file), "--loss-type", "WATER", "--out", str(out)]) == EXIT_ACCEPTED
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["expectationFindings"]["lossType"] == "WATER"
        assert "opAnalysis" in data

    def test_cost_items(self, estimate_file, tmp_path):
        costs = tmp_path / "costs.json"
        costs.write_text(json.dumps(get_scenario_d_cost_items()), encoding="utf-8")
        out = tmp_path / "review.json"

        assert main(["--input", str(estimate_file), "--cost-items", str(costs), "--out", str(out)]) == EXIT_ACCEPTED
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["opAnalysis"]["gaps"][0]["gapType"] == "MISSING_ON_ESTIMATE"

    def test_rejected(self, tmp_path, capsys):
        path = tmp_path / "prose.txt"
        path.write_text(PROSE_DOCUMENT, encoding="utf-8")

        assert main(["--input", str(path)]) == EXIT_REJECTED
        assert json.loads(capsys.readouterr().out)["bucket"] == "no_indicators"

    def test_narrative_rejected(self, estimate_file, tmp_path, capsys):
        narrative = tmp_path / "narrative.txt"
        narrative.write_text("We recommend asking for more.", encoding="utf-8")

        assert main(["--input", str(estimate_file), "--narrative", str(narrative)]) == EXIT_REJECTED
        assert json.loads(capsys.readouterr().out)["code"] == "OUTPUT_GUARDRAIL_VIOLATION"

    def test_narrative_from_stdin(self, estimate_file, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("You are owed more."))

        assert main(["--input", str(estimate_file), "--narrative", "-"]) == EXIT_REJECTED
        assert json.loads(capsys.readouterr().out)["code"] == "OUTPUT_GUARDRAIL_VIOLATION"

    def test_narrative_help_names_a_file(self, capsys):
        with pytest.raises(SystemExit):
            main(["--help"])
        help_text = " ".join(capsys.readouterr().out.split())

        assert "File with generated summary text" in help_text
        assert "('-' reads stdin)" in help_text

    def test_missing_file(self, tmp_path):
        assert main(["--input", str(tmp_path / "missing.txt")]) == EXIT_INVALID

    def test_empty_input(self, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_text("   ", encoding="utf-8")

        assert main(["--input", str(path)]) == EXIT_INVALID

    def test_usage_error(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == EXIT_INVALID
