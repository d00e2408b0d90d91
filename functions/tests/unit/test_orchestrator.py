"""Unit tests for EstimateReviewPipeline."""

import json
from unittest.mock import MagicMock

import pytest

from config.errors import ErrorCode, PipelineError
from models.expectations import LossType
from models.findings import IntegrityFindingType, Severity
from models.guardrail import ViolationCategory
from models.op_analysis import OPGapType
from models.review import DISCLAIMER, PipelineStage, ReviewRejection, ReviewResult
from pipeline.orchestrator import RULESET_VERSIONS, EstimateReviewPipeline
from tests.fixtures.sample_estimates import (
    DRYWALL_NO_PAINT_ESTIMATE,
    FLOORING_NO_REINSTALL_ESTIMATE,
    HIDDEN_PHRASE_ESTIMATE,
    PROSE_DOCUMENT,
    TOO_SHORT_DOCUMENT,
    WATER_LOSS_ESTIMATE,
    ZERO_QUANTITY_LABOR_ESTIMATE,
    get_scenario_d_cost_items,
)


ANALYSIS_STAGES = [
    PipelineStage.RECEIVED,
    PipelineStage.GUARDRAIL_RAW,
    PipelineStage.PARSED,
    PipelineStage.GUARDRAIL_EXTRACTED,
    PipelineStage.EXPECTATIONS,
    PipelineStage.INTEGRITY,
]


def finding_types(result):
    return [f.type for f in result.integrity_findings]


# ============================================================================
# End-to-end scenarios
# ============================================================================

class TestScenarios:
    """End-to-end review scenarios."""

    def test_drywall_without_paint(self, pipeline, make_request):
        """Water loss with drywall but no paint."""
        result = pipeline.run(make_request(DRYWALL_NO_PAINT_ESTIMATE, loss_type="WATER"))

        assert isinstance(result, ReviewResult)
        assert IntegrityFindingType.DRYWALL_WITHOUT_PAINT in finding_types(result)
        assert "PNT" in result.expectation_findings.not_detected_expected.required
        assert result.expectation_observations[0].trades == ["PNT"]
        assert result.expectation_observations[0].severity == Severity.HIGH

    def test_zero_quantity_labor(self, pipeline, make_request):
        """Zero-quantity removal on line 1."""
        result = pipeline.run(make_request(ZERO_QUANTITY_LABOR_ESTIMATE, loss_type="WATER"))

        labor = [f for f in result.integrity_findings if f.type == IntegrityFindingType.ZERO_QUANTITY_WITH_LABOR]
        assert len(labor) == 1
        assert labor[0].line_items_affected == [1]
        assert labor[0].severity == Severity.MEDIUM

        zero = [f for f in result.integrity_findings if f.type == IntegrityFindingType.ZERO_QUANTITY]
        assert zero[0].severity == Severity.INFO

    def test_flooring_removal_without_reinstall(self, pipeline, make_request):
        """Carpet and pad removed, nothing reinstalled."""
        result = pipeline.run(make_request(FLOORING_NO_REINSTALL_ESTIMATE, loss_type="WATER"))
        types = finding_types(result)

        assert IntegrityFindingType.FLOORING_REMOVAL_WITHOUT_REINSTALL in types
        removal = [f for f in result.integrity_findings if f.type == IntegrityFindingType.REMOVAL_WITHOUT_REPLACEMENT]
        assert sorted(f.trade for f in removal) == ["FLR", "TRM"]

    def test_missing_op(self, pipeline, make_request):
        """$20,725 of priced work with no O&P line."""
        request = make_request(WATER_LOSS_ESTIMATE, loss_type="WATER", cost_line_items=get_scenario_d_cost_items())
        result = pipeline.run(request)

        assert result.op_analysis is not None
        assert result.op_analysis.gap_types() == [OPGapType.MISSING_ON_ESTIMATE]
        assert result.op_analysis.gaps[0].estimated_impact == 4145.0
        assert result.op_analysis.total_impact == 4145.0

    def test_findings_sorted_by_severity(self, pipeline, make_request):
        result = pipeline.run(make_request(FLOORING_NO_REINSTALL_ESTIMATE, loss_type="WATER"))
        ranks = [f.severity.rank for f in result.integrity_findings]

        assert ranks == sorted(ranks, reverse=True)
        assert sum(result.integrity_summary.values()) == len(result.integrity_findings)

    def test_parse_issues_not_duplicated(self, pipeline, make_request):
        result = pipeline.run(make_request(FLOORING_NO_REINSTALL_ESTIMATE))
        dumped = [f.model_dump_json() for f in result.integrity_findings]

        assert len(dumped) == len(set(dumped))

    def test_unrecognized_loss_type(self, pipeline, make_request):
        result = pipeline.run(make_request(WATER_LOSS_ESTIMATE, loss_type="meteor"))

        assert result.expectation_findings.loss_type == LossType.OTHER
        assert result.expectation_observations[-1].observation.endswith("Loss type: OTHER.")


# ============================================================================
# Gates
# ============================================================================

class TestGuardrailGates:
    """Tests for guardrail rejections."""

    def test_raw_text_rejected(self, pipeline, make_request):
        result = pipeline.run(make_request(WATER_LOSS_ESTIMATE, user_input="This is bad faith"))

        assert isinstance(result, ReviewRejection)
        assert result.stage == PipelineStage.GUARDRAIL_RAW
        assert result.code == ErrorCode.GUARDRAIL_VIOLATION
        assert result.reason == "Prohibited content detected: LEGAL_ADVERSARIAL"
        assert [v.match for v in result.violations] == ["bad faith"]

    def test_all_categories_listed(self, pipeline, make_request):
        result = pipeline.run(make_request(WATER_LOSS_ESTIMATE, user_input="Call my lawyer so we can negotiate"))

        categories = {v.category for v in result.violations}
        assert categories == {ViolationCategory.LEGAL_ADVERSARIAL, ViolationCategory.NEGOTIATION_DISPUTE}

    def test_extracted_text_rejected(self, pipeline, make_request):
        """Phrase hidden by a quantity token surfaces after extraction."""
        result = pipeline.run(make_request(HIDDEN_PHRASE_ESTIMATE))

        assert isinstance(result, ReviewRejection)
        assert result.stage == PipelineStage.GUARDRAIL_EXTRACTED
        assert result.code == ErrorCode.GUARDRAIL_VIOLATION

    def test_rejection_has_no_partial_results(self, pipeline, make_request):
        data = pipeline.run(make_request(WATER_LOSS_ESTIMATE, user_input="file a lawsuit")).to_dict()

        assert data["rejected"] is True
        assert "lineItems" not in data
        assert "integrityFindings" not in data


class TestFormatGate:
    """Tests for format rejections."""

    def test_prose_rejected(self, pipeline, make_request):
        result = pipeline.run(make_request(PROSE_DOCUMENT))

        assert isinstance(result, ReviewRejection)
        assert result.to_dict() == {
            "rejected": True,
            "stage": "PARSED",
            "code": ErrorCode.LOW_CONFIDENCE_FORMAT,
            "reason": "No estimate format indicators detected",
            "confidence": 0.0,
            "bucket": "no_indicators",
            "violations": [],
        }

    def test_too_short_rejected(self, pipeline, make_request):
        result = pipeline.run(make_request(TOO_SHORT_DOCUMENT))

        assert result.code == ErrorCode.INPUT_TOO_SHORT
        assert result.bucket == "insufficient_content"

    def test_guardrail_runs_before_format_gate(self, pipeline, make_request):
        result = pipeline.run(make_request(PROSE_DOCUMENT, user_input="am i covered"))
        assert result.stage == PipelineStage.GUARDRAIL_RAW


# ============================================================================
# Result shape
# ============================================================================

class TestResult:
    """Tests for the assembled result."""

    def test_stages_without_cost_items(self, pipeline, make_request):
        result = pipeline.run(make_request(WATER_LOSS_ESTIMATE))

        assert result.op_analysis is None
        assert result.stages_completed == ANALYSIS_STAGES + [PipelineStage.ASSEMBLED]

    def test_stages_with_cost_items(self, pipeline, make_request):
        result = pipeline.run(make_request(WATER_LOSS_ESTIMATE, cost_line_items=get_scenario_d_cost_items()))
        assert result.stages_completed == ANALYSIS_STAGES + [PipelineStage.OP_ANALYSIS, PipelineStage.ASSEMBLED]

    def test_empty_cost_items_still_analyzed(self, pipeline, make_request):
        result = pipeline.run(make_request(WATER_LOSS_ESTIMATE, cost_line_items=[]))

        assert result.op_analysis is not None
        assert result.op_analysis.gaps == []
        assert result.op_analysis.op_score == 70

    def test_versions_and_disclaimer(self, pipeline, make_request):
        data = pipeline.run(make_request(WATER_LOSS_ESTIMATE)).to_dict()

        assert data["rulesetVersions"] == RULESET_VERSIONS
        assert data["disclaimer"] == DISCLAIMER
        assert data["parseMetadata"]["totalLines"] == 11
        assert "classification" in data

    def test_deterministic(self, pipeline, make_request):
        request = make_request(WATER_LOSS_ESTIMATE, loss_type="WATER", cost_line_items=get_scenario_d_cost_items())
        first = json.dumps(pipeline.run(request).to_dict(), sort_keys=True)
        second = json.dumps(pipeline.run(request).to_dict(), sort_keys=True)

        assert first == second

    @pytest.mark.parametrize("text", [
        WATER_LOSS_ESTIMATE,
        DRYWALL_NO_PAINT_ESTIMATE,
        ZERO_QUANTITY_LABOR_ESTIMATE,
        FLOORING_NO_REINSTALL_ESTIMATE,
    ])
    def test_parallel_matches_sequential(self, pipeline, parallel_pipeline, make_request, text):
        request = make_request(text, loss_type="WATER", cost_line_items=get_scenario_d_cost_items())

        assert parallel_pipeline.run(request).to_dict() == pipeline.run(request).to_dict()


# ============================================================================
# Errors and narrative
# ============================================================================

class TestErrors:
    """Tests for unexpected failures."""

    def test_unexpected_error_wrapped(self, make_request):
        guardrail = MagicMock()
        guardrail.check.side_effect = RuntimeError("boom")
        pipeline = EstimateReviewPipeline(guardrail=guardrail, parallel_stages=False)

        with pytest.raises(PipelineError) as exc_info:
            pipeline.run(make_request(WATER_LOSS_ESTIMATE))

        assert exc_info.value.code == ErrorCode.PIPELINE_FAILED
        assert exc_info.value.stage == PipelineStage.RECEIVED.value
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestReviewNarrative:
    """Tests for the generated-narrative re-scan."""

    def test_clean_narrative(self, pipeline):
        assert pipeline.review_narrative("2 commonly required trade(s) detected in estimate. " + DISCLAIMER) is None

    def test_advocacy_rejected(self, pipeline):
        rejection = pipeline.review_narrative("We recommend asking for more. You are owed payment.")

        assert rejection.stage == PipelineStage.ASSEMBLED
        assert rejection.code == ErrorCode.OUTPUT_GUARDRAIL_VIOLATION
        assert ViolationCategory.RECOMMENDATION in {v.category for v in rejection.violations}
