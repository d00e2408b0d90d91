"""Estimate Review Pipeline Orchestrator.

Sequences one review request through the guardrail, parser, expectation,
integrity and O&P stages with fail-fast gating.

Flow:
1. Guardrail scan of the raw text and user input
2. Format confidence gate and line-item extraction
3. Guardrail scan of the extracted line-item text
4. Expectation comparison and integrity rules (optionally concurrent)
5. O&P analysis when priced line items were supplied
6. Assemble the neutral result

Any gate failure returns a ReviewRejection; there are no partial results.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple, Union

import structlog

from config.errors import (
    ErrorCode,
    EstimateReviewError,
    FormatRejectedError,
    GuardrailViolationError,
    PipelineError,
)
from config.settings import settings
from models.expectations import ExpectationFinding, ExpectationObservation, LossType
from models.findings import IntegrityFinding, IntegrityReport
from models.parse_result import FormatRejection, ParseResult
from models.review import PipelineStage, ReviewRejection, ReviewRequest, ReviewResult
from pipeline.stages import StageTracker
from services import integrity_rules, loss_expectations
from services.content_guardrail import GUARDRAIL_RULESET_VERSION, ContentGuardrail
from services.estimate_classifier import classify_estimate
from services.format_parser import EstimateFormatParser
from services.op_gap_detector import OP_RULESET_VERSION, OPGapDetector
from services.trade_taxonomy import TAXONOMY_VERSION
from utils.review_logger import (
    log_review_complete,
    log_review_rejected,
    log_review_start,
    log_stage_result,
)

logger = structlog.get_logger()

RULESET_VERSIONS = {
    "taxonomy": TAXONOMY_VERSION,
    "expectationMatrix": loss_expectations.EXPECTATION_MATRIX_VERSION,
    "integrityRules": integrity_rules.INTEGRITY_RULESET_VERSION,
    "guardrail": GUARDRAIL_RULESET_VERSION,
    "opGapDetector": OP_RULESET_VERSION,
}


class EstimateReviewPipeline:
    """Runs the deterministic review pipeline for one request at a time.

    Holds no per-request state; one instance may serve concurrent callers.
    """

    def __init__(
        self,
        guardrail: Optional[ContentGuardrail] = None,
        parser: Optional[EstimateFormatParser] = None,
        op_detector: Optional[OPGapDetector] = None,
        parallel_stages: Optional[bool] = None,
        stage_workers: Optional[int] = None
    ):
        """Initialize EstimateReviewPipeline.

        Args:
            guardrail: Content guardrail; defaults to the fixed phrase tables.
            parser: Format parser.
            op_detector: O&P gap detector.
            parallel_stages: Evaluate expectations and integrity on a thread
                pool. Defaults to settings.parallel_stages.
            stage_workers: Thread pool size. Defaults to settings.stage_workers.
        """
        self.guardrail = guardrail or ContentGuardrail()
        self.parser = parser or EstimateFormatParser()
        self.op_detector = op_detector or OPGapDetector()
        self.parallel_stages = settings.parallel_stages if parallel_stages is None else parallel_stages
        self.stage_workers = stage_workers or settings.stage_workers

    def run(self, request: ReviewRequest) -> Union[ReviewResult, ReviewRejection]:
        """Run the review pipeline.

        Args:
            request: Validated review request.

        Returns:
            ReviewResult when every gate passes, otherwise ReviewRejection
            for the earliest failing gate.

        Raises:
            PipelineError: If a stage fails unexpectedly.
        """
        tracker = StageTracker()
        try:
            return self._run(request, tracker)
        except (GuardrailViolationError, FormatRejectedError) as e:
            return self._to_rejection(e)
        except EstimateReviewError:
            raise
        except Exception as e:
            logger.exception(
                "review_pipeline_exception",
                stage=tracker.current.value,
                error=str(e)
            )
            raise PipelineError(
                code=ErrorCode.PIPELINE_FAILED,
                message=f"Review failed after {tracker.current.value}: {e}",
                stage=tracker.current.value
            ) from e

    def review_narrative(self, narrative: str) -> Optional[ReviewRejection]:
        """Re-scan generated narrative before it reaches a user.

        Returns:
            None when the narrative is clean, otherwise a ReviewRejection
            listing every violation.
        """
        verdict = self.guardrail.check_output(narrative)
        if verdict.approved:
            return None
        return self._to_rejection(GuardrailViolationError(
            stage=PipelineStage.ASSEMBLED,
            verdict=verdict,
            code=ErrorCode.OUTPUT_GUARDRAIL_VIOLATION
        ))

    # =========================================================================
    # Stages
    # =========================================================================

    def _run(self, request: ReviewRequest, tracker: StageTracker) -> ReviewResult:
        loss_type = request.resolved_loss_type
        log_review_start(
            text_length=len(request.estimate_text),
            loss_type=loss_type.value,
            has_cost_items=request.cost_line_items is not None
        )

        verdict = self.guardrail.check(text=request.estimate_text, user_input=request.user_input)
        if not verdict.approved:
            raise GuardrailViolationError(stage=PipelineStage.GUARDRAIL_RAW, verdict=verdict)
        tracker.advance(PipelineStage.GUARDRAIL_RAW)
        log_stage_result(PipelineStage.GUARDRAIL_RAW.value, violations=0)

        parsed = self.parser.parse(request.estimate_text)
        if isinstance(parsed, FormatRejection):
            raise FormatRejectedError(parsed)
        tracker.advance(PipelineStage.PARSED)
        log_stage_result(
            PipelineStage.PARSED.value,
            confidence=parsed.confidence,
            line_items=len(parsed.line_items),
            trades=len(parsed.trades_detected)
        )

        verdict = self.guardrail.check(line_items=parsed.line_items)
        if not verdict.approved:
            raise GuardrailViolationError(stage=PipelineStage.GUARDRAIL_EXTRACTED, verdict=verdict)
        tracker.advance(PipelineStage.GUARDRAIL_EXTRACTED)
        log_stage_result(PipelineStage.GUARDRAIL_EXTRACTED.value, violations=0)

        (expectations, observations), report = self._evaluate_findings(parsed, loss_type)
        tracker.advance(PipelineStage.EXPECTATIONS)
        log_stage_result(
            PipelineStage.EXPECTATIONS.value,
            loss_type=loss_type.value,
            not_detected_required=len(expectations.not_detected_expected.required)
        )
        tracker.advance(PipelineStage.INTEGRITY)
        log_stage_result(PipelineStage.INTEGRITY.value, findings=report.total_findings)

        op_analysis = None
        if request.cost_line_items is not None:
            op_analysis = self.op_detector.analyze(request.cost_line_items)
            tracker.advance(PipelineStage.OP_ANALYSIS)
            log_stage_result(
                PipelineStage.OP_ANALYSIS.value,
                gaps=len(op_analysis.gaps),
                op_score=op_analysis.op_score
            )

        findings = self._merge_findings(report, parsed)
        tracker.advance(PipelineStage.ASSEMBLED)

        result = ReviewResult(
            confidence=parsed.confidence,
            trades_detected=parsed.trades_detected,
            line_items=parsed.line_items,
            parse_metadata=parsed.metadata,
            classification=classify_estimate(request.estimate_text, parsed.line_items),
            expectation_findings=expectations,
            expectation_observations=observations,
            integrity_findings=findings,
            integrity_summary=integrity_rules.summarize(findings),
            op_analysis=op_analysis,
            stages_completed=list(tracker.completed),
            ruleset_versions=dict(RULESET_VERSIONS),
        )

        log_review_complete(
            confidence=result.confidence,
            trades=len(result.trades_detected),
            integrity_findings=len(findings),
            op_score=op_analysis.op_score if op_analysis else None,
            stages=[s.value for s in tracker.completed]
        )
        return result

    def _evaluate_findings(
        self,
        parsed: ParseResult,
        loss_type: LossType
    ) -> Tuple[Tuple[ExpectationFinding, List[ExpectationObservation]], IntegrityReport]:
        """Run the expectation and integrity stages, concurrently if configured."""
        if not self.parallel_stages:
            return (
                self._expectations(parsed, loss_type),
                integrity_rules.evaluate(parsed.line_items),
            )

        with ThreadPoolExecutor(max_workers=self.stage_workers) as executor:
            expectations_future = executor.submit(self._expectations, parsed, loss_type)
            integrity_future = executor.submit(integrity_rules.evaluate, parsed.line_items)
            return expectations_future.result(), integrity_future.result()

    @staticmethod
    def _expectations(
        parsed: ParseResult,
        loss_type: LossType
    ) -> Tuple[ExpectationFinding, List[ExpectationObservation]]:
        finding = loss_expectations.compare_to_expectations(parsed.trades_detected, loss_type)
        return finding, loss_expectations.generate_observations(finding)

    @staticmethod
    def _merge_findings(report: IntegrityReport, parsed: ParseResult) -> List[IntegrityFinding]:
        """Engine findings plus parse-time observations the engine did not repeat."""
        merged = list(report.findings)
        for issue in parsed.integrity_issues:
            if issue not in merged:
                merged.append(issue)
        return integrity_rules.sort_findings(merged)

    # =========================================================================
    # Rejections
    # =========================================================================

    @staticmethod
    def _to_rejection(error: EstimateReviewError) -> ReviewRejection:
        """Convert a gate failure into the rejection returned to callers."""
        if isinstance(error, GuardrailViolationError):
            categories = [c.value for c in error.verdict.categories]
            rejection = ReviewRejection(
                stage=error.stage,
                code=error.code,
                reason=f"{error.message}: {', '.join(categories)}",
                violations=error.verdict.violations,
            )
            matches = error.verdict.matches
        elif isinstance(error, FormatRejectedError):
            rejection = ReviewRejection(
                stage=PipelineStage.PARSED,
                code=error.code,
                reason=error.message,
                confidence=error.rejection.confidence,
                bucket=error.rejection.bucket.value,
            )
            matches = None
        else:
            raise error

        log_review_rejected(
            stage=rejection.stage.value,
            code=rejection.code,
            reason=rejection.reason,
            violations=matches
        )
        return rejection
