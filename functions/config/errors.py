"""Estimate review error handling.

Custom exceptions and error codes for the review pipeline.
"""

from typing import Optional, Dict, Any, TYPE_CHECKING

if TYPE_CHECKING:
    from models.guardrail import GuardrailVerdict
    from models.parse_result import FormatRejection


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Validation Errors (1xxx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FIELD = "INVALID_FIELD"

    # Admission Errors (2xxx)
    INPUT_TOO_SHORT = "INPUT_TOO_SHORT"
    LOW_CONFIDENCE_FORMAT = "LOW_CONFIDENCE_FORMAT"

    # Guardrail Errors (3xxx)
    GUARDRAIL_VIOLATION = "GUARDRAIL_VIOLATION"
    OUTPUT_GUARDRAIL_VIOLATION = "OUTPUT_GUARDRAIL_VIOLATION"

    # Pipeline Errors (4xxx)
    PIPELINE_FAILED = "PIPELINE_FAILED"
    PIPELINE_INVALID_STATE = "PIPELINE_INVALID_STATE"


class EstimateReviewError(Exception):
    """Base exception for estimate review errors.

    Provides structured error information for API responses.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize EstimateReviewError.

        Args:
            code: Error code from ErrorCode constants
            message: Human-readable error message
            details: Additional error context
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API response.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"EstimateReviewError(code={self.code!r}, message={self.message!r})"


class ValidationError(EstimateReviewError):
    """Request validation error."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict] = None,
        code: Optional[str] = None
    ):
        if code is None:
            code = ErrorCode.MISSING_FIELD if field else ErrorCode.VALIDATION_ERROR
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "field": field} if field else details
        )
        self.field = field


class GuardrailViolationError(EstimateReviewError):
    """Prohibited content detected by a guardrail pass."""

    def __init__(self, stage: str, verdict: "GuardrailVerdict", code: str = ErrorCode.GUARDRAIL_VIOLATION):
        super().__init__(
            code=code,
            message="Prohibited content detected",
            details={
                "stage": stage,
                "violations": [v.model_dump() for v in verdict.violations],
            }
        )
        self.stage = stage
        self.verdict = verdict


class FormatRejectedError(EstimateReviewError):
    """Document did not clear the format admission gate."""

    def __init__(self, rejection: "FormatRejection"):
        super().__init__(
            code=rejection.code,
            message=rejection.reason,
            details={"confidence": rejection.confidence}
        )
        self.rejection = rejection


class PipelineError(EstimateReviewError):
    """Pipeline-specific error."""

    def __init__(
        self,
        code: str,
        message: str,
        stage: Optional[str] = None,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "stage": stage}
        )
        self.stage = stage
