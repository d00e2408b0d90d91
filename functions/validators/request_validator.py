"""Review request parsing and validation.

Deserializes a JSON payload into a typed ReviewRequest. Both camelCase and
snake_case keys are accepted, and loss/damage type may sit at the top level
or under ``metadata``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
import structlog

from config.errors import ErrorCode, ValidationError
from models.review import ReviewRequest

logger = structlog.get_logger(__name__)

TEXT_KEYS = ("estimateText", "estimate_text", "text")
USER_INPUT_KEYS = ("userInput", "user_input")
LOSS_TYPE_KEYS = ("lossType", "loss_type")
DAMAGE_TYPE_KEYS = ("damageType", "damage_type")
COST_ITEM_KEYS = ("costLineItems", "cost_line_items")


@dataclass
class ValidationResult:
    """Result of review request validation."""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    parsed: Optional[ReviewRequest] = None


def _first(data: Dict[str, Any], keys) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def normalize_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map accepted key spellings onto ReviewRequest field names."""
    metadata = data.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ValidationError(
            "metadata must be an object",
            field="metadata",
            code=ErrorCode.INVALID_FIELD
        )

    return {
        "estimate_text": _first(data, TEXT_KEYS),
        "user_input": _first(data, USER_INPUT_KEYS) or "",
        "loss_type": _first(data, LOSS_TYPE_KEYS) or _first(metadata, LOSS_TYPE_KEYS),
        "damage_type": _first(data, DAMAGE_TYPE_KEYS) or _first(metadata, DAMAGE_TYPE_KEYS),
        "cost_line_items": _first(data, COST_ITEM_KEYS),
    }


def validate_review_request(data: Dict[str, Any]) -> ReviewRequest:
    """Validate a payload and return the typed request.

    Args:
        data: Raw request dictionary.

    Returns:
        ReviewRequest ready for the pipeline.

    Raises:
        ValidationError: If the payload is not an object, has no estimate
            text, or carries malformed fields.
    """
    if not isinstance(data, dict):
        raise ValidationError("Request payload must be an object")

    payload = normalize_payload(data)

    text = payload["estimate_text"]
    if text is None or (isinstance(text, str) and not text.strip()):
        raise ValidationError("Missing required field: text or estimateText", field="estimateText")
    if not isinstance(text, str):
        raise ValidationError(
            "estimateText must be a string",
            field="estimateText",
            code=ErrorCode.INVALID_FIELD
        )
    if not isinstance(payload["user_input"], str):
        raise ValidationError(
            "userInput must be a string",
            field="userInput",
            code=ErrorCode.INVALID_FIELD
        )

    try:
        request = ReviewRequest.model_validate(payload)
    except PydanticValidationError as e:
        errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        logger.warning("review_request_invalid", errors=errors)
        raise ValidationError(
            "Invalid review request",
            field=str(e.errors()[0]["loc"][0]) if e.errors() else None,
            details={"errors": errors},
            code=ErrorCode.INVALID_FIELD
        ) from e

    logger.debug(
        "review_request_validated",
        text_length=len(request.estimate_text),
        loss_type=request.resolved_loss_type.value,
        cost_items=len(request.cost_line_items) if request.cost_line_items is not None else None
    )
    return request


def check_review_request(data: Dict[str, Any]) -> ValidationResult:
    """Validate a payload without raising.

    Returns:
        ValidationResult with is_valid, errors, and parsed request.
    """
    try:
        return ValidationResult(is_valid=True, errors=[], parsed=validate_review_request(data))
    except ValidationError as e:
        errors = e.details.get("errors") or [e.message]
        return ValidationResult(is_valid=False, errors=errors, parsed=None)
