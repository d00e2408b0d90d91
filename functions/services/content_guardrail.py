"""Content guardrail for estimate review.

Rule-based classifier that rejects text asking for (or containing) payment,
legal, negotiation or coverage-interpretation language. It runs on the raw
submission, again on the text extracted from parsed line items, and on any
narrative derived from the findings before it reaches a user.

Phrases match anywhere in the text, including inside longer words. Every
match is reported; the scan never stops at the first violation.
"""

import re
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Pattern, Sequence, Tuple, Union

import structlog

from models.guardrail import GuardrailVerdict, GuardrailViolation, ViolationCategory
from models.line_item import LineItem

logger = structlog.get_logger()

GUARDRAIL_RULESET_VERSION = "1.0.0"

# Sources are joined with a separator that multi-word phrases cannot span.
SOURCE_SEPARATOR = " | "


# =============================================================================
# PHRASE TABLES
# =============================================================================

INPUT_PHRASES: Mapping[ViolationCategory, Tuple[str, ...]] = MappingProxyType({
    ViolationCategory.PAYMENT_ENTITLEMENT: (
        "should be paid",
        "must pay",
        "owed to",
        "entitled to",
        "deserve",
        "compensation for",
    ),
    ViolationCategory.LEGAL_ADVERSARIAL: (
        "bad faith",
        "breach of contract",
        "sue",
        "lawsuit",
        "attorney",
        "lawyer",
        "legal action",
        "litigation",
        "fraud",
        "draft a complaint",
        "legal advice",
        "what are my rights",
    ),
    ViolationCategory.NEGOTIATION_DISPUTE: (
        "demand",
        "insist",
        "require payment",
        "force them",
        "make them pay",
        "fight",
        "dispute",
        "argue",
        "negotiate",
        "unfair",
        "cheating",
        "lowball",
        "ripping off",
        "scam",
        "write a demand letter",
        "help me negotiate",
        "what should i say",
        "how do i argue",
        "prove they're wrong",
        "fight this estimate",
        "dispute this",
        "challenge the adjuster",
    ),
    ViolationCategory.COVERAGE_INTERPRETATION: (
        "coverage should",
        "policy requires",
        "they have to",
        "obligation to pay",
        "contractual duty",
        "interpret my policy",
        "what does my policy say",
        "am i covered",
        "should this be covered",
        "coverage question",
    ),
})

INTENT_PATTERNS: Tuple[Tuple[str, str], ...] = (
    ("how (do|can) i (get|make|force)", r"how\s+(do|can)\s+i\s+(get|make|force)\b"),
    ("they (should|must|need to|have to) pay", r"they\s+(should|must|need\s+to|have\s+to)\s+pay\b"),
    ("what (should|can) i (say|tell|write)", r"what\s+(should|can)\s+i\s+(say|tell|write)\b"),
    ("help me (fight|argue|dispute|negotiate)", r"help\s+me\s+(fight|argue|dispute|negotiate)\b"),
    ("am i (entitled|owed|covered)", r"am\s+i\s+(entitled|owed|covered)\b"),
)

# Additional phrases applied to generated narrative only.
OUTPUT_PHRASES: Mapping[ViolationCategory, Tuple[str, ...]] = MappingProxyType({
    ViolationCategory.PAYMENT_ENTITLEMENT: ("you are owed", "they owe"),
    ViolationCategory.NEGOTIATION_DISPUTE: ("challenge",),
    ViolationCategory.COVERAGE_INTERPRETATION: ("must cover", "required to pay"),
    ViolationCategory.ADVOCACY: (
        "carrier error",
        "underpaid",
        "under-payment",
        "insufficient",
        "inadequate",
        "wrong",
        "incorrect estimate",
        "missing items",
    ),
    ViolationCategory.RECOMMENDATION: (
        "recommend",
        "you should",
        "they should",
        "you must",
        "they must",
        "i suggest",
        "you need to",
    ),
    ViolationCategory.RIGHTS: (
        "you have a right",
        "your rights",
        "entitled",
        "deserve better",
    ),
})


def _phrase_pattern(phrase: str) -> Pattern:
    """Compile a phrase as a case-insensitive substring match.

    Internal whitespace matches any run of whitespace.
    """
    body = r"\s+".join(re.escape(word) for word in phrase.split())
    return re.compile(body, re.IGNORECASE)


def _compile_table(
    table: Mapping[ViolationCategory, Iterable[str]]
) -> List[Tuple[ViolationCategory, str, Pattern]]:
    compiled = []
    for category, phrases in table.items():
        for phrase in phrases:
            compiled.append((category, phrase, _phrase_pattern(phrase)))
    return compiled


# =============================================================================
# GUARDRAIL
# =============================================================================


class ContentGuardrail:
    """Prohibited-content classifier.

    The phrase tables are fixed; deployments that need extra phrases pass
    them at construction time.
    """

    def __init__(
        self,
        extra_phrases: Optional[Mapping[ViolationCategory, Iterable[str]]] = None,
        extra_output_phrases: Optional[Mapping[ViolationCategory, Iterable[str]]] = None,
    ):
        """Initialize ContentGuardrail.

        Args:
            extra_phrases: Additional input phrases per category.
            extra_output_phrases: Additional narrative-only phrases per category.
        """
        self._input_rules = _compile_table(INPUT_PHRASES)
        if extra_phrases:
            self._input_rules += _compile_table(extra_phrases)

        self._intent_rules = [
            (ViolationCategory.INTENT_PATTERN, name, re.compile(pattern, re.IGNORECASE))
            for name, pattern in INTENT_PATTERNS
        ]

        self._output_rules = _compile_table(OUTPUT_PHRASES)
        if extra_output_phrases:
            self._output_rules += _compile_table(extra_output_phrases)

    def check(
        self,
        text: Optional[str] = None,
        user_input: Optional[str] = None,
        line_items: Optional[Sequence[Union[str, LineItem]]] = None,
    ) -> GuardrailVerdict:
        """Scan submitted content.

        Args:
            text: Raw estimate text.
            user_input: Free-form accompanying text.
            line_items: Extracted line items or their descriptions.

        Returns:
            GuardrailVerdict listing every violation found.
        """
        content = self._combine(text, user_input, line_items)
        violations = self._scan(content, self._input_rules + self._intent_rules)
        return self._verdict(violations, scan="input")

    def check_output(self, narrative: str) -> GuardrailVerdict:
        """Scan generated narrative with the input rules plus output-only phrases."""
        content = narrative or ""
        rules = self._input_rules + self._output_rules + self._intent_rules
        violations = self._scan(content, rules)
        return self._verdict(violations, scan="output")

    @staticmethod
    def _combine(
        text: Optional[str],
        user_input: Optional[str],
        line_items: Optional[Sequence[Union[str, LineItem]]],
    ) -> str:
        parts = [text or "", user_input or ""]
        for item in line_items or []:
            parts.append(item.description if isinstance(item, LineItem) else str(item))
        return SOURCE_SEPARATOR.join(parts)

    @staticmethod
    def _scan(
        content: str,
        rules: List[Tuple[ViolationCategory, str, Pattern]],
    ) -> List[GuardrailViolation]:
        violations: List[GuardrailViolation] = []
        seen: Dict[Tuple[ViolationCategory, str], bool] = {}
        for category, name, pattern in rules:
            if (category, name) in seen:
                continue
            if pattern.search(content):
                seen[(category, name)] = True
                violations.append(GuardrailViolation(category=category, match=name))
        return violations

    @staticmethod
    def _verdict(violations: List[GuardrailViolation], scan: str) -> GuardrailVerdict:
        verdict = GuardrailVerdict(approved=not violations, violations=violations)
        if violations:
            logger.warning(
                "guardrail_violation",
                scan=scan,
                categories=[c.value for c in verdict.categories],
                matches=verdict.matches,
            )
        return verdict
