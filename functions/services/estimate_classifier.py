"""Estimate type classifier.

Keyword scoring of an estimate as property, auto or commercial work.
Informational only: the result is reported but never gates a review.
"""

from typing import Dict, Iterable, Optional, Tuple, Union

import structlog

from models.line_item import LineItem
from models.review import EstimateCategory, EstimateClassification

logger = structlog.get_logger()


PROPERTY_KEYWORDS: Tuple[str, ...] = (
    "roofing", "roof", "shingles", "siding", "drywall", "flooring",
    "painting", "water damage", "fire damage", "wind damage", "hail damage",
    "interior", "exterior", "foundation", "hvac", "plumbing", "electrical",
    "kitchen", "bathroom", "bedroom", "living room", "ceiling", "wall",
    "insulation", "gutters", "windows", "doors", "deck", "fence",
)

AUTO_KEYWORDS: Tuple[str, ...] = (
    "bumper", "fender", "hood", "door panel", "quarter panel", "trunk",
    "windshield", "headlight", "taillight", "mirror", "grille", "paint",
    "body shop", "collision", "frame", "suspension", "alignment",
    "airbag", "seat", "dashboard", "wheel", "tire", "rim",
)

COMMERCIAL_KEYWORDS: Tuple[str, ...] = (
    "commercial property", "business", "retail", "office", "warehouse",
    "industrial", "manufacturing", "restaurant", "store", "building",
    "tenant improvement", "ada compliance", "fire suppression", "sprinkler",
    "commercial kitchen", "loading dock", "parking lot", "signage",
)

# Minimum keyword hits for any classification
MIN_KEYWORD_HITS = 3
# Winner must lead the runner-up by at least this many hits
MIN_LEAD = 2
# Hits at or above this give HIGH confidence
HIGH_CONFIDENCE_HITS = 5

# Ties resolve in this order
_CATEGORY_KEYWORDS = (
    (EstimateCategory.PROPERTY, PROPERTY_KEYWORDS),
    (EstimateCategory.AUTO, AUTO_KEYWORDS),
    (EstimateCategory.COMMERCIAL, COMMERCIAL_KEYWORDS),
)


def classify_estimate(
    text: str,
    line_items: Optional[Iterable[Union[str, LineItem]]] = None,
) -> EstimateClassification:
    """Classify an estimate by keyword hits.

    Each keyword counts once if it appears anywhere in the text or line
    item descriptions.
    """
    parts = [text or ""]
    for item in line_items or []:
        parts.append(item.description if isinstance(item, LineItem) else str(item))
    content = " ".join(parts).lower()

    scores: Dict[str, int] = {}
    for category, keywords in _CATEGORY_KEYWORDS:
        scores[category.value.lower()] = sum(1 for keyword in keywords if keyword in content)

    ranked = sorted(
        ((category, scores[category.value.lower()]) for category, _ in _CATEGORY_KEYWORDS),
        key=lambda pair: -pair[1],
    )
    (top_category, top_score), (_, runner_up) = ranked[0], ranked[1]

    if top_score < MIN_KEYWORD_HITS:
        classification = EstimateClassification(category=EstimateCategory.UNKNOWN, scores=scores)
    elif top_score - runner_up < MIN_LEAD:
        classification = EstimateClassification(category=EstimateCategory.AMBIGUOUS, scores=scores)
    else:
        classification = EstimateClassification(
            category=top_category,
            confidence="HIGH" if top_score >= HIGH_CONFIDENCE_HITS else "MEDIUM",
            scores=scores,
        )

    logger.debug("estimate_classified", category=classification.category.value, **scores)
    return classification
