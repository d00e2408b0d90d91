"""
Unit Tests for the Estimate Type Classifier.
"""

from models.line_item import LineItem
from models.review import EstimateCategory
from services.estimate_classifier import classify_estimate


class TestClassifyEstimate:
    """Tests for keyword classification."""

    def test_property_high_confidence(self):
        result = classify_estimate("Remove drywall, paint ceiling in kitchen and bathroom")

        assert result.category == EstimateCategory.PROPERTY
        assert result.confidence == "HIGH"
        assert result.scores["property"] == 5

    def test_auto_medium_confidence(self):
        result = classify_estimate("Replace front bumper and fender, repair hood, realign frame")

        assert result.category == EstimateCategory.AUTO
        assert result.confidence == "MEDIUM"
        assert result.scores == {"property": 0, "auto": 4, "commercial": 0}

    def test_too_few_hits_is_unknown(self):
        result = classify_estimate("Miscellaneous notes")

        assert result.category == EstimateCategory.UNKNOWN
        assert result.confidence is None

    def test_narrow_lead_is_ambiguous(self):
        result = classify_estimate("drywall insulation gutters bumper fender hood")

        assert result.category == EstimateCategory.AMBIGUOUS
        assert result.scores["property"] == 4
        assert result.scores["auto"] == 3

    def test_line_items_contribute(self):
        items = [
            LineItem(line_number=1, description="Replace bumper"),
            "Repair fender",
            "Replace headlight",
        ]
        result = classify_estimate("", items)

        assert result.category == EstimateCategory.AUTO

    def test_keyword_counted_once(self):
        result = classify_estimate("roofing roofing roofing roofing")
        assert result.scores["property"] == 2  # "roofing" and "roof"
