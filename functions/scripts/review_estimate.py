"""
Run the estimate review pipeline on a text file and write the result as JSON.

Usage:
  python scripts/review_estimate.py --input estimate.txt --loss-type WATER --out review.json
  python scripts/review_estimate.py --input estimate.txt --cost-items priced-lines.json
  cat estimate.txt | python scripts/review_estimate.py --input -

Exit codes: 0 accepted, 2 rejected, 1 invalid invocation or unreadable input.
"""

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional

# Make `functions/` importable as the top-level module root when run as a script.
FUNCTIONS_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if FUNCTIONS_ROOT not in sys.path:
    sys.path.insert(0, FUNCTIONS_ROOT)

from config.errors import ValidationError  # noqa: E402
from pipeline.orchestrator import EstimateReviewPipeline  # noqa: E402
from utils.review_logger import configure_logging  # noqa: E402
from validators.request_validator import validate_review_request  # noqa: E402

EXIT_ACCEPTED = 0
EXIT_INVALID = 1
EXIT_REJECTED = 2


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with EXIT_INVALID on usage errors."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(EXIT_INVALID, f"{self.prog}: error: {message}\n")


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _build_payload(args: argparse.Namespace) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "estimateText": _read_text(args.input),
        "userInput": args.user_input or "",
        "metadata": {"lossType": args.loss_type},
    }
    if args.cost_items:
        with open(args.cost_items, "r", encoding="utf-8") as f:
            payload["costLineItems"] = json.load(f)
    return payload


def main(argv: Optional[List[str]] = None) -> int:
    parser = _ArgumentParser(description="Review a free-text repair estimate and write findings as JSON")
    parser.add_argument("--input", required=True, help="Estimate text file ('-' reads stdin)")
    parser.add_argument("--loss-type", required=False, help="Loss type (WATER, FIRE, WIND, HAIL, COLLISION, OTHER)")
    parser.add_argument("--user-input", required=False, help="Free-form text accompanying the estimate")
    parser.add_argument("--cost-items", required=False, help="JSON file with priced line items for O&P analysis")
    parser.add_argument(
        "--narrative",
        required=False,
        help="File with generated summary text to re-scan before it is shown to a user ('-' reads stdin)",
    )
    parser.add_argument("--out", required=False, help="Output file path (defaults to stdout)")
    args = parser.parse_args(argv)

    configure_logging()

    try:
        payload = _build_payload(args)
        narrative = _read_text(args.narrative) if args.narrative else None
    except (OSError, json.JSONDecodeError) as e:
        print(f"Unable to read input: {e}", file=sys.stderr)
        return EXIT_INVALID

    try:
        request = validate_review_request(payload)
    except ValidationError as e:
        print(json.dumps(e.to_dict(), indent=2, default=str), file=sys.stderr)
        return EXIT_INVALID

    pipeline = EstimateReviewPipeline()
    result = pipeline.run(request)
    output = result.to_dict()

    if narrative is not None and not result.rejected:
        narrative_rejection = pipeline.review_narrative(narrative)
        if narrative_rejection is not None:
            output = narrative_rejection.to_dict()

    rendered = json.dumps(output, indent=2, sort_keys=True)
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(rendered + "\n")
        print(f"Wrote {args.out}", file=sys.stderr)
    else:
        print(rendered)

    return EXIT_REJECTED if output.get("rejected") else EXIT_ACCEPTED


if __name__ == "__main__":
    raise SystemExit(main())
