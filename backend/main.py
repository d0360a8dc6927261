from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Allow running this script from any working directory.
BACKEND_DIR = Path(__file__).resolve().parents[0]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from pydantic import ValidationError

from core.config import settings
from core.logging import setup_logging
from schemas.generation import GenerationRequest
from services.generation_service import generate_timetable
from solver.slot_catalog import standard_school_config


logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_PARTIAL = 1
EXIT_FATAL = 2


def _read_payload(source: str) -> dict:
    if source == "-":
        raw = sys.stdin.read()
    else:
        raw = Path(source).read_text(encoding="utf-8")
    payload = json.loads(raw)
    if not isinstance(payload, dict):
        raise ValueError("Generation request must be a JSON object")
    return payload


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate a school timetable from a JSON generation request.")
    parser.add_argument("request", nargs="?", default="-", help="Path to the request JSON (default: stdin)")
    parser.add_argument("--scope", choices=["SCHOOL", "CLASS", "EDUCATOR"], type=str.upper, help="Override the request scope")
    parser.add_argument("--class-id", help="Class to regenerate (scope CLASS)")
    parser.add_argument("--educator-id", help="Educator to regenerate (scope EDUCATOR)")
    parser.add_argument("--lines", action="store_true", help="Print one line per conflict instead of JSON")
    parser.add_argument("--environment", default=None, help="development or production (default: from settings)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(environment=args.environment or settings.environment, level_name=settings.log_level)

    try:
        payload = _read_payload(args.request)
    except (OSError, ValueError) as exc:
        print(f"Could not read generation request: {exc}", file=sys.stderr)
        return EXIT_FATAL

    # Without a school config the standard bell schedule is used.
    payload.setdefault("school", standard_school_config().model_dump(mode="json"))
    if args.scope:
        payload["scope"] = args.scope
    if args.class_id:
        payload["class_id"] = args.class_id
    if args.educator_id:
        payload["educator_id"] = args.educator_id

    try:
        request = GenerationRequest.model_validate(payload)
    except ValidationError as exc:
        print(f"Invalid generation request:\n{exc}", file=sys.stderr)
        return EXIT_FATAL

    result = generate_timetable(request)

    if args.lines:
        print(result.reason_summary or result.status)
        for line in result.conflict_lines():
            print(line)
    else:
        print(json.dumps(result.to_response().model_dump(mode="json"), indent=2))

    if result.error is not None:
        return EXIT_FATAL
    return EXIT_SUCCESS if result.success else EXIT_PARTIAL


if __name__ == "__main__":
    raise SystemExit(main())
