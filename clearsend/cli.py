"""
Command-line runner for the clean operation.

Reads a JSON payload (file or stdin), merges it over the settings file and
CLEARSEND_* environment defaults, cleans it and prints the JSON result.

    clearsend --payload message.json --settings settings.json --report-dir reports
    cat message.json | python -m clearsend.cli --quick
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .config import INVALID_POLICIES, QUICK_CLEAN_STEPS, STEP_NAMES, load_settings
from .errors import ConfigurationError, StepExecutionError
from .export import write_reports
from .service import process_recipients

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STEP_FAILED = 1
EXIT_BAD_INPUT = 2
EXIT_ABORTED = 3


def _read_payload(source: str) -> Dict[str, Any]:
    text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("payload must be a JSON object")
    return data


def build_payload(payload: Dict[str, Any], settings: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Payload keys win over settings; command-line flags win over both."""
    merged = {**settings, **payload}
    if args.quick:
        merged["enabledSteps"] = list(QUICK_CLEAN_STEPS)
    elif args.steps:
        merged["enabledSteps"] = [s.strip() for s in args.steps.split(",") if s.strip()]
    if args.policy:
        merged["invalidPolicy"] = args.policy
    return merged


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Clean To/CC/BCC recipient lists")
    parser.add_argument("--payload", default="-", help="JSON payload file ('-' for stdin)")
    parser.add_argument("--settings", type=Path, default=None, help="JSON settings file")
    parser.add_argument("--steps", default=None, help=f"Comma-separated ordered step names: {', '.join(STEP_NAMES)}")
    parser.add_argument("--quick", action="store_true", help="Quick clean: validate, dedupe, sort")
    parser.add_argument("--policy", choices=INVALID_POLICIES, default=None,
                        help="Invalid-entry policy (default: remove)")
    parser.add_argument("--report-dir", type=Path, default=None, help="Write CSV reports under this directory")
    parser.add_argument("--indent", type=int, default=2, help="JSON output indent")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        settings = load_settings(args.settings)
        payload = build_payload(_read_payload(args.payload), settings, args)
        response = process_recipients(payload)
    except (ConfigurationError, ValidationError, ValueError, OSError) as e:
        logger.error(f"Invalid input: {e}")
        return EXIT_BAD_INPUT
    except StepExecutionError as e:
        logger.error(str(e))
        return EXIT_STEP_FAILED

    wire = response.to_wire()
    print(json.dumps(wire, indent=args.indent, ensure_ascii=False))

    if args.report_dir is not None:
        out_dir = write_reports(out_dir=args.report_dir, response=wire)
        logger.info(f"Wrote reports to: {out_dir}")

    return EXIT_ABORTED if response.aborted else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
