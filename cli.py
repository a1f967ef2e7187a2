import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError as DraftValidationError

from assessment_api.config import LOG_LEVEL
from assessment_api.database import SessionLocal, init_db
from assessment_api.errors import AssessmentError
from assessment_api.models import AssessmentDraft
from assessment_api.services.assessment_service import AssessmentRepository
from core.logging_setup import setup_console_logging

setup_console_logging(LOG_LEVEL)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create an assessment from a JSON draft")
    parser.add_argument("file", type=Path, help="Path to the assessment draft (.json)")
    parser.add_argument(
        "--author",
        type=str,
        required=True,
        help="User id recorded as the assessment creator",
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create database tables before importing",
    )
    return parser.parse_args(argv)


def load_draft(path: Path) -> AssessmentDraft:
    payload = json.loads(path.read_text(encoding="utf-8"))
    return AssessmentDraft.model_validate(payload)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if args.init_db:
        init_db()

    try:
        draft = load_draft(args.file)
    except (OSError, json.JSONDecodeError, DraftValidationError) as exc:
        print(f"Invalid draft {args.file}: {exc}", file=sys.stderr)
        return 1

    try:
        record = AssessmentRepository(SessionLocal).create(args.author, draft)
    except AssessmentError as exc:
        print(f"{exc.code}: {exc.detail}", file=sys.stderr)
        return 1

    print(f"Created assessment {record.id} ({record.question_count} questions)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
