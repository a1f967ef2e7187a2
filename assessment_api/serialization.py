from __future__ import annotations

from typing import Any

from assessment_api.models.db.assessment import ProficiencyLevel
from assessment_api.services.assessment_service import AssessmentRecord
from assessment_api.services.attempt_service import AttemptRecord, StartedAttempt
from assessment_api.services.question_codec import to_payload
from assessment_api.services.results_service import ResultView
from assessment_api.utils import to_iso


def _level_rank(level: str) -> int | None:
    try:
        return ProficiencyLevel(level).rank
    except ValueError:
        return None


def serialize_metadata(record: AssessmentRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "title": record.title,
        "description": record.description,
        "language": record.language,
        "level": record.level,
        "levelRank": _level_rank(record.level),
        "category": record.category,
        "duration": record.duration,
        "tags": list(record.tags),
        "imageUrl": record.image_url,
        "createdBy": record.created_by,
        "createdAt": to_iso(record.created_at),
        "updatedAt": to_iso(record.updated_at),
        "questionCount": record.question_count,
    }


def serialize_assessment(record: AssessmentRecord, include_answers: bool = True) -> dict[str, Any]:
    payload = serialize_metadata(record)
    payload["questions"] = [
        to_payload(question, include_answers=include_answers) for question in record.questions
    ]
    return payload


def serialize_attempt(record: AttemptRecord) -> dict[str, Any]:
    payload = {
        "id": record.id,
        "assessmentId": record.assessment_id,
        "userId": record.user_id,
        "status": record.status.value,
        "startedAt": to_iso(record.started_at),
        "completedAt": to_iso(record.completed_at),
        "score": record.score,
        "correctAnswers": record.correct_count,
        "totalQuestions": record.total_questions,
    }
    if record.assessment_title is not None:
        payload["assessment"] = {
            "title": record.assessment_title,
            "level": record.assessment_level,
            "category": record.assessment_category,
        }
    return payload


def serialize_started(started: StartedAttempt) -> dict[str, Any]:
    return {
        "attemptId": started.attempt.id,
        "startedAt": to_iso(started.attempt.started_at),
        "assessment": {
            "id": started.attempt.assessment_id,
            "title": started.title,
            "description": started.description,
            "duration": started.duration,
            "questions": [
                to_payload(question, include_answers=False) for question in started.questions
            ],
        },
    }


def serialize_result(view: ResultView) -> dict[str, Any]:
    return {
        "attemptId": view.attempt_id,
        "assessmentId": view.assessment_id,
        "assessmentTitle": view.assessment_title,
        "score": view.score,
        "correctAnswers": view.correct_count,
        "totalQuestions": view.total_questions,
        "startedAt": to_iso(view.started_at),
        "completedAt": to_iso(view.completed_at),
        "answers": [
            {
                "questionId": item.question_id,
                "questionTitle": item.question_title,
                "variant": item.variant,
                "yourAnswer": item.your_answer,
                "correctAnswer": item.correct_answer,
                "isCorrect": item.is_correct,
            }
            for item in view.items
        ],
    }
