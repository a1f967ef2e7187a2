"""Attempt submission and results endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import sessionmaker

from assessment_api.database import get_session_factory
from assessment_api.dependencies import (
    ROLE_STUDENT,
    Principal,
    get_current_principal,
    require_roles,
)
from assessment_api.models import AttemptSubmitRequest, AttemptSubmitResponse
from assessment_api.serialization import serialize_attempt, serialize_result
from assessment_api.services.attempt_service import AttemptLedger
from assessment_api.services.results_service import ResultsAssembler
from assessment_api.utils import to_iso, validate_id

router = APIRouter(prefix="/attempts", tags=["attempts"])

SessionFactory = Annotated[sessionmaker, Depends(get_session_factory)]
Student = Annotated[Principal, Depends(require_roles(ROLE_STUDENT))]


@router.get("")
def list_attempts(
    principal: Annotated[Principal, Depends(get_current_principal)],
    session_factory: SessionFactory,
) -> list[dict[str, object]]:
    """List the caller's attempts, newest first."""
    records = AttemptLedger(session_factory).list_for_user(principal.user_id)
    return [serialize_attempt(record) for record in records]


@router.post("/{attempt_id}/submit", response_model=AttemptSubmitResponse)
def submit_attempt(
    attempt_id: str,
    payload: AttemptSubmitRequest,
    principal: Student,
    session_factory: SessionFactory,
) -> AttemptSubmitResponse:
    """Grade the answers and complete the attempt."""
    attempt_id = validate_id("attemptId", attempt_id)
    result = AttemptLedger(session_factory).submit(
        attempt_id, principal.user_id, payload.to_submitted()
    )
    return AttemptSubmitResponse(
        attemptId=result.attempt.id,
        score=result.graded.score_percent,
        correctAnswers=result.graded.correct_count,
        totalQuestions=result.graded.total_gradable,
        completedAt=to_iso(result.attempt.completed_at),
    )


@router.get("/{attempt_id}/results")
def get_results(
    attempt_id: str,
    principal: Student,
    session_factory: SessionFactory,
) -> dict[str, object]:
    """Per-question results of a completed attempt."""
    attempt_id = validate_id("attemptId", attempt_id)
    view = ResultsAssembler(session_factory).assemble(attempt_id, principal.user_id)
    return serialize_result(view)
