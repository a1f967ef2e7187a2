"""Assessment authoring and attempt start endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import sessionmaker

from assessment_api.database import get_session_factory
from assessment_api.dependencies import (
    ROLE_ADMIN,
    ROLE_INSTRUCTOR,
    ROLE_STUDENT,
    Principal,
    get_current_principal,
    require_roles,
)
from assessment_api.models import AssessmentCreatedResponse, AssessmentDraft, AssessmentUpdate
from assessment_api.serialization import (
    serialize_assessment,
    serialize_metadata,
    serialize_started,
)
from assessment_api.services.assessment_service import AssessmentRepository
from assessment_api.services.attempt_service import AttemptLedger
from assessment_api.utils import validate_id

router = APIRouter(prefix="/assessments", tags=["assessments"])

SessionFactory = Annotated[sessionmaker, Depends(get_session_factory)]
Author = Annotated[Principal, Depends(require_roles(ROLE_INSTRUCTOR, ROLE_ADMIN))]
Student = Annotated[Principal, Depends(require_roles(ROLE_STUDENT))]


@router.post("", status_code=status.HTTP_201_CREATED, response_model=AssessmentCreatedResponse)
def create_assessment(
    payload: AssessmentDraft,
    principal: Author,
    session_factory: SessionFactory,
) -> AssessmentCreatedResponse:
    """Create an assessment with all of its questions."""
    record = AssessmentRepository(session_factory).create(principal.user_id, payload)
    return AssessmentCreatedResponse(id=record.id, title=record.title)


@router.get("")
def list_assessments(
    principal: Annotated[Principal, Depends(get_current_principal)],
    session_factory: SessionFactory,
    mine: bool = False,
) -> list[dict[str, object]]:
    """List assessments, newest first."""
    created_by = principal.user_id if mine else None
    records = AssessmentRepository(session_factory).list(created_by=created_by)
    return [serialize_metadata(record) for record in records]


@router.get("/{assessment_id}")
def get_assessment(
    assessment_id: str,
    principal: Annotated[Principal, Depends(get_current_principal)],
    session_factory: SessionFactory,
) -> dict[str, object]:
    """Get an assessment; students never see correct answers."""
    assessment_id = validate_id("assessmentId", assessment_id)
    record = AssessmentRepository(session_factory).get(assessment_id)
    return serialize_assessment(record, include_answers=principal.role != ROLE_STUDENT)


@router.put("/{assessment_id}")
def update_assessment(
    assessment_id: str,
    payload: AssessmentUpdate,
    principal: Author,
    session_factory: SessionFactory,
) -> dict[str, object]:
    """Update metadata and, when given, replace the question set."""
    assessment_id = validate_id("assessmentId", assessment_id)
    record = AssessmentRepository(session_factory).update(
        assessment_id,
        payload,
        requester_id=principal.user_id,
        is_admin=principal.is_admin,
    )
    return serialize_assessment(record)


@router.delete("/{assessment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assessment(
    assessment_id: str,
    principal: Author,
    session_factory: SessionFactory,
) -> Response:
    """Delete an assessment with everything recorded against it."""
    assessment_id = validate_id("assessmentId", assessment_id)
    AssessmentRepository(session_factory).delete(
        assessment_id,
        requester_id=principal.user_id,
        is_admin=principal.is_admin,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{assessment_id}/start", status_code=status.HTTP_201_CREATED)
def start_attempt(
    assessment_id: str,
    principal: Student,
    session_factory: SessionFactory,
) -> dict[str, object]:
    """Open an attempt and return the questions without answers."""
    assessment_id = validate_id("assessmentId", assessment_id)
    started = AttemptLedger(session_factory).start(assessment_id, principal.user_id)
    return serialize_started(started)


@router.get("/{assessment_id}/status")
def attempt_status(
    assessment_id: str,
    principal: Student,
    session_factory: SessionFactory,
) -> dict[str, str]:
    """State of the caller's latest attempt at the assessment."""
    assessment_id = validate_id("assessmentId", assessment_id)
    state = AttemptLedger(session_factory).status_for(assessment_id, principal.user_id)
    return {"assessmentId": assessment_id, "status": state.value}
