from fastapi.testclient import TestClient

from assessment_api.app import app
from assessment_api.database import get_session_factory
from conftest import auth_headers, sample_draft_payload


def _create(client, headers) -> str:
    response = client.post("/assessments", json=sample_draft_payload(), headers=headers)
    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "Everyday English"
    assert body["message"] == "Assessment created successfully"
    return body["id"]


def test_requests_without_token_are_unauthorized(client) -> None:
    response = client.get("/assessments")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"

    response = client.get("/assessments", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_student_cannot_author(client, student_headers) -> None:
    response = client.post("/assessments", json=sample_draft_payload(), headers=student_headers)
    assert response.status_code == 403


def test_create_with_empty_questions_returns_validation_error(client, instructor_headers) -> None:
    payload = sample_draft_payload()
    payload["questions"] = []
    response = client.post("/assessments", json=payload, headers=instructor_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"

    listed = client.get("/assessments", headers=instructor_headers)
    assert listed.json() == []


def test_student_view_hides_answers(client, instructor_headers, student_headers) -> None:
    assessment_id = _create(client, instructor_headers)

    teacher_view = client.get(f"/assessments/{assessment_id}", headers=instructor_headers).json()
    assert teacher_view["questions"][0]["questions"][0]["correctAnswer"] == "Apple (correct)"
    assert teacher_view["levelRank"] == 1
    assert teacher_view["questionCount"] == 4

    student_view = client.get(f"/assessments/{assessment_id}", headers=student_headers).json()
    assert "correctAnswer" not in student_view["questions"][0]["questions"][0]
    assert "answer" not in student_view["questions"][1]["sentences"][0]
    assert student_view["questions"][2]["translations"] == ["gato", "perro"]


def test_update_and_delete_require_owner(client, instructor_headers) -> None:
    assessment_id = _create(client, instructor_headers)
    other = auth_headers("instructor-2", "instructor")

    response = client.put(f"/assessments/{assessment_id}", json={"title": "Hijack"}, headers=other)
    assert response.status_code == 403
    assert response.json()["code"] == "forbidden"
    assert client.delete(f"/assessments/{assessment_id}", headers=other).status_code == 403

    response = client.put(
        f"/assessments/{assessment_id}",
        json={"title": "Renamed", "questions": sample_draft_payload()["questions"][:1]},
        headers=instructor_headers,
    )
    assert response.status_code == 200
    assert response.json()["title"] == "Renamed"
    assert len(response.json()["questions"]) == 1

    admin = auth_headers("admin-1", "admin")
    assert client.delete(f"/assessments/{assessment_id}", headers=admin).status_code == 204
    missing = client.get(f"/assessments/{assessment_id}", headers=instructor_headers)
    assert missing.status_code == 404
    assert missing.json()["code"] == "not_found"


def test_attempt_flow(client, instructor_headers, student_headers) -> None:
    assessment_id = _create(client, instructor_headers)

    started = client.post(f"/assessments/{assessment_id}/start", headers=student_headers)
    assert started.status_code == 201
    started_body = started.json()
    attempt_id = started_body["attemptId"]
    questions = started_body["assessment"]["questions"]
    assert "correctAnswer" not in questions[0]["questions"][0]

    again = client.post(f"/assessments/{assessment_id}/start", headers=student_headers)
    assert again.status_code == 409
    assert again.json()["code"] == "attempt_already_active"

    status = client.get(f"/assessments/{assessment_id}/status", headers=student_headers)
    assert status.json()["status"] == "active"

    answers = [
        {"questionId": questions[0]["id"], "answer": "Apple", "itemId": "mc-1"},
        {"questionId": questions[1]["id"], "answer": " AM "},
        {"questionId": questions[2]["id"], "answer": "gato", "itemId": "m-1"},
    ]
    submitted = client.post(
        f"/attempts/{attempt_id}/submit", json={"answers": answers}, headers=student_headers
    )
    assert submitted.status_code == 200
    body = submitted.json()
    assert body["attemptId"] == attempt_id
    assert body["score"] == 100
    assert body["correctAnswers"] == 3
    assert body["totalQuestions"] == 3
    assert body["completedAt"]

    second = client.post(
        f"/attempts/{attempt_id}/submit", json={"answers": answers}, headers=student_headers
    )
    assert second.status_code == 409
    assert second.json()["code"] == "attempt_already_completed"

    results = client.get(f"/attempts/{attempt_id}/results", headers=student_headers)
    assert results.status_code == 200
    result_body = results.json()
    assert result_body["score"] == 100
    assert [item["isCorrect"] for item in result_body["answers"]] == [True, True, True, None]

    history = client.get("/attempts", headers=student_headers).json()
    assert history[0]["id"] == attempt_id
    assert history[0]["status"] == "completed"
    assert history[0]["assessment"]["level"] == "A2"


def test_submit_accepts_answer_mapping(client, instructor_headers, student_headers) -> None:
    assessment_id = _create(client, instructor_headers)
    started = client.post(f"/assessments/{assessment_id}/start", headers=student_headers).json()
    questions = started["assessment"]["questions"]

    response = client.post(
        f"/attempts/{started['attemptId']}/submit",
        json={"answers": {questions[0]["id"]: 0, questions[1]["id"]: "is"}},
        headers=student_headers,
    )
    assert response.status_code == 200
    assert response.json()["correctAnswers"] == 1
    assert response.json()["score"] == 33


def test_results_before_submit_and_for_other_student(client, instructor_headers, student_headers) -> None:
    assessment_id = _create(client, instructor_headers)
    started = client.post(f"/assessments/{assessment_id}/start", headers=student_headers).json()
    attempt_id = started["attemptId"]

    response = client.get(f"/attempts/{attempt_id}/results", headers=student_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "attempt_not_completed"

    other = auth_headers("student-2", "student")
    response = client.post(f"/attempts/{attempt_id}/submit", json={"answers": []}, headers=other)
    assert response.status_code == 404
    response = client.get(f"/attempts/{attempt_id}/results", headers=other)
    assert response.status_code == 404


def test_start_missing_assessment(client, student_headers) -> None:
    response = client.post("/assessments/missing/start", headers=student_headers)
    assert response.status_code == 404


def test_storage_failure_returns_error_code(unreachable_session_factory, instructor_headers) -> None:
    app.dependency_overrides[get_session_factory] = lambda: unreachable_session_factory
    try:
        response = TestClient(app).get("/assessments", headers=instructor_headers)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"code": "storage_error", "detail": "Failed to list assessments"}
