import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from pathlib import Path  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from assessment_api.app import app  # noqa: E402
from assessment_api.database import build_engine, get_session_factory, init_db  # noqa: E402
from assessment_api.models import AssessmentDraft  # noqa: E402
from assessment_api.services.auth_service import create_access_token  # noqa: E402


@pytest.fixture
def engine(tmp_path: Path):
    db_engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(bind=db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def client(session_factory: sessionmaker):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user_id: str, role: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}


@pytest.fixture
def instructor_headers() -> dict[str, str]:
    return auth_headers("instructor-1", "instructor")


@pytest.fixture
def student_headers() -> dict[str, str]:
    return auth_headers("student-1", "student")


def sample_draft_payload() -> dict[str, object]:
    return {
        "title": "Everyday English",
        "description": "Vocabulary and grammar basics",
        "level": "A2",
        "category": "vocabulary",
        "duration": 20,
        "tags": ["basics", "food"],
        "questions": [
            {
                "type": "multiple-choice",
                "title": "Pick the fruit",
                "questions": [
                    {
                        "id": "mc-1",
                        "text": "Which one is a fruit?",
                        "options": ["Apple (correct)", "Chair", "Car"],
                        "correctAnswer": "Apple (correct)",
                    }
                ],
            },
            {
                "type": "fill-in-blank",
                "title": "Complete the sentence",
                "sentences": [{"id": "s-1", "text": "I ___ a student.", "answer": "am"}],
            },
            {
                "type": "matching",
                "title": "Match the words",
                "matchItems": [
                    {"id": "m-1", "term": "cat", "translation": "gato"},
                    {"id": "m-2", "term": "dog", "translation": "perro"},
                ],
            },
            {
                "type": "flashcards",
                "title": "New words",
                "words": [{"id": "w-1", "term": "house", "translation": "casa"}],
            },
        ],
    }


@pytest.fixture
def sample_draft() -> AssessmentDraft:
    return AssessmentDraft.model_validate(sample_draft_payload())


@pytest.fixture
def unreachable_session_factory(tmp_path: Path):
    """Sessions on a database file whose directory does not exist."""
    db_engine = build_engine(f"sqlite:///{tmp_path / 'missing' / 'test.db'}")
    yield sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db_engine.dispose()
