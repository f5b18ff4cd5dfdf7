"""Pytest configuration and shared fixtures.

Every test gets its own SQLite database file so that threaded tests can open
several connections to the same data.
"""

from typing import Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.database import get_db, init_db
from app.models.all_models import Student, User, UserRole
from app.services.notifications import NotificationSink, get_notifier
from app.utils.auth import create_access_token, get_password_hash

TEST_PASSWORD = "password123"


class RecordingNotifier(NotificationSink):
    """Keeps every notification in memory instead of delivering it."""

    def __init__(self, fail: bool = False):
        self.sent: List[Tuple[str, str]] = []
        self.fail = fail

    def notify(self, user_id: str, message: str) -> None:
        if self.fail:
            raise ConnectionError("notification channel unavailable")
        self.sent.append((user_id, message))


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'records.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="session")
def test_password() -> str:
    return TEST_PASSWORD


@pytest.fixture(scope="session")
def password_hash() -> str:
    """Hashing is slow, do it once for the whole run."""
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture
def users(db, password_hash) -> Dict[str, User]:
    users = {}
    for role in UserRole:
        user = User(
            username=role.value,
            email=f"{role.value}@school.example",
            password_hash=password_hash,
            role=role,
            is_active=True,
        )
        db.add(user)
        users[role.value] = user
    db.commit()
    return users


@pytest.fixture
def students(db, users) -> Dict[str, Student]:
    """
    Grade 2 students: kim and lee in classroom 1, park in classroom 2.
    Only kim has a linked user account.
    """
    students = {
        "kim": Student(student_num=20101, name="Kim Minji", grade=2, class_num=1, user_id=users["student"].id),
        "lee": Student(student_num=20102, name="Lee Jiho", grade=2, class_num=1),
        "park": Student(student_num=20201, name="Park Seoyeon", grade=2, class_num=2),
    }
    db.add_all(students.values())
    db.commit()
    return students


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def failing_notifier() -> RecordingNotifier:
    return RecordingNotifier(fail=True)


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def client(session_factory, notifier):
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token({"sub": str(user.id), "username": user.username, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def teacher_headers(users):
    return auth_headers(users["teacher"])


@pytest.fixture
def student_headers(users):
    return auth_headers(users["student"])
