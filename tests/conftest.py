import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("MEDIA_ROOT", tempfile.mkdtemp(prefix="gangesbot-media-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gangesbot.api.dependencies import get_attachment_store, get_db
from gangesbot.core.database import Base
from gangesbot.main import app
from gangesbot.models.predefined_question import PredefinedQuestion
from gangesbot.models.user import User
from gangesbot.services.auth_service import AuthSession, create_access_token


class FakeBlobStore:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.uploads = []

    def upload(self, data: bytes, path: str, content_type: str) -> str:
        if self.fail:
            raise ConnectionError("blob store unreachable")
        self.uploads.append((path, len(data), content_type))
        return f"https://files.example.test/{path}"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def client(session_factory, blob_store):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_attachment_store] = lambda: blob_store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(phone: str = "+919800000001", role: str = "customer") -> User:
        user = User(phone_number=phone, role=role, is_test_account=False)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def customer(make_user):
    return make_user("+919800000001")


@pytest.fixture
def admin(make_user):
    return make_user("+919800000999", role="admin")


@pytest.fixture
def auth(customer):
    return AuthSession.from_user(customer)


def headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(subject=str(user.id))}"}


@pytest.fixture
def seed_questions(db):
    def _seed(*entries):
        rows = []
        for entry in entries:
            question, answer = entry[0], entry[1]
            category = entry[2] if len(entry) > 2 else None
            active = entry[3] if len(entry) > 3 else True
            rows.append(PredefinedQuestion(question=question, answer=answer, category=category, is_active=active))
        db.add_all(rows)
        db.commit()
        for row in rows:
            db.refresh(row)
        return rows

    return _seed
