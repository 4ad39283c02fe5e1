"""Shared fixtures: an in-memory SQLite database wired into the app."""
import os
from datetime import datetime, timedelta, timezone

# Configure the app for tests before anything imports it.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from todo_api.database import create_tables, get_db
from todo_api.main import app
from todo_api.models import Task, User
from todo_api.routers.auth import create_access_token, get_password_hash

BASE_TIME = datetime(2020, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    yield engine
    SQLModel.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(email="alice@example.com", password="password", name="Alice"):
        user = User(email=email, name=name, hashed_password=get_password_hash(password))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def other_user(make_user):
    return make_user(email="bob@example.com", name="Bob")


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        token = create_access_token(data={"sub": user.id})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def headers(user, auth_headers):
    return auth_headers(user)


@pytest.fixture
def make_task(db):
    """Insert a task; ``minutes`` offsets ``created_at`` from ``BASE_TIME``."""
    def _make_task(owner, title="task", minutes=0, task_id=None, completed=False):
        created_at = BASE_TIME + timedelta(minutes=minutes)
        task = Task(
            title=title,
            completed=completed,
            user_id=owner.id,
            created_at=created_at,
            updated_at=created_at,
        )
        if task_id is not None:
            task.id = task_id
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    return _make_task
