"""
Shared fixtures for the test suite.

Each test gets a fresh SQLite database file with foreign key enforcement on,
either as a raw ORM session (``db``) or through the FastAPI app (``client``).
"""

import os

# The application engine must never touch a developer database during tests
os.environ.setdefault("CASE_MANAGER_DATABASE_URL", "sqlite:///./test_case_manager_app.db")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from case_manager.database import Base, enable_sqlite_foreign_keys, get_db
from case_manager.main import app
from case_manager.models import Case, CaseStep, Folder, Step


# Test database setup
TEST_DATABASE_URL = "sqlite:///./test_case_manager.db"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)
enable_sqlite_foreign_keys(test_engine)

TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def db():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def client():
    """Create a test client with a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        Base.metadata.drop_all(bind=test_engine)
        app.dependency_overrides.clear()


@pytest.fixture
def session_factory():
    """Open extra sessions on the test database, e.g. to re-query after a request."""
    return TestSessionLocal


def make_folder(db, name="Folder", project_id=1, parent_folder_id=None) -> Folder:
    """Helper to create a folder in the database."""
    folder = Folder(name=name, project_id=project_id, parent_folder_id=parent_folder_id)
    db.add(folder)
    db.commit()
    db.refresh(folder)
    return folder


def make_case(db, folder_id, title="Case", is_deleted=False) -> Case:
    """Helper to create a case in the database."""
    case = Case(title=title, folder_id=folder_id, is_deleted=is_deleted)
    db.add(case)
    db.commit()
    db.refresh(case)
    return case


def make_step(db, case_id, step_no, text="Step", parent_step_id=None) -> Step:
    """Helper to create a step attached to a case."""
    step = Step(step=text, result=f"{text} result", parent_step_id=parent_step_id)
    db.add(step)
    db.flush()
    db.add(CaseStep(case_id=case_id, step_id=step.id, step_no=step_no))
    db.commit()
    db.refresh(step)
    return step
