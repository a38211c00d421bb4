import os

import pytest

# Never touch the default ./data database from the test run
os.environ.setdefault("DATABASE_URL", "sqlite://")

from todos_api.db import build_engine  # noqa: E402
from todos_api.main import app  # noqa: E402
from todos_api.repositories import TodoRepository, get_repository  # noqa: E402


@pytest.fixture
def repo(tmp_path):
    """A repository backed by a fresh SQLite file for each test."""
    engine = build_engine(f"sqlite:///{tmp_path / 'todos.db'}")
    return TodoRepository(engine)


@pytest.fixture(autouse=True)
def override_repository(repo):
    app.dependency_overrides[get_repository] = lambda: repo
    yield
    app.dependency_overrides.clear()
