"""Pytest configuration and shared fixtures."""

import os
import sys
from pathlib import Path

# Ensure the package is importable when running tests without an editable
# install, and keep tests away from a developer's .env / database.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("TMDB_API_KEY", "test-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

import watchorder.models.tables  # noqa: E402, F401
from watchorder.core.database import get_session  # noqa: E402
from watchorder.core.errors import NotFoundError  # noqa: E402
from watchorder.main import app  # noqa: E402
from watchorder.models.media import ListMeta, ListPayload, MediaNode  # noqa: E402


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across connections for one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    """TestClient whose routes use the test database."""

    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


class FakeTransport:
    """Records every call and serves lists from an in-memory dict."""

    def __init__(self, lists=None):
        self.user = None
        self.lists = lists or {}
        self.calls = []
        self.fail_with = None

    async def _call(self, name, *args):
        self.calls.append((name, *args))
        if self.fail_with is not None:
            raise self.fail_with

    def names(self):
        return [call[0] for call in self.calls]

    async def get_list(self, list_id):
        self.calls.append(("get_list", list_id))
        if self.fail_with is not None:
            raise self.fail_with
        if list_id not in self.lists:
            raise NotFoundError(f"List {list_id} not found")
        return self.lists[list_id]

    async def create_list(self, name):
        await self._call("create_list", name)
        return ListMeta(id="9", name=name, owner=self.user)

    async def edit_list(self, list_id, name):
        await self._call("edit_list", list_id, name)
        meta = ListMeta(id=list_id, name=name, owner=self.user)
        self.lists[list_id] = ListPayload(list=meta, media=self.lists[list_id].media)
        return meta

    async def delete_list(self, list_id):
        await self._call("delete_list", list_id)
        self.lists.pop(list_id, None)

    async def add_to_list(self, list_id, media_id, metadata):
        await self._call("add_to_list", list_id, media_id, metadata)
        current = self.lists[list_id]
        added = MediaNode(
            id="99",
            media_id=media_id,
            media_type=metadata.media_type,
            title=metadata.title,
        )
        self.lists[list_id] = ListPayload(
            list=current.list, media=current.media + [added]
        )

    async def remove_from_list(self, list_id, node_id):
        await self._call("remove_from_list", list_id, node_id)

    async def toggle_watched(self, list_id, node_id, is_watched):
        await self._call("toggle_watched", list_id, node_id, is_watched)

    async def add_seasons(self, list_id, node_id, media_id):
        await self._call("add_seasons", list_id, node_id, media_id)

    async def add_episodes(self, list_id, node_id, season_number, show_id):
        await self._call("add_episodes", list_id, node_id, season_number, show_id)

    async def hide_children(self, list_id, node_id):
        await self._call("hide_children", list_id, node_id)


@pytest.fixture
def fake_transport():
    """The FakeTransport class, for tests that build their own instances."""
    return FakeTransport
