"""Shared fixtures for crud unit tests"""

import pytest
from sqlalchemy import create_engine
from sqlmodel import SQLModel, Session

from tiplint.core.models import Document as ContentDoc
from tiplint.core.utils.hashing import content_hash
from tiplint.crud import models  # noqa: F401  registers tables


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Fresh session per test; changes are not committed."""
    with Session(engine) as s:
        yield s


@pytest.fixture(name="content_doc")
def content_doc_fixture():
    """Factory for parsed content Documents; hash follows the body."""
    def _make(path: str = "tips/001.md", body: str = "Body v1\n", **overrides) -> ContentDoc:
        fields = dict(
            path=path,
            hash=content_hash(path + body),
            title="Tip",
            layout="tips",
            permalink="tips/1",
            order="1",
            body=body,
            frontmatter={"title": "Tip", "layout": "tips"},
        )
        fields.update(overrides)
        return ContentDoc(**fields)
    return _make
