"""Catalog persistence: upsert by source path, lookup, removal, and listing in tip order"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from sqlmodel import Session, select

from tiplint.core import models as core
from tiplint.core.utils.ordering import tip_sort_key
from tiplint.crud.models import Document
from tiplint.crud.versioning import delete_versions, save_version


logger = logging.getLogger(__name__)


def _json_safe(frontmatter: dict[str, Any]) -> dict[str, Any] | None:
    """YAML dates and other scalars become strings so the JSON column accepts them."""
    if not frontmatter:
        return None
    return json.loads(json.dumps(frontmatter, default=str))


def get_by_path(session: Session, path: str) -> Document | None:
    """Return the Document with the given source path, or None if not found."""
    return session.exec(select(Document).where(Document.path == path)).one_or_none()


def get_by_permalink(session: Session, permalink: str) -> Document | None:
    """Return the first Document (by path) with the given permalink, or None."""
    return session.exec(
        select(Document).where(Document.permalink == permalink).order_by(Document.path)
    ).first()


def list_documents(
    session: Session,
    layout: str | None = None,
    published_only: bool = True,
    ) -> list[Document]:
    """Return catalog documents sorted by tip numbering, optionally filtered by layout."""
    stmt = select(Document)
    if layout:
        stmt = stmt.where(Document.layout == layout)
    if published_only:
        stmt = stmt.where(Document.published == True)  # noqa: E712
    docs = session.exec(stmt).all()
    return sorted(docs, key=lambda d: tip_sort_key(d.order, d.permalink))


def remove_missing(session: Session, root: Path, keep: set[str]) -> list[str]:
    """Delete rows stored under root whose path is not in keep, with their history.

    root and keep must be resolved the same way the rows were stored.
    Returns the removed paths, sorted.
    """
    removed = []
    for row in session.exec(select(Document).order_by(Document.path)).all():
        if row.path in keep or not Path(row.path).is_relative_to(root):
            continue
        delete_versions(session, row.id)
        session.delete(row)
        removed.append(row.path)
        logger.debug("removed %s", row.path)
    session.flush()
    return removed


def _apply(row: Document, doc: core.Document) -> None:
    row.permalink = doc.permalink
    row.title = doc.title
    row.layout = doc.layout
    row.published = doc.published
    row.order = doc.order
    row.category = doc.category
    row.sidenav = doc.sidenav
    row.body = doc.body
    row.hash = doc.hash
    row.frontmatter = _json_safe(doc.frontmatter)
    row.revisions = list(doc.revisions) or None


def commit_doc(
    session: Session,
    doc: core.Document,
    max_versions: int = 10,
    ) -> tuple[Document, str]:
    """Upsert a parsed Document by source path.

    Returns (row, status) where status is 'created', 'updated', or 'unchanged'.
    Flushes but does not commit; the caller controls the transaction.
    """
    row = get_by_path(session, doc.path)

    if row:
        if row.hash == doc.hash:
            return row, 'unchanged'
        save_version(session, row, max_versions)
        _apply(row, doc)
        row.updated_at = datetime.now()
        session.add(row)
        session.flush()
        logger.debug("updated %s", doc.path)
        return row, 'updated'

    row = Document(path=doc.path, body=doc.body, hash=doc.hash)
    _apply(row, doc)
    session.add(row)
    session.flush()
    logger.debug("created %s", doc.path)
    return row, 'created'
