"""Catalog history: snapshot a document's tracked fields before each update, prune, compare"""

from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlmodel import Session, select

from tiplint.core.utils.diff import field_changes, unified_diff
from tiplint.crud.models import Document, DocumentVersion


# Normalized fields the site build depends on; the rest of the front-matter is compared as authored.
TRACKED_FIELDS = ('permalink', 'title', 'layout', 'order', 'published')


def tracked_fields(row: Document | DocumentVersion) -> dict[str, Any]:
    """Front-matter as authored, overlaid with the normalized tracked fields."""
    fields = dict(row.frontmatter or {})
    fields.update({name: getattr(row, name) for name in TRACKED_FIELDS})
    return fields


def get_version(session: Session, document_id: UUID, version_num: int) -> DocumentVersion:
    """Raises ValueError if the document has no such version (it may have been pruned)."""
    version = session.exec(
        select(DocumentVersion)
        .where(DocumentVersion.document_id == document_id)
        .where(DocumentVersion.version_num == version_num)
    ).one_or_none()
    if version is None:
        raise ValueError(f"Version {version_num} not found for document {document_id}")
    return version


def list_versions(session: Session, document_id: UUID) -> list[DocumentVersion]:
    """All stored versions, oldest first."""
    return list(session.exec(
        select(DocumentVersion)
        .where(DocumentVersion.document_id == document_id)
        .order_by(DocumentVersion.version_num.asc())
    ).all())


def prune_versions(session: Session, document_id: UUID, max_versions: int) -> int:
    """Keep the newest max_versions snapshots. Returns count deleted; 0 disables pruning."""
    if max_versions == 0:
        return 0
    stale = list_versions(session, document_id)[:-max_versions]
    for v in stale:
        session.delete(v)
    session.flush()
    return len(stale)


def delete_versions(session: Session, document_id: UUID) -> None:
    """Drop a document's whole history, ahead of removing the document itself."""
    for v in list_versions(session, document_id):
        session.delete(v)
    session.flush()


def save_version(session: Session, doc: Document, max_versions: int = 10) -> DocumentVersion:
    """Snapshot doc as it is now, numbered MAX(version_num)+1, then prune."""
    latest = session.exec(
        select(func.max(DocumentVersion.version_num))
        .where(DocumentVersion.document_id == doc.id)
    ).one()

    version = DocumentVersion(
        document_id=doc.id,
        version_num=(latest or 0) + 1,
        body=doc.body,
        hash=doc.hash,
        frontmatter=dict(doc.frontmatter) if doc.frontmatter else None,
        **{name: getattr(doc, name) for name in TRACKED_FIELDS},
    )
    session.add(version)
    session.flush()

    if max_versions > 0:
        prune_versions(session, doc.id, max_versions)
    return version


def diff_versions(
    session: Session,
    doc: Document,
    from_num: int,
    to_num: int | None = None,
    context: int = 3,
    ) -> tuple[list[str], list[str]]:
    """Compare two stored versions, or a version against the current catalog row.

    Returns (field_lines, body_diff_lines); both empty when nothing changed.
    Raises ValueError if a version number is missing.
    """
    old = get_version(session, doc.id, from_num)
    if to_num is None:
        new, to_label = doc, "current"
    else:
        new, to_label = get_version(session, doc.id, to_num), f"v{to_num}"
    return (
        field_changes(tracked_fields(old), tracked_fields(new)),
        unified_diff(old.body, new.body, f"v{from_num}", to_label, context),
    )
