"""Database table definitions for the content catalog and document history"""

from datetime import datetime
from typing import Optional, List, Dict, Any
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, JSON, Text, String, UniqueConstraint


class Document(SQLModel, table=True):
    """A content file as last committed; the source of truth stays on disk"""
    __tablename__ = "documents"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    path: str = Field(..., sa_column=Column(Text, nullable=False, unique=True))    # resolved absolute POSIX path
    permalink: str = Field(default="", index=True, nullable=False, description="Not unique; collisions are reported by checks")
    title: str = Field(default="", nullable=False)
    layout: Optional[str] = Field(default=None, index=True)
    published: bool = Field(default=True, nullable=False)
    order: Optional[str] = Field(default=None, description="Tip numbering key, kept as authored")
    category: Optional[str] = Field(default=None)
    sidenav: Optional[str] = Field(default=None)
    body: str = Field(..., sa_column=Column(Text, nullable=False))
    hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    frontmatter: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    revisions: Optional[List[str]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))


class DocumentVersion(SQLModel, table=True):
    """Immutable snapshot of a Document's tracked fields, front-matter, and body before an update."""
    __tablename__ = "document_versions"
    __table_args__ = (UniqueConstraint("document_id", "version_num", name="uq_docver_doc_num"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    document_id: UUID = Field(..., foreign_key="documents.id", index=True, nullable=False)
    version_num: int = Field(..., nullable=False, description="Monotonically increasing per-document version number")
    permalink: str = Field(default="", nullable=False)
    title: str = Field(default="", nullable=False)
    layout: Optional[str] = Field(default=None)
    order: Optional[str] = Field(default=None)
    published: bool = Field(default=True, nullable=False)
    body: str = Field(..., sa_column=Column(Text, nullable=False))
    hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    frontmatter: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
