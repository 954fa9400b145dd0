"""Document, issue, and report models for the parse and check pipeline"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field


RECOGNIZED_KEYS = frozenset({
    'title', 'layout', 'sidenav', 'published', 'permalink',
    'type', 'order', 'category', 'excerpt_separator',
})


class Layout(str, Enum):
    """Rendering templates the site generator knows about"""
    tips = "tips"
    blog = "blog"


class Severity(str, Enum):
    error = "error"
    warning = "warning"


class Document(BaseModel):
    """A content file: front-matter fields plus the Markdown body."""
    path: str
    hash: str
    title: str = ""
    layout: Optional[str] = None
    sidenav: Optional[str] = None
    published: bool = True
    permalink: str = ""
    type: str = "markdown"
    order: Optional[str] = None
    category: Optional[str] = None
    excerpt_separator: Optional[str] = None
    body: str = ""
    excerpt: Optional[str] = None
    revisions: list[str] = Field(default_factory=list)
    frontmatter: dict[str, Any] = Field(default_factory=dict)    # raw mapping as authored
    extra: dict[str, Any] = Field(default_factory=dict)          # keys outside RECOGNIZED_KEYS
    has_frontmatter: bool = True
    body_offset: int = 0                                         # file line preceding body line 1

    @property
    def is_tip(self) -> bool:
        return self.layout == Layout.tips.value


class Issue(BaseModel):
    """A single content problem found by a check."""
    path: str
    rule: str
    severity: Severity
    message: str
    line: Optional[int] = None

    def format(self) -> str:
        where = f"{self.path}:{self.line}" if self.line else self.path
        return f"{where}: {self.severity.value} [{self.rule}] {self.message}"


class CheckReport(BaseModel):
    """Outcome of checking a set of content files."""
    files: int = 0
    issues: list[Issue] = Field(default_factory=list)

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == Severity.error]

    @property
    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == Severity.warning]

    def failed(self, fail_on: str = "error") -> bool:
        """True when there are errors, or any issue at all when fail_on is 'warning'."""
        if fail_on == Severity.warning.value:
            return bool(self.issues)
        return bool(self.errors)


@dataclass
class ParsedDoc:
    """Internal parse result carrying markdown-it tokens; not persisted."""
    path:            Path
    raw_markdown:    str             # full file content (includes frontmatter)
    markdown:        str             # body only (frontmatter stripped)
    hash:            str
    frontmatter:     dict[str, Any]
    has_frontmatter: bool
    body_offset:     int             # number of file lines before the body
    tokens:          list = field(default_factory=list)    # markdown-it Token objects
