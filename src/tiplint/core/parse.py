"""File discovery, front-matter extraction, and markdown-it tokenization"""

import logging
import re
from pathlib import Path
from typing import Any

import yaml
from markdown_it import MarkdownIt

from tiplint.core.models import RECOGNIZED_KEYS, Document, ParsedDoc
from tiplint.core.utils.hashing import content_hash


logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r'\A---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)', re.DOTALL | re.MULTILINE)
UPDATED_RE = re.compile(
    r'\bUpdated(?:\s+on)?:?\s+'
    r'(\d{4}-\d{2}-\d{2}|\d{1,2}/\d{1,2}/\d{2,4}|[A-Z][a-z]+\.?\s+\d{1,2},?\s+\d{4}|\d{1,2}\s+[A-Z][a-z]+\.?\s+\d{4})'
)
MD_EXTENSIONS = {'.md', '.markdown'}
HEADER_START_RE = re.compile(r'\A---[ \t]*\r?\n')
TEXT_KEYS = ('title', 'permalink', 'order', 'category', 'sidenav')
NULL_TAG = 'tag:yaml.org,2002:null'


def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"html": True})


def _authored_text(fm_text: str) -> dict[str, str]:
    """Top-level scalars of TEXT_KEYS exactly as written, before YAML typing.

    Keeps 'order: 010' as '010' rather than the octal int 8, and '1.10'
    distinct from '1.1'.
    """
    node = yaml.compose(fm_text, Loader=yaml.SafeLoader)
    if not isinstance(node, yaml.MappingNode):
        return {}
    return {
        key.value: value.value
        for key, value in node.value
        if isinstance(key, yaml.ScalarNode) and key.value in TEXT_KEYS
        and isinstance(value, yaml.ScalarNode) and value.tag != NULL_TAG
    }


def _strip_frontmatter(text: str) -> tuple[dict[str, Any], str, int] | None:
    """Return (frontmatter_dict, body, body_offset), or None when there is no header."""
    m = FRONTMATTER_RE.match(text)
    if not m:
        if HEADER_START_RE.match(text):
            raise ValueError("Unterminated front-matter: no closing '---' line")
        return None
    try:
        fm = yaml.safe_load(m.group(1)) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML frontmatter: {e}") from e
    if not isinstance(fm, dict):
        raise ValueError(f"Invalid YAML frontmatter: expected a mapping, got {type(fm).__name__}")
    fm.update(_authored_text(m.group(1)))
    return fm, text[m.end():], text[:m.end()].count('\n')


def discover_files(path: Path) -> list[Path]:
    """Return sorted Markdown files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.is_file() and p.suffix in MD_EXTENSIONS)


def parse_text(path: Path, raw: str, parser_config: str = 'commonmark') -> ParsedDoc:
    """Parse already-read file content into a ParsedDoc with token stream."""
    stripped = _strip_frontmatter(raw)
    if stripped is None:
        frontmatter, body, offset, has_fm = {}, raw, 0, False
    else:
        frontmatter, body, offset = stripped
        has_fm = True
    return ParsedDoc(
        path=path,
        raw_markdown=raw,
        markdown=body,
        hash=content_hash(raw),
        frontmatter=frontmatter,
        has_frontmatter=has_fm,
        body_offset=offset,
        tokens=_make_parser(parser_config).parse(body),
    )


def parse_file(path: Path, parser_config: str = 'commonmark') -> ParsedDoc:
    """Parse a single Markdown file. Raises ValueError for unreadable content."""
    try:
        raw = path.read_text(encoding='utf-8')
    except UnicodeDecodeError as e:
        raise ValueError(f"Not valid UTF-8: {e}") from e
    logger.debug("parsing %s", path)
    return parse_text(path, raw, parser_config)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def find_revisions(body: str) -> list[str]:
    """Dates from 'Updated <date>' annotations, in order of appearance."""
    return [m.group(1) for m in UPDATED_RE.finditer(body)]


def load_document(parsed: ParsedDoc) -> Document:
    """Build a Document from a ParsedDoc; wrong field values are left for the checks."""
    fm = parsed.frontmatter
    published = fm.get('published', True)
    separator = _optional_str(fm.get('excerpt_separator'))
    excerpt = None
    if separator and separator in parsed.markdown:
        excerpt = parsed.markdown.split(separator, 1)[0].strip()

    return Document(
        path=str(parsed.path),
        hash=parsed.hash,
        title=_optional_str(fm.get('title')) or '',
        layout=_optional_str(fm.get('layout')),
        sidenav=_optional_str(fm.get('sidenav')),
        published=published if isinstance(published, bool) else True,
        permalink=_optional_str(fm.get('permalink')) or '',
        type=_optional_str(fm.get('type')) or 'markdown',
        order=_optional_str(fm.get('order')),
        category=_optional_str(fm.get('category')),
        excerpt_separator=separator,
        body=parsed.markdown,
        excerpt=excerpt,
        revisions=find_revisions(parsed.markdown),
        frontmatter=fm,
        extra={k: v for k, v in fm.items() if k not in RECOGNIZED_KEYS},
        has_frontmatter=parsed.has_frontmatter,
        body_offset=parsed.body_offset,
    )
