"""Content checks: per-document and corpus-wide front-matter and Markdown rules

Each rule is a plain function returning a list of Issues. Per-document rules
take (doc, tokens, settings); corpus-wide rules take the full document list.
"""

import re
from collections import defaultdict
from pathlib import Path
from typing import Callable, Optional

from markdown_it import MarkdownIt

from tiplint.config import Settings
from tiplint.core.models import RECOGNIZED_KEYS, Document, Issue, Layout, Severity


PRE_TAG_RE = re.compile(r'<pre\b|</pre\s*>', re.IGNORECASE)
LINE_BREAKS = ('softbreak', 'hardbreak')
LAYOUTS = {layout.value for layout in Layout}


def _issue(doc: Document, rule: str, severity: Severity, message: str, line: Optional[int] = None) -> Issue:
    return Issue(path=doc.path, rule=rule, severity=severity, message=message, line=line)


def _file_line(doc: Document, body_index: int) -> int:
    """Convert a 0-based body line index to a 1-based file line number."""
    return doc.body_offset + body_index + 1


def _fence_closed(tok) -> bool:
    """A closed fence spans opener + content + closer; an unclosed one has no closer line.

    markdown-it decides what counts as a closer (indentation, length, container),
    so the line count of token.content against token.map is the whole test.
    """
    start, end = tok.map
    content = tok.content
    lines = content.count('\n') + (1 if content and not content.endswith('\n') else 0)
    return lines == end - start - 2


def _html_fragments(tokens: list):
    """Yield (body_line_index, html) for raw HTML only, never code spans or code blocks."""
    for tok in tokens:
        if tok.type == 'html_block' and tok.map:
            for offset, line in enumerate(tok.content.splitlines()):
                yield tok.map[0] + offset, line
        elif tok.type == 'inline' and tok.map and tok.children:
            line = tok.map[0]
            for child in tok.children:
                if child.type in LINE_BREAKS:
                    line += 1
                elif child.type == 'html_inline':
                    yield line, child.content


# --- per-document rules ---

def check_frontmatter_present(doc: Document, tokens: list, settings: Settings) -> list[Issue]:
    if doc.has_frontmatter:
        return []
    return [_issue(doc, 'frontmatter-missing', Severity.error, "no front-matter block at top of file", 1)]


def check_permalink(doc: Document, tokens: list, settings: Settings) -> list[Issue]:
    if doc.permalink.strip():
        return []
    return [_issue(doc, 'permalink-missing', Severity.error, "permalink is empty or missing")]


def check_title(doc: Document, tokens: list, settings: Settings) -> list[Issue]:
    if not doc.published or doc.title.strip():
        return []
    return [_issue(doc, 'title-missing', Severity.error, "published document has no title")]


def check_layout(doc: Document, tokens: list, settings: Settings) -> list[Issue]:
    if doc.layout in LAYOUTS:
        return []
    expected = " or ".join(sorted(LAYOUTS))
    return [_issue(doc, 'layout-unknown', Severity.error, f"layout {doc.layout!r} is not {expected}")]


def check_type(doc: Document, tokens: list, settings: Settings) -> list[Issue]:
    if doc.type == 'markdown':
        return []
    return [_issue(doc, 'type-unknown', Severity.error, f"type {doc.type!r} is not 'markdown'")]


def check_published(doc: Document, tokens: list, settings: Settings) -> list[Issue]:
    if 'published' not in doc.frontmatter or isinstance(doc.frontmatter['published'], bool):
        return []
    value = doc.frontmatter['published']
    return [_issue(doc, 'published-not-boolean', Severity.error, f"published must be true or false, got {value!r}")]


def check_fences(doc: Document, tokens: list, settings: Settings) -> list[Issue]:
    """Report fenced code blocks that run to the end of their container unclosed."""
    return [
        _issue(
            doc, 'fence-unclosed', Severity.error,
            f"code fence {tok.markup!r} is never closed", _file_line(doc, tok.map[0]),
        )
        for tok in tokens
        if tok.type == 'fence' and tok.map and not _fence_closed(tok)
    ]


def check_pre_blocks(doc: Document, tokens: list, settings: Settings) -> list[Issue]:
    """Every <pre ...> opened in raw HTML must be closed by </pre>."""
    open_lines: list[int] = []
    issues = []
    for i, html in _html_fragments(tokens):
        for m in PRE_TAG_RE.finditer(html):
            if not m.group().startswith('</'):
                open_lines.append(i)
            elif open_lines:
                open_lines.pop()
            else:
                issues.append(_issue(
                    doc, 'pre-unbalanced', Severity.error,
                    "</pre> without a matching <pre>", _file_line(doc, i),
                ))
    for i in open_lines:
        issues.append(_issue(
            doc, 'pre-unbalanced', Severity.error,
            "<pre> is never closed", _file_line(doc, i),
        ))
    return issues


def check_order(doc: Document, tokens: list, settings: Settings) -> list[Issue]:
    if not doc.is_tip or (doc.order and doc.order.strip()):
        return []
    return [_issue(doc, 'order-missing', Severity.warning, "tip has no order key for numbering")]


def check_excerpt_separator(doc: Document, tokens: list, settings: Settings) -> list[Issue]:
    if not doc.excerpt_separator or doc.excerpt_separator in doc.body:
        return []
    return [_issue(
        doc, 'excerpt-separator-missing', Severity.warning,
        f"excerpt_separator {doc.excerpt_separator!r} does not appear in the body",
    )]


def check_sidenav(doc: Document, tokens: list, settings: Settings) -> list[Issue]:
    """Only runs when includes_dir is configured."""
    if not settings.includes_dir or not doc.sidenav:
        return []
    if (Path(settings.includes_dir) / doc.sidenav).exists():
        return []
    return [_issue(
        doc, 'sidenav-unresolved', Severity.warning,
        f"sidenav {doc.sidenav!r} not found in {settings.includes_dir}",
    )]


def check_unknown_keys(doc: Document, tokens: list, settings: Settings) -> list[Issue]:
    return [
        _issue(doc, 'key-unknown', Severity.warning, f"unrecognized front-matter key {key!r}")
        for key in doc.frontmatter
        if key not in RECOGNIZED_KEYS
    ]


DocumentRule = Callable[[Document, list, Settings], list[Issue]]

DOCUMENT_RULES: dict[str, DocumentRule] = {
    'frontmatter-missing':       check_frontmatter_present,
    'permalink-missing':         check_permalink,
    'title-missing':             check_title,
    'layout-unknown':            check_layout,
    'type-unknown':              check_type,
    'published-not-boolean':     check_published,
    'fence-unclosed':            check_fences,
    'pre-unbalanced':            check_pre_blocks,
    'order-missing':             check_order,
    'excerpt-separator-missing': check_excerpt_separator,
    'sidenav-unresolved':        check_sidenav,
    'key-unknown':               check_unknown_keys,
}


# --- corpus-wide rules ---

def check_permalink_duplicates(docs: list[Document]) -> list[Issue]:
    by_permalink: dict[str, list[Document]] = defaultdict(list)
    for doc in docs:
        if doc.permalink.strip():
            by_permalink[doc.permalink.strip()].append(doc)

    issues = []
    for permalink, group in by_permalink.items():
        if len(group) < 2:
            continue
        for doc in group:
            others = ", ".join(d.path for d in group if d is not doc)
            issues.append(_issue(
                doc, 'permalink-duplicate', Severity.error,
                f"permalink {permalink!r} also used by {others}",
            ))
    return issues


def check_order_duplicates(docs: list[Document]) -> list[Issue]:
    by_order: dict[str, list[Document]] = defaultdict(list)
    for doc in docs:
        if doc.is_tip and doc.published and doc.order and doc.order.strip():
            by_order[doc.order.strip()].append(doc)

    issues = []
    for order, group in by_order.items():
        if len(group) < 2:
            continue
        for doc in group:
            others = ", ".join(d.path for d in group if d is not doc)
            issues.append(_issue(
                doc, 'order-duplicate', Severity.warning,
                f"tip order {order!r} also used by {others}",
            ))
    return issues


CORPUS_RULES: dict[str, Callable[[list[Document]], list[Issue]]] = {
    'permalink-duplicate': check_permalink_duplicates,
    'order-duplicate':     check_order_duplicates,
}

ALL_RULES = sorted({*DOCUMENT_RULES, *CORPUS_RULES, 'frontmatter-invalid'})


def check_document(doc: Document, settings: Settings, tokens: list | None = None) -> list[Issue]:
    """Apply every enabled per-document rule. Tokenizes the body if tokens are not given."""
    if tokens is None:
        tokens = MarkdownIt(settings.parser_config, options_update={"html": True}).parse(doc.body)
    issues = []
    for rule, check in DOCUMENT_RULES.items():
        if rule not in settings.disabled_rules:
            issues.extend(check(doc, tokens, settings))
    return issues


def check_corpus(docs: list[Document], disabled_rules: list[str] | None = None) -> list[Issue]:
    """Apply every enabled corpus-wide rule."""
    disabled = set(disabled_rules or [])
    issues = []
    for rule, check in CORPUS_RULES.items():
        if rule not in disabled:
            issues.extend(check(docs))
    return issues


def unknown_rules(rule_ids: list[str]) -> list[str]:
    """Rule ids that no check answers to, in the order given."""
    known = set(ALL_RULES)
    return [r for r in rule_ids if r not in known]
