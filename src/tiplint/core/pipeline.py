"""Pipeline step functions: check, commit, and export orchestration"""

import json
import logging
from pathlib import Path

from sqlalchemy.engine import Engine
from sqlmodel import Session

from tiplint.config import Settings
from tiplint.core.models import CheckReport, Document, Issue, Severity
from tiplint.core.parse import discover_files, load_document, parse_file
from tiplint.core.rules import check_corpus, check_document
from tiplint.crud.documents import commit_doc, list_documents, remove_missing


logger = logging.getLogger(__name__)


def _sort_key(issue: Issue) -> tuple:
    return (issue.path, issue.line or 0, issue.rule)


def run_check(path: str, settings: Settings) -> CheckReport:
    """Parse every content file under path and apply all enabled rules.

    Files that cannot be parsed produce one frontmatter-invalid error and
    are left out of the corpus-wide rules.
    """
    files = discover_files(Path(path))
    docs: list[Document] = []
    issues: list[Issue] = []

    for p in files:
        try:
            parsed = parse_file(p, settings.parser_config)
        except ValueError as e:
            logger.debug("cannot parse %s: %s", p, e)
            if 'frontmatter-invalid' not in settings.disabled_rules:
                issues.append(Issue(
                    path=str(p), rule='frontmatter-invalid', severity=Severity.error, message=str(e), line=1,
                ))
            continue
        doc = load_document(parsed)
        docs.append(doc)
        issues.extend(check_document(doc, settings, parsed.tokens))

    issues.extend(check_corpus(docs, settings.disabled_rules))
    logger.debug("checked %d file(s), %d issue(s)", len(files), len(issues))
    return CheckReport(files=len(files), issues=sorted(issues, key=_sort_key))


def load_corpus(path: str, parser_config: str = 'commonmark') -> list[Document]:
    """Parse every content file under path. Raises RuntimeError naming the first bad file."""
    docs = []
    for p in discover_files(Path(path)):
        try:
            docs.append(load_document(parse_file(p, parser_config)))
        except ValueError as e:
            raise RuntimeError(f"Failed to parse {p}: {e}") from e
    return docs


def run_commit(
    engine: Engine,
    path: str,
    settings: Settings,
    ) -> tuple[dict[str, int], list[tuple[str, str]]]:
    """Parse path and sync the catalog with it.

    Rows are keyed by resolved absolute path, so the same file committed as a
    relative or an absolute path maps to one row. Rows under path whose file
    is gone (deleted, renamed, or no longer Markdown) are removed.

    Returns (counts, changes) where changes is a list of (status, path) for
    created/updated/removed docs. Nothing is written if any file fails to parse.
    """
    root = Path(path).resolve()
    docs = [
        doc.model_copy(update={"path": Path(doc.path).resolve().as_posix()})
        for doc in load_corpus(path, settings.parser_config)
    ]
    counts = {"created": 0, "updated": 0, "unchanged": 0, "removed": 0}
    changes = []
    with Session(engine) as session:
        for doc in docs:
            row, status = commit_doc(session, doc, settings.max_versions)
            counts[status] += 1
            if status != 'unchanged':
                changes.append((status, row.path))
        for removed in remove_missing(session, root, {doc.path for doc in docs}):
            counts["removed"] += 1
            changes.append(("removed", removed))
        session.commit()
    return counts, changes


def build_catalog(session: Session) -> list[dict]:
    """Published documents as plain dicts, in tip numbering order."""
    return [
        {
            "permalink": d.permalink,
            "title": d.title,
            "layout": d.layout,
            "order": d.order,
            "category": d.category,
            "sidenav": d.sidenav,
            "path": d.path,
            "revisions": d.revisions or [],
        }
        for d in list_documents(session, published_only=True)
    ]


def run_export(session: Session, output_dir: Path) -> tuple[Path, int]:
    """Write catalog.json to output_dir. Returns (json_path, document_count)."""
    output_dir.mkdir(parents=True, exist_ok=True)
    entries = build_catalog(session)
    json_path = output_dir / "catalog.json"
    json_path.write_text(json.dumps(entries, indent=2), encoding='utf-8')
    return json_path, len(entries)
