"""CLI command implementations"""

import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from sqlmodel import Session

from tiplint.config import Settings, load_config
from tiplint.core.pipeline import run_check, run_commit, run_export
from tiplint.core.rules import ALL_RULES, unknown_rules
from tiplint.crud.database import init_db, make_engine, reset_db
from tiplint.crud.documents import get_by_path, get_by_permalink, list_documents
from tiplint.crud.models import Document
from tiplint.crud.versioning import diff_versions, list_versions


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _engine(settings: Settings):
    engine = make_engine(settings.db_url)
    init_db(engine)
    return engine


def _lookup(session: Session, key: str) -> Document:
    """Find a catalog document by permalink, falling back to source path."""
    doc = get_by_permalink(session, key) or get_by_path(session, Path(key).resolve().as_posix())
    if doc is None:
        _fail(f"No document with permalink or path '{key}'. Run 'tiplint commit <path>' first.")
    return doc


def check_cmd(
    path: Annotated[str, typer.Argument(help="Content file or directory to check")],
    fail_on: Annotated[Optional[str], typer.Option("--fail-on", help="error or warning")] = None,
    disable: Annotated[Optional[list[str]], typer.Option("--disable", help="Rule id to skip (repeatable)")] = None,
    includes_dir: Annotated[Optional[str], typer.Option("--includes-dir", help="Directory holding sidenav includes")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print issues as JSON")] = False,
    ):
    """Check front-matter and Markdown well-formedness across the corpus."""
    if not Path(path).exists():
        _fail(f"Path not found: {path}")
    settings = _settings(overrides={
        "fail_on": fail_on, "includes_dir": includes_dir, "disabled_rules": disable or None,
    })
    if unknown := unknown_rules(settings.disabled_rules):
        _fail(f"Unknown rule id(s): {', '.join(unknown)}. Known rules: {', '.join(ALL_RULES)}")
    report = run_check(path, settings)

    if as_json:
        typer.echo(json.dumps([i.model_dump(mode="json") for i in report.issues], indent=2))
    else:
        for issue in report.issues:
            typer.echo(issue.format())
        typer.echo(
            f"Checked {report.files} file(s): "
            f"{len(report.errors)} error(s), "
            f"{len(report.warnings)} warning(s)"
        )
    if report.failed(settings.fail_on):
        raise typer.Exit(1)


def commit_cmd(
    path: Annotated[str, typer.Argument(help="Content file or directory to catalog")],
    versions: Annotated[Optional[int], typer.Option("--max-versions", help="Max stored versions per doc")] = None,
    ):
    """Upsert document metadata into the catalog database."""
    if not Path(path).exists():
        _fail(f"Path not found: {path}")
    settings = _settings(overrides={"max_versions": versions})
    engine = _engine(settings)
    try:
        counts, changes = run_commit(engine, path, settings)
    except RuntimeError as e:
        _fail(str(e))
    except Exception as e:
        _fail("Commit failed", e)

    for status, doc_path in changes:
        typer.echo(f"  {status}: {doc_path}")
    typer.echo(
        f"Commit complete - "
        f"{counts['created']} created, "
        f"{counts['updated']} updated, "
        f"{counts['unchanged']} unchanged, "
        f"{counts['removed']} removed"
    )


def list_cmd(
    layout: Annotated[Optional[str], typer.Option("--layout", help="Only tips or blog")] = None,
    all_docs: Annotated[bool, typer.Option("--all", help="Include unpublished documents")] = False,
    ):
    """List catalog documents in tip numbering order."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        docs = list_documents(session, layout=layout, published_only=not all_docs)
        rows = [(d.order or "-", d.permalink, d.title, d.published) for d in docs]
    if not rows:
        typer.echo("No documents found in catalog.")
        raise typer.Exit(1)
    for order, permalink, title, published in rows:
        suffix = "" if published else "  (unpublished)"
        typer.echo(f"{order:>6}  {permalink}  {title}{suffix}")


def history_cmd(
    key: Annotated[str, typer.Argument(help="Permalink or source path")],
    ):
    """Show stored versions of a document."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        doc = _lookup(session, key)
        versions = list_versions(session, doc.id)
        lines = [
            f"  v{v.version_num}  {v.created_at:%Y-%m-%d %H:%M:%S}  {v.hash[:12]}  {v.permalink}  {v.title}"
            for v in versions
        ]
        header = f"{doc.path} (current {doc.hash[:12]}, updated {doc.updated_at:%Y-%m-%d %H:%M:%S})"
    typer.echo(header)
    if not lines:
        typer.echo("  no prior versions")
    for line in lines:
        typer.echo(line)


def diff_cmd(
    key: Annotated[str, typer.Argument(help="Permalink or source path")],
    from_num: Annotated[int, typer.Argument(help="Older version number")],
    to_num: Annotated[Optional[int], typer.Argument(help="Newer version number (default: current)")] = None,
    ):
    """Show front-matter changes and a unified body diff between two versions of a document."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        doc = _lookup(session, key)
        try:
            fields, body = diff_versions(session, doc, from_num, to_num)
        except ValueError as e:
            _fail(str(e))
    if not fields and not body:
        typer.echo("No differences.")
        return
    for line in fields:
        typer.echo(line)
    if body:
        typer.echo("".join(body), nl=False)


def export_cmd(
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    ):
    """Write catalog.json listing published documents in tip order."""
    settings = _settings(overrides={"output_dir": out})
    engine = _engine(settings)
    try:
        with Session(engine) as session:
            json_path, count = run_export(session, Path(settings.output_dir))
    except Exception as e:
        _fail("Export failed", e)
    typer.echo(f"Exported {count} document(s) to {json_path}")


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Initialize the catalog schema. Use --reset to clear existing data."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        reset_db(engine)
        typer.echo("Existing data cleared.")
    else:
        init_db(engine)
    typer.echo(f"Catalog initialized at: {settings.db_url}")
