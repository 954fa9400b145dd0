"""Body and front-matter diffs between catalog snapshots"""

import difflib
from typing import Any


def unified_diff(
    old: str,
    new: str,
    from_label: str = "version_a",
    to_label: str = "version_b",
    context: int = 3,
    ) -> list[str]:
    """Return unified diff lines comparing old to new body text. Empty list if identical."""
    return list(difflib.unified_diff(
        old.splitlines(keepends=True), new.splitlines(keepends=True),
        fromfile=from_label, tofile=to_label, n=context,
    ))


def field_changes(old: dict[str, Any], new: dict[str, Any]) -> list[str]:
    """One line per front-matter key that was added, removed, or changed, sorted by key.

      order: '1' -> '01'
      + category: 'design'
      - sidenav: 'side-nav-tips.html'
    """
    lines = []
    for key in sorted(old.keys() | new.keys()):
        if key not in new:
            lines.append(f"- {key}: {old[key]!r}")
        elif key not in old:
            lines.append(f"+ {key}: {new[key]!r}")
        elif old[key] != new[key]:
            lines.append(f"{key}: {old[key]!r} -> {new[key]!r}")
    return lines
