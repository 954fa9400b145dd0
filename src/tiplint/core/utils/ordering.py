"""Natural sort keys for tip numbering"""

import re


_DIGITS_RE = re.compile(r'(\d+)')


def order_key(order: str | None) -> tuple:
    """Split order into text/number runs so '2' sorts before '10'."""
    if order is None:
        return ()
    return tuple(
        (0, int(part), '') if part.isdigit() else (1, 0, part.lower())
        for part in _DIGITS_RE.split(str(order).strip())
        if part
    )


def tip_sort_key(order: str | None, permalink: str | None) -> tuple:
    """Documents without an order sort after numbered tips, then by permalink."""
    return (order is None or str(order).strip() == '', order_key(order), permalink or '')
