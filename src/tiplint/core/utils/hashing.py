"""Content hashing for change detection between catalog commits"""

import hashlib


def content_hash(text: str) -> str:
    """Hex SHA-256 of text with line endings normalized to '\\n'.

    A CRLF checkout of an unchanged file hashes the same as the LF original,
    so it does not register as an update. 64 chars, matches String(64).
    """
    normalized = text.replace('\r\n', '\n').replace('\r', '\n')
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()
