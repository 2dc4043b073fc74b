"""Body token resolution.

A body token is either the name of a .json/.xml/.txt file, whose contents
become the request body, or literal inline text.
"""

from __future__ import annotations

import re
from pathlib import Path

# Only these extensions are treated as file references.
_BODY_FILE_PATTERN = re.compile(r".+\.(json|xml|txt)")

_CONTENT_TYPES = {
    "json": "application/json",
    "xml": "application/xml",
    "txt": "text/plain",
}

DEFAULT_CONTENT_TYPE = "application/json"


class FileReadError(Exception):
    """Raised when a body token names a file that cannot be read."""


def resolve_body(token: str) -> tuple[bytes, str | None]:
    """Resolve a body token into (body bytes, content type).

    Args:
        token: Inline body text or a path ending in .json, .xml or .txt.

    Returns:
        File bytes with the matching MIME type, or the UTF-8 encoded token
        with no content type.

    Raises:
        FileReadError: If the token looks like a body file but reading it fails.
    """
    match = _BODY_FILE_PATTERN.fullmatch(token)
    if match is None:
        return token.encode("utf-8"), None

    extension = match.group(1)
    try:
        content = Path(token).read_bytes()
    except OSError as e:
        raise FileReadError(f"Cannot read body file '{token}': {e}") from e

    return content, _CONTENT_TYPES.get(extension, DEFAULT_CONTENT_TYPE)
