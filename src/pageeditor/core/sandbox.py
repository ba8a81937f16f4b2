"""Path sandboxing.

Maps request URLs onto filesystem paths and rejects anything that resolves
outside an allowed root. Every handler goes through here before touching
the filesystem.
"""

import logging
import os
from pathlib import Path
from urllib.parse import unquote

from pageeditor.errors import ForbiddenError

logger = logging.getLogger(__name__)


def normalize(path: Path) -> Path:
    """Make a path absolute and collapse ``.`` and ``..`` segments lexically."""
    return Path(os.path.normpath(path.absolute()))


def ensure_within(path: Path, allowed_root: Path) -> Path:
    """Normalize ``path`` and check it equals or descends from ``allowed_root``.

    Args:
        path: Candidate path (absolute or relative to the working directory)
        allowed_root: Absolute, normalized root directory

    Returns:
        The normalized path

    Raises:
        ForbiddenError: If the normalized path escapes ``allowed_root``
    """
    resolved = normalize(path)
    if resolved != allowed_root and not str(resolved).startswith(
        f"{allowed_root}{os.sep}"
    ):
        logger.warning(f"Forbidden path {resolved} (outside {allowed_root})")
        raise ForbiddenError()
    return resolved


def resolve_request_path(raw_path: str, base_dir: Path, allowed_root: Path) -> Path:
    """Resolve a raw (percent-encoded) URL path against ``base_dir``.

    The path is decoded first, so encoded separators such as ``..%2F`` are
    normalized before the containment check.

    Args:
        raw_path: URL path as received, e.g. ``/page_editor/user_pages/a.html``
        base_dir: Directory the URL path is relative to (the read root)
        allowed_root: Root the result must stay within

    Returns:
        Absolute filesystem path

    Raises:
        ForbiddenError: If the path resolves outside ``allowed_root``
    """
    decoded = unquote(raw_path).lstrip("/")
    return ensure_within(base_dir / decoded, allowed_root)
