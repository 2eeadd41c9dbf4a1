"""
Glob matching and exclusion testing for file system paths.
"""

import re
import logging
from functools import lru_cache
from pathlib import PurePath
from typing import Iterable, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, PurePath]


def normalize_path(path: PathLike) -> str:
    """Normalize separators to '/' and lower-case the path."""
    return str(path).replace("\\", "/").lower()


@lru_cache(maxsize=512)
def _compile_glob(pattern: str) -> "re.Pattern[str]":
    """Translate a glob into an anchored regex.

    Only '*' (any run of characters) and '?' (one character) are special.
    """
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def matches(path: PathLike, pattern: str) -> bool:
    """Check if a path or name matches a glob pattern.

    Args:
        path: Path or bare name to test
        pattern: Glob pattern using '*' and '?'

    Returns:
        True if the whole normalized path matches
    """
    if not pattern or not str(pattern).strip():
        return False
    regex = _compile_glob(normalize_path(pattern))
    return regex.fullmatch(normalize_path(path)) is not None


def matches_any(path: PathLike, patterns: Iterable[str]) -> bool:
    """True if the path matches at least one of the patterns."""
    return any(matches(path, pattern) for pattern in patterns)


def is_excluded(path: PathLike, patterns: Iterable[str]) -> bool:
    """Check a path against a set of exclusion patterns.

    Matching errors are logged and never block an action: the path is
    then reported as not excluded.

    Args:
        path: Path to check
        patterns: Exclusion glob patterns; blank entries are ignored

    Returns:
        True if any non-blank pattern matches the path
    """
    if not path or not str(path).strip():
        return False

    try:
        for pattern in patterns or ():
            if pattern and str(pattern).strip() and matches(path, pattern):
                logger.debug(f"Path {path} excluded by pattern '{pattern}'")
                return True
    except Exception as e:
        logger.error(f"Exclusion check failed for {path}: {e}")
        return False

    return False
