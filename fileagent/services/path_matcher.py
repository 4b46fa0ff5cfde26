"""
Path pattern matching for ACL rules.

A rule's ``path`` is a regular expression that is *searched* within the
request path, not matched against the whole string. ``/exam.*`` therefore
matches ``/exam123.txt`` and ``/exam/a/b.txt``, and a pattern ending in
``.*`` covers every nested subdirectory.

Both rule paths and request paths are logical paths that start with ``/``;
``logical_path`` adds the leading slash when it is missing. An anchored rule
path keeps its ``^`` first, so ``^exam`` is stored as ``^/exam``.
"""
import logging
import re
from functools import lru_cache
from typing import Pattern

from fileagent.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def logical_path(path: str) -> str:
    """Return ``path`` with a leading slash."""
    if path.startswith("/"):
        return path
    return "/" + path


def normalize_pattern(pattern: str) -> str:
    """Give a rule path a leading slash, after the ``^`` anchor when there is one."""
    if pattern.startswith("^"):
        return "^" + logical_path(pattern[1:])
    return logical_path(pattern)


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> Pattern:
    """
    Compile a rule path pattern.

    Cached by pattern text, so a rule whose path is updated is simply
    compiled again under its new text.

    Raises:
        re.error: If the pattern is not a valid regular expression
    """
    return re.compile(pattern)


def validate_pattern(pattern: str) -> str:
    """
    Check that ``pattern`` is usable as a rule path and normalize it.

    Returns:
        The pattern with a leading slash, placed after a leading ``^``

    Raises:
        ValidationError: If the pattern is empty or does not compile
    """
    if pattern is None or pattern.strip() == "":
        raise ValidationError("ACL path must not be empty", details={"field": "path"})
    normalized = normalize_pattern(pattern)
    try:
        compile_pattern(normalized)
    except re.error as e:
        raise ValidationError(
            f"ACL path {pattern!r} is not a valid pattern: {e}",
            details={"field": "path", "value": pattern},
        )
    return normalized


def matches(pattern: str, candidate_path: str) -> bool:
    """
    Return True if ``pattern`` matches anywhere within ``candidate_path``.

    Patterns are validated when rules are written. A pattern that still fails
    to compile here (a row written behind the store's back) never matches.
    """
    try:
        regex = compile_pattern(pattern)
    except re.error as e:
        logger.warning(f"Stored ACL path {pattern!r} is not a valid pattern ({e}); treating as no match")
        return False
    return regex.search(candidate_path) is not None
