"""Source file discovery with include/exclude glob filtering."""

import fnmatch
import logging
import os
from collections.abc import Iterable, Sequence
from pathlib import Path

from reverso.constants import DEFAULT_EXCLUDE_PATTERNS, DEFAULT_INCLUDE_PATTERNS
from reverso.core.languages import is_supported_file

logger = logging.getLogger(__name__)

_PRUNED_DIRS = frozenset({"node_modules", ".git", ".reverso"})


def _variants(pattern: str) -> tuple[str, ...]:
    # fnmatch's "*" already crosses "/", so "**/" only needs to also match zero directories.
    if pattern.startswith("**/"):
        return (pattern, pattern[3:])
    return (pattern,)


def matches_any(relative_path: str, patterns: Iterable[str]) -> bool:
    """Match a ``/``-separated path relative to the source root against glob patterns."""
    candidate = relative_path.replace(os.sep, "/").lstrip("/")
    for pattern in patterns:
        for variant in _variants(pattern):
            if fnmatch.fnmatchcase(candidate, variant) or fnmatch.fnmatchcase("/" + candidate, variant):
                return True
    return False


def is_candidate(
    relative_path: str,
    include: Sequence[str] = DEFAULT_INCLUDE_PATTERNS,
    exclude: Sequence[str] = DEFAULT_EXCLUDE_PATTERNS,
) -> bool:
    if not is_supported_file(Path(relative_path)):
        return False
    return matches_any(relative_path, include) and not matches_any(relative_path, exclude)


def discover_files(
    root: str | Path,
    include: Sequence[str] = DEFAULT_INCLUDE_PATTERNS,
    exclude: Sequence[str] = DEFAULT_EXCLUDE_PATTERNS,
) -> list[Path]:
    """Return the sorted list of markup files under ``root`` that pass the filters."""
    root_path = Path(root)
    if not root_path.is_dir():
        logger.warning("Source directory %s does not exist", root_path)
        return []

    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root_path):
        dirnames[:] = sorted(d for d in dirnames if d not in _PRUNED_DIRS)
        for filename in filenames:
            path = Path(dirpath) / filename
            relative = path.relative_to(root_path).as_posix()
            if is_candidate(relative, include, exclude):
                found.append(path)

    found.sort(key=lambda p: p.relative_to(root_path).as_posix())
    logger.debug("Discovered %d file(s) under %s", len(found), root_path)
    return found
