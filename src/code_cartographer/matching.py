from __future__ import annotations

import glob
import re
from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


def normalize_globs(globs: Sequence[str]) -> list[str]:
    """Normalize a sequence of path glob patterns.

    Strip whitespace, replace backslashes with forward slashes and drop a
    leading ``./`` so patterns line up with root-relative POSIX paths.

    Args:
        globs (Sequence[str]): the glob patterns to normalize

    Returns:
        list[str]: the normalized glob patterns
    """
    out: list[str] = []
    for g in globs:
        g2 = (g or "").strip().replace("\\", "/")
        g2 = g2.removeprefix("./")
        if not g2:
            continue
        out.append(g2)
    return out


@lru_cache(maxsize=1024)
def compile_glob(pattern: str, *, dot_files: bool = True) -> re.Pattern[str]:
    """Compile one glob into a regular expression.

    ``**`` spans directory separators (and may match no segment at all when
    followed by ``/``); ``*`` and ``?`` stay within a single segment. Matching
    is case-sensitive.

    Args:
        pattern (str): the glob pattern, with ``/`` separators
        dot_files (bool): whether wildcards may match names starting with a dot

    Returns:
        re.Pattern[str]: the compiled expression
    """
    return re.compile(glob.translate(pattern, recursive=True, include_hidden=dot_files, seps="/"))


def is_match(rel: str, patterns: Sequence[str], *, dot_files: bool = True) -> bool:
    """Check if a relative path matches any of the provided glob patterns.

    Args:
        rel (str): the root-relative POSIX path to check
        patterns (Sequence[str]): the glob patterns to match against
        dot_files (bool): whether wildcards match hidden entries

    Returns:
        bool: True if `rel` matches any pattern in `patterns`, False otherwise
    """
    rel = rel.replace("\\", "/")
    return any(compile_glob(p, dot_files=dot_files).match(rel) for p in normalize_globs(patterns))
