# File: linkwalk/utils.py
"""linkwalk.utils: small helpers shared by the crawler and the config layer."""

from __future__ import annotations

import re
from typing import Collection, List, Optional, Pattern, Sequence, Union

from linkwalk.logger import logger

__all__: Sequence[str] = (
    "compile_pattern",
    "remove_duplicates",
)


def compile_pattern(pattern: Union[str, Pattern[str], None]) -> Optional[Pattern[str]]:
    """Compile a link-shape regex; ``None`` and compiled patterns pass through."""
    if pattern is None or isinstance(pattern, re.Pattern):
        return pattern
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ValueError(f"invalid link pattern {pattern!r}: {exc}") from exc


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Drop repeated URLs, keeping the first occurrence of each."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
