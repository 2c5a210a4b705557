"""
Path parameter service for :param placeholders.

Handles extraction, substitution and anchored matching of URL path patterns
such as ``/users/:id/posts/:post_id``.
"""

import re
from functools import lru_cache
from typing import List, Optional
from urllib.parse import quote


# Pattern to match :param placeholders (a colon followed by non-slash characters)
PARAM_PATTERN = re.compile(r':([^/]+)')


def extract_path_params(pattern: str) -> List[str]:
    """
    Extract all parameter names from a path pattern.

    Args:
        pattern: Path containing :param placeholders

    Returns:
        List of parameter names in the order they appear

    Example:
        >>> extract_path_params("/users/:id/posts/:post_id")
        ['id', 'post_id']
    """
    if not pattern:
        return []

    return PARAM_PATTERN.findall(pattern)


def substitute_path_params(url: str, params: dict | None) -> str:
    """
    Replace :param placeholders in a URL with URL-encoded values.

    Every occurrence of ``:key`` is replaced for each key in ``params``.
    Placeholders without a value are left untouched.

    Example:
        >>> substitute_path_params("/users/:id", {"id": "a b"})
        '/users/a%20b'
    """
    if not url or not params:
        return url or ""

    def replace_match(match: re.Match) -> str:
        name = match.group(1)
        if name in params and params[name] is not None:
            return quote(str(params[name]), safe="")
        return match.group(0)

    return PARAM_PATTERN.sub(replace_match, url)


@lru_cache(maxsize=256)
def compile_path_pattern(pattern: str) -> re.Pattern:
    """
    Compile a path pattern into an anchored regular expression.

    ``:segment`` tokens match exactly one non-empty, non-slash segment; all
    other characters match literally.
    """
    parts = []
    position = 0
    for match in PARAM_PATTERN.finditer(pattern):
        parts.append(re.escape(pattern[position:match.start()]))
        parts.append(r'([^/]+)')
        position = match.end()
    parts.append(re.escape(pattern[position:]))
    return re.compile("^" + "".join(parts) + "$")


def match_path(pattern: str, path: str) -> Optional[dict[str, str]]:
    """
    Match a concrete path against a pattern.

    Returns:
        Mapping of parameter names to values when the whole path matches,
        otherwise None

    Example:
        >>> match_path("/virtual/user/:id", "/virtual/user/42")
        {'id': '42'}
        >>> match_path("/virtual/user/:id", "/virtual/user/42/extra") is None
        True
    """
    if not pattern or path is None:
        return None

    match = compile_path_pattern(pattern).match(path)
    if match is None:
        return None

    return dict(zip(extract_path_params(pattern), match.groups()))
