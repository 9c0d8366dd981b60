"""Author-name normalization and fuzzy matching.

Catalog author fields are free text such as ``"Clarke, Arthur C. (1917-2008)"``
and often list several people, so exact comparison is useless.
"""

import re

_PARENTHESES = re.compile(r"\([^)]*\)")
_PUNCTUATION = re.compile(r"[.,;:]")
_WHITESPACE = re.compile(r"\s+")

MIN_TOKEN_LENGTH = 3


def normalize_author_name(name: str) -> str:
    """Lowercase, drop ``(...)`` groups and ``.,;:``, collapse whitespace."""
    name = _PARENTHESES.sub("", name.lower())
    name = _PUNCTUATION.sub("", name)
    return _WHITESPACE.sub(" ", name).strip()


def author_matches(candidate: str | None, query: str) -> bool:
    """
    Decide whether a catalog author field matches a requested author.

    A candidate matches when its normalized form contains the normalized
    query, or when every query token is at least three characters long and
    is a substring of some candidate token (or vice versa).
    """
    if not candidate:
        return False

    wanted = normalize_author_name(query)
    have = normalize_author_name(candidate)
    if not wanted or not have:
        return False
    if wanted in have:
        return True

    have_parts = have.split(" ")
    return all(
        len(part) >= MIN_TOKEN_LENGTH
        and any(part in other or other in part for other in have_parts)
        for part in wanted.split(" ")
    )
