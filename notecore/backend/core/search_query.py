"""
Full-Text Search Query Normalization.

Turns free user input into a query string the SQLite FTS5 engine can
always parse. FTS5 treats upper-case AND/OR/NOT/NEAR as operators; lower-casing
the input turns them back into ordinary terms without changing matching, as
the default tokenizer is case-insensitive.
"""

import re

# Characters with a meaning in the FTS5 query grammar.
_METACHARACTERS_RE = re.compile(r"['\"*^()\\-]")

# Anything else outside the FTS5 bareword alphabet (":", ".", "+", "{", ...)
# would also be a syntax error.
_NON_BAREWORD_RE = re.compile(r"[^\w\s]")

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_search_query(raw: str) -> str | None:
    """
    Normalize a raw search string into an FTS5 prefix query.

    Returns None when nothing searchable is left; callers must then
    return an empty result without touching the index.

    Example:
        normalize_search_query("Hello (World)")  # "hello world*"
        normalize_search_query('()"')            # None
    """
    query = raw.lower()
    query = _METACHARACTERS_RE.sub(" ", query)
    query = _NON_BAREWORD_RE.sub(" ", query)
    query = _WHITESPACE_RE.sub(" ", query).strip()
    if not query:
        return None
    return f"{query}*"
