"""Naming engine - convert identifiers between naming conventions.

Stateless helpers used to derive default column names:
    convert("createdAt", NamingConvention.SNAKE_CASE)  -> "created_at"
    convert("class_", NamingConvention.UPPERCASE)       -> "CLASS"
"""

from __future__ import annotations

import keyword
import re

from row_derive.core.enums import NamingConvention

_SEPARATORS = re.compile(r"[_\-\s]+")


def unescape_identifier(identifier: str) -> str:
    """Strip the trailing underscore used to dodge a reserved word (``class_`` -> ``class``)."""
    if identifier.endswith("_") and not identifier.endswith("__"):
        base = identifier[:-1]
        if keyword.iskeyword(base) or keyword.issoftkeyword(base):
            return base
    return identifier


def split_words(identifier: str) -> list[str]:
    """Split an identifier into words on separators and case boundaries.

    ``HTTPServer`` splits into ``HTTP`` and ``Server``; digits stay attached
    to the word before them.
    """
    words: list[str] = []
    for chunk in _SEPARATORS.split(identifier):
        if not chunk:
            continue
        start = 0
        for i in range(1, len(chunk)):
            prev, cur = chunk[i - 1], chunk[i]
            nxt = chunk[i + 1] if i + 1 < len(chunk) else ""
            if cur.isupper() and (
                prev.islower() or prev.isdigit() or (prev.isupper() and nxt.islower())
            ):
                words.append(chunk[start:i])
                start = i
        words.append(chunk[start:])
    return words


def _capitalize(word: str, keep_acronyms: bool) -> str:
    if keep_acronyms and word.isupper():
        return word
    return word[:1].upper() + word[1:].lower()


def convert(identifier: str, convention: NamingConvention) -> str:
    """Convert ``identifier`` to ``convention``.

    Total and idempotent: converting an already converted name returns it
    unchanged.
    """
    name = unescape_identifier(identifier)

    if convention is NamingConvention.LOWERCASE:
        return name.lower()
    if convention is NamingConvention.UPPERCASE:
        return name.upper()

    words = split_words(name)
    # Without separators an all-caps word is an acronym (or a run of one-letter
    # words joined by an earlier conversion) and is left as written.
    keep = _SEPARATORS.search(name) is None
    if convention is NamingConvention.SNAKE_CASE:
        return "_".join(w.lower() for w in words)
    if convention is NamingConvention.SCREAMING_SNAKE_CASE:
        return "_".join(w.upper() for w in words)
    if convention is NamingConvention.KEBAB_CASE:
        return "-".join(w.lower() for w in words)
    if convention is NamingConvention.SCREAMING_KEBAB_CASE:
        return "-".join(w.upper() for w in words)
    if convention is NamingConvention.CAMEL_CASE:
        if not words:
            return ""
        return words[0].lower() + "".join(_capitalize(w, keep) for w in words[1:])
    if convention is NamingConvention.PASCAL_CASE:
        return "".join(_capitalize(w, keep) for w in words)

    raise ValueError(f"Unsupported naming convention: {convention!r}")
