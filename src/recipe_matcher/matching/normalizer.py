"""Ingredient name canonicalization.

Turns free-text ingredient names ("2 Cloves Garlic, minced!") into comparison
tokens ("2 cloves garlic"). Two names are equivalent when their tokens are
equal and related when one token contains the other.
"""

import re
from typing import Iterable, Sequence

# Preparation words that describe how an ingredient is cut or stored, not what it is
QUALIFIERS: frozenset[str] = frozenset(
    {
        "chopped",
        "diced",
        "sliced",
        "minced",
        "grated",
        "fresh",
        "dried",
        "ground",
        "powdered",
        "crushed",
        "shredded",
        "peeled",
    }
)

# Anything that is not a letter, digit or whitespace (\w also admits "_", so drop it explicitly)
_PUNCTUATION_RE = re.compile(r"[^\w\s]|_")
_WHITESPACE_RE = re.compile(r"\s+")
_QUALIFIER_RE = re.compile(r"\b(?:" + "|".join(sorted(QUALIFIERS)) + r")\b")


def normalize(raw: str) -> str:
    """Canonicalize one ingredient name into a comparison token.

    Empty or whitespace-only input yields an empty token; callers must not put
    empty tokens into an ingredient set (see ingredient_set()).

    Example:
        >>> normalize("  Fresh Basil-Leaves ")
        'basilleaves'
        >>> normalize("Chopped garlic")
        'garlic'
    """
    if not raw:
        return ""
    token = raw.lower()
    token = _PUNCTUATION_RE.sub("", token)
    token = _WHITESPACE_RE.sub(" ", token)
    token = _QUALIFIER_RE.sub(" ", token)
    return _WHITESPACE_RE.sub(" ", token).strip()


def ingredient_set(items: Iterable[str]) -> frozenset[str]:
    """Build an ingredient set from raw names, dropping names that normalize to nothing."""
    tokens = (normalize(item) for item in items if isinstance(item, str))
    return frozenset(token for token in tokens if token)


def is_related(a: str, b: str) -> bool:
    """Substring relation between two tokens, in either direction."""
    return bool(a) and bool(b) and (a in b or b in a)


def parse_ingredients(raw: str | Sequence[str]) -> list[str]:
    """Split user input into raw ingredient names.

    Accepts a comma-delimited string or a sequence of names (which may itself
    contain comma-delimited entries). Names are trimmed, empty and meaningless
    entries are dropped, and duplicates (by token) are removed keeping the
    first spelling.
    """
    if raw is None:
        return []
    parts = raw.split(",") if isinstance(raw, str) else [
        piece for item in raw if isinstance(item, str) for piece in item.split(",")
    ]

    seen: set[str] = set()
    names: list[str] = []
    for part in parts:
        name = part.strip()
        token = normalize(name)
        if not token or token in seen:
            continue
        seen.add(token)
        names.append(name)
    return names
