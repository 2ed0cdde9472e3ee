"""
Value normalization and hashing.

Lexemes are keyed by the fingerprint of a thought's normalized value, so that
"Dogs", "dog" and "<b>dog</b>" share one lexeme.
"""

from __future__ import annotations

import hashlib
import re
from functools import lru_cache
from typing import TYPE_CHECKING

import emoji
import inflect

if TYPE_CHECKING:
    from .types import Path

REGEXP_TAGS = re.compile(r"<[^>]*>")
REGEXP_NON_WORD = re.compile(r"\W", re.UNICODE)

# Joins thought ids into an expansion set key
PATH_SEPARATOR = "__SEP__"

_inflect = inflect.engine()


def is_attribute(value: str | None) -> bool:
    """Return True if a value is a metaprogramming attribute, e.g. =pin."""
    return bool(value) and value.startswith("=") and len(value) > 1


def strip_tags(s: str) -> str:
    """Strip all html tags."""
    return REGEXP_TAGS.sub("", s)


def remove_whitespace_and_punctuation(s: str) -> str:
    """
    Remove non-word characters, preserving the attribute prefix.

    A value consisting only of punctuation is returned unchanged rather than
    collapsing to an empty lemma.
    """
    attribute = is_attribute(s)
    body = s[1:] if attribute else s
    replaced = REGEXP_NON_WORD.sub("", body)
    if not replaced:
        return s
    return "=" + replaced if attribute else replaced


def strip_emoji(s: str) -> str:
    """Strip emoji from text. A value that is only emoji is kept as is."""
    stripped = emoji.replace_emoji(s, replace="")
    return stripped if stripped.strip() else s


def singularize(s: str) -> str:
    """
    Singular form of an English plural noun.

    Singular and uninflected words such as "news" are returned unchanged. A
    lone "s" is kept, otherwise it would share a lemma with empty thoughts.
    """
    if not s or s == "s":
        return s
    return _inflect.singular_noun(s) or s


@lru_cache(maxsize=4096)
def normalize_thought(value: str) -> str:
    """
    Convert a thought value into the canonical form stored as Lexeme.lemma.

    Not idempotent: singularize may change a string again once punctuation is gone.
    """
    # emoji before punctuation, so keycap sequences do not leave their digit behind
    s = strip_tags(value)
    s = s.lower()
    s = strip_emoji(s)
    s = remove_whitespace_and_punctuation(s)
    return singularize(s)


def hash_thought(value: str) -> str:
    """Content fingerprint of a thought value. Used as the lexeme key."""
    normalized = normalize_thought(value)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:32]


def hash_path(path: Path) -> str:
    """Key of a path in the expansion set."""
    return PATH_SEPARATOR.join(path)


__all__ = [
    "hash_path",
    "hash_thought",
    "is_attribute",
    "normalize_thought",
    "remove_whitespace_and_punctuation",
    "singularize",
    "strip_emoji",
    "strip_tags",
]
