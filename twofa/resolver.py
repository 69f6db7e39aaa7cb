"""Key name lookup: exact match first, then ranked fuzzy matching."""

import typing as t
from dataclasses import dataclass

from .store import Keychain


@dataclass(frozen=True)
class ExactMatch:
    name: str


@dataclass(frozen=True)
class FuzzyMatches:
    names: t.Tuple[str, ...]


@dataclass(frozen=True)
class NoMatch:
    pass


Resolution = t.Union[ExactMatch, FuzzyMatches, NoMatch]


def is_subsequence(needle: str, haystack: str) -> bool:
    """True if the characters of needle appear, in order, within haystack."""
    it = iter(haystack)
    return all(ch in it for ch in needle)


def levenshtein(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + (ca != cb),  # substitution
                )
            )
        previous = current
    return previous[-1]


def rank_find(query: str, names: t.Iterable[str]) -> t.List[str]:
    """Names containing the query as a subsequence, closest first.

    Matching is case-insensitive; candidates are ordered by edit distance
    to the query, then by name.
    """
    query = query.lower()
    ranked = []
    for name in names:
        lowered = name.lower()
        if is_subsequence(query, lowered):
            ranked.append((levenshtein(query, lowered), name))
    return [name for _, name in sorted(ranked)]


def substring_find(query: str, names: t.Iterable[str]) -> t.List[str]:
    query = query.lower()
    return sorted(name for name in names if query in name.lower())


def resolve(keychain: Keychain, query: str) -> Resolution:
    if query in keychain.keys:
        return ExactMatch(query)
    matches = rank_find(query, keychain.keys) or substring_find(query, keychain.keys)
    if not matches:
        return NoMatch()
    return FuzzyMatches(tuple(matches))
