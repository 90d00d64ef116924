"""Comparison keys, ranking lattices and ordered grouping shared by the engine.

Two records from different interviews are treated as the same entity when
their comparison keys are equal. Names (workflows, tools, roles) compare in
full after lower-casing. Long free-text fields are additionally truncated to
a fixed prefix, so descriptions that share a long prefix merge even when
their endings differ. That also merges genuinely different descriptions
sharing a prefix; the lengths below are the knob for that tradeoff.
"""
from typing import Callable, Hashable, Iterable, TypeVar

T = TypeVar("T")
A = TypeVar("A")

# Pain point and handoff descriptions
DESCRIPTION_KEY_LENGTH = 50
# Training gap areas
AREA_KEY_LENGTH = 100
# Recommendation text
RECOMMENDATION_KEY_LENGTH = 50

FREQUENCY_RANK = {"ad-hoc": 1, "monthly": 2, "weekly": 3, "daily": 4}
SEVERITY_RANK = {"low": 1, "medium": 2, "high": 3, "critical": 4}
PRIORITY_RANK = {"low": 1, "medium": 2, "high": 3}
RISK_RANK = {"low": 1, "medium": 2, "high": 3}

# Occurrences per year, used to weight workflows by volume
ANNUAL_FREQUENCY = {"daily": 365, "weekly": 52, "monthly": 12, "ad-hoc": 1}


def normalize_key(text: str | None, length: int | None = None) -> str:
    """Lower-case text and optionally truncate it to `length` characters."""
    key = (text or "").lower()
    if length is not None:
        key = key[:length]
    return key


def rank(lattice: dict[str, int], value: str | None) -> int:
    """Rank of an enum value; unknown values rank below every known one."""
    return lattice.get((value or "").lower(), 0)


def higher(lattice: dict[str, int], current: str, incoming: str) -> str:
    """The higher-ranked of two values; ties keep the current one."""
    if rank(lattice, incoming) > rank(lattice, current):
        return incoming
    return current


def annual_frequency(frequency: str | None) -> int:
    return ANNUAL_FREQUENCY.get((frequency or "").lower(), 1)


def union(*lists: Iterable[str] | None) -> list[str]:
    """Ordered union of string lists, dropping exact duplicates and blanks."""
    seen = set()
    merged = []
    for values in lists:
        for value in values or []:
            if value and value not in seen:
                seen.add(value)
                merged.append(value)
    return merged


def group_merge(
    items: Iterable[T],
    key: Callable[[T], Hashable],
    start: Callable[[T], A],
    merge: Callable[[A, T], A],
) -> dict[Hashable, A]:
    """Fold items into an insertion-ordered map of key -> accumulator.

    The first item seen for a key seeds the accumulator via `start`; every
    later item with the same key is folded in with `merge`. Items with an
    empty key are skipped.
    """
    groups: dict[Hashable, A] = {}
    for item in items:
        k = key(item)
        if not k:
            continue
        if k in groups:
            groups[k] = merge(groups[k], item)
        else:
            groups[k] = start(item)
    return groups
