"""
Human readable rendering of counters and distributions.
"""

import re
from enum import Enum
from typing import Any, Iterable, List, Mapping


class Ordering(Enum):
    """How format_counts orders the keys"""
    INSERTION = "insertion"  # Keep the caller's order (running stats)
    SORTED = "sorted"        # Natural key order (starting letter histogram)


def _natural_key(key: Any):
    # "2" sorts before "10", text compares case-sensitively like a plain sort
    return [(0, int(part), "") if part.isdigit() else (1, 0, part)
            for part in re.split(r"(\d+)", str(key)) if part]


def format_counts(mapping: Mapping[Any, Any], ordering: Ordering = Ordering.INSERTION) -> List[str]:
    """
    Render a key/count mapping as ``"key: value"`` strings.

    Args:
        mapping: Counters to render
        ordering: Keep insertion order or sort keys naturally

    Returns:
        One string per entry
    """
    keys = list(mapping.keys())
    if ordering == Ordering.SORTED:
        keys.sort(key=_natural_key)
    return [f"{key}: {mapping[key]}" for key in keys]


def format_distribution(vector: Iterable[int]) -> str:
    """Render a per-shard vector as ``a + b + c``"""
    return " + ".join(str(count) for count in vector)
