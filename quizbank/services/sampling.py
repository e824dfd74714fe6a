"""
Reproducible question selection.

A quiz opened with the same ``(quiz_id, limit, randomize)`` settings always
shows the same questions in the same order, so refreshing a page or reopening
the quiz does not reshuffle an attempt in progress. The generator is a plain
LCG.
"""
import math
from typing import Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")

UINT32 = 0x100000000
LCG_A = 1103515245
LCG_C = 12345
FALLBACK_SEED = 123456789


def stable_seed(quiz_id, limit: Optional[int], randomize: bool) -> int:
    key = f"{quiz_id}:{'all' if limit is None else limit}:{1 if randomize else 0}"
    h = 0
    for ch in key:
        h = (h * 31 + ord(ch)) % UINT32
    return h


def lcg(seed: int) -> Callable[[], float]:
    x = seed or FALLBACK_SEED

    def rnd() -> float:
        nonlocal x
        x = (LCG_A * x + LCG_C) % UINT32
        return x / 0xFFFFFFFF

    return rnd


def sample_stable(items: Sequence[T], n: int, seed: int) -> List[T]:
    """Fisher-Yates shuffle driven by :func:`lcg`, truncated to ``n`` items."""
    a = list(items)
    rnd = lcg(seed)
    for i in range(len(a) - 1, 0, -1):
        j = min(math.floor(rnd() * (i + 1)), i)
        a[i], a[j] = a[j], a[i]
    return a[:n]


def pick_questions(questions: Sequence[T], quiz_id, limit: Optional[int], randomize: bool) -> List[T]:
    if limit is None:
        return list(questions)

    limit = max(1, int(limit))
    n = min(limit, len(questions))
    if not randomize:
        return list(questions[:n])

    return sample_stable(questions, n, stable_seed(quiz_id, limit, True))
