"""Multi-hop random neighbour sampling."""

from __future__ import annotations

import random
from typing import Sequence

from csrkit.graph import Graph

DEFAULT_SAMPLE_SIZES = (15, 10, 10)


def sample_neighbors(
    graph: Graph,
    roots: Sequence[int],
    sample_sizes: Sequence[int] = DEFAULT_SAMPLE_SIZES,
    rng: random.Random | None = None,
) -> list[list[int]]:
    """Sample neighbours hop by hop, starting from `roots`.

    Returns one frontier per hop, the roots first. Hop i draws
    `sample_sizes[i]` neighbours, with replacement, for every vertex of
    frontier i; the draws for vertex j fill positions j*s .. j*s+s-1.
    """
    rng = rng or random.Random()
    if any(size < 0 for size in sample_sizes):
        raise ValueError("sample sizes must not be negative")
    frontiers = [list(roots)]
    for size in sample_sizes:
        nxt: list[int] = []
        for v in frontiers[-1]:
            neighbours = graph.neighbors(v)
            if not neighbours:
                raise ValueError(f"vertex {v} has no neighbours to sample")
            nxt.extend(neighbours[rng.randrange(len(neighbours))] for _ in range(size))
        frontiers.append(nxt)
    return frontiers