"""K-core decomposition by repeated peeling of low-degree vertices."""

from __future__ import annotations

from csrkit.graph import Graph


def kcore(graph: Graph) -> tuple[list[int], int]:
    """Return the core number of every vertex and the largest core.

    The graph is assumed symmetric. For k = 1, 2, ... every remaining vertex
    whose induced degree is below k is removed and given core number k - 1,
    until no more can be removed. The largest core is -1 for an empty graph.
    """
    nv = graph.num_vertices()
    degrees = [graph.degree(u) for u in range(nv)]  # -1 marks a removed vertex
    coreness = [0] * nv
    largest_core = -1
    total_removed = 0

    for k in range(1, nv + 1):
        while True:
            to_remove = [u for u in range(nv) if degrees[u] != -1 and degrees[u] < k]
            if not to_remove:
                break
            for u in to_remove:
                coreness[u] = k - 1
                degrees[u] = -1
            for v in to_remove:
                for u in graph.neighbors(v):
                    if degrees[u] > 0:
                        degrees[u] -= 1
            total_removed += len(to_remove)
        if total_removed == nv:
            largest_core = k - 1
            break
    return coreness, largest_core