"""PageRank by pull and push iteration, with a one-step checker."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from csrkit.graph import Graph

DAMPING = 0.85
EPSILON = 1e-4
MAX_ITER = 100


def _require_reverse(graph: Graph) -> None:
    if not graph.has_reverse():
        raise ValueError(
            "PageRank requires the reverse graph (incoming edges) of a directed graph"
        )


def _edge_sources(graph: Graph) -> np.ndarray:
    return np.repeat(np.arange(graph.num_vertices()), np.diff(graph.rowptr))


def _contributions(graph: Graph, scores: np.ndarray) -> np.ndarray:
    """Each vertex's score split evenly over its outgoing edges."""
    degrees = np.diff(graph.rowptr).astype(np.float64)
    contrib = np.zeros_like(scores)
    np.divide(scores, degrees, out=contrib, where=degrees > 0)
    return contrib


def pagerank_pull(
    graph: Graph,
    damping: float = DAMPING,
    epsilon: float = EPSILON,
    max_iter: int = MAX_ITER,
) -> tuple[list[float], int]:
    """Compute PageRank by pulling contributions along incoming edges.

    Returns the scores and the number of iterations run. Iteration stops once
    the summed absolute change of one iteration drops below `epsilon`.
    """
    _require_reverse(graph)
    nv = graph.num_vertices()
    if nv == 0:
        return [], 0
    incoming = [np.asarray(graph.in_neighbors(v), dtype=np.int64) for v in range(nv)]
    base_score = (1.0 - damping) / nv
    scores = np.full(nv, 1.0 / nv)
    iterations = 0
    for _ in range(max_iter):
        iterations += 1
        contrib = _contributions(graph, scores)
        totals = np.array([contrib[srcs].sum() for srcs in incoming])
        new_scores = base_score + damping * totals
        error = float(np.abs(new_scores - scores).sum())
        scores = new_scores
        if error < epsilon:
            break
    return scores.tolist(), iterations


def pagerank_push(
    graph: Graph,
    damping: float = DAMPING,
    epsilon: float = EPSILON,
    max_iter: int = MAX_ITER,
) -> tuple[list[float], int]:
    """Compute PageRank by pushing contributions along outgoing edges.

    Returns the scores and the number of iterations run.
    """
    _require_reverse(graph)
    nv = graph.num_vertices()
    if nv == 0:
        return [], 0
    sources = _edge_sources(graph)
    base_score = (1.0 - damping) / nv
    scores = np.full(nv, 1.0 / nv)
    iterations = 0
    for _ in range(max_iter):
        iterations += 1
        contrib = _contributions(graph, scores)
        sums = np.bincount(graph.colidx, weights=contrib[sources], minlength=nv)
        new_scores = base_score + damping * sums
        error = float(np.abs(new_scores - scores).sum())
        scores = new_scores
        if error < epsilon:
            break
    return scores.tolist(), iterations


def pagerank_error(
    graph: Graph, scores: Sequence[float], damping: float = DAMPING
) -> float:
    """Summed absolute change that one push iteration would make to `scores`."""
    nv = graph.num_vertices()
    if len(scores) != nv:
        raise ValueError("one score per vertex is required")
    if nv == 0:
        return 0.0
    current = np.asarray(scores, dtype=np.float64)
    base_score = (1.0 - damping) / nv
    contrib = _contributions(graph, current)
    sums = np.bincount(graph.colidx, weights=contrib[_edge_sources(graph)], minlength=nv)
    return float(np.abs(base_score + damping * sums - current).sum())


def verify_pagerank(
    graph: Graph,
    scores: Sequence[float],
    target_error: float = EPSILON,
    damping: float = DAMPING,
) -> bool:
    """Whether one further push iteration changes `scores` by less than `target_error`."""
    return pagerank_error(graph, scores, damping) < target_error