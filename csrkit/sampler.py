"""Random-walk frontier sampling of training subgraphs."""

from __future__ import annotations

import random
from typing import Iterable, Sequence

import numpy as np

from csrkit.graph import Graph


def _edge_sources(graph: Graph) -> np.ndarray:
    return np.repeat(np.arange(graph.num_vertices()), np.diff(graph.rowptr))


def _mask_array(graph: Graph, masks: Sequence[int]) -> np.ndarray:
    arr = np.asarray(masks)
    if arr.shape != (graph.num_vertices(),):
        raise ValueError("one mask per vertex is required")
    return arr == 1


def masked_graph(graph: Graph, masks: Sequence[int]) -> Graph:
    """Keep only the edges whose two endpoints are masked; vertex ids are unchanged."""
    keep = _mask_array(graph, masks)
    sources = _edge_sources(graph)
    selected = keep[sources] & keep[graph.colidx]
    counts = np.bincount(sources[selected], minlength=graph.num_vertices())
    rowptr = np.zeros(graph.num_vertices() + 1, dtype=np.int64)
    np.cumsum(counts, out=rowptr[1:])
    weights = graph.weights[selected] if graph.weights is not None else None
    return Graph(rowptr, graph.colidx[selected], graph.directed, weights)


def reindex_subgraph(graph: Graph, kept_vertices: Iterable[int]) -> Graph:
    """Renumber the kept vertices 0.. in ascending order and keep their edges.

    Every edge leaving a kept vertex must end at a kept vertex.
    """
    kept = sorted(set(int(v) for v in kept_vertices))
    nv = graph.num_vertices()
    for v in kept:
        if not 0 <= v < nv:
            raise ValueError(f"vertex {v} out of range")
    new_ids = {v: i for i, v in enumerate(kept)}
    rows: list[list[int]] = []
    for v in kept:
        row = []
        for u in graph.neighbors(v):
            try:
                row.append(new_ids[u])
            except KeyError:
                raise ValueError(
                    f"edge ({v}, {u}) leaves the kept vertices"
                ) from None
        rows.append(row)
    rowptr = np.zeros(len(kept) + 1, dtype=np.int64)
    np.cumsum([len(r) for r in rows], out=rowptr[1:])
    colidx = np.array([u for r in rows for u in r], dtype=np.int64)
    return Graph(rowptr, colidx, graph.directed)


class Sampler:
    """Samples vertex sets from the training part of a graph and builds their subgraphs.

    `masks` marks the training vertices. `frontier_size` is the number of
    walkers and `clip` caps the degree used to weight a walker.
    """

    def __init__(self, graph: Graph, masks: Sequence[int], frontier_size: int, clip: int):
        if frontier_size <= 0:
            raise ValueError("frontier size must be positive")
        if clip <= 0:
            raise ValueError("degree clip must be positive")
        self.graph = graph
        self.masks = [int(m) for m in masks]
        self.masked = masked_graph(graph, self.masks)
        self.training_nodes = [v for v, m in enumerate(self.masks) if m == 1]
        if not self.training_nodes:
            raise ValueError("there are no training vertices to sample from")
        self.frontier_size = frontier_size
        self.clip = clip

    def _weight(self, v: int) -> int:
        return min(self.masked.degree(v), self.clip)

    def select_vertices(self, n: int, seed: int = 0) -> set[int]:
        """Select up to `n` training vertices by frontier random walks.

        The frontier starts from random training vertices. Each step picks a
        walker with probability proportional to its clipped degree, moves it to
        a random neighbour and adds that neighbour to the sample.
        """
        if n < 0:
            raise ValueError("sample size must not be negative")
        rng = random.Random(seed)
        m = min(self.frontier_size, n)
        frontier = [rng.choice(self.training_nodes) for _ in range(m)]
        sampled = set(frontier)
        weights = [self._weight(v) for v in frontier]
        for _ in range(n - m):
            if not any(weights):
                raise ValueError("the frontier has no edges left to walk")
            pos = rng.choices(range(len(frontier)), weights=weights)[0]
            neighbours = self.masked.neighbors(frontier[pos])
            u = neighbours[rng.randrange(len(neighbours))]
            sampled.add(u)
            frontier[pos] = u
            weights[pos] = self._weight(u)
        return sampled

    def generate_subgraph(self, sampled: Iterable[int]) -> tuple[Graph, list[int]]:
        """Build the subgraph induced by `sampled`.

        Returns the reindexed subgraph and the per-vertex masks of the sample.
        """
        sampled = set(int(v) for v in sampled)
        nv = self.graph.num_vertices()
        masks = [0] * nv
        for v in sampled:
            if not 0 <= v < nv:
                raise ValueError(f"vertex {v} out of range")
            masks[v] = 1
        induced = masked_graph(self.graph, masks)
        return reindex_subgraph(induced, sampled), masks