"""Degree-based normalisation scores for graph convolution."""

from __future__ import annotations

import numpy as np

from csrkit.graph import Graph


def _degrees(graph: Graph) -> np.ndarray:
    return np.diff(graph.rowptr).astype(np.float64)


def vertex_norms(graph: Graph) -> np.ndarray:
    """One score per vertex: 1 / sqrt(degree), or 0 for a vertex without edges."""
    roots = np.sqrt(_degrees(graph))
    norms = np.zeros(len(roots))
    np.divide(1.0, roots, out=norms, where=roots != 0)
    return norms


def edge_norms(graph: Graph) -> np.ndarray:
    """One score per edge (i, j): 1 / (sqrt(deg i) * sqrt(deg j)), or 0 if either is 0."""
    roots = np.sqrt(_degrees(graph))
    sources = np.repeat(np.arange(graph.num_vertices()), np.diff(graph.rowptr))
    products = roots[sources] * roots[graph.colidx]
    norms = np.zeros(len(products))
    np.divide(1.0, products, out=norms, where=products != 0)
    return norms


def segment_counts(
    num_vertices: int, subgraph_size: int, range_width: int
) -> tuple[int, int]:
    """Number of subgraphs and of ranges that CSR segmenting splits the vertices into."""
    if subgraph_size <= 0 or range_width <= 0:
        raise ValueError("subgraph size and range width must be positive")
    if num_vertices < 0:
        raise ValueError("number of vertices must not be negative")
    if num_vertices == 0:
        return 0, 0
    num_subgraphs = (num_vertices - 1) // subgraph_size + 1
    num_ranges = (num_vertices - 1) // range_width + 1
    return num_subgraphs, num_ranges