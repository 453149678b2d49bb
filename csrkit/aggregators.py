"""Neighbourhood aggregation for GCN and GraphSAGE layers."""

from __future__ import annotations

import numpy as np

from csrkit.graph import Graph


def _edge_sources(graph: Graph) -> np.ndarray:
    return np.repeat(np.arange(graph.num_vertices()), np.diff(graph.rowptr))


def _features(graph: Graph, features) -> np.ndarray:
    feats = np.asarray(features, dtype=np.float64)
    if feats.ndim != 2 or feats.shape[0] != graph.num_vertices():
        raise ValueError(
            f"features must have shape ({graph.num_vertices()}, length)"
        )
    return feats


def _scatter(graph: Graph, scale: np.ndarray, feats: np.ndarray) -> np.ndarray:
    out = np.zeros_like(feats)
    np.add.at(out, _edge_sources(graph), scale[:, None] * feats[graph.colidx])
    return out


def gcn_aggregate(graph: Graph, norms, features) -> np.ndarray:
    """out[u] = sum over edges (u, v) of norms[u] * norms[v] * features[v].

    The graph is symmetric, so the same call also gives the gradient.
    """
    feats = _features(graph, features)
    norms = np.asarray(norms, dtype=np.float64)
    if norms.shape != (graph.num_vertices(),):
        raise ValueError("one norm per vertex is required")
    sources = _edge_sources(graph)
    return _scatter(graph, norms[sources] * norms[graph.colidx], feats)


def sage_aggregate(graph: Graph, features) -> np.ndarray:
    """out[u] = mean of features[v] over the outgoing neighbours v of u (0 if none)."""
    feats = _features(graph, features)
    degrees = np.diff(graph.rowptr).astype(np.float64)
    return _scatter(graph, 1.0 / degrees[_edge_sources(graph)], feats)


def sage_d_aggregate(graph: Graph, grads) -> np.ndarray:
    """Gradient of `sage_aggregate`: out[u] = sum over edges (u, v) of grads[v] / deg(v)."""
    feats = _features(graph, grads)
    degrees = np.diff(graph.rowptr).astype(np.float64)
    with np.errstate(divide="ignore"):
        scale = 1.0 / degrees[graph.colidx]
    return _scatter(graph, scale, feats)