import numpy as np
import pytest

from csrkit.aggregators import gcn_aggregate, sage_aggregate, sage_d_aggregate
from csrkit.graph import Graph
from csrkit.normalization import vertex_norms

EDGES = [(0, 1), (1, 2), (2, 3), (0, 2), (3, 4)]


def sample_graph():
    return Graph.from_edges(6, EDGES)


def adjacency(n, edges):
    a = np.zeros((n, n))
    for u, v in edges:
        a[u, v] = a[v, u] = 1.0
    return a


def test_gcn_with_unit_norms_is_adjacency_product():
    g = sample_graph()
    feats = np.arange(18, dtype=float).reshape(6, 3)
    out = gcn_aggregate(g, np.ones(6), feats)
    assert np.allclose(out, adjacency(6, EDGES) @ feats)


def test_gcn_normalised_adjacency_is_symmetric():
    g = sample_graph()
    out = gcn_aggregate(g, vertex_norms(g), np.eye(6))
    assert np.allclose(out, out.T)
    assert np.all(out[5] == 0)


def test_gcn_rejects_wrong_norm_length():
    g = sample_graph()
    with pytest.raises(ValueError):
        gcn_aggregate(g, np.ones(5), np.eye(6))


def test_sage_aggregate_is_neighbour_mean():
    g = sample_graph()
    out = sage_aggregate(g, np.ones((6, 4)))
    assert np.allclose(out[:5], 1.0)
    assert np.all(out[5] == 0)


def test_sage_aggregate_rows_are_averages():
    g = sample_graph()
    feats = np.arange(12, dtype=float).reshape(6, 2)
    out = sage_aggregate(g, feats)
    for u in range(6):
        nbrs = g.neighbors(u)
        if nbrs:
            assert np.allclose(out[u], feats[nbrs].mean(axis=0))


def test_sage_gradient_is_transpose_of_forward():
    g = sample_graph()
    forward = sage_aggregate(g, np.eye(6))
    backward = sage_d_aggregate(g, np.eye(6))
    assert np.allclose(backward, forward.T)


def test_sage_gradient_matches_inner_products():
    g = sample_graph()
    rng = np.random.default_rng(3)
    x = rng.random((6, 2))
    y = rng.random((6, 2))
    lhs = np.sum(sage_aggregate(g, x) * y)
    rhs = np.sum(x * sage_d_aggregate(g, y))
    assert lhs == pytest.approx(rhs)


def test_features_must_match_vertex_count():
    g = sample_graph()
    with pytest.raises(ValueError):
        sage_aggregate(g, np.ones((5, 2)))
    with pytest.raises(ValueError):
        sage_d_aggregate(g, np.ones(6))