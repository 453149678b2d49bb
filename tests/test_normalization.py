import numpy as np
import pytest

from csrkit.graph import Graph
from csrkit.normalization import edge_norms, segment_counts, vertex_norms


def star_graph():
    return Graph.from_edges(5, [(0, 1), (0, 2), (0, 3), (0, 4)])


def test_vertex_norms_of_star():
    norms = vertex_norms(star_graph())
    assert norms.tolist() == [0.5, 1.0, 1.0, 1.0, 1.0]


def test_isolated_vertex_has_zero_norm():
    g = Graph.from_edges(3, [(0, 1)])
    norms = vertex_norms(g)
    assert norms[2] == 0.0
    assert norms[0] == norms[1]


def test_edge_norms_are_products_of_vertex_norms():
    g = Graph.from_edges(6, [(0, 1), (1, 2), (2, 3), (0, 2), (4, 2)])
    vn = vertex_norms(g)
    en = edge_norms(g)
    assert len(en) == g.num_edges()
    for u in range(g.num_vertices()):
        for e in range(g.edge_begin(u), g.edge_end(u)):
            v = int(g.colidx[e])
            assert en[e] == pytest.approx(vn[u] * vn[v])


def test_edge_norms_symmetric_on_undirected_graph():
    g = Graph.from_edges(5, [(0, 1), (1, 2), (2, 3), (3, 0), (0, 4)])
    en = edge_norms(g)
    lookup = {}
    for u in range(g.num_vertices()):
        for e in range(g.edge_begin(u), g.edge_end(u)):
            lookup[(u, int(g.colidx[e]))] = en[e]
    for (u, v), value in lookup.items():
        assert lookup[(v, u)] == pytest.approx(value)


def test_edge_norms_empty_graph():
    g = Graph.from_edges(3, [])
    assert edge_norms(g).tolist() == []
    assert np.all(vertex_norms(g) == 0)


@pytest.mark.parametrize("nv,size,width", [(1, 4, 2), (8, 4, 2), (9, 4, 3), (100, 7, 13)])
def test_segment_counts_cover_all_vertices(nv, size, width):
    subgraphs, ranges = segment_counts(nv, size, width)
    assert subgraphs * size >= nv > (subgraphs - 1) * size
    assert ranges * width >= nv > (ranges - 1) * width


def test_segment_counts_no_vertices():
    assert segment_counts(0, 4, 4) == (0, 0)


def test_segment_counts_rejects_bad_sizes():
    with pytest.raises(ValueError):
        segment_counts(10, 0, 4)
    with pytest.raises(ValueError):
        segment_counts(10, 4, -1)