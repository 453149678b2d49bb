import random

import pytest

from csrkit.graph import Graph
from csrkit.sampling import sample_neighbors


def _graph():
    edges = [(0, 1), (0, 2), (1, 2), (2, 3), (3, 4), (4, 0)]
    return Graph.from_edges(5, edges)


def test_frontier_sizes_multiply():
    frontiers = sample_neighbors(_graph(), [0, 1], (3, 2), random.Random(1))
    assert [len(f) for f in frontiers] == [2, 6, 12]
    assert frontiers[0] == [0, 1]


def test_default_hops():
    frontiers = sample_neighbors(_graph(), [0], rng=random.Random(0))
    assert [len(f) for f in frontiers] == [1, 15, 150, 1500]


def test_samples_are_neighbours_of_their_parent():
    graph = _graph()
    sizes = (4, 3)
    frontiers = sample_neighbors(graph, [0, 3], sizes, random.Random(5))
    for hop, size in enumerate(sizes):
        for j, parent in enumerate(frontiers[hop]):
            for u in frontiers[hop + 1][j * size:(j + 1) * size]:
                assert u in graph.neighbors(parent)


def test_seeded_sampling_is_reproducible():
    a = sample_neighbors(_graph(), [0, 2], (5, 5), random.Random(9))
    b = sample_neighbors(_graph(), [0, 2], (5, 5), random.Random(9))
    assert a == b


def test_isolated_vertex_cannot_be_sampled():
    graph = Graph.from_edges(3, [(0, 1)])
    with pytest.raises(ValueError):
        sample_neighbors(graph, [2], (2,), random.Random(0))


def test_root_out_of_range():
    with pytest.raises(IndexError):
        sample_neighbors(_graph(), [7], (1,), random.Random(0))


def test_negative_sample_size_rejected():
    with pytest.raises(ValueError):
        sample_neighbors(_graph(), [0], (-1,), random.Random(0))