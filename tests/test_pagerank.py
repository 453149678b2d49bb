import math

import pytest

from csrkit.graph import Graph
from csrkit.pagerank import (
    pagerank_error,
    pagerank_pull,
    pagerank_push,
    verify_pagerank,
)


def _cycle():
    return Graph.from_edges(3, [(0, 1), (1, 2), (2, 0)], directed=True, build_reverse=True)


def _mixed():
    edges = [(0, 1), (0, 2), (1, 2), (2, 0), (3, 2), (3, 0), (2, 3)]
    return Graph.from_edges(4, edges, directed=True, build_reverse=True)


def _star():
    return Graph.from_edges(5, [(0, i) for i in range(1, 5)])


@pytest.mark.parametrize("solver", [pagerank_pull, pagerank_push])
def test_cycle_keeps_uniform_scores(solver):
    scores, iterations = solver(_cycle())
    assert scores == pytest.approx([1 / 3] * 3)
    assert iterations == 1


@pytest.mark.parametrize("solver", [pagerank_pull, pagerank_push])
def test_scores_sum_to_one_without_dangling_vertices(solver):
    scores, _ = solver(_mixed(), epsilon=1e-10, max_iter=500)
    assert math.fsum(scores) == pytest.approx(1.0, abs=1e-8)


def test_pull_and_push_agree():
    pull, _ = pagerank_pull(_mixed(), epsilon=1e-12, max_iter=1000)
    push, _ = pagerank_push(_mixed(), epsilon=1e-12, max_iter=1000)
    assert pull == pytest.approx(push, abs=1e-9)


@pytest.mark.parametrize("solver", [pagerank_pull, pagerank_push])
def test_directed_graph_without_reverse_is_rejected(solver):
    graph = Graph.from_edges(2, [(0, 1)], directed=True)
    with pytest.raises(ValueError):
        solver(graph)


@pytest.mark.parametrize("solver", [pagerank_pull, pagerank_push])
def test_empty_graph(solver):
    assert solver(Graph.from_edges(0, [])) == ([], 0)


def test_star_centre_ranks_highest():
    scores, _ = pagerank_pull(_star(), epsilon=1e-10, max_iter=500)
    assert all(scores[0] > s for s in scores[1:])
    assert scores[1:] == pytest.approx([scores[1]] * 4)


def test_iteration_limit_is_respected():
    _, iterations = pagerank_push(_mixed(), epsilon=0.0, max_iter=3)
    assert iterations == 3


def test_converged_scores_verify():
    graph = _mixed()
    scores, _ = pagerank_pull(graph, epsilon=1e-10, max_iter=500)
    assert pagerank_error(graph, scores) < 1e-8
    assert verify_pagerank(graph, scores)


def test_zero_scores_fail_verification():
    graph = _mixed()
    assert pagerank_error(graph, [0.0] * 4) == pytest.approx(1 - 0.85)
    assert not verify_pagerank(graph, [0.0] * 4)


def test_error_needs_one_score_per_vertex():
    with pytest.raises(ValueError):
        pagerank_error(_cycle(), [0.5, 0.5])