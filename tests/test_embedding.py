import numpy as np
import pytest

from csrkit.embedding import SGDConfig, initialize_latents, rmse, sgd
from csrkit.graph import Graph


def _ratings_graph():
    edges = [(0, 2), (0, 3), (1, 2), (1, 3)]
    return Graph.from_edges(4, edges, directed=True, weights=[1.0, 0.5, 0.2, 0.8])


def test_initialize_latents_shape_and_range():
    lat = initialize_latents(6, 4, seed=3)
    assert lat.shape == (6, 4)
    assert np.all((lat >= 0) & (lat < 1))


def test_every_vertex_starts_from_same_vector():
    lat = initialize_latents(5, 3, seed=7)
    assert lat.shape == (5, 3)
    first = lat[0].tolist()
    assert [row.tolist() for row in lat] == [first] * 5


def test_initialize_latents_is_reproducible():
    first = initialize_latents(3, 5, seed=1)
    second = initialize_latents(3, 5, seed=1)
    assert first.shape == (3, 5)
    assert first.tolist() == second.tolist()


def test_initialize_latents_rejects_bad_k():
    with pytest.raises(ValueError):
        initialize_latents(3, 0)


def test_rmse_value():
    assert rmse([1.0, 3.0], 4) == pytest.approx(1.0)


def test_rmse_requires_edges():
    with pytest.raises(ValueError):
        rmse([1.0], 0)


def test_sgd_requires_weights():
    graph = Graph.from_edges(2, [(0, 1)], directed=True)
    with pytest.raises(ValueError):
        sgd(graph, initialize_latents(2, 2))


def test_sgd_rejects_wrong_shape():
    with pytest.raises(ValueError):
        sgd(_ratings_graph(), initialize_latents(3, 2))


def test_sgd_leaves_input_untouched():
    start = initialize_latents(4, 3, seed=2)
    copy = start.copy()
    result, iterations, error = sgd(_ratings_graph(), start, SGDConfig(step=0.01, k=3))
    assert np.array_equal(start, copy)
    assert result.shape == start.shape
    assert iterations == 5
    assert error is None


def test_zero_step_keeps_latents():
    start = initialize_latents(4, 3, seed=2)
    result, _, _ = sgd(_ratings_graph(), start, SGDConfig(step=0.0, k=3))
    assert np.array_equal(result, start)


def test_at_least_one_iteration_runs():
    _, iterations, _ = sgd(_ratings_graph(), initialize_latents(4, 2), SGDConfig(max_iters=0))
    assert iterations == 1


def test_large_epsilon_stops_after_first_iteration():
    config = SGDConfig(max_iters=10, epsilon=1e9, compute_error=True)
    _, iterations, error = sgd(_ratings_graph(), initialize_latents(4, 2), config)
    assert iterations == 1
    assert error is not None and error < 1e9


def test_training_reduces_error():
    rng = np.random.default_rng(0)
    start = rng.random((4, 3))
    first = sgd(_ratings_graph(), start, SGDConfig(step=0.05, max_iters=1, epsilon=0.0, k=3, compute_error=True))
    later = sgd(_ratings_graph(), start, SGDConfig(step=0.05, max_iters=200, epsilon=0.0, k=3, compute_error=True))
    assert later[2] < first[2]
    assert later[1] == 200