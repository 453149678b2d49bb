"""Matrix completion by gradient descent on vertex latent vectors."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from csrkit.graph import Graph


@dataclass
class SGDConfig:
    """Parameters of the gradient descent."""

    lam: float = 0.001
    step: float = 0.00000035
    max_iters: int = 5
    epsilon: float = 0.1
    k: int = 20
    compute_error: bool = False


def initialize_latents(num_vertices: int, k: int = 20, seed: int = 0) -> np.ndarray:
    """Return a (num_vertices, k) array of uniform [0, 1) values.

    The generator is restarted for every vertex, so every vertex starts from
    the same vector.
    """
    if num_vertices < 0 or k <= 0:
        raise ValueError("num_vertices must be non-negative and k positive")
    row = np.random.default_rng(seed).random(k)
    return np.tile(row, (num_vertices, 1))


def rmse(squared_errors: Sequence[float], num_edges: int) -> float:
    """Root mean squared error from summed squared errors over `num_edges` ratings."""
    if num_edges <= 0:
        raise ValueError("number of edges must be positive")
    return math.sqrt(math.fsum(squared_errors) / num_edges)


def sgd(
    graph: Graph, latents, config: SGDConfig | None = None
) -> tuple[np.ndarray, int, float | None]:
    """Refine latent vectors so that their dot products match the edge ratings.

    Every iteration accumulates, for each vertex, the rating errors of its
    outgoing edges, then moves all latent vectors at once. At least one
    iteration is always run. Returns the new latents, the iterations run and,
    when `compute_error` is set, the last RMSE (otherwise None).
    """
    config = config or SGDConfig()
    if graph.weights is None:
        raise ValueError("the graph needs edge ratings as weights")
    nv = graph.num_vertices()
    lat = np.array(latents, dtype=np.float64, copy=True)
    if lat.ndim != 2 or lat.shape[0] != nv:
        raise ValueError(f"latents must have shape ({nv}, k)")

    sources = np.repeat(np.arange(nv), np.diff(graph.rowptr))
    targets = graph.colidx
    ratings = graph.weights
    iterations = 0
    last_error: float | None = None
    while True:
        iterations += 1
        estimates = np.einsum("ij,ij->i", lat[sources], lat[targets])
        delta = ratings - estimates
        errors = np.zeros_like(lat)
        np.add.at(errors, sources, lat[targets] * delta[:, None])
        lat += config.step * (-config.lam * lat + errors)
        if config.compute_error:
            squared = np.bincount(sources, weights=delta * delta, minlength=nv)
            last_error = rmse(squared.tolist(), graph.num_edges())
            if last_error < config.epsilon:
                break
        if iterations >= config.max_iters:
            break
    return lat, iterations, last_error