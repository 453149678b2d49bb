"""Compressed sparse row graphs and the edge records used to build them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

import numpy as np


@dataclass(frozen=True)
class Edge:
    """A directed edge between two vertices."""

    src: int
    dst: int

    def __lt__(self, other: "Edge") -> bool:
        return (self.src, self.dst) < (other.src, other.dst)

    def __str__(self) -> str:
        return f"<{self.src},{self.dst}>"


@dataclass(frozen=True)
class WeightedEdge:
    """A directed edge carrying a label.

    Ordering looks at the endpoints only; equality also compares the label.
    """

    src: int
    dst: int
    label: float = field(default=0.0)

    def __lt__(self, other: "WeightedEdge") -> bool:
        return (self.src, self.dst) < (other.src, other.dst)

    def __str__(self) -> str:
        return f"<{self.src},{self.dst},{self.label}>"


def _build_csr(
    num_vertices: int, sources: np.ndarray, targets: np.ndarray
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return (rowptr, colidx, order) for the given edge arrays."""
    order = np.lexsort((targets, sources))
    counts = np.bincount(sources, minlength=num_vertices)
    rowptr = np.zeros(num_vertices + 1, dtype=np.int64)
    np.cumsum(counts, out=rowptr[1:])
    return rowptr, targets[order], order


def _validate_csr(rowptr: np.ndarray, colidx: np.ndarray, what: str) -> None:
    if rowptr.ndim != 1 or len(rowptr) < 1:
        raise ValueError(f"{what} row pointer must be a non-empty 1-D array")
    if rowptr[0] != 0:
        raise ValueError(f"{what} row pointer must start at 0")
    if np.any(np.diff(rowptr) < 0):
        raise ValueError(f"{what} row pointer must be non-decreasing")
    if rowptr[-1] != len(colidx):
        raise ValueError(f"{what} row pointer does not match the edge count")
    n = len(rowptr) - 1
    if len(colidx) and (colidx.min() < 0 or colidx.max() >= n):
        raise ValueError(f"{what} column index out of range")


class Graph:
    """A graph stored in CSR form, with an optional reverse (incoming) CSR."""

    def __init__(
        self,
        rowptr,
        colidx,
        directed: bool = False,
        weights=None,
        in_rowptr=None,
        in_colidx=None,
    ):
        self._rowptr = np.asarray(rowptr, dtype=np.int64)
        self._colidx = np.asarray(colidx, dtype=np.int64)
        _validate_csr(self._rowptr, self._colidx, "out")
        self.directed = bool(directed)
        if weights is not None:
            weights = np.asarray(weights, dtype=np.float64)
            if len(weights) != len(self._colidx):
                raise ValueError("one weight per edge is required")
        self._weights = weights
        if (in_rowptr is None) != (in_colidx is None):
            raise ValueError("in_rowptr and in_colidx must be given together")
        if in_rowptr is not None:
            self._in_rowptr = np.asarray(in_rowptr, dtype=np.int64)
            self._in_colidx = np.asarray(in_colidx, dtype=np.int64)
            _validate_csr(self._in_rowptr, self._in_colidx, "in")
            if len(self._in_rowptr) != len(self._rowptr):
                raise ValueError("reverse graph has a different vertex count")
        else:
            self._in_rowptr = None
            self._in_colidx = None

    @classmethod
    def from_edges(
        cls,
        num_vertices: int,
        edges: Iterable[tuple[int, int]],
        directed: bool = False,
        weights: Sequence[float] | None = None,
        build_reverse: bool = False,
    ) -> "Graph":
        """Build a graph from (src, dst) pairs.

        Duplicate edges are dropped (the first weight wins). An undirected
        graph stores every edge in both directions. Neighbour lists are sorted.
        """
        if num_vertices < 0:
            raise ValueError("number of vertices must not be negative")
        edges = list(edges)
        if weights is not None and len(weights) != len(edges):
            raise ValueError("one weight per edge is required")
        unique: dict[tuple[int, int], float] = {}
        for i, (u, v) in enumerate(edges):
            if not (0 <= u < num_vertices and 0 <= v < num_vertices):
                raise ValueError(f"edge ({u}, {v}) has an endpoint out of range")
            w = 0.0 if weights is None else float(weights[i])
            unique.setdefault((u, v), w)
            if not directed:
                unique.setdefault((v, u), w)
        keys = list(unique)
        sources = np.fromiter((k[0] for k in keys), dtype=np.int64, count=len(keys))
        targets = np.fromiter((k[1] for k in keys), dtype=np.int64, count=len(keys))
        rowptr, colidx, order = _build_csr(num_vertices, sources, targets)
        edge_weights = None
        if weights is not None:
            all_weights = np.fromiter(unique.values(), dtype=np.float64, count=len(keys))
            edge_weights = all_weights[order]
        in_rowptr = in_colidx = None
        if directed and build_reverse:
            in_rowptr, in_colidx, _ = _build_csr(num_vertices, targets, sources)
        return cls(rowptr, colidx, directed, edge_weights, in_rowptr, in_colidx)

    @property
    def rowptr(self) -> np.ndarray:
        return self._rowptr

    @property
    def colidx(self) -> np.ndarray:
        return self._colidx

    @property
    def weights(self) -> np.ndarray | None:
        return self._weights

    def num_vertices(self) -> int:
        return len(self._rowptr) - 1

    def num_edges(self) -> int:
        return len(self._colidx)

    def _check_vertex(self, v: int) -> None:
        if not 0 <= v < self.num_vertices():
            raise IndexError(f"vertex {v} out of range")

    def degree(self, v: int) -> int:
        self._check_vertex(v)
        return int(self._rowptr[v + 1] - self._rowptr[v])

    def edge_begin(self, v: int) -> int:
        self._check_vertex(v)
        return int(self._rowptr[v])

    def edge_end(self, v: int) -> int:
        self._check_vertex(v)
        return int(self._rowptr[v + 1])

    def neighbors(self, v: int, offset: int = 0) -> list[int]:
        """Outgoing neighbours of v, skipping the first `offset` of them."""
        begin, end = self.edge_begin(v), self.edge_end(v)
        return self._colidx[min(begin + offset, end):end].tolist()

    def has_reverse(self) -> bool:
        """Whether incoming neighbours are available."""
        return not self.directed or self._in_rowptr is not None

    def in_neighbors(self, v: int) -> list[int]:
        """Incoming neighbours of v."""
        if not self.directed:
            return self.neighbors(v)
        if self._in_rowptr is None:
            raise ValueError("the reverse graph was not built")
        self._check_vertex(v)
        return self._in_colidx[self._in_rowptr[v]:self._in_rowptr[v + 1]].tolist()

    def edge_weight(self, e: int) -> float:
        if self._weights is None:
            raise ValueError("the graph has no edge weights")
        if not 0 <= e < self.num_edges():
            raise IndexError(f"edge {e} out of range")
        return float(self._weights[e])

    def max_degree(self) -> int:
        if self.num_vertices() == 0:
            return 0
        return int(np.diff(self._rowptr).max())

    def sort_neighbors(self) -> None:
        """Sort every neighbour list in place, keeping weights aligned."""
        for v in range(self.num_vertices()):
            begin, end = self._rowptr[v], self._rowptr[v + 1]
            order = np.argsort(self._colidx[begin:end], kind="stable")
            self._colidx[begin:end] = self._colidx[begin:end][order]
            if self._weights is not None:
                self._weights[begin:end] = self._weights[begin:end][order]
        if self._in_rowptr is not None:
            for v in range(self.num_vertices()):
                begin, end = self._in_rowptr[v], self._in_rowptr[v + 1]
                self._in_colidx[begin:end] = np.sort(self._in_colidx[begin:end])

    def __repr__(self) -> str:
        kind = "directed" if self.directed else "undirected"
        return f"Graph(|V|={self.num_vertices()}, |E|={self.num_edges()}, {kind})"