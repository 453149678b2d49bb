"""Splitting a CSR graph into 1-D, induced, segmented and 2-D partitions."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np

from csrkit.graph import Graph

_META_FILE = "pgraph.meta.txt"
_VOFFSETS_FILE = "pgraph.voffsets.bin"
_EOFFSETS_FILE = "pgraph.eoffsets.bin"
_VERTEX_FILE = "pgraph.vertex.bin"
_EDGE_FILE = "pgraph.edge.bin"


@dataclass(frozen=True)
class _Segment:
    """Edges of a CSR segment: local source rows pointing at global destinations."""

    vertices: np.ndarray
    rowptr: np.ndarray
    colidx: np.ndarray

    def num_vertices(self) -> int:
        return len(self.vertices)

    def num_edges(self) -> int:
        return len(self.colidx)

    def neighbors(self, local: int) -> list[int]:
        """Global destinations of the local source vertex `local`."""
        if not 0 <= local < self.num_vertices():
            raise IndexError(f"local vertex {local} out of range")
        return self.colidx[self.rowptr[local]:self.rowptr[local + 1]].tolist()


def _edge_sources(graph: Graph) -> np.ndarray:
    return np.repeat(np.arange(graph.num_vertices()), np.diff(graph.rowptr))


def _rowptr_from_counts(counts: np.ndarray) -> np.ndarray:
    rowptr = np.zeros(len(counts) + 1, dtype=np.int64)
    np.cumsum(counts, out=rowptr[1:])
    return rowptr


def _read_int32(path: Path, count: int) -> np.ndarray:
    data = path.read_bytes()
    if count < 0 or len(data) < 4 * count:
        raise ValueError(f"{path}: expected {count} 32-bit integers")
    return np.frombuffer(data, dtype="<i4", count=count).astype(np.int64)


class PartitionedGraph:
    """A graph together with its partitions.

    `num_chunks` is the number of vertex chunks; `cluster_ids`, when given,
    assigns every vertex to one of the chunks for 2-D partitioning.
    """

    def __init__(self, graph: Graph, num_chunks: int, cluster_ids: Sequence[int] | None = None):
        if num_chunks <= 0:
            raise ValueError("number of chunks must be positive")
        nv = graph.num_vertices()
        self.graph = graph
        self.num_vertex_chunks = num_chunks
        self.num_2d_partitions = num_chunks * num_chunks
        self.num_subgraphs = 0
        self.subgraphs: list = []
        self.idx_map: list[list[int]] = []
        self.begin_vids: list[int] = []
        self.end_vids: list[int] = []
        self.local_begin: list[int] = []
        self.local_end: list[int] = []
        self.cluster_ids: list[int] | None = None
        self.verts_of_clusters: list[list[int]] = [[] for _ in range(num_chunks)]
        self.vertex_rank_in_cluster: list[int] = [0] * nv
        if cluster_ids is not None:
            cluster_ids = [int(c) for c in cluster_ids]
            if len(cluster_ids) != nv:
                raise ValueError("every vertex needs exactly one cluster id")
            for v, cid in enumerate(cluster_ids):
                if not 0 <= cid < num_chunks:
                    raise ValueError(f"cluster id {cid} of vertex {v} is out of range")
                self.vertex_rank_in_cluster[v] = len(self.verts_of_clusters[cid])
                self.verts_of_clusters[cid].append(v)
            self.cluster_ids = cluster_ids

    def edgecut_partition1d(self) -> list[Graph]:
        """Split the edges by source-vertex range (edge-cut).

        Every subgraph keeps all vertices and global ids, but only the
        outgoing edges of its own contiguous range of source vertices.
        """
        g = self.graph
        nv = g.num_vertices()
        n = self.num_vertex_chunks
        size = (nv - 1) // n + 1 if nv else 0
        rowptr = g.rowptr
        self.num_subgraphs = n
        self.subgraphs = []
        self.begin_vids, self.end_vids = [], []
        for sg_id in range(n):
            begin = min(sg_id * size, nv)
            end = min((sg_id + 1) * size, nv)
            e_begin, e_end = int(rowptr[begin]), int(rowptr[end])
            sub_rowptr = np.clip(rowptr, e_begin, e_end) - e_begin
            weights = None
            if g.weights is not None:
                weights = g.weights[e_begin:e_end].copy()
            self.subgraphs.append(
                Graph(sub_rowptr, g.colidx[e_begin:e_end].copy(), g.directed, weights)
            )
            self.begin_vids.append(begin)
            self.end_vids.append(end)
        return self.subgraphs

    def edgecut_induced_partition1d(self) -> list[Graph]:
        """Build, for each vertex range, the subgraph induced by the range and its neighbours.

        `idx_map[i]` maps local ids of subgraph i to global ids, and
        `local_begin[i]`..`local_end[i]` are the local ids of the range itself.
        """
        g = self.graph
        nv = g.num_vertices()
        n = self.num_vertex_chunks
        size = -(-nv // n) if nv else 0
        sources = _edge_sources(g)
        colidx = g.colidx
        self.num_subgraphs = n
        self.subgraphs, self.idx_map = [], []
        self.begin_vids, self.end_vids = [], []
        self.local_begin, self.local_end = [], []
        for i in range(n):
            begin = min(size * i, nv)
            end = min(begin + size, nv)
            mask = np.zeros(nv, dtype=bool)
            mask[begin:end] = True
            mask[colidx[g.rowptr[begin]:g.rowptr[end]]] = True
            vertices = np.flatnonzero(mask)
            new_ids = np.full(nv, -1, dtype=np.int64)
            new_ids[vertices] = np.arange(len(vertices))
            selected = mask[sources] & mask[colidx]
            counts = np.bincount(new_ids[sources[selected]], minlength=len(vertices))
            weights = g.weights[selected] if g.weights is not None else None
            self.subgraphs.append(
                Graph(_rowptr_from_counts(counts), new_ids[colidx[selected]], g.directed, weights)
            )
            self.idx_map.append(vertices.tolist())
            self.begin_vids.append(begin)
            self.end_vids.append(end)
            if begin < end:
                self.local_begin.append(int(new_ids[begin]))
                self.local_end.append(int(new_ids[end - 1]) + 1)
            else:
                self.local_begin.append(0)
                self.local_end.append(0)
        return self.subgraphs

    def csr_segmenting(self) -> list[_Segment]:
        """Split the edges by destination-vertex block (CSR segmenting).

        Segment i holds the edges whose destination falls in block i, with
        one local row per source vertex that has such an edge; the last block
        also takes the vertices left over when the count does not divide evenly.
        """
        g = self.graph
        nv = g.num_vertices()
        n = self.num_vertex_chunks
        size = nv // n
        if size == 0:
            raise ValueError("there are fewer vertices than segments")
        sources = _edge_sources(g)
        blocks = np.minimum(g.colidx // size, n - 1)
        self.num_subgraphs = n
        self.subgraphs, self.idx_map = [], []
        for i in range(n):
            selected = blocks == i
            vertices, counts = np.unique(sources[selected], return_counts=True)
            segment = _Segment(
                vertices=vertices,
                rowptr=_rowptr_from_counts(counts),
                colidx=g.colidx[selected].copy(),
            )
            self.subgraphs.append(segment)
            self.idx_map.append(vertices.tolist())
        return self.subgraphs

    def _require_clusters(self) -> list[int]:
        if self.cluster_ids is None:
            raise ValueError("2-D partitioning needs cluster ids")
        return self.cluster_ids

    def partition2d(self, directory) -> list[Path]:
        """Split the edges by (source cluster, destination cluster) and write them out.

        Partition `s * num_chunks + d` holds, for each vertex of cluster s in
        rank order, its edges into cluster d. The row pointers and column
        indices of all partitions are written one after another as 32-bit
        integers, with their offsets and a text file of the two totals.
        """
        cluster_ids = np.asarray(self._require_clusters(), dtype=np.int64)
        g = self.graph
        nc = self.num_vertex_chunks
        ranks = np.asarray(self.vertex_rank_in_cluster, dtype=np.int64)
        sources = _edge_sources(g)
        pids = cluster_ids[sources] * nc + cluster_ids[g.colidx]
        rowptrs, colidxs = [], []
        for pid in range(self.num_2d_partitions):
            num = len(self.verts_of_clusters[pid // nc])
            selected = pids == pid
            counts = np.bincount(ranks[sources[selected]], minlength=num)
            rowptrs.append(_rowptr_from_counts(counts))
            colidxs.append(g.colidx[selected])
        voffsets = _rowptr_from_counts(np.array([len(r) for r in rowptrs], dtype=np.int64))
        eoffsets = _rowptr_from_counts(np.array([len(c) for c in colidxs], dtype=np.int64))

        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        paths = {
            "meta": directory / _META_FILE,
            "voffsets": directory / _VOFFSETS_FILE,
            "eoffsets": directory / _EOFFSETS_FILE,
            "vertex": directory / _VERTEX_FILE,
            "edge": directory / _EDGE_FILE,
        }
        paths["meta"].write_text(f"{int(voffsets[-1])}\n{int(eoffsets[-1])}\n")
        paths["voffsets"].write_bytes(voffsets.astype("<i4").tobytes())
        paths["eoffsets"].write_bytes(eoffsets.astype("<i4").tobytes())
        paths["vertex"].write_bytes(np.concatenate(rowptrs).astype("<i4").tobytes())
        paths["edge"].write_bytes(np.concatenate(colidxs).astype("<i4").tobytes())
        return list(paths.values())

    def fetch_partitions(self, directory, clusters: Iterable[int]) -> tuple[Graph, list[int]]:
        """Read the partitions among `clusters` and assemble their subgraph.

        Local ids follow the order of `clusters`, and within a cluster the
        rank order. Returns the subgraph and the global id of every local vertex.
        """
        self._require_clusters()
        nc = self.num_vertex_chunks
        clusters = [int(c) for c in clusters]
        if len(set(clusters)) != len(clusters):
            raise ValueError("clusters must not repeat")
        for c in clusters:
            if not 0 <= c < nc:
                raise ValueError(f"cluster {c} is out of range")

        directory = Path(directory)
        meta = (directory / _META_FILE).read_text().split()
        if len(meta) < 2:
            raise ValueError(f"{directory / _META_FILE}: expected two sizes")
        rowptr_size, colidx_size = int(meta[0]), int(meta[1])
        rowptr = _read_int32(directory / _VERTEX_FILE, rowptr_size)
        colidx = _read_int32(directory / _EDGE_FILE, colidx_size)
        voffsets = _read_int32(directory / _VOFFSETS_FILE, self.num_2d_partitions + 1)
        eoffsets = _read_int32(directory / _EOFFSETS_FILE, self.num_2d_partitions + 1)

        vertices = [v for c in clusters for v in self.verts_of_clusters[c]]
        local_ids = {v: i for i, v in enumerate(vertices)}
        rows: list[list[int]] = []
        for src_c in clusters:
            num = len(self.verts_of_clusters[src_c])
            parts = []
            for dst_c in clusters:
                pid = src_c * nc + dst_c
                part_rowptr = rowptr[voffsets[pid]:voffsets[pid + 1]]
                part_colidx = colidx[eoffsets[pid]:eoffsets[pid + 1]]
                if len(part_rowptr) != num + 1:
                    raise ValueError("partition files do not match the clustering")
                parts.append((part_rowptr, part_colidx))
            for v in self.verts_of_clusters[src_c]:
                rank = self.vertex_rank_in_cluster[v]
                row: list[int] = []
                for part_rowptr, part_colidx in parts:
                    for u in part_colidx[part_rowptr[rank]:part_rowptr[rank + 1]]:
                        try:
                            row.append(local_ids[int(u)])
                        except KeyError:
                            raise ValueError(
                                f"edge to vertex {int(u)} lies outside the clusters"
                            ) from None
                rows.append(row)
        sub_rowptr = _rowptr_from_counts(np.array([len(r) for r in rows], dtype=np.int64))
        sub_colidx = np.array([u for r in rows for u in r], dtype=np.int64)
        return Graph(sub_rowptr, sub_colidx, self.graph.directed), vertices