"""Reading graphs from text and binary formats and writing CSR binary files."""

from __future__ import annotations

import argparse
import sys
import warnings
from dataclasses import dataclass
from itertools import dropwhile
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np

from csrkit.graph import Graph

_GR_VERSION = 1
_GR_HEADER_BYTES = 32
_MAX_VERTICES = 2**31  # vertex ids are 31-bit signed integers


@dataclass
class _GrContents:
    size_edge_type: int
    num_vertices: int
    num_edges: int
    out_idx: np.ndarray
    outs: np.ndarray


def _array(data: bytes, dtype: str) -> np.ndarray:
    if not data:
        return np.zeros(0, dtype=dtype)
    return np.frombuffer(data, dtype=dtype)


def _read_gr_file(path, limit_vertices: bool) -> _GrContents:
    data = Path(path).read_bytes()
    if len(data) < _GR_HEADER_BYTES:
        raise ValueError(f"{path}: file too short for a GR header")
    version, size_edge_type, nv, ne = (
        int(x) for x in _array(data[:_GR_HEADER_BYTES], "<u8")
    )
    if version != _GR_VERSION:
        raise ValueError(f"{path}: unsupported GR version {version}")
    if limit_vertices and nv >= _MAX_VERTICES:
        raise ValueError(f"{path}: {nv} vertices exceed the 31-bit vertex id limit")
    idx_end = _GR_HEADER_BYTES + 8 * nv
    outs_end = idx_end + 4 * ne
    if len(data) < outs_end:
        raise ValueError(f"{path}: file is truncated")
    return _GrContents(
        size_edge_type=size_edge_type,
        num_vertices=nv,
        num_edges=ne,
        out_idx=_array(data[_GR_HEADER_BYTES:idx_end], "<u8"),
        outs=_array(data[idx_end:outs_end], "<u4"),
    )


def write_gr(path, graph: Graph) -> None:
    """Write a graph in the binary GR format (version 1, no edge data)."""
    nv, ne = graph.num_vertices(), graph.num_edges()
    header = np.array([_GR_VERSION, 0, nv, ne], dtype="<u8")
    with open(path, "wb") as out:
        out.write(header.tobytes())
        out.write(graph.rowptr[1:].astype("<u8").tobytes())
        out.write(graph.colidx.astype("<u4").tobytes())
        if ne % 2:
            out.write(b"\0" * 4)


def _csr_rows(rows: Sequence[Sequence[int]]) -> tuple[np.ndarray, np.ndarray]:
    rowptr = np.zeros(len(rows) + 1, dtype=np.int64)
    np.cumsum([len(r) for r in rows], out=rowptr[1:])
    colidx = np.fromiter(
        (d for row in rows for d in row), dtype=np.int64, count=int(rowptr[-1])
    )
    return rowptr, colidx


def _data_lines(lines: Iterable[str]):
    """Yield the whitespace-split tokens of every non-blank line."""
    for line in lines:
        tokens = line.split()
        if tokens:
            yield tokens


class Converter:
    """Collects a graph from one of several input formats and writes it out."""

    def __init__(self):
        self.num_vertices = 0
        self.num_edges = 0
        self.has_edge_weights = False
        self.directed = False
        self.degrees: list[int] = []
        self.vlabels: list[int] = []
        self.elabels: np.ndarray | None = None
        self.graph: Graph | None = None
        self.num_redundant_edges = 0
        self.lines_read = 0
        self._edges: dict[tuple[int, int], float] = {}
        self._adj_lists: list[set[int]] | None = None
        self._weighted_adj_lists: list[set[tuple[int, float]]] | None = None

    @classmethod
    def from_file(cls, file_type: str, path, is_bipartite: bool = False) -> "Converter":
        """Read a file of the given type and build its CSR graph."""
        converter = cls()
        if file_type in ("gr", "sgr", "csgr"):
            converter.read_gr(path, need_sort=True)
            return converter
        if file_type == "mtx":
            converter.read_mtx(path, is_bipartite)
        elif file_type == "edges":
            converter.read_edgelist(path)
        else:
            converter.read_lg(path)
        converter.build_graph()
        return converter

    def _add_edge_pair(self, src: int, dst: int, label: float) -> None:
        if (src, dst) not in self._edges:
            self._edges[(src, dst)] = label
            self._edges.setdefault((dst, src), label)

    def read_edgelist(self, path) -> None:
        """Read a plain edge list with vertex ids starting at 1; edges are symmetrised."""
        num = 0
        with open(path) as infile:
            for line_number, line in enumerate(infile):
                tokens = line.split()
                if not tokens:
                    continue
                if len(tokens) < 2:
                    raise ValueError(f"line {line_number}: expected two vertex ids")
                src, dst = int(tokens[0]), int(tokens[1])
                if src < 1 or dst < 1:
                    raise ValueError(f"line {line_number}: src={src} dst={dst}")
                src -= 1
                dst -= 1
                if src == dst:
                    continue
                num = max(num, src + 1, dst + 1)
                self._add_edge_pair(src, dst, 0.0)
        self.num_vertices = num
        self.directed = False

    def read_sadj(self, path) -> None:
        """Read lines of the form `src label dst...`; self-loops and repeats are dropped."""
        count = 0
        with open(path) as infile:
            for tokens in _data_lines(infile):
                if len(tokens) < 2:
                    raise ValueError("each line needs a vertex id and a label")
                count += 1
                src = int(tokens[0])
                if len(self.vlabels) < src + 1:
                    self.vlabels.extend([0] * (src + 1 - len(self.vlabels)))
                self.vlabels[src] = int(tokens[1])
                for dst in sorted({int(t) for t in tokens[2:]} - {src}):
                    self._edges.setdefault((src, dst), 0.0)
        self.num_vertices = count
        self.directed = True

    def read_lg(self, path) -> None:
        """Read the first graph of a TXT/LG file (`t`, `v id label`, `e u v label` lines)."""
        with open(path) as infile:
            for tokens in _data_lines(infile):
                kind = tokens[0]
                if kind == "t":
                    if self.vlabels:
                        break
                elif kind == "v" and len(tokens) >= 3:
                    vid = int(tokens[1])
                    # Only the vertex count is taken from `v` lines.
                    if len(self.vlabels) < vid + 1:
                        self.vlabels.extend([0] * (vid + 1 - len(self.vlabels)))
                elif kind == "e" and len(tokens) >= 4:
                    self._add_edge_pair(int(tokens[1]), int(tokens[2]), float(tokens[3]))
        self.num_vertices = len(self.vlabels)
        self.num_edges = len(self._edges)
        self.directed = False

    def read_mtx(self, path, is_bipartite: bool = False) -> None:
        """Read a MatrixMarket coordinate file into per-vertex neighbour sets."""
        with open(path) as infile:
            header = infile.readline().split()
            if len(header) < 5 or header[0] != "%%MatrixMarket":
                raise ValueError(".mtx file did not start with %%MatrixMarket")
            _, obj, fmt, fld, symmetry = header[:5]
            if obj != "matrix" or fmt != "coordinate":
                raise ValueError("only matrix coordinate format is supported for .mtx")
            if fld == "complex":
                raise ValueError("complex weights are not supported for .mtx")
            if fld == "pattern":
                read_weights = False
            elif fld in ("real", "double", "integer"):
                read_weights = True
            else:
                raise ValueError(f"unrecognized field type for .mtx: {fld}")
            if symmetry == "symmetric":
                undirected = True
            elif symmetry in ("general", "skew-symmetric"):
                undirected = False
            else:
                raise ValueError(f"unsupported symmetry type for .mtx: {symmetry}")

            body = _data_lines(infile)
            body = dropwhile(lambda t: t[0].startswith("%"), body)
            size_line = next(body, None)
            if size_line is None or len(size_line) < 3:
                raise ValueError(".mtx file has no size line")
            m, n = int(size_line[0]), int(size_line[1])
            if is_bipartite:
                nv = m + n
                undirected = True
            else:
                if m != n:
                    raise ValueError(
                        "matrix must be square for .mtx unless it is a bipartite graph"
                    )
                nv = m

            self.has_edge_weights = read_weights
            self.directed = not undirected
            self.num_vertices = nv
            if read_weights:
                self._weighted_adj_lists = [set() for _ in range(nv)]
                self._adj_lists = None
            else:
                self._adj_lists = [set() for _ in range(nv)]
                self._weighted_adj_lists = None

            ne = 0
            lines = 0
            redundant = 0
            for tokens in body:
                if len(tokens) < 2:
                    raise ValueError("edge line needs two vertex ids")
                u, v = int(tokens[0]), int(tokens[1])
                if u <= 0 or v <= 0:
                    raise ValueError(f"vertex ids must start at 1, got {u} {v}")
                src, dst = u - 1, v - 1
                if is_bipartite:
                    dst += m
                if src >= nv or dst >= nv:
                    raise ValueError(f"edge {u} {v} is outside the matrix")
                if src == dst:
                    continue
                if read_weights:
                    label = float(tokens[2]) if len(tokens) > 2 else 0.0
                    entry = (dst, label)
                    if entry in self._weighted_adj_lists[src]:
                        redundant += 1
                    else:
                        self._weighted_adj_lists[src].add(entry)
                        ne += 1
                        if undirected:
                            self._weighted_adj_lists[dst].add((src, label))
                            ne += 1
                else:
                    if dst in self._adj_lists[src]:
                        redundant += 1
                    else:
                        self._adj_lists[src].add(dst)
                        ne += 1
                        if undirected:
                            self._adj_lists[dst].add(src)
                            ne += 1
                lines += 1
        self.num_edges = ne
        self.lines_read = lines
        self.num_redundant_edges = redundant

    def read_gr(self, path, need_sort: bool = False) -> Graph:
        """Read a binary GR file into a CSR graph."""
        gr = _read_gr_file(path, limit_vertices=True)
        if gr.size_edge_type != 0:
            warnings.warn("edge data in GR files is not supported and is ignored")
        rowptr = np.concatenate(([0], gr.out_idx.astype(np.int64)))
        colidx = gr.outs.astype(np.int64)
        bad = np.nonzero(colidx >= gr.num_vertices)[0]
        if len(bad):
            e = int(bad[0])
            src = int(np.searchsorted(rowptr, e, side="right")) - 1
            raise ValueError(f"invalid edge from {src} to {int(colidx[e])} at index {e}")
        graph = Graph(rowptr, colidx)
        if need_sort:
            graph.sort_neighbors()
        self._set_graph(graph)
        return graph

    def read_labels(self, path, num_classes: int, is_single_class: bool) -> list[int]:
        """Read one line of class indicators per vertex.

        Single-class labels keep the index of the first non-zero entry; multi-class
        labels keep every entry, flattened to num_vertices x num_classes.
        """
        nv = self.num_vertices
        size = nv if is_single_class else nv * num_classes
        labels = [0] * size
        with open(path) as infile:
            for v, line in enumerate(infile):
                if v >= nv:
                    raise ValueError("more label lines than vertices")
                values = [int(t) for t in line.split()[:num_classes]]
                values += [0] * (num_classes - len(values))
                if is_single_class:
                    labels[v] = next((i for i, x in enumerate(values) if x != 0), 0)
                else:
                    labels[v * num_classes:(v + 1) * num_classes] = values
        self.vlabels = labels
        return labels

    def read_masks(self, mask_type: str, path, begin: int, end: int) -> tuple[list[int], int]:
        """Read a mask file whose first line is its range [begin, end).

        Returns the masks (one per vertex) and the number of set samples.
        """
        masks = [0] * self.num_vertices
        with open(path) as infile:
            lines = iter(infile)
            header = next(_data_lines(lines), None)
            if header is None or len(header) < 2:
                raise ValueError(f"{mask_type} mask file has no range line")
            file_begin, file_end = int(header[0]), int(header[1])
            if (file_begin, file_end) != (begin, end):
                raise ValueError(
                    f"{mask_type} mask range [{file_begin}, {file_end}) "
                    f"does not match [{begin}, {end})"
                )
            lines = dropwhile(lambda s: not s.strip(), lines)
            count = 0
            for i, line in enumerate(lines):
                if not begin <= i < end:
                    continue
                tokens = line.split()
                if tokens and int(tokens[0]) == 1:
                    if i >= len(masks):
                        raise ValueError(f"{mask_type} mask index {i} exceeds vertex count")
                    masks[i] = 1
                    count += 1
        return masks, count

    def build_graph(self) -> Graph:
        """Turn what has been read into a CSR graph."""
        weights = None
        if self._weighted_adj_lists is not None:
            rows = [sorted(s) for s in self._weighted_adj_lists]
            rowptr, colidx = _csr_rows([[d for d, _ in row] for row in rows])
            weights = [w for row in rows for _, w in row]
            graph = Graph(rowptr, colidx, self.directed, weights)
        elif self._adj_lists is not None:
            rowptr, colidx = _csr_rows([sorted(s) for s in self._adj_lists])
            graph = Graph(rowptr, colidx, self.directed)
        else:
            keys = sorted(self._edges)
            if self.has_edge_weights:
                weights = [self._edges[k] for k in keys]
            graph = Graph.from_edges(
                self.num_vertices, keys, directed=self.directed, weights=weights
            )
        self._set_graph(graph)
        return graph

    def _set_graph(self, graph: Graph) -> None:
        self.graph = graph
        self.num_vertices = graph.num_vertices()
        self.num_edges = graph.num_edges()
        self.degrees = np.diff(graph.rowptr).tolist()
        if self.has_edge_weights and graph.weights is not None:
            self.elabels = graph.weights.astype(np.float32)

    def generate_binary_graph(
        self,
        prefix,
        vertices: bool = True,
        edges: bool = True,
        vlabels: bool = True,
        elabels: bool = True,
    ) -> list[Path]:
        """Write the CSR arrays and labels as `<prefix>.*.bin` files."""
        graph = self.graph if self.graph is not None else self.build_graph()
        written = []
        if vertices:
            target = Path(f"{prefix}.vertex.bin")
            target.write_bytes(graph.rowptr.astype("<i8").tobytes())
            written.append(target)
        if edges:
            target = Path(f"{prefix}.edge.bin")
            target.write_bytes(graph.colidx.astype("<i4").tobytes())
            written.append(target)
        if vlabels:
            labels = (list(self.vlabels) + [0] * self.num_vertices)[: self.num_vertices]
            if any(not 0 <= x <= 255 for x in labels):
                raise ValueError("vertex labels must fit in 8 bits")
            target = Path(f"{prefix}.vlabel.bin")
            target.write_bytes(bytes(labels))
            written.append(target)
        if elabels and self.has_edge_weights and graph.weights is not None:
            target = Path(f"{prefix}.elabel.bin")
            target.write_bytes(graph.weights.astype("<f4").tobytes())
            written.append(target)
        return written

    def split_gr_file(self, path, prefix) -> list[Path]:
        """Copy the row pointers and column indices of a GR file into binary files."""
        gr = _read_gr_file(path, limit_vertices=False)
        if gr.size_edge_type != 0:
            warnings.warn("edge data in GR files is not supported and is ignored")
        self.num_vertices = gr.num_vertices
        self.num_edges = gr.num_edges
        written = []
        if gr.num_vertices:
            target = Path(f"{prefix}.vertex.bin")
            rowptr = np.concatenate(([0], gr.out_idx)).astype("<u8")
            target.write_bytes(rowptr.tobytes())
            written.append(target)
        if gr.num_edges:
            target = Path(f"{prefix}.edge.bin")
            target.write_bytes(gr.outs.astype("<u4").tobytes())
            written.append(target)
        return written


def main(argv=None) -> int:
    """Convert a graph file into CSR binary files."""
    parser = argparse.ArgumentParser(
        prog="csrkit-convert",
        description="Convert a graph file (gr, mtx, edges, lg) to CSR binary files.",
    )
    parser.add_argument("file_type")
    parser.add_argument("input")
    parser.add_argument("output_prefix")
    parser.add_argument("need_sort", nargs="?", type=int, default=0)
    parser.add_argument("is_bipartite", nargs="?", type=int, default=0)
    parser.add_argument("write_vlabel", nargs="?", type=int, default=0)
    parser.add_argument("write_elabel", nargs="?", type=int, default=0)
    args = parser.parse_args(argv)

    converter = Converter()
    try:
        if args.file_type == "gr":
            converter.split_gr_file(args.input, args.output_prefix)
            if args.need_sort:
                converter.read_gr(args.input, need_sort=True)
                converter.generate_binary_graph(
                    args.output_prefix, vlabels=False, elabels=False
                )
        else:
            converter = Converter.from_file(
                args.file_type, args.input, bool(args.is_bipartite)
            )
            converter.generate_binary_graph(
                args.output_prefix,
                vlabels=bool(args.write_vlabel),
                elabels=bool(args.write_elabel),
            )
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(f"|V| {converter.num_vertices} |E| {converter.num_edges}")
    return 0


if __name__ == "__main__":
    sys.exit(main())