"""Readers for GNN dataset files: labels, features, masks, graphs and metadata."""

from __future__ import annotations

import random
import warnings
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from csrkit.graph import Graph

_GR_HEADER_BYTES = 32
_VID_SIZE = 4
_EID_SIZE = 8
_VLABEL_SIZE = 1
_MAX_VERTEX_CLASSES = 255


@dataclass
class Dataset:
    """Sizes and sample ranges of a binary dataset, as given by its meta file."""

    num_vertices: int
    num_edges: int
    vid_size: int
    eid_size: int
    vlabel_size: int
    elabel_size: int
    max_degree: int
    feat_len: int
    num_vertex_classes: int
    num_edge_classes: int
    train_begin: int
    train_end: int
    train_count: int
    val_begin: int
    val_end: int
    val_count: int
    test_begin: int
    test_end: int
    test_count: int


def _header(tokens: list[str], what: str) -> tuple[int, int]:
    if len(tokens) < 2:
        raise ValueError(f"{what} file has no size line")
    return int(tokens[0]), int(tokens[1])


def read_labels(path, is_single_class: bool) -> tuple[list[int], int]:
    """Read a text label file whose first line is `samples classes`.

    Single-class labels keep the index of the first non-zero entry of each
    line; multi-class labels keep every entry, flattened. Returns the labels
    and the number of classes.
    """
    with open(path) as infile:
        m, num_classes = _header(infile.readline().split(), "label")
        labels = [0] * (m if is_single_class else m * num_classes)
        for v, line in enumerate(infile):
            if v >= m:
                raise ValueError("more label lines than samples")
            values = [int(t) for t in line.split()[:num_classes]]
            values += [0] * (num_classes - len(values))
            if is_single_class:
                labels[v] = next((i for i, x in enumerate(values) if x != 0), 0)
            else:
                labels[v * num_classes:(v + 1) * num_classes] = values
    return labels, num_classes


def read_features(path) -> np.ndarray:
    """Read a text feature file: a `samples length` line, then `row column value` lines."""
    with open(path) as infile:
        m, feat_len = _header(infile.readline().split(), "feature")
        feats = np.zeros((m, feat_len), dtype=np.float32)
        for line in infile:
            tokens = line.split()
            if not tokens:
                continue
            if len(tokens) < 3:
                raise ValueError("feature line needs row, column and value")
            u, v = int(tokens[0]), int(tokens[1])
            if not (0 <= u < m and 0 <= v < feat_len):
                raise ValueError(f"feature entry ({u}, {v}) out of range")
            feats[u, v] = float(tokens[2])
    return feats


def read_masks(path, n: int) -> tuple[list[int], int, int, int]:
    """Read a mask file whose first line is the range `begin end`.

    Returns the masks of n samples, begin, end and the number of set samples.
    """
    masks = [0] * n
    count = 0
    with open(path) as infile:
        begin, end = _header(infile.readline().split(), "mask")
        for i, line in enumerate(infile):
            if not begin <= i < end:
                continue
            tokens = line.split()
            if tokens and int(tokens[0]) == 1:
                if i >= n:
                    raise ValueError(f"mask index {i} exceeds {n} samples")
                masks[i] = 1
                count += 1
    return masks, begin, end, count


def read_csgr(path) -> Graph:
    """Read a binary GR/CSGR graph file (version 1, no edge data)."""
    data = Path(path).read_bytes()
    if len(data) < _GR_HEADER_BYTES:
        raise ValueError(f"{path}: file too short for a graph header")
    version, size_edge_type, nv, ne = (
        int(x) for x in np.frombuffer(data[:_GR_HEADER_BYTES], dtype="<u8")
    )
    if version != 1:
        raise ValueError(f"{path}: unsupported version {version}")
    if size_edge_type != 0:
        raise ValueError(f"{path}: edge data is not supported")
    idx_end = _GR_HEADER_BYTES + 8 * nv
    outs_end = idx_end + 4 * ne
    if len(data) < outs_end:
        raise ValueError(f"{path}: file is truncated")
    out_idx = np.frombuffer(data[_GR_HEADER_BYTES:idx_end], dtype="<u8", count=nv)
    outs = np.frombuffer(data[idx_end:outs_end], dtype="<u4", count=ne)
    rowptr = np.concatenate(([0], out_idx.astype(np.int64)))
    colidx = outs.astype(np.int64)
    bad = np.nonzero(colidx >= nv)[0]
    if len(bad):
        e = int(bad[0])
        src = int(np.searchsorted(rowptr, e, side="right")) - 1
        raise ValueError(f"invalid edge from {src} to {int(colidx[e])} at index {e}")
    return Graph(rowptr, colidx)


def read_meta(path) -> Dataset:
    """Read a `graph.meta.txt` file and check its type sizes and degree."""
    tokens = Path(path).read_text().split()
    count = len(Dataset.__dataclass_fields__)
    if len(tokens) < count:
        raise ValueError(f"{path}: expected {count} values, found {len(tokens)}")
    meta = Dataset(*(int(t) for t in tokens[:count]))
    if meta.vid_size != _VID_SIZE:
        raise ValueError(f"vertex id size {meta.vid_size} is not {_VID_SIZE}")
    if meta.eid_size != _EID_SIZE:
        raise ValueError(f"edge id size {meta.eid_size} is not {_EID_SIZE}")
    if meta.vlabel_size != _VLABEL_SIZE:
        raise ValueError(f"vertex label size {meta.vlabel_size} is not {_VLABEL_SIZE}")
    if not 0 < meta.max_degree < meta.num_vertices:
        raise ValueError(f"maximum degree {meta.max_degree} is out of range")
    return meta


def read_vertex_labels(
    path, num_vertices: int, num_classes: int, is_single_class: bool
) -> list[int]:
    """Read 8-bit vertex labels; multi-class output is one-hot, flattened.

    When the file does not exist, random labels are generated with a warning.
    """
    if not 0 < num_classes < _MAX_VERTEX_CLASSES:
        raise ValueError("number of vertex classes must lie in [1, 254]")
    path = Path(path)
    if path.exists():
        data = path.read_bytes()
        if len(data) < num_vertices:
            raise ValueError(f"{path}: expected {num_vertices} labels")
        vlabels = list(data[:num_vertices])
    else:
        warnings.warn("vertex label file does not exist; generating random labels")
        rng = random.Random()
        vlabels = [rng.randrange(num_classes) for _ in range(num_vertices)]
    if is_single_class:
        return vlabels
    labels = [0] * (num_vertices * num_classes)
    for v, label in enumerate(vlabels):
        if label < num_classes:
            labels[v * num_classes + label] = 1
    return labels