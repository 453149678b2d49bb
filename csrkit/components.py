"""Connected components: Afforest, label hooking, a serial reference and a checker."""

from __future__ import annotations

import random
from collections import Counter
from typing import MutableSequence, Sequence

from csrkit.graph import Graph


def link(u: int, v: int, comp: MutableSequence[int]) -> None:
    """Place u and v in the same tree, rooted at the lower component id."""
    p1, p2 = comp[u], comp[v]
    while p1 != p2:
        high, low = max(p1, p2), min(p1, p2)
        p_high = comp[high]
        if p_high == low:
            break
        if p_high == high:
            comp[high] = low
            break
        p1 = comp[comp[high]]
        p2 = comp[low]


def compress(comp: MutableSequence[int]) -> None:
    """Point every vertex straight at the root of its tree."""
    for n in range(len(comp)):
        while comp[n] != comp[comp[n]]:
            comp[n] = comp[comp[n]]


def sample_frequent_element(
    comp: Sequence[int], num_samples: int = 1024, seed: int | None = 0
) -> int:
    """Estimate the most frequent value in `comp` by random sampling."""
    if not comp:
        raise ValueError("cannot sample an empty component array")
    if num_samples <= 0:
        raise ValueError("number of samples must be positive")
    rng = random.Random(seed)
    counts = Counter(comp[rng.randrange(len(comp))] for _ in range(num_samples))
    return counts.most_common(1)[0][0]


def afforest(graph: Graph, neighbor_rounds: int = 2) -> list[int]:
    """Label components with the Afforest sampling algorithm.

    Each label is the smallest vertex id of its component; directed graphs
    are treated as undirected, which needs the reverse graph.
    """
    if not graph.has_reverse():
        raise ValueError("Afforest requires the reverse graph (incoming edges)")
    m = graph.num_vertices()
    comp = list(range(m))
    if m == 0:
        return comp

    for r in range(neighbor_rounds):
        for src in range(m):
            neighbours = graph.neighbors(src, r)
            if neighbours:
                link(src, neighbours[0], comp)
        compress(comp)

    largest = sample_frequent_element(comp)

    for u in range(m):
        if comp[u] == largest:
            continue
        for v in graph.neighbors(u, neighbor_rounds):
            link(u, v, comp)
        if graph.directed:
            for v in graph.in_neighbors(u):
                link(u, v, comp)
    compress(comp)
    return comp


def hook_components(graph: Graph) -> list[int]:
    """Label components by repeated hooking and pointer jumping."""
    n = graph.num_vertices()
    comp = list(range(n))
    change = True
    while change:
        change = False
        for src in range(n):
            comp_src = comp[src]
            for dst in graph.neighbors(src):
                comp_dst = comp[dst]
                if comp_src == comp_dst:
                    continue
                high, low = max(comp_src, comp_dst), min(comp_src, comp_dst)
                if high == comp[high]:
                    change = True
                    comp[high] = low
        compress(comp)
    return comp


def serial_components(graph: Graph) -> list[int]:
    """Label components by depth-first search, numbering them 0, 1, ... in order found."""
    labels = [-1] * graph.num_vertices()
    num_comps = 0
    for src in range(graph.num_vertices()):
        if labels[src] != -1:
            continue
        labels[src] = num_comps
        stack = [src]
        while stack:
            top = stack.pop()
            for dst in graph.neighbors(top):
                if labels[dst] == -1:
                    labels[dst] = num_comps
                    stack.append(dst)
        num_comps += 1
    return labels


def verify_components(graph: Graph, comp: Sequence[int]) -> bool:
    """Check a labelling by searching from one vertex of every label.

    The search must never reach a vertex with another label, and every
    vertex must be reached.
    """
    m = graph.num_vertices()
    if len(comp) != m:
        return False
    label_to_source = {label: i for i, label in enumerate(comp)}
    visited = [False] * m
    follow_incoming = graph.directed and graph.has_reverse()
    for label in sorted(label_to_source):
        source = label_to_source[label]
        frontier = [source]
        visited[source] = True
        for src in frontier:
            neighbours = graph.neighbors(src)
            if follow_incoming:
                neighbours = neighbours + graph.in_neighbors(src)
            for dst in neighbours:
                if comp[dst] != label:
                    return False
                if not visited[dst]:
                    visited[dst] = True
                    frontier.append(dst)
    return all(visited)