# csrkit

Graph analytics on graphs stored in compressed sparse row (CSR) form,
built on NumPy.

## Modules

- `csrkit.graph`: the `Graph` CSR structure (`Graph.from_edges`,
  `num_vertices`, `num_edges`, `degree`, `neighbors`, `in_neighbors`,
  `has_reverse`, `edge_weight`, `max_degree`, `sort_neighbors`) and the
  `Edge` / `WeightedEdge` records. Undirected graphs built with
  `from_edges` store every edge in both directions; directed graphs can
  also keep a reverse (incoming) CSR with `build_reverse=True`.
- `csrkit.components`: connected components by Afforest sampling
  (`afforest`), by label hooking (`hook_components`), a depth-first
  reference (`serial_components`) and a checker (`verify_components`),
  plus the `link`, `compress` and `sample_frequent_element` helpers.
- `csrkit.coreness`: k-core decomposition (`kcore`), returning the core
  number of every vertex and the largest core.
- `csrkit.pagerank`: pull and push PageRank (`pagerank_pull`,
  `pagerank_push`), each returning the scores and the number of
  iterations, with `pagerank_error` and `verify_pagerank`.
- `csrkit.embedding`: latent vectors fitted to edge ratings by gradient
  descent (`SGDConfig`, `initialize_latents`, `sgd`, `rmse`).
- `csrkit.sampling`: multi-hop random neighbour sampling
  (`sample_neighbors`).
- `csrkit.partition`: `PartitionedGraph` with 1-D edge-cut
  (`edgecut_partition1d`), induced 1-D (`edgecut_induced_partition1d`),
  CSR segmenting (`csr_segmenting`) and 2-D cluster partitioning written to
  a directory (`partition2d`) and read back (`fetch_partitions`).
- `csrkit.converter`: the `Converter`, which reads plain edge lists,
  `src label dst...` adjacency lines, LG files, Matrix Market coordinate
  files and binary `.gr` files, builds the CSR graph and writes it as
  binary `<prefix>.*.bin` files; `write_gr` writes a graph as a `.gr` file.
- `csrkit.normalization`: GCN degree normalisation (`vertex_norms`,
  `edge_norms`) and `segment_counts`.
- `csrkit.aggregators`: neighbourhood aggregation for GCN
  (`gcn_aggregate`) and GraphSAGE (`sage_aggregate`, `sage_d_aggregate`).
- `csrkit.layers`: `L2NormLayer`, `SigmoidLossLayer` and
  `SoftmaxLossLayer`, each with forward and backward passes.
- `csrkit.sampler`: `masked_graph`, `reindex_subgraph` and the frontier
  random-walk `Sampler` for training subgraphs.
- `csrkit.reader`: readers for dataset files: text labels, features and
  masks, binary CSGR graphs, `graph.meta.txt` (`Dataset`) and 8-bit
  vertex labels.

## Install

```
pip install .
```

With test dependencies:

```
pip install ".[test]"
```

## Example

```python
from csrkit.graph import Graph
from csrkit.components import afforest, verify_components
from csrkit.pagerank import pagerank_pull

g = Graph.from_edges(4, [(0, 1), (2, 3)])
comp = afforest(g)            # [0, 0, 2, 2]
assert verify_components(g, comp)

scores, iterations = pagerank_pull(g)
```

## Converting graph files

The `csrkit-convert` command takes a file type, an input file and an
output prefix:

```
csrkit-convert gr input.gr output/graph
```

For `gr` it copies the row pointers and column indices into
`<prefix>.vertex.bin` and `<prefix>.edge.bin`; an optional fourth
argument of `1` rewrites them with every vertex's neighbours sorted. The
types `mtx`, `edges` and any other (read as LG) are built into a CSR graph
and written the same way; a fifth argument of `1` reads a Matrix Market
file as a bipartite graph, and the sixth and seventh ask for
`<prefix>.vlabel.bin` and `<prefix>.elabel.bin`.

## What it does not do

- The algorithms run in a single thread; there is no parallel or GPU
  execution.
- There are no commands for running the algorithms; they are library
  functions only. `csrkit-convert` is the one command.
- The GNN modules supply aggregation, normalisation, loss layers,
  sampling and dataset readers, but no complete model, optimiser or
  training loop, and no graph attention aggregator.