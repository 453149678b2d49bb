"""Graph analytics, format conversion, partitioning and GNN building blocks on CSR graphs."""

__version__ = "0.1.0"