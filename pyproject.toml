[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "csrkit"
version = "0.1.0"
description = "Graph analytics on compressed sparse row graphs: components, k-core, PageRank, partitioning, format conversion and GNN building blocks"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["graph", "csr", "pagerank", "connected-components", "k-core", "partitioning", "gnn"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Information Analysis",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
csrkit-convert = "csrkit.converter:main"

[tool.hatch.build.targets.wheel]
packages = ["csrkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
