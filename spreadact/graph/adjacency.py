from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import scipy.sparse as sp
from scipy.sparse.csgraph import connected_components

from spreadact.data.validate import assert_required_columns, assert_square_labeled


@dataclass(frozen=True, eq=False)
class AssociationGraph:
    """A square cue-by-cue matrix together with the words labelling its rows/columns.

    Row i holds the responses given to cue `labels[i]`; entry (i, j) is the
    weight of the edge from cue i to cue j.
    """

    matrix: sp.csr_matrix
    labels: Tuple[str, ...]

    def __post_init__(self):
        assert_square_labeled(self.matrix, self.labels)

    @property
    def n(self) -> int:
        return len(self.labels)

    @property
    def n_edges(self) -> int:
        return int(self.matrix.count_nonzero())

    def index(self, label: str) -> int:
        return self.labels.index(label)

    def subgraph(self, indices: Sequence[int]) -> "AssociationGraph":
        idx = np.asarray(indices, dtype=int)
        matrix = self.matrix[idx][:, idx].tocsr()
        return AssociationGraph(matrix=matrix, labels=tuple(self.labels[i] for i in idx))

    def with_matrix(self, matrix) -> "AssociationGraph":
        return AssociationGraph(matrix=sp.csr_matrix(matrix), labels=self.labels)


def _square_csr(rows, cols, weights, n: int, drop_self_loops: bool) -> sp.csr_matrix:
    rows = np.asarray(rows, dtype=int)
    cols = np.asarray(cols, dtype=int)
    weights = np.asarray(weights, dtype=float)
    if drop_self_loops:
        keep = rows != cols
        rows, cols, weights = rows[keep], cols[keep], weights[keep]
    # COO -> CSR sums duplicate (i, j) entries.
    matrix = sp.coo_matrix((weights, (rows, cols)), shape=(n, n)).tocsr()
    matrix.eliminate_zeros()
    matrix.sort_indices()
    return matrix


def build_adjacency(
    counts: pd.DataFrame,
    vocabulary: Optional[Iterable[str]] = None,
    *,
    drop_self_loops: bool = True,
) -> AssociationGraph:
    """Build a weighted adjacency graph from a cue, response, frequency table.

    The graph is indexed by `vocabulary` (default: the sorted unique cues), so
    only responses that are themselves in the vocabulary become edges.
    """

    assert_required_columns(counts, ["cue", "response", "frequency"])
    if vocabulary is None:
        labels = tuple(sorted(counts["cue"].unique().tolist()))
    else:
        labels = tuple(dict.fromkeys(vocabulary))

    position = {w: i for i, w in enumerate(labels)}
    rows = counts["cue"].map(position)
    cols = counts["response"].map(position)
    inside = rows.notna() & cols.notna()

    matrix = _square_csr(
        rows.loc[inside].to_numpy(),
        cols.loc[inside].to_numpy(),
        counts.loc[inside, "frequency"].to_numpy(dtype=float),
        len(labels),
        drop_self_loops,
    )
    return AssociationGraph(matrix=matrix, labels=labels)


def from_triples(triples: pd.DataFrame, labels: Sequence[str], *, drop_self_loops: bool = True) -> AssociationGraph:
    """Build a graph from 1-based `i, j, f` triples and the labels they index."""

    assert_required_columns(triples, ["i", "j", "f"])
    n = len(labels)
    rows = triples["i"].to_numpy(dtype=int) - 1
    cols = triples["j"].to_numpy(dtype=int) - 1
    bad = (rows < 0) | (rows >= n) | (cols < 0) | (cols >= n)
    if bad.any():
        first = triples.loc[bad].iloc[0]
        raise ValueError(
            f"{int(bad.sum())} adjacency entries index outside 1..{n}; first offending row: "
            f"i={int(first['i'])}, j={int(first['j'])}"
        )
    matrix = _square_csr(rows, cols, triples["f"].to_numpy(dtype=float), n, drop_self_loops)
    return AssociationGraph(matrix=matrix, labels=tuple(labels))


def largest_strongly_connected_component(graph: AssociationGraph) -> AssociationGraph:
    if graph.n == 0:
        return graph
    _, component = connected_components(graph.matrix, directed=True, connection="strong")
    sizes = np.bincount(component)
    # argmax picks the first maximal component, i.e. the one holding the lowest index on ties.
    largest = component[np.argmax(sizes[component])]
    keep = np.flatnonzero(component == largest)
    return graph.subgraph(keep)
