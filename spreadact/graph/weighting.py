"""Edge reweighting for association graphs.

Three weightings are available (see `weight_matrix`):

- ``strength``: associative strength, P(response | cue), i.e. row-normalized counts.
- ``PPMI``: positive pointwise mutual information of the strengths.
- ``RW``: a Katz-style random walk that adds every indirect path between two
  cues, discounting a path of length k+1 by alpha**k, followed by PPMI.

PPMI is biased towards rare events. That is harmless for typical association
graphs (fewer than ~12,000 cues) but worth keeping in mind for larger ones.
"""

from __future__ import annotations

from typing import Union

import numpy as np
import scipy.sparse as sp
from scipy.sparse.linalg import spsolve
from sklearn.preprocessing import normalize

from spreadact.config import ALPHA, KATZ_METHODS, KATZ_SERIES_MAX_ITER, KATZ_SERIES_TOL, WEIGHTING_MODES
from spreadact.graph.adjacency import AssociationGraph


def _as_csr(matrix) -> sp.csr_matrix:
    return sp.csr_matrix(matrix, dtype=float)


def normalize_rows(matrix) -> sp.csr_matrix:
    """Scale each row to sum to one. All-zero rows are left as zeros."""

    out = normalize(_as_csr(matrix), norm="l1", axis=1)
    return sp.csr_matrix(out)


def ppmi(matrix) -> sp.csr_matrix:
    """Positive pointwise mutual information of a (non-negative) weight matrix.

    Rows are first normalized to P(j | i). Each entry is then compared with
    the average probability of j over all N rows:

        PMI(i, j) = log2( P(j | i) / (sum_i P(j | i) / N) )

    Negative values are clipped and removed from the sparse structure.
    """

    p = normalize_rows(matrix)
    p.eliminate_zeros()
    n = p.shape[0]
    if p.nnz == 0:
        return p
    col_mean = np.asarray(p.sum(axis=0)).ravel() / n

    coo = p.tocoo()
    pmi = np.log2(coo.data / col_mean[coo.col])
    keep = pmi > 0
    out = sp.csr_matrix((pmi[keep], (coo.row[keep], coo.col[keep])), shape=p.shape)
    out.sort_indices()
    return out


def _check_alpha(alpha: float) -> None:
    if not (0.0 < float(alpha) < 1.0):
        raise ValueError(f"alpha must lie strictly between 0 and 1; got {alpha}")


def katz_walk(
    matrix,
    alpha: float = ALPHA,
    *,
    method: str = "solve",
    tol: float = KATZ_SERIES_TOL,
    max_iter: int = KATZ_SERIES_MAX_ITER,
) -> sp.csr_matrix:
    """Sum the contributions of paths of every length through `matrix`.

    Returns sum_{k>=0} alpha**k * P**(k+1) = (I - alpha P)^-1 P.

    ``method="series"`` adds matrix powers until the largest entry of the
    next term drops below `tol`. ``method="solve"`` solves the linear system
    directly and is usually faster for graphs of a few thousand cues.
    """

    _check_alpha(alpha)
    if method not in KATZ_METHODS:
        raise ValueError(f"Unknown Katz walk method {method!r}; expected one of {KATZ_METHODS}")

    p = _as_csr(matrix)
    n = p.shape[0]
    if n == 0 or p.nnz == 0:
        return p.copy()

    if method == "series":
        total = p.copy()
        term = p.copy()
        for _ in range(max_iter):
            term = (alpha * (term @ p)).tocsr()
            total = total + term
            if term.nnz == 0 or float(abs(term).max()) < tol:
                return sp.csr_matrix(total)
        raise RuntimeError(
            f"Katz series did not converge within {max_iter} iterations (alpha={alpha}, tol={tol}); "
            "the spectral radius of alpha * P is probably >= 1. Row-normalize the matrix first."
        )

    system = (sp.identity(n, format="csc") - alpha * p).tocsc()
    k = spsolve(system, p.tocsc())
    k = sp.csr_matrix(k).reshape(n, n) if sp.issparse(k) else sp.csr_matrix(np.asarray(k).reshape(n, n))
    if not np.all(np.isfinite(k.data)):
        raise RuntimeError(f"Katz walk system (I - alpha P) is singular for alpha={alpha}")
    k.eliminate_zeros()
    return k


def weight_matrix(
    graph: Union[AssociationGraph, sp.spmatrix, np.ndarray],
    mode: str,
    alpha: float = ALPHA,
    *,
    method: str = "solve",
) -> Union[AssociationGraph, sp.csr_matrix]:
    """Reweight an adjacency matrix of raw response counts.

    Accepts either an `AssociationGraph` (labels are carried over to the
    result) or a bare square matrix.
    """

    if mode not in WEIGHTING_MODES:
        raise ValueError(f"Unknown weighting mode {mode!r}; expected one of {WEIGHTING_MODES}")

    labeled = isinstance(graph, AssociationGraph)
    a = graph.matrix if labeled else _as_csr(graph)
    if a.shape[0] != a.shape[1]:
        raise ValueError(f"Expected a square adjacency matrix; got shape {a.shape}")

    if mode == "strength":
        out = normalize_rows(a)
    elif mode == "PPMI":
        out = normalize_rows(ppmi(a))
    else:
        walk = katz_walk(normalize_rows(a), alpha, method=method)
        out = normalize_rows(ppmi(normalize_rows(walk)))

    return graph.with_matrix(out) if labeled else out
