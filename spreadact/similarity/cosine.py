from typing import Dict, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics.pairwise import cosine_similarity

from spreadact.data.validate import assert_square_labeled


def cosine_matrix(matrix) -> np.ndarray:
    """All-pairs cosine similarity between the rows of a (sparse) weight matrix.

    Returns a dense n x n array. Rows without any weight have similarity 0 to
    every row, themselves included. Memory grows with n**2.
    """

    if matrix.shape[0] == 0:
        return np.zeros((0, 0))
    return np.asarray(cosine_similarity(matrix, dense_output=True), dtype=float)


def similarity_frame(similarity: np.ndarray, labels: Sequence[str]) -> pd.DataFrame:
    assert_square_labeled(similarity, labels)
    return pd.DataFrame(similarity, index=list(labels), columns=list(labels))


def offdiagonal_values(similarity: np.ndarray) -> np.ndarray:
    """Upper-triangle (i < j) entries, one value per unordered word pair."""

    n = similarity.shape[0]
    iu = np.triu_indices(n, k=1)
    return similarity[iu]


def summarize_similarity(similarity: np.ndarray) -> Dict[str, float]:
    vals = offdiagonal_values(similarity)
    if vals.size == 0:
        return {"n_pairs": 0, "mean": np.nan, "median": np.nan, "min": np.nan, "max": np.nan, "share_zero": np.nan}
    return {
        "n_pairs": int(vals.size),
        "mean": round(float(np.mean(vals)), 6),
        "median": round(float(np.median(vals)), 6),
        "min": round(float(np.min(vals)), 6),
        "max": round(float(np.max(vals)), 6),
        "share_zero": round(float(np.mean(vals == 0)), 6),
    }
