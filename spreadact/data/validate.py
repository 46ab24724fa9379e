from typing import Iterable, Sequence


def assert_required_columns(df, required: Iterable[str]) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")


def assert_square_labeled(matrix, labels: Sequence[str]) -> None:
    n_rows, n_cols = matrix.shape
    if n_rows != n_cols:
        raise ValueError(f"Expected a square matrix; got shape {matrix.shape}")
    if n_rows != len(labels):
        raise ValueError(f"Matrix side ({n_rows}) does not match vocabulary size ({len(labels)})")
