from pathlib import Path
from typing import List, Optional

import pandas as pd

from spreadact.config import VOCAB_WORD_COL


def load_swow_raw(path: Path, nrows: Optional[int] = None) -> pd.DataFrame:
    # keep_default_na=False: "null", "nan" and "NA" are real SWOW cues/responses.
    return pd.read_csv(path, nrows=nrows, keep_default_na=False, na_values=[""], dtype=str)


def load_adjacency_triples(path: Path) -> pd.DataFrame:
    """Read an `i j f` adjacency file (1-based cue index, response index, frequency)."""

    df = pd.read_csv(path, sep=r"\s+", header=None, names=["i", "j", "f"], comment="#")
    incomplete = df[["i", "j", "f"]].isna().any(axis=1)
    if incomplete.any():
        raise ValueError(
            f"Adjacency file {path} has {int(incomplete.sum())} incomplete rows (expected `i j f`); "
            f"first at data row {int(incomplete.to_numpy().argmax()) + 1}"
        )
    df["i"] = df["i"].astype(int)
    df["j"] = df["j"].astype(int)
    df["f"] = df["f"].astype(float)
    bad_f = df.loc[df["f"] <= 0, "f"]
    if not bad_f.empty:
        raise ValueError(f"Adjacency file {path} has non-positive frequencies: {sorted(set(bad_f.tolist()))}")
    return df


def load_labels(path: Path) -> List[str]:
    """Read one label per line; line k labels index k. Trailing blank lines are ignored."""

    labels = [line.strip() for line in Path(path).read_text(encoding="utf-8").splitlines()]
    while labels and labels[-1] == "":
        labels.pop()
    empty = [k + 1 for k, label in enumerate(labels) if label == ""]
    if empty:
        raise ValueError(f"Labels file {path} has empty labels on lines {empty}")
    return labels


def load_vocabulary(path: Path, column: str = VOCAB_WORD_COL) -> List[str]:
    """Return the ordered, de-duplicated words from a vocabulary CSV."""

    df = pd.read_csv(path, keep_default_na=False, dtype=str)
    if column not in df.columns:
        raise ValueError(f"Vocabulary file {path} has no column {column!r}; found {df.columns.tolist()}")
    words = df[column].str.strip()
    words = words.loc[words != ""]
    return list(dict.fromkeys(words.tolist()))
