from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from spreadact.config import CUE_COL, MISSING_RESPONSE_TOKENS, RESPONSE_SETS
from spreadact.data.validate import assert_required_columns


def to_long_responses(
    df: pd.DataFrame,
    response_set: str,
    *,
    age_col: Optional[str] = None,
    missing_tokens: Tuple[str, ...] = MISSING_RESPONSE_TOKENS,
) -> pd.DataFrame:
    """Stack the wide R1/R2/R3 columns into one row per cue-response pair.

    Only the positions named by `response_set` are kept. Responses that are
    missing (NaN, blank or one of `missing_tokens`) are dropped, as are rows
    with a missing cue. Output columns: cue, response, rpos and, when
    `age_col` is given, age.
    """

    if response_set not in RESPONSE_SETS:
        raise ValueError(f"Unknown response set {response_set!r}; expected one of {sorted(RESPONSE_SETS)}")
    positions = RESPONSE_SETS[response_set]

    required = [CUE_COL] + positions + ([age_col] if age_col else [])
    assert_required_columns(df, required)

    id_cols = [CUE_COL] + ([age_col] if age_col else [])
    long = df[id_cols + positions].melt(id_vars=id_cols, value_vars=positions, var_name="rpos", value_name="response")
    long = long.rename(columns={CUE_COL: "cue"})
    if age_col:
        long = long.rename(columns={age_col: "age"})

    long["cue"] = long["cue"].astype("string").str.strip()
    long["response"] = long["response"].astype("string").str.strip()

    keep = long["cue"].notna() & (long["cue"] != "")
    keep &= long["response"].notna() & (long["response"] != "")
    keep &= ~long["response"].isin(list(missing_tokens))
    long = long.loc[keep.fillna(False).astype(bool)]

    cols = ["cue", "response", "rpos"] + (["age"] if age_col else [])
    return long[cols].astype({"cue": str, "response": str}).reset_index(drop=True)


def make_age_bins(start: int, stop: int, step: int, upper: int) -> List[Tuple[int, int]]:
    """Half-open age bins with edges `start, start+step, ..., stop, upper`."""

    if step <= 0:
        raise ValueError(f"Age bin step must be positive; got {step}")
    if stop < start:
        raise ValueError(f"Age bin stop ({stop}) is below start ({start})")
    if upper <= stop:
        raise ValueError(f"Upper age edge ({upper}) must exceed stop ({stop})")

    edges = list(range(start, stop + 1, step)) + [upper]
    return list(zip(edges[:-1], edges[1:]))


def filter_age_bin(df: pd.DataFrame, lower: float, upper: float, age_col: str = "age") -> pd.DataFrame:
    assert_required_columns(df, [age_col])
    age = pd.to_numeric(df[age_col], errors="coerce")
    mask = (age >= lower) & (age < upper)
    return df.loc[mask].reset_index(drop=True)


def restrict_cues(df: pd.DataFrame, vocabulary: Iterable[str]) -> pd.DataFrame:
    vocab = set(vocabulary)
    return df.loc[df["cue"].isin(vocab)].reset_index(drop=True)


def count_associations(df: pd.DataFrame) -> pd.DataFrame:
    """Collapse a long response table to cue, response, frequency."""

    assert_required_columns(df, ["cue", "response"])
    if df.empty:
        return pd.DataFrame({"cue": pd.Series(dtype=str), "response": pd.Series(dtype=str), "frequency": pd.Series(dtype=int)})
    counts = df.groupby(["cue", "response"], sort=True).size().reset_index(name="frequency")
    counts["frequency"] = counts["frequency"].astype(int)
    return counts


def summarize_responses(df: pd.DataFrame) -> pd.DataFrame:
    n = len(df)
    n_cues = int(df["cue"].nunique()) if n else 0
    n_responses = int(df["response"].nunique()) if n else 0
    # Share of responses that are themselves cues, i.e. that can become graph edges.
    cues = set(df["cue"].unique()) if n else set()
    covered = round(float(df["response"].isin(cues).mean()), 6) if n else np.nan
    return pd.DataFrame(
        [
            {
                "n_rows": n,
                "n_cues": n_cues,
                "n_distinct_responses": n_responses,
                "response_cue_coverage": covered,
            }
        ]
    )
