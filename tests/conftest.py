from pathlib import Path

import pandas as pd
import pytest


WORDS = ["apple", "banana", "cherry", "date", "elder", "fig", "grape", "honey"]

# Two respondents per 10-year bin, plus rows that must be dropped (too young, non-numeric age).
AGES = ["22", "25", "34", "38", "45", "47", "52", "58", "63", "66", "72", "80", "15", "unknown"]


def make_raw_swow(ages=AGES) -> pd.DataFrame:
    """Every cue i gets responses i+1, i+2, i+3 (mod 8), so each age bin is strongly connected."""

    rows = []
    n = len(WORDS)
    for participant, age in enumerate(ages):
        for i, cue in enumerate(WORDS):
            r3 = WORDS[(i + 3) % n] if age != "15" else "No more responses"
            rows.append(
                {
                    "participantID": participant,
                    "age": age,
                    "cue": cue,
                    "R1": WORDS[(i + 1) % n],
                    "R2": WORDS[(i + 2) % n],
                    "R3": r3,
                }
            )
    return pd.DataFrame(rows)


@pytest.fixture
def raw_swow_csv(tmp_path: Path) -> Path:
    path = tmp_path / "swow_raw.csv"
    make_raw_swow().to_csv(path, index=False)
    return path
