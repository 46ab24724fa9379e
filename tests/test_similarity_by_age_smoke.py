import json
import subprocess
import sys
from pathlib import Path

import numpy as np
import pandas as pd

from conftest import AGES, WORDS, make_raw_swow


def _build_associations(repo_root: Path, raw_csv: Path, tmp_path: Path) -> Path:
    out_csv = tmp_path / "associations.csv"
    cmd = [
        sys.executable,
        str(repo_root / "scripts" / "01_build_associations.py"),
        "--input",
        str(raw_csv),
        "--out-csv",
        str(out_csv),
        "--audit-csv",
        str(tmp_path / "associations_audit.csv"),
        "--decisions-json",
        str(tmp_path / "associations_decisions.json"),
    ]
    subprocess.run(cmd, cwd=repo_root, check=True)
    return out_csv


def test_build_associations_smoke(raw_swow_csv: Path, tmp_path: Path):
    repo_root = Path(__file__).resolve().parents[1]

    out_csv = _build_associations(repo_root, raw_swow_csv, tmp_path)

    long = pd.read_csv(out_csv, keep_default_na=False)
    assert long.columns.tolist() == ["cue", "response", "rpos", "age"]
    # 12 respondents with a usable age x 8 cues x 3 responses; the age-15 row keeps R1 and R2 only.
    assert len(long) == 12 * 8 * 3 + 8 * 2
    assert "No more responses" not in set(long["response"])
    assert "unknown" not in set(long["age"].astype(str))

    payload = json.loads((tmp_path / "associations_decisions.json").read_text(encoding="utf-8"))
    assert payload["response_set"] == "R123"
    assert payload["columns"]["responses"] == ["R1", "R2", "R3"]
    assert payload["association_rows"] == len(long)

    audit = pd.read_csv(tmp_path / "associations_audit.csv")
    assert audit.loc[0, "n_cues"] == len(WORDS)


def test_similarity_by_age_smoke(raw_swow_csv: Path, tmp_path: Path):
    repo_root = Path(__file__).resolve().parents[1]
    associations = _build_associations(repo_root, raw_swow_csv, tmp_path)
    outdir = tmp_path / "outputs"

    cmd = [
        sys.executable,
        str(repo_root / "scripts" / "02_similarity_by_age.py"),
        "--associations",
        str(associations),
        "--outdir",
        str(outdir),
    ]
    subprocess.run(cmd, cwd=repo_root, check=True)

    bins = ["20-30", "30-40", "40-50", "50-60", "60-70", "70-100"]
    for b in bins:
        path = outdir / "similarity" / "by10" / f"S_RW_{b}.csv"
        assert path.exists(), f"Missing similarity matrix for age bin {b}"
        s = pd.read_csv(path, index_col=0)
        assert s.shape == (len(WORDS), len(WORDS))
        assert s.index.tolist() == s.columns.tolist() == sorted(WORDS)
        np.testing.assert_allclose(s.to_numpy(), s.to_numpy().T, atol=1e-9)
        np.testing.assert_allclose(np.diag(s.to_numpy()), 1.0, atol=1e-9)

    summary = pd.read_csv(outdir / "tables" / "similarity_summary_by10.csv")
    assert summary["age_bin"].tolist() == bins
    assert (summary["status"] == "ok").all()
    assert (summary["n_nodes"] == len(WORDS)).all()

    assert (outdir / "figures" / "similarity_distribution_RW_by10.png").exists()
    meta = json.loads((outdir / "logs" / "similarity_by10_run_metadata.json").read_text(encoding="utf-8"))
    assert meta["alpha"] == 0.75
    assert meta["age_bins"][-1] == [70, 100]


def test_similarity_by_age_with_vocabulary_and_all_modes(raw_swow_csv: Path, tmp_path: Path):
    repo_root = Path(__file__).resolve().parents[1]
    associations = _build_associations(repo_root, raw_swow_csv, tmp_path)
    outdir = tmp_path / "outputs"
    vocab = WORDS[:6]
    vocab_csv = tmp_path / "vocab.csv"
    pd.DataFrame({"word": vocab}).to_csv(vocab_csv, index=False)

    cmd = [
        sys.executable,
        str(repo_root / "scripts" / "02_similarity_by_age.py"),
        "--associations",
        str(associations),
        "--outdir",
        str(outdir),
        "--vocab-csv",
        str(vocab_csv),
        "--modes",
        "strength",
        "PPMI",
        "RW",
        "--age-step",
        "20",
        "--katz-method",
        "series",
    ]
    subprocess.run(cmd, cwd=repo_root, check=True)

    for mode in ["strength", "PPMI", "RW"]:
        for b in ["20-40", "40-60", "60-100"]:
            s = pd.read_csv(outdir / "similarity" / "by20" / f"S_{mode}_{b}.csv", index_col=0)
            assert s.index.tolist() == vocab

    summary = pd.read_csv(outdir / "tables" / "similarity_summary_by20.csv")
    assert len(summary) == 9
    assert (summary["n_nodes"] == len(vocab)).all()


def test_similarity_by_age_missing_input_exits(tmp_path: Path):
    repo_root = Path(__file__).resolve().parents[1]

    cmd = [
        sys.executable,
        str(repo_root / "scripts" / "02_similarity_by_age.py"),
        "--associations",
        str(tmp_path / "does_not_exist.csv"),
        "--outdir",
        str(tmp_path / "outputs"),
    ]
    proc = subprocess.run(cmd, cwd=repo_root, capture_output=True, text=True)

    assert proc.returncode != 0
    assert "Association table not found" in proc.stderr


def test_similarity_by_age_skips_empty_bin(tmp_path: Path):
    repo_root = Path(__file__).resolve().parents[1]
    raw_csv = tmp_path / "swow_raw_no_forties.csv"
    make_raw_swow([a for a in AGES if a not in ("45", "47")]).to_csv(raw_csv, index=False)
    associations = _build_associations(repo_root, raw_csv, tmp_path)
    outdir = tmp_path / "outputs"

    cmd = [
        sys.executable,
        str(repo_root / "scripts" / "02_similarity_by_age.py"),
        "--associations",
        str(associations),
        "--outdir",
        str(outdir),
    ]
    subprocess.run(cmd, cwd=repo_root, check=True)

    summary = pd.read_csv(outdir / "tables" / "similarity_summary_by10.csv").set_index("age_bin")
    assert summary.loc["40-50", "status"] == "skipped_empty_graph"
    assert summary.loc["40-50", "n_responses"] == 0
    assert (summary.drop(index="40-50")["status"] == "ok").all()

    assert not (outdir / "similarity" / "by10" / "S_RW_40-50.csv").exists()
    assert (outdir / "similarity" / "by10" / "S_RW_50-60.csv").exists()

    meta = json.loads((outdir / "logs" / "similarity_by10_run_metadata.json").read_text(encoding="utf-8"))
    assert "40-50" not in meta["bins_ok"]
    assert len(meta["bins_ok"]) == 5


def test_similarity_by_age_exits_when_every_bin_is_empty(tmp_path: Path):
    repo_root = Path(__file__).resolve().parents[1]
    raw_csv = tmp_path / "swow_raw_children.csv"
    make_raw_swow(["10", "12", "15"]).to_csv(raw_csv, index=False)
    associations = _build_associations(repo_root, raw_csv, tmp_path)
    outdir = tmp_path / "outputs"

    cmd = [
        sys.executable,
        str(repo_root / "scripts" / "02_similarity_by_age.py"),
        "--associations",
        str(associations),
        "--outdir",
        str(outdir),
    ]
    proc = subprocess.run(cmd, cwd=repo_root, capture_output=True, text=True)

    assert proc.returncode != 0
    assert "No age bin produced a usable association graph." in proc.stderr

    summary = pd.read_csv(outdir / "tables" / "similarity_summary_by10.csv")
    assert len(summary) == 6
    assert (summary["status"] == "skipped_empty_graph").all()
