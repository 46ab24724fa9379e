from __future__ import annotations

import argparse
import os
import sys
import tempfile
import time
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

# Matplotlib must be configured before importing pyplot.
_mpl_cache_dir = Path(tempfile.gettempdir()) / "matplotlib"
_mpl_cache_dir.mkdir(parents=True, exist_ok=True)
os.environ.setdefault("MPLCONFIGDIR", str(_mpl_cache_dir))

import matplotlib  # noqa: E402

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from spreadact.config import (  # noqa: E402
    AGE_BIN_STEP,
    AGE_START,
    AGE_STOP,
    AGE_UPPER,
    ALPHA,
    ASSOCIATIONS_FILE,
    DEFAULT_MODES,
    KATZ_METHODS,
    OUTPUTS_DIR,
    VOCAB_WORD_COL,
    WEIGHTING_MODES,
)
from spreadact.data.ingest import load_vocabulary  # noqa: E402
from spreadact.data.responses import count_associations, filter_age_bin, make_age_bins, restrict_cues  # noqa: E402
from spreadact.data.validate import assert_required_columns  # noqa: E402
from spreadact.graph.adjacency import build_adjacency, largest_strongly_connected_component  # noqa: E402
from spreadact.graph.weighting import weight_matrix  # noqa: E402
from spreadact.reporting.figures import plot_similarity_distributions, save_figure  # noqa: E402
from spreadact.similarity.cosine import (  # noqa: E402
    cosine_matrix,
    offdiagonal_values,
    similarity_frame,
    summarize_similarity,
)
from spreadact.utils.logging import run_metadata, sha256_file, write_json  # noqa: E402


REQUIRED_COLUMNS = ["cue", "response", "age"]

# Cap on pairwise values kept per bin for the distribution figure.
FIGURE_SAMPLE_SIZE = 200_000


def similarity_filename(mode: str, lower: int, upper: int) -> str:
    return f"S_{mode}_{lower}-{upper}.csv"


def _sample(values: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    if values.size <= FIGURE_SAMPLE_SIZE:
        return values
    return rng.choice(values, size=FIGURE_SAMPLE_SIZE, replace=False)


def run_age_bins(
    long: pd.DataFrame,
    bins: List[tuple],
    *,
    modes: List[str],
    alpha: float,
    katz_method: str,
    similarity_dir: Path,
    vocabulary: Optional[List[str]] = None,
    keep_disconnected: bool = False,
    seed: int = 2026,
) -> tuple[pd.DataFrame, Dict[str, Dict[str, np.ndarray]]]:
    rng = np.random.default_rng(seed)
    rows = []
    samples: Dict[str, Dict[str, np.ndarray]] = {m: {} for m in modes}

    for lower, upper in bins:
        bin_label = f"{lower}-{upper}"
        subset = filter_age_bin(long, lower, upper, "age")
        if vocabulary is not None:
            subset = restrict_cues(subset, vocabulary)

        counts = count_associations(subset)
        graph = build_adjacency(counts, vocabulary)
        n_nodes_full = graph.n
        if not keep_disconnected:
            graph = largest_strongly_connected_component(graph)

        base = {
            "age_bin": bin_label,
            "age_lower": lower,
            "age_upper": upper,
            "n_responses": int(len(subset)),
            "n_cues": int(subset["cue"].nunique()),
            "n_nodes_graph": n_nodes_full,
            "n_nodes": graph.n,
            "n_edges": graph.n_edges,
        }

        if graph.n < 2 or graph.n_edges == 0:
            print(f"[{bin_label}] skipped: graph has {graph.n} nodes and {graph.n_edges} edges")
            for mode in modes:
                rows.append({**base, "mode": mode, "status": "skipped_empty_graph"})
            continue

        for mode in modes:
            t0 = time.perf_counter()
            weighted = weight_matrix(graph, mode, alpha, method=katz_method)
            similarity = cosine_matrix(weighted.matrix)
            elapsed = time.perf_counter() - t0

            out_path = similarity_dir / similarity_filename(mode, lower, upper)
            out_path.parent.mkdir(parents=True, exist_ok=True)
            similarity_frame(similarity, weighted.labels).to_csv(out_path)

            stats = summarize_similarity(similarity)
            samples[mode][bin_label] = _sample(offdiagonal_values(similarity), rng)
            rows.append(
                {
                    **base,
                    "mode": mode,
                    "status": "ok",
                    "weighted_nnz": int(weighted.matrix.nnz),
                    "elapsed_seconds": round(elapsed, 3),
                    **{f"similarity_{k}": v for k, v in stats.items()},
                    "output_csv": str(out_path),
                }
            )
            print(f"[{bin_label}] {mode}: {graph.n} cues, {graph.n_edges} edges ({elapsed:.2f}s) -> {out_path}")

    return pd.DataFrame(rows), samples


def main() -> None:
    parser = argparse.ArgumentParser(description="Spreading-activation similarity matrices per respondent age bin.")
    parser.add_argument("--associations", type=Path, default=ASSOCIATIONS_FILE, help="Long cue/response/age table.")
    parser.add_argument("--outdir", type=Path, default=OUTPUTS_DIR, help="Output directory (default: outputs/).")
    parser.add_argument("--alpha", type=float, default=ALPHA, help="Katz walk decay for longer paths, in (0, 1).")
    parser.add_argument("--modes", nargs="+", choices=WEIGHTING_MODES, default=DEFAULT_MODES)
    parser.add_argument("--katz-method", choices=KATZ_METHODS, default="solve")
    parser.add_argument("--age-start", type=int, default=AGE_START)
    parser.add_argument("--age-stop", type=int, default=AGE_STOP)
    parser.add_argument("--age-step", type=int, default=AGE_BIN_STEP, help="Bin width in years (e.g. 10 or 5).")
    parser.add_argument("--age-upper", type=int, default=AGE_UPPER, help="Upper edge of the last (open-ended) bin.")
    parser.add_argument("--vocab-csv", type=Path, default=None, help="Optional: fixed cue vocabulary to index graphs by.")
    parser.add_argument("--vocab-col", default=VOCAB_WORD_COL)
    parser.add_argument(
        "--keep-disconnected",
        action="store_true",
        help="Do not restrict each graph to its largest strongly connected component.",
    )
    parser.add_argument("--seed", type=int, default=2026, help="Seed for subsampling pairs in the figure.")
    args = parser.parse_args()

    if not args.associations.exists():
        raise SystemExit(
            f"Association table not found: {args.associations}. Run scripts/01_build_associations.py first."
        )
    if not (0.0 < args.alpha < 1.0):
        raise SystemExit(f"--alpha must lie strictly between 0 and 1; got {args.alpha}")
    try:
        bins = make_age_bins(args.age_start, args.age_stop, args.age_step, args.age_upper)
    except ValueError as exc:
        raise SystemExit(f"Invalid age bins: {exc}")

    vocabulary = None
    if args.vocab_csv is not None:
        if not args.vocab_csv.exists():
            raise SystemExit(f"Vocabulary file not found: {args.vocab_csv}")
        vocabulary = load_vocabulary(args.vocab_csv, column=args.vocab_col)

    long = pd.read_csv(args.associations, keep_default_na=False, na_values=[""], dtype={"cue": str, "response": str})
    try:
        assert_required_columns(long, REQUIRED_COLUMNS)
    except ValueError as exc:
        raise SystemExit(f"{args.associations}: {exc}")

    modes = list(dict.fromkeys(args.modes))
    tag = f"by{args.age_step}"
    similarity_dir = args.outdir / "similarity" / tag
    tables_dir = args.outdir / "tables"
    figures_dir = args.outdir / "figures"
    logs_dir = args.outdir / "logs"

    summary, samples = run_age_bins(
        long,
        bins,
        modes=modes,
        alpha=args.alpha,
        katz_method=args.katz_method,
        similarity_dir=similarity_dir,
        vocabulary=vocabulary,
        keep_disconnected=args.keep_disconnected,
        seed=args.seed,
    )

    tables_dir.mkdir(parents=True, exist_ok=True)
    summary_path = tables_dir / f"similarity_summary_{tag}.csv"
    summary.to_csv(summary_path, index=False)

    for mode in modes:
        fig = plot_similarity_distributions(samples[mode], title=f"Pairwise {mode} similarity by age bin ({tag})")
        save_figure(fig, figures_dir / f"similarity_distribution_{mode}_{tag}.png")
        plt.close(fig)

    run_meta = run_metadata(
        associations=str(args.associations),
        associations_sha256=sha256_file(args.associations),
        alpha=args.alpha,
        modes=modes,
        katz_method=args.katz_method,
        age_bins=[list(b) for b in bins],
        vocabulary_csv=str(args.vocab_csv) if args.vocab_csv else None,
        vocabulary_size=len(vocabulary) if vocabulary is not None else None,
        largest_scc_only=not args.keep_disconnected,
        seed=args.seed,
        outdir=str(args.outdir),
        bins_ok=sorted(summary.loc[summary["status"] == "ok", "age_bin"].unique().tolist()),
    )
    write_json(logs_dir / f"similarity_{tag}_run_metadata.json", run_meta)

    print(f"Wrote {summary_path}")
    if not (summary["status"] == "ok").any():
        raise SystemExit("No age bin produced a usable association graph.")
    print(f"Wrote similarity matrices to {similarity_dir}/")


if __name__ == "__main__":
    main()
