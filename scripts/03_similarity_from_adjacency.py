import sys
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import argparse  # noqa: E402
import time  # noqa: E402

import scipy.sparse as sp  # noqa: E402

from spreadact.config import ALPHA, KATZ_METHODS, SIMILARITY_DIR, WEIGHTING_MODES  # noqa: E402
from spreadact.data.ingest import load_adjacency_triples, load_labels  # noqa: E402
from spreadact.graph.adjacency import from_triples, largest_strongly_connected_component  # noqa: E402
from spreadact.graph.weighting import weight_matrix  # noqa: E402
from spreadact.similarity.cosine import cosine_matrix, similarity_frame, summarize_similarity  # noqa: E402
from spreadact.utils.logging import run_metadata, sha256_file, write_json  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Weighted graph and cosine similarity matrix from an `i j f` adjacency file and its labels."
    )
    parser.add_argument("--adjacency", type=Path, required=True, help="Whitespace separated i j f rows (1-based).")
    parser.add_argument("--labels", type=Path, required=True, help="One label per line; line k labels index k.")
    parser.add_argument("--mode", choices=WEIGHTING_MODES, default="RW")
    parser.add_argument("--alpha", type=float, default=ALPHA)
    parser.add_argument("--katz-method", choices=KATZ_METHODS, default="solve")
    parser.add_argument(
        "--keep-disconnected",
        action="store_true",
        help="Do not restrict the graph to its largest strongly connected component.",
    )
    parser.add_argument("--outdir", type=Path, default=SIMILARITY_DIR)
    parser.add_argument("--name", default=None, help="Output file stem (default: adjacency file stem).")
    args = parser.parse_args()

    for path in (args.adjacency, args.labels):
        if not path.exists():
            raise SystemExit(f"Input file not found: {path}")
    if not (0.0 < args.alpha < 1.0):
        raise SystemExit(f"--alpha must lie strictly between 0 and 1; got {args.alpha}")

    try:
        labels = load_labels(args.labels)
        graph = from_triples(load_adjacency_triples(args.adjacency), labels)
    except ValueError as exc:
        raise SystemExit(f"Cannot build graph from {args.adjacency}: {exc}")

    n_nodes_full = graph.n
    if not args.keep_disconnected:
        graph = largest_strongly_connected_component(graph)
    if graph.n < 2 or graph.n_edges == 0:
        raise SystemExit(f"Graph from {args.adjacency} has no usable edges ({graph.n} nodes).")

    t0 = time.perf_counter()
    weighted = weight_matrix(graph, args.mode, args.alpha, method=args.katz_method)
    similarity = cosine_matrix(weighted.matrix)
    elapsed = time.perf_counter() - t0

    stem = args.name or args.adjacency.stem
    args.outdir.mkdir(parents=True, exist_ok=True)
    graph_path = args.outdir / f"G_{args.mode}_{stem}.npz"
    sim_path = args.outdir / f"S_{args.mode}_{stem}.csv"
    sp.save_npz(graph_path, weighted.matrix)
    similarity_frame(similarity, weighted.labels).to_csv(sim_path)

    write_json(
        args.outdir / f"S_{args.mode}_{stem}_run_metadata.json",
        run_metadata(
            adjacency=str(args.adjacency),
            adjacency_sha256=sha256_file(args.adjacency),
            labels=str(args.labels),
            mode=args.mode,
            alpha=args.alpha,
            katz_method=args.katz_method,
            largest_scc_only=not args.keep_disconnected,
            n_nodes_input=n_nodes_full,
            n_nodes=graph.n,
            n_edges=graph.n_edges,
            elapsed_seconds=round(elapsed, 3),
            similarity=summarize_similarity(similarity),
            labels_out=list(weighted.labels),
        ),
    )

    print(f"{args.mode}: {graph.n} cues, {graph.n_edges} edges ({elapsed:.2f}s)")
    print(f"Wrote {graph_path}")
    print(f"Wrote {sim_path}")


if __name__ == "__main__":
    main()
