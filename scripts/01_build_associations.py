import sys
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import argparse  # noqa: E402

import pandas as pd  # noqa: E402

from spreadact.config import (  # noqa: E402
    AGE_COL,
    ASSOCIATIONS_FILE,
    CUE_COL,
    DEFAULT_RESPONSE_SET,
    LOGS_DIR,
    MISSING_RESPONSE_TOKENS,
    RAW_SWOW_FILE,
    RESPONSE_SETS,
    TABLES_DIR,
)
from spreadact.data.ingest import load_swow_raw  # noqa: E402
from spreadact.data.responses import summarize_responses, to_long_responses  # noqa: E402
from spreadact.utils.logging import run_metadata, sha256_file, write_json  # noqa: E402


def build_association_table(df_raw: pd.DataFrame, response_set: str, age_col: str) -> tuple[pd.DataFrame, dict]:
    decisions: dict = {
        "columns": {
            "cue": CUE_COL,
            "responses": RESPONSE_SETS[response_set],
            "age": age_col,
        },
        "response_set": response_set,
        "missing_response_tokens": list(MISSING_RESPONSE_TOKENS),
        "row_filters": [],
    }

    long = to_long_responses(df_raw, response_set, age_col=age_col)
    n_slots = len(df_raw) * len(RESPONSE_SETS[response_set])
    decisions["row_filters"].append(
        {
            "rule": "drop_missing_response_or_cue",
            "response_slots": n_slots,
            "dropped_slots": n_slots - len(long),
        }
    )

    n_before = len(long)
    age = pd.to_numeric(long["age"], errors="coerce")
    long = long.loc[age.notna()].reset_index(drop=True)
    long["age"] = age.loc[age.notna()].to_numpy()
    decisions["row_filters"].append(
        {
            "rule": "drop_missing_or_non_numeric_age",
            "column": age_col,
            "dropped_rows": n_before - len(long),
        }
    )

    return long, decisions


def main() -> None:
    parser = argparse.ArgumentParser(description="Stack raw SWOW responses into a long cue/response/age table.")
    parser.add_argument("--input", type=Path, default=RAW_SWOW_FILE, help="Raw SWOW CSV (cue, R1, R2, R3, age).")
    parser.add_argument("--nrows", type=int, default=None, help="Optional: read only the first N rows (for tests).")
    parser.add_argument(
        "--response-set",
        choices=sorted(RESPONSE_SETS),
        default=DEFAULT_RESPONSE_SET,
        help="Response positions to keep (R1 = primary responses only).",
    )
    parser.add_argument("--age-col", default=AGE_COL, help="Name of the respondent age column.")
    parser.add_argument("--out-csv", type=Path, default=ASSOCIATIONS_FILE, help="Output association table.")
    parser.add_argument(
        "--audit-csv",
        type=Path,
        default=TABLES_DIR / "associations_audit.csv",
        help="Output audit CSV path.",
    )
    parser.add_argument(
        "--decisions-json",
        type=Path,
        default=LOGS_DIR / "associations_decisions.json",
        help="Output JSON file for filter decisions.",
    )
    args = parser.parse_args()

    if not args.input.exists():
        raise SystemExit(f"Input file not found: {args.input}")
    if args.nrows is not None and args.nrows <= 0:
        raise SystemExit("--nrows must be a positive integer.")

    df_raw = load_swow_raw(args.input, nrows=args.nrows)
    try:
        long, decisions = build_association_table(df_raw, args.response_set, args.age_col)
    except ValueError as exc:
        raise SystemExit(f"Cannot build association table from {args.input}: {exc}")

    if long.empty:
        raise SystemExit(f"No usable responses in {args.input} for response set {args.response_set}.")

    args.out_csv.parent.mkdir(parents=True, exist_ok=True)
    long.to_csv(args.out_csv, index=False)

    audit = summarize_responses(long)
    audit.insert(0, "raw_rows", len(df_raw))
    audit["response_set"] = args.response_set
    audit["age_min"] = float(long["age"].min())
    audit["age_max"] = float(long["age"].max())
    args.audit_csv.parent.mkdir(parents=True, exist_ok=True)
    audit.to_csv(args.audit_csv, index=False)

    payload = run_metadata(
        **decisions,
        input_file=str(args.input),
        input_sha256=sha256_file(args.input),
        raw_rows=len(df_raw),
        association_rows=len(long),
        output_csv=str(args.out_csv),
    )
    write_json(args.decisions_json, payload)

    print(f"Wrote {args.out_csv}")
    print(f"Wrote {args.audit_csv}")
    print(f"Wrote {args.decisions_json}")


if __name__ == "__main__":
    main()
