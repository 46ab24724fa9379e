import sys

from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from spreadact.config import RAW_SWOW_FILE, ASSOCIATIONS_FILE, LOGS_DIR  # noqa: E402
from spreadact.utils.logging import run_metadata, write_json  # noqa: E402


def main() -> None:
    info = run_metadata(
        raw_file_exists=RAW_SWOW_FILE.exists(),
        associations_file_exists=ASSOCIATIONS_FILE.exists(),
    )
    write_json(LOGS_DIR / "environment_check.json", info)
    print("Wrote outputs/logs/environment_check.json")


if __name__ == "__main__":
    main()
