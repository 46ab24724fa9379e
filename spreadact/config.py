from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

DATA_DIR = PROJECT_ROOT / "data"
RAW_DIR = DATA_DIR / "raw"
PROCESSED_DIR = DATA_DIR / "processed"

OUTPUTS_DIR = PROJECT_ROOT / "outputs"
TABLES_DIR = OUTPUTS_DIR / "tables"
LOGS_DIR = OUTPUTS_DIR / "logs"
SIMILARITY_DIR = OUTPUTS_DIR / "similarity"

RAW_SWOW_FILE = RAW_DIR / "SWOW-EN.complete.csv"
ASSOCIATIONS_FILE = PROCESSED_DIR / "swow_associations.csv"

# SWOW source-column names
CUE_COL = "cue"
AGE_COL = "age"

# Tokens the SWOW export uses for an empty response slot (in addition to NaN/blank).
MISSING_RESPONSE_TOKENS = ("No more responses",)

# Which response positions feed the graph. R1 = primary responses only.
RESPONSE_SETS = {
    "R1": ["R1"],
    "R12": ["R1", "R2"],
    "R123": ["R1", "R2", "R3"],
}
DEFAULT_RESPONSE_SET = "R123"

# Graph weighting
WEIGHTING_MODES = ["strength", "PPMI", "RW"]
DEFAULT_MODES = ["RW"]
ALPHA = 0.75  # default decay for longer paths
KATZ_METHODS = ["solve", "series"]
KATZ_SERIES_TOL = 1e-10
KATZ_SERIES_MAX_ITER = 1000

# Age bin edges: AGE_START, AGE_START + step, ..., AGE_STOP, AGE_UPPER
AGE_START = 20
AGE_STOP = 70
AGE_UPPER = 100
AGE_BIN_STEP = 10

VOCAB_WORD_COL = "word"
