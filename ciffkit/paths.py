# ciffkit/paths.py

# --- Output location (relative to the working directory) ---
DEFAULT_OUTPUT_DIR = "output"

# --- Human-readable dump files ---
HEADER_FILE = "output.header"
DICT_FILE = "output.dict"
POSTINGS_FILE = "output.postings"
DOCRECORDS_FILE = "output.docRecords"

# --- Quantized CIFF: <output dir>/q-<input basename> ---
QCIFF_PREFIX = "q-"

# --- BM25 / quantization defaults ---
K1 = 0.9
B = 0.4
BITS = 8
EPSILON = 0.0
ROUNDING = "floor"  # or "round" (half up)

# --- Progress: print a line every 1/PROGRESS_STEPS of the postings lists ---
PROGRESS_STEPS = 10
