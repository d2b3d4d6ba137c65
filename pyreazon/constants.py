"""Constants for pyreazon - default configuration and program metadata."""

# Program metadata
PROGRAM_NAME = "pyreazon"

# Default configuration
# Structure: {"language": "ja", "precision": "fp32", "num_threads": 4}
DEFAULT_CONFIG = {
    # Options: ja, ja-en, ja-en-mls-5k
    "language": "ja",
    # Options: fp32, int8, int8-fp32
    "precision": "fp32",
    # Thread count hint passed to the inference engine
    "num_threads": 4,
    "debug": False,
}

# Model constants
SAMPLE_RATE = 16000
FEATURE_DIM = 80
DECODING_METHOD = "greedy_search"

# Preprocessing
PAD_SECONDS = 0.9
TOO_LONG_SECONDS = 30.0

# Environment overrides
ENV_LANGUAGE = "PYREAZON_LANGUAGE"
ENV_PRECISION = "PYREAZON_PRECISION"
ENV_CACHE_DIR = "PYREAZON_CACHE_DIR"
ENV_PROVIDER = "PYREAZON_PROVIDER"
ENV_NUM_THREADS = "PYREAZON_NUM_THREADS"
