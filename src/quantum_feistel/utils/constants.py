"""Constants for the Feistel distinguisher."""

# -- Feistel fixture --
HALF_BITS: int = 8  # bits per Feistel half
FEISTEL_ROUNDS: int = 3
PERMUTATION_SWAPS: int = 100_000  # random transpositions per lookup table

# -- Detection --
BUDGET_FACTOR: int = 2  # accepted sampling rounds = BUDGET_FACTOR * width

# -- Simon sampler --
MAX_SAMPLER_INPUT_BITS: int = 20  # function table has 2^n entries
DISTRIBUTION_BLOCK_CELLS: int = 1 << 22  # float64 cells per block when summing spectra
MAX_DISTRIBUTION_PLOT_BITS: int = 13  # marginal cost grows with distinct outputs

# -- Statistics --
CONFIDENCE_LEVEL: float = 0.95

# -- Simon self-check: 2-to-1 function on 3 bits with period 0b110 --
SIMON_CHECK_TABLE: tuple[int, ...] = (5, 2, 0, 6, 0, 6, 5, 2)
SIMON_CHECK_PERIOD: int = 0b110
SIMON_CHECK_SAMPLES: int = 100_000
