"""
Constants for the debiasing pipeline.
Central location for default tolerances, budgets, and column names.
"""

# Convergence tolerance on |slope| below which a dataset counts as unbiased
DEFAULT_TOLERANCE = 1e-5

# Minimum records a dataset may hold (smallest size with a meaningful slope)
MIN_DATASET_SIZE = 3

# Minimum records an OLS fit accepts
MIN_REGRESSION_SAMPLES = 2

# Inner-loop attempt budget: max(DEFAULT_MIN_ATTEMPTS, ATTEMPTS_PER_RECORD * n)
DEFAULT_MIN_ATTEMPTS = 1000
ATTEMPTS_PER_RECORD = 20

# Candidate draws evaluated together within one outer iteration
DEFAULT_BATCH_SIZE = 1
DEFAULT_N_JOBS = 1

# Default column names (height/BMI cohort)
DEFAULT_COLUMNS = {
    "key": "id",
    "x": "height_cm",
    "y": "bmi",
    "group": "gender",
}

# Partition label used when the table has no group column
UNGROUPED_LABEL = "all"

# Reasons attached to NonConvergenceError
NON_CONVERGENCE_REASONS = {
    "size_floor": "Dataset reached the minimum viable size before converging",
    "attempt_budget": "No improving leave-one-out candidate found within the attempt budget",
    "iteration_budget": "Outer iteration budget exhausted before converging",
}

# Output file suffixes written per group by the orchestrator
OUTPUT_SUFFIXES = {
    "debiased": "_debiased.csv",
    "removed": "_removed_keys.csv",
    "history": "_history.csv",
}

# File paths (relative to project root)
DEFAULT_PATHS = {
    "config": "config.yml",
    "data": "data/",
    "logs": "logs/",
    "reports": "reports/",
}
