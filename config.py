"""Project configuration (single source of truth).

This file defines default paths and knobs used across training, evaluation
and serving. Every knob can be overridden through the environment so the
pipeline runs without CLI flags.
"""

import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

DATA_DIR = os.getenv("DATA_DIR", os.path.join(BASE_DIR, "data"))
DATA_PATH = os.getenv("DATA_PATH", os.path.join(DATA_DIR, "real_estate.csv"))

MODEL_DIR = os.getenv("MODEL_DIR", os.path.join(BASE_DIR, "models"))
MODEL_PATH = os.getenv("MODEL_PATH", os.path.join(MODEL_DIR, "real_estate_model.joblib"))
PLOT_DIR = os.getenv("PLOT_DIR", os.path.join(BASE_DIR, "plots"))

# -------------------- Reproducibility -------------------- #
RANDOM_STATE = int(os.getenv("RANDOM_STATE", "0"))

# CPU threading for CatBoost (0 = CatBoost default)
CB_THREAD_COUNT = int(os.getenv("CB_THREAD_COUNT", "0"))

# -------------------- Trainer defaults -------------------- #
TREE_COUNT = int(os.getenv("TREE_COUNT", "700"))
LEARNING_RATE = float(os.getenv("LEARNING_RATE", "0.02"))
MAX_LEAVES_PER_TREE = int(os.getenv("MAX_LEAVES_PER_TREE", "50"))
MIN_EXAMPLES_PER_LEAF = int(os.getenv("MIN_EXAMPLES_PER_LEAF", "5"))

# -------------------- Experiment defaults -------------------- #
TEST_FRACTION = float(os.getenv("TEST_FRACTION", "0.3"))
EVAL_TEST_FRACTION = float(os.getenv("EVAL_TEST_FRACTION", "0.2"))
CV_FOLDS = int(os.getenv("CV_FOLDS", "5"))
CONVERGENCE_MAX_TREES = int(os.getenv("CONVERGENCE_MAX_TREES", "100"))
CONVERGENCE_STEP = int(os.getenv("CONVERGENCE_STEP", "10"))
PERMUTATION_REPEATS = int(os.getenv("PERMUTATION_REPEATS", "50"))

EXTRA_DIRS = [
    DATA_DIR,
    MODEL_DIR,
    PLOT_DIR,
]
