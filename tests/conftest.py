"""Pytest configuration and shared fixtures."""

import numpy as np
import pandas as pd
import pytest

from data_loading import SCHEMA_COLUMNS
from experiments import ExperimentConfig
from model_training import Hyperparameters


def synthetic_dataset(n: int = 500, seed: int = 0, noise: float = 100.0) -> pd.DataFrame:
    """Near-linear prices: 5000 + 1000·rooms + 500·bath + 20·sqm − 10·age + noise."""
    rng = np.random.default_rng(seed)
    rooms = rng.integers(1, 7, n).astype(float)
    bathrooms = rng.integers(1, 4, n).astype(float)
    square_meters = rng.uniform(40, 200, n)
    year_built = rng.integers(1950, 2021, n).astype(float)
    price = (
        5000
        + 1000 * rooms
        + 500 * bathrooms
        + 20 * square_meters
        - 10 * (2024 - year_built)
        + rng.normal(0, noise, n)
    )
    return pd.DataFrame(
        {
            "Location": rng.integers(1, 11, n).astype(float),
            "Rooms": rooms,
            "Bathrooms": bathrooms,
            "SquareMeters": square_meters,
            "YearBuilt": year_built,
            "Price": price,
        },
        columns=list(SCHEMA_COLUMNS),
    )


@pytest.fixture
def make_dataset():
    return synthetic_dataset


@pytest.fixture
def dataset():
    return synthetic_dataset()


@pytest.fixture
def small_dataset():
    return synthetic_dataset(n=120, seed=1)


@pytest.fixture
def fast_config():
    """Few, fast trees for tests that only check harness mechanics."""
    return ExperimentConfig(seed=0, hyperparams=Hyperparameters(tree_count=60, learning_rate=0.1))


@pytest.fixture
def write_csv(tmp_path):
    def _write(df: pd.DataFrame, name: str = "real_estate.csv"):
        path = tmp_path / name
        df.to_csv(path, index=False)
        return path

    return _write
