"""
Accuracy metrics for the price model.

Two error spaces are kept apart everywhere:

- LABEL: log-price, the space the trainer optimizes.
- PRICE: currency units, after inverting the log with exp().

Every RMSE leaving this module is tagged with its space.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

from errors import InvalidArgumentError


class Space(str, Enum):
    LABEL = "label"
    PRICE = "price"


@dataclass(frozen=True)
class RmseResult:
    value: float
    space: Space

    def __float__(self) -> float:
        return self.value

    def __str__(self) -> str:
        return f"RMSE[{self.space.value}]={self.value:.6g}"


@dataclass(frozen=True)
class RegressionMetrics:
    """Full regression metrics in one error space."""

    mae: float
    mse: float
    rmse: float
    r2: float
    n_samples: int
    space: Space

    def __str__(self) -> str:
        return (
            f"[{self.space.value}] MAE={self.mae:.6g} RMSE={self.rmse:.6g} "
            f"R²={self.r2:.4f} (n={self.n_samples})"
        )


def _as_pair(y_true, y_pred) -> tuple[np.ndarray, np.ndarray]:
    y_true = np.asarray(y_true, dtype=np.float64).reshape(-1)
    y_pred = np.asarray(y_pred, dtype=np.float64).reshape(-1)
    if len(y_true) != len(y_pred):
        raise InvalidArgumentError(
            f"Array length mismatch: y_true={len(y_true)}, y_pred={len(y_pred)}",
            parameter="y_pred",
        )
    if len(y_true) == 0:
        raise InvalidArgumentError("Cannot compute metrics on empty arrays", parameter="y_true")
    return y_true, y_pred


def root_mean_squared_error(y_true, y_pred) -> float:
    """sqrt(mean((y_pred - y_true)²))."""
    y_true, y_pred = _as_pair(y_true, y_pred)
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def rmse(model, features, true_labels, space: Space = Space.LABEL) -> RmseResult:
    """
    RMSE of ``model`` on ``features`` against log-price ``true_labels``.

    In PRICE space both predictions and labels are exponentiated first, so
    the result is in currency units.
    """
    space = Space(space)
    y_pred = model.predict(features)
    y_true = np.asarray(true_labels, dtype=np.float64)
    if space is Space.PRICE:
        y_pred, y_true = np.exp(y_pred), np.exp(y_true)
    return RmseResult(root_mean_squared_error(y_true, y_pred), space)


def regression_metrics(y_true, y_pred, space: Space) -> RegressionMetrics:
    """MAE / MSE / RMSE / R² for values already expressed in ``space``."""
    y_true, y_pred = _as_pair(y_true, y_pred)
    mse = float(mean_squared_error(y_true, y_pred))
    return RegressionMetrics(
        mae=float(mean_absolute_error(y_true, y_pred)),
        mse=mse,
        rmse=float(np.sqrt(mse)),
        r2=float(r2_score(y_true, y_pred)) if len(y_true) > 1 else float("nan"),
        n_samples=len(y_true),
        space=Space(space),
    )
