# model_interpretation.py

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, RegressorMixin
from sklearn.inspection import permutation_importance as _sk_permutation_importance

import config
from errors import InvalidArgumentError

# metric -> sklearn scorer name
_SCORERS = {
    "rmse": "neg_root_mean_squared_error",
    "r2": "r2",
}


@dataclass(frozen=True)
class FeatureImportance:
    rank: int
    feature: str
    mean: float
    std: float


class _FittedModelRegressor(BaseEstimator, RegressorMixin):
    """Expose an already-trained model to sklearn's scorer machinery."""

    def __init__(self, model=None):
        self.model = model

    def fit(self, X, y=None):
        return self

    def predict(self, X):
        return self.model.predict(X)


def permutation_importance(
    model,
    pipeline,
    dataset: pd.DataFrame,
    repeats: int = config.PERMUTATION_REPEATS,
    metric: str = "rmse",
    seed: int = config.RANDOM_STATE,
    n_jobs: int | None = None,
) -> list[FeatureImportance]:
    """Rank features by how much shuffling them degrades the model.

    Degradation is measured in label (log-price) space: permuted RMSE minus
    baseline RMSE for ``metric="rmse"``, baseline R² minus permuted R² for
    ``metric="r2"``. Larger means more important.
    """
    if repeats < 1:
        raise InvalidArgumentError(f"repeats must be >= 1, got {repeats}", parameter="repeats", value=repeats)
    if metric not in _SCORERS:
        raise InvalidArgumentError(
            f"Unknown importance metric '{metric}' (expected one of {sorted(_SCORERS)})",
            parameter="metric",
            value=metric,
        )

    features = pipeline.transform(dataset)
    labels = pipeline.labels(dataset)
    result = _sk_permutation_importance(
        _FittedModelRegressor(model),
        features,
        labels,
        scoring=_SCORERS[metric],
        n_repeats=repeats,
        random_state=seed,
        n_jobs=n_jobs,
    )

    # Both scorers are "higher is better", so baseline - permuted is the degradation.
    order = np.argsort(-result.importances_mean, kind="stable")
    names = list(pipeline.feature_names)
    ranked = [
        FeatureImportance(
            rank=rank,
            feature=names[idx],
            mean=float(result.importances_mean[idx]),
            std=float(result.importances_std[idx]),
        )
        for rank, idx in enumerate(order, start=1)
    ]
    for item in ranked:
        logging.info(f"Feature {item.feature}: importance {item.mean:.6g} ± {item.std:.3g} ({metric}, label space)")
    return ranked
