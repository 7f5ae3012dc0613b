# feature_pipeline.py
# Feature pipeline for the price model. Each step follows the same fit/transform
# contract: statistics are computed once in fit() on the training partition
# and reused verbatim by every later transform() call.
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.preprocessing import StandardScaler
from sklearn.utils.validation import check_is_fitted

from data_loading import FEATURE_COLUMNS, TARGET_COLUMN
from errors import DegenerateFeatureError, InvalidLabelError

__all__ = [
    "Transform",
    "MeanImputer",
    "FeatureConcatenator",
    "MeanVarianceNormalizer",
    "LogLabelTransform",
    "FeaturePipeline",
]


class Transform(Protocol):
    """Anything that learns statistics in fit() and applies them in transform()."""

    def fit(self, X, y=None) -> "Transform": ...

    def transform(self, X) -> Any: ...


class MeanImputer(BaseEstimator, TransformerMixin):
    """Replace missing values with the per-column mean of the fitting data."""

    def __init__(self, columns: Sequence[str] = FEATURE_COLUMNS):
        self.columns = columns

    def fit(self, X, y=None):
        X_df = pd.DataFrame(X)
        means = {}
        for col in self.columns:
            mean = X_df[col].astype(float).mean()
            if pd.isna(mean):
                logging.error(f"Column '{col}' has no observed values to impute from")
                raise DegenerateFeatureError(
                    f"Feature '{col}' has no observed values in the fitting data", feature=col
                )
            means[col] = float(mean)
        self.means_ = means
        return self

    def transform(self, X):
        check_is_fitted(self, "means_")
        X_ = pd.DataFrame(X).copy()
        for col in self.columns:
            X_[col] = X_[col].astype(float).fillna(self.means_[col])
        return X_


class FeatureConcatenator(BaseEstimator, TransformerMixin):
    """Stack the feature columns, in fixed order, into one float matrix."""

    def __init__(self, columns: Sequence[str] = FEATURE_COLUMNS):
        self.columns = columns

    def fit(self, X, y=None):
        self.feature_names_ = list(self.columns)
        return self

    def transform(self, X):
        check_is_fitted(self, "feature_names_")
        return pd.DataFrame(X)[self.feature_names_].to_numpy(dtype=np.float64)

    def get_feature_names_out(self, input_features=None):
        return np.asarray(self.feature_names_, dtype=object)


class MeanVarianceNormalizer(BaseEstimator, TransformerMixin):
    """Subtract the per-dimension mean and divide by its standard deviation."""

    def __init__(self, feature_names: Sequence[str] = FEATURE_COLUMNS):
        self.feature_names = feature_names

    def fit(self, X, y=None):
        X_ = np.asarray(X, dtype=np.float64)
        scaler = StandardScaler().fit(X_)
        # constant column: every observed value identical
        degenerate = np.ptp(X_, axis=0) == 0
        if degenerate.any():
            name = list(self.feature_names)[int(np.argmax(degenerate))]
            logging.error(f"Feature '{name}' has zero variance; cannot normalize")
            raise DegenerateFeatureError(f"Feature '{name}' has zero variance", feature=name)
        self.scaler_ = scaler
        return self

    def transform(self, X):
        check_is_fitted(self, "scaler_")
        return self.scaler_.transform(np.asarray(X, dtype=np.float64))

    @property
    def mean_(self) -> np.ndarray:
        return self.scaler_.mean_

    @property
    def scale_(self) -> np.ndarray:
        return self.scaler_.scale_


class LogLabelTransform:
    """Label = natural log of price; exp() maps predictions back to price."""

    def forward(self, prices) -> np.ndarray:
        prices = pd.Series(prices, dtype=float)
        invalid = prices.isna() | (prices <= 0)
        if invalid.any():
            row = invalid.idxmax()
            value = prices[row]
            logging.error(f"Invalid price {value} at row {row}")
            raise InvalidLabelError(
                f"Price must be positive to take its log; got {value} at row {row}",
                row=int(row) if isinstance(row, (int, np.integer)) else None,
                value=float(value),
            )
        return np.log(prices.to_numpy(dtype=np.float64))

    @staticmethod
    def inverse(labels) -> np.ndarray:
        return np.exp(np.asarray(labels, dtype=np.float64))


def _default_transforms() -> list:
    return [MeanImputer(), FeatureConcatenator(), MeanVarianceNormalizer()]


@dataclass
class FeaturePipeline:
    """Ordered transforms for the features plus the label transform.

    fit() learns imputation means and normalization statistics from the
    fitting dataset only; transform() replays them on any other dataset.
    """

    transforms: list = field(default_factory=_default_transforms)
    label_transform: LogLabelTransform = field(default_factory=LogLabelTransform)
    fitted: bool = field(default=False, init=False)

    @property
    def feature_names(self) -> list[str]:
        return list(FEATURE_COLUMNS)

    def fit(self, dataset: pd.DataFrame) -> "FeaturePipeline":
        data: Any = dataset
        for step in self.transforms:
            data = step.fit(data).transform(data)
        self.fitted = True
        logging.info(f"Feature pipeline fitted on {len(dataset)} rows")
        return self

    def transform(self, dataset: pd.DataFrame) -> np.ndarray:
        data: Any = dataset
        for step in self.transforms:
            data = step.transform(data)
        return np.asarray(data, dtype=np.float64)

    def labels(self, dataset: pd.DataFrame) -> np.ndarray:
        return self.label_transform.forward(dataset[TARGET_COLUMN])

    def fit_transform(self, dataset: pd.DataFrame) -> tuple[np.ndarray, np.ndarray]:
        features = self.fit(dataset).transform(dataset)
        return features, self.labels(dataset)

    def build(self, dataset: pd.DataFrame) -> tuple[np.ndarray, np.ndarray]:
        return self.fit_transform(dataset)

    def inverse_labels(self, values) -> np.ndarray:
        return self.label_transform.inverse(values)

    def statistics(self) -> dict[str, dict[str, float]]:
        """Fitted imputation means and normalization stats, keyed by feature."""
        stats: dict[str, dict[str, float]] = {}
        for step in self.transforms:
            if isinstance(step, MeanImputer):
                check_is_fitted(step, "means_")
                stats["impute_mean"] = dict(step.means_)
            elif isinstance(step, MeanVarianceNormalizer):
                check_is_fitted(step, "scaler_")
                names = list(step.feature_names)
                stats["norm_mean"] = dict(zip(names, map(float, step.mean_)))
                stats["norm_std"] = dict(zip(names, map(float, step.scale_)))
        return stats
