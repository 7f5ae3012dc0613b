#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
model_training.py — CatBoost price regressor adapter + model persistence

Exports:
  - Hyperparameters
  - Trainer (protocol) / CatBoostTrainer
  - TrainedModel
  - save_model / load_model / load_bundle
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Protocol, Sequence

import joblib
import numpy as np
import pandas as pd
from catboost import CatBoostError, CatBoostRegressor

import config
from data_loading import FEATURE_COLUMNS
from errors import DataFormatError, InvalidArgumentError, NotFoundError, TrainingError

BUNDLE_FORMAT_VERSION = "1.0"


# ────────────────────────── Hyperparameters ────────────────────────── #

@dataclass(frozen=True)
class Hyperparameters:
    """Boosting knobs passed through unchanged to the trainer."""

    tree_count: int = config.TREE_COUNT
    learning_rate: float = config.LEARNING_RATE
    max_leaves_per_tree: int = config.MAX_LEAVES_PER_TREE
    min_examples_per_leaf: int = config.MIN_EXAMPLES_PER_LEAF

    def __post_init__(self):
        for name, value in asdict(self).items():
            if not value > 0:
                raise InvalidArgumentError(
                    f"Hyperparameter '{name}' must be positive, got {value}",
                    parameter=name,
                    value=value,
                )

    def with_tree_count(self, tree_count: int) -> "Hyperparameters":
        return replace(self, tree_count=int(tree_count))


# ─────────────────────────── Trained model ─────────────────────────── #

@dataclass(frozen=True)
class TrainedModel:
    """Fitted regressor in label (log-price) space. Never mutated after fit."""

    estimator: Any
    hyperparams: Hyperparameters
    feature_names: tuple[str, ...] = tuple(FEATURE_COLUMNS)
    n_train: int = 0

    def predict(self, features) -> np.ndarray:
        return np.asarray(self.estimator.predict(np.asarray(features, dtype=np.float64)), dtype=np.float64)


class Trainer(Protocol):
    def fit(self, features, labels, hyperparams: Hyperparameters) -> TrainedModel: ...

    def predict(self, model: TrainedModel, features) -> np.ndarray: ...


# ─────────────────────────── CatBoost adapter ─────────────────────────── #

def _check_training_input(features, labels) -> tuple[np.ndarray, np.ndarray]:
    try:
        X = np.asarray(features, dtype=np.float64)
        y = np.asarray(labels, dtype=np.float64).reshape(-1)
    except (TypeError, ValueError) as e:
        raise TrainingError(f"Training input is not numeric: {e}") from e
    if X.ndim != 2:
        raise TrainingError(f"Features must be a 2-D matrix, got shape {X.shape}")
    if X.shape[0] == 0:
        raise TrainingError("Cannot train on an empty dataset")
    if X.shape[0] != y.shape[0]:
        raise TrainingError(f"Feature rows ({X.shape[0]}) and labels ({y.shape[0]}) differ in length")
    if not np.isfinite(X).all():
        bad_row = int(np.argwhere(~np.isfinite(X))[0][0])
        raise TrainingError(f"Features contain NaN/Inf (first at row {bad_row})")
    if not np.isfinite(y).all():
        bad_row = int(np.argwhere(~np.isfinite(y))[0][0])
        raise TrainingError(f"Labels contain NaN/Inf (first at row {bad_row})")
    return X, y


@dataclass
class CatBoostTrainer:
    """Gradient-boosted trees with leaf-wise growth (max leaves + min leaf size)."""

    seed: int = config.RANDOM_STATE
    thread_count: int = config.CB_THREAD_COUNT
    feature_names: Sequence[str] = field(default_factory=lambda: list(FEATURE_COLUMNS))

    def _make_estimator(self, hyperparams: Hyperparameters) -> CatBoostRegressor:
        params: dict[str, Any] = dict(
            iterations=hyperparams.tree_count,
            learning_rate=hyperparams.learning_rate,
            grow_policy="Lossguide",
            max_leaves=hyperparams.max_leaves_per_tree,
            min_data_in_leaf=hyperparams.min_examples_per_leaf,
            loss_function="RMSE",
            random_seed=self.seed,
            verbose=False,
            allow_writing_files=False,
        )
        if self.thread_count:
            params["thread_count"] = self.thread_count
        return CatBoostRegressor(**params)

    def fit(self, features, labels, hyperparams: Hyperparameters | None = None) -> TrainedModel:
        hyperparams = hyperparams or Hyperparameters()
        X, y = _check_training_input(features, labels)
        estimator = self._make_estimator(hyperparams)
        try:
            estimator.fit(X, y)
        except CatBoostError as e:
            raise TrainingError(f"CatBoost rejected the training input: {e}") from e
        logging.debug(
            "Fitted CatBoost: rows=%d trees=%d lr=%.4f",
            X.shape[0], hyperparams.tree_count, hyperparams.learning_rate,
        )
        return TrainedModel(
            estimator=estimator,
            hyperparams=hyperparams,
            feature_names=tuple(self.feature_names),
            n_train=int(X.shape[0]),
        )

    def predict(self, model: TrainedModel, features) -> np.ndarray:
        return model.predict(features)


# ─────────────────────────── Persistence ─────────────────────────── #

def save_model(model: TrainedModel, path: str | os.PathLike, pipeline=None) -> Path:
    """Write the model (and optionally its fitted pipeline) as one joblib bundle."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    bundle = {
        "format_version": BUNDLE_FORMAT_VERSION,
        "trained_at": pd.Timestamp.now().isoformat(),
        "hyperparams": asdict(model.hyperparams),
        "feature_names": list(model.feature_names),
        "model": model,
        "pipeline": pipeline,
    }
    joblib.dump(bundle, path)
    logging.info(f"Model bundle saved => {path}")
    return path


def load_bundle(path: str | os.PathLike):
    """Return ``(model, pipeline)``; pipeline is None if it was not saved."""
    path = Path(path)
    if not path.is_file():
        raise NotFoundError(f"Model bundle not found: {path}", path=str(path))
    try:
        bundle = joblib.load(path)
    except Exception as e:  # noqa: BLE001  joblib surfaces pickle/EOF/zlib errors
        raise DataFormatError(f"Cannot read model bundle {path}: {e}", path=str(path)) from e
    if not isinstance(bundle, dict) or not isinstance(bundle.get("model"), TrainedModel):
        raise DataFormatError(f"{path} is not a price model bundle", path=str(path))
    version = bundle.get("format_version")
    if version != BUNDLE_FORMAT_VERSION:
        raise DataFormatError(f"Unsupported model bundle version {version!r} in {path}", path=str(path))
    logging.info(f"Model bundle loaded from {path} (trained at {bundle.get('trained_at', 'unknown')})")
    return bundle["model"], bundle.get("pipeline")


def load_model(path: str | os.PathLike) -> TrainedModel:
    return load_bundle(path)[0]
