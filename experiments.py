"""
experiments.py — train/test split, k-fold CV and convergence tracking

Every operation takes an explicit ExperimentConfig (seed, hyperparameters,
parallelism) so results are reproducible without any process-wide state.
The feature pipeline is always fit on the training side of a split only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np
import pandas as pd
from joblib import Parallel, cpu_count, delayed, effective_n_jobs
from sklearn.model_selection import KFold, train_test_split

import config as _cfg
from data_loading import validate_dataset
from errors import InvalidArgumentError
from evaluation import RmseResult, Space, rmse
from model_training import CatBoostTrainer, Hyperparameters, Trainer, TrainedModel
from feature_pipeline import FeaturePipeline


@dataclass
class ExperimentConfig:
    seed: int = _cfg.RANDOM_STATE
    hyperparams: Hyperparameters = field(default_factory=Hyperparameters)
    n_jobs: int = 1
    thread_count: int = _cfg.CB_THREAD_COUNT

    def make_trainer(self, parallel_jobs: int = 1) -> CatBoostTrainer:
        """CatBoost trainer; the thread budget is shared across parallel fits."""
        threads = self.thread_count
        if parallel_jobs > 1:
            threads = max(1, (threads or cpu_count()) // parallel_jobs)
        return CatBoostTrainer(seed=self.seed, thread_count=threads)


class Split(NamedTuple):
    train: pd.DataFrame
    test: pd.DataFrame


class TrainedSplit(NamedTuple):
    model: TrainedModel
    test_set: pd.DataFrame
    pipeline: FeaturePipeline
    train_set: pd.DataFrame


@dataclass(frozen=True)
class CrossValidationResult:
    fold_rmse: tuple[float, ...]
    mean_rmse: float
    space: Space = Space.LABEL

    @property
    def k(self) -> int:
        return len(self.fold_rmse)


@dataclass(frozen=True)
class ConvergenceCurve:
    tree_counts: tuple[int, ...]
    rmse: tuple[float, ...]
    space: Space = Space.LABEL

    def __len__(self) -> int:
        return len(self.rmse)

    def points(self) -> tuple[np.ndarray, np.ndarray]:
        """(iteration index starting at 1, RMSE) series for plotting."""
        return np.arange(1, len(self.rmse) + 1, dtype=float), np.asarray(self.rmse, dtype=float)

    def decrease_ratio(self) -> float:
        """Share of consecutive steps where RMSE went down."""
        if len(self.rmse) < 2:
            return 0.0
        steps = np.diff(np.asarray(self.rmse, dtype=float))
        return float(np.mean(steps < 0))


@dataclass(frozen=True)
class EvaluationResult:
    model: TrainedModel
    pipeline: FeaturePipeline
    test_set: pd.DataFrame
    label_rmse: RmseResult
    price_rmse: RmseResult


# ────────────────────────────── Helpers ────────────────────────────── #

def _check_fraction(test_fraction: float) -> None:
    if not 0.0 < float(test_fraction) < 1.0:
        raise InvalidArgumentError(
            f"test_fraction must be in (0, 1), got {test_fraction}",
            parameter="test_fraction",
            value=test_fraction,
        )


def _fit(dataset: pd.DataFrame, hyperparams: Hyperparameters, trainer: Trainer):
    pipeline = FeaturePipeline()
    features, labels = pipeline.build(dataset)
    model = trainer.fit(features, labels, hyperparams)
    return pipeline, model


# ─────────────────────────── Train / test split ─────────────────────────── #

def split_dataset(dataset: pd.DataFrame, test_fraction: float, seed: int = _cfg.RANDOM_STATE) -> Split:
    """Disjoint, seeded partition; rows keep their original index labels."""
    _check_fraction(test_fraction)
    try:
        train, test = train_test_split(dataset, test_size=test_fraction, random_state=seed, shuffle=True)
    except ValueError as e:
        raise InvalidArgumentError(
            f"Cannot split {len(dataset)} rows with test_fraction={test_fraction}: {e}",
            parameter="test_fraction",
            value=test_fraction,
        ) from e
    return Split(train=train, test=test)


def train_with_split(
    dataset: pd.DataFrame,
    test_fraction: float = _cfg.TEST_FRACTION,
    config: ExperimentConfig | None = None,
    trainer: Trainer | None = None,
) -> TrainedSplit:
    cfg = config or ExperimentConfig()
    trainer = trainer or cfg.make_trainer()
    validate_dataset(dataset)
    split = split_dataset(dataset, test_fraction, cfg.seed)
    logging.info(
        f"Training on {len(split.train)} rows, holding out {len(split.test)} rows "
        f"(test_fraction={test_fraction}, seed={cfg.seed})"
    )
    pipeline, model = _fit(split.train, cfg.hyperparams, trainer)
    return TrainedSplit(model=model, test_set=split.test, pipeline=pipeline, train_set=split.train)


def train_model(dataset: pd.DataFrame, config: ExperimentConfig | None = None):
    """Train on the default split and return ``(model, pipeline)``."""
    result = train_with_split(dataset, config=config)
    return result.model, result.pipeline


def train_and_evaluate(
    dataset: pd.DataFrame,
    test_fraction: float = _cfg.EVAL_TEST_FRACTION,
    config: ExperimentConfig | None = None,
    trainer: Trainer | None = None,
) -> EvaluationResult:
    result = train_with_split(dataset, test_fraction, config=config, trainer=trainer)
    features = result.pipeline.transform(result.test_set)
    labels = result.pipeline.labels(result.test_set)
    label_rmse = rmse(result.model, features, labels, Space.LABEL)
    price_rmse = rmse(result.model, features, labels, Space.PRICE)
    logging.info(f"Test {label_rmse}, {price_rmse}")
    return EvaluationResult(
        model=result.model,
        pipeline=result.pipeline,
        test_set=result.test_set,
        label_rmse=label_rmse,
        price_rmse=price_rmse,
    )


# ─────────────────────────── Cross-validation ─────────────────────────── #

def cross_validate(
    dataset: pd.DataFrame,
    k: int = _cfg.CV_FOLDS,
    config: ExperimentConfig | None = None,
    trainer: Trainer | None = None,
) -> CrossValidationResult:
    """Mean label-space RMSE over k shuffled folds, one fresh fit per fold."""
    cfg = config or ExperimentConfig()
    trainer = trainer or cfg.make_trainer(effective_n_jobs(cfg.n_jobs))
    validate_dataset(dataset)
    if k < 2:
        raise InvalidArgumentError(f"k must be >= 2 for cross-validation, got {k}", parameter="k", value=k)
    if k > len(dataset):
        raise InvalidArgumentError(
            f"k={k} folds exceed the {len(dataset)} available rows", parameter="k", value=k
        )

    folds = list(KFold(n_splits=k, shuffle=True, random_state=cfg.seed).split(dataset))

    def _run_fold(fold: int, train_idx: np.ndarray, test_idx: np.ndarray) -> tuple[int, float]:
        train, held_out = dataset.iloc[train_idx], dataset.iloc[test_idx]
        pipeline, model = _fit(train, cfg.hyperparams, trainer)
        score = rmse(model, pipeline.transform(held_out), pipeline.labels(held_out), Space.LABEL)
        logging.info(f"Fold {fold + 1}/{k}: {score}")
        return fold, score.value

    results = Parallel(n_jobs=cfg.n_jobs, prefer="threads")(
        delayed(_run_fold)(i, train_idx, test_idx) for i, (train_idx, test_idx) in enumerate(folds)
    )
    fold_rmse = tuple(score for _, score in sorted(results, key=lambda r: r[0]))
    mean_rmse = float(np.mean(fold_rmse))
    logging.info(f"Cross-validation ({k} folds): mean RMSE[{Space.LABEL.value}]={mean_rmse:.6g}")
    return CrossValidationResult(fold_rmse=fold_rmse, mean_rmse=mean_rmse)


# ─────────────────────────── Convergence ─────────────────────────── #

def track_convergence(
    dataset: pd.DataFrame,
    max_trees: int = _cfg.CONVERGENCE_MAX_TREES,
    step: int = _cfg.CONVERGENCE_STEP,
    test_fraction: float = _cfg.EVAL_TEST_FRACTION,
    config: ExperimentConfig | None = None,
    trainer: Trainer | None = None,
) -> ConvergenceCurve:
    """Test-set label RMSE for tree counts step, 2·step, … up to max_trees.

    One split and one fitted feature pipeline are shared by every tree count,
    so only model capacity changes along the curve.
    """
    cfg = config or ExperimentConfig()
    trainer = trainer or cfg.make_trainer()
    if step < 1:
        raise InvalidArgumentError(f"step must be >= 1, got {step}", parameter="step", value=step)
    if max_trees < 1:
        raise InvalidArgumentError(
            f"max_trees must be >= 1, got {max_trees}", parameter="max_trees", value=max_trees
        )
    validate_dataset(dataset)
    split = split_dataset(dataset, test_fraction, cfg.seed)

    pipeline = FeaturePipeline()
    train_X, train_y = pipeline.build(split.train)
    test_X, test_y = pipeline.transform(split.test), pipeline.labels(split.test)

    tree_counts = tuple(range(step, max_trees + 1, step))
    scores = []
    for trees in tree_counts:
        model = trainer.fit(train_X, train_y, cfg.hyperparams.with_tree_count(trees))
        score = rmse(model, test_X, test_y, Space.LABEL)
        logging.info(f"Trees: {trees}, {score}")
        scores.append(score.value)
    return ConvergenceCurve(tree_counts=tree_counts, rmse=tuple(scores))
