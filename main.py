#!/usr/bin/env python3
"""
main.py — real-estate price model command line
----------------------------------------------
• demo: load → train → predict one sample → print (default)
• train / predict / cv / convergence / importance
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List

import config as _cfg
from data_loading import PropertyRecord, load_data
from errors import DataFormatError, PricingError
from experiments import (
    ExperimentConfig,
    cross_validate,
    track_convergence,
    train_and_evaluate,
    train_model,
)
from model_interpretation import permutation_importance
from model_training import Hyperparameters, load_bundle, save_model
from prediction import actual_vs_predicted, predict_price
from utils import create_directories, setup_logging

# Sample row predicted by the demo command.
SAMPLE = PropertyRecord(location=3, rooms=4, bathrooms=2, square_meters=80, year_built=2010)


def _experiment_config(args) -> ExperimentConfig:
    hyperparams = Hyperparameters(
        tree_count=args.trees,
        learning_rate=args.learning_rate,
    )
    return ExperimentConfig(seed=args.seed, hyperparams=hyperparams, n_jobs=args.n_jobs)


def _record_from_args(args) -> PropertyRecord:
    return PropertyRecord(
        location=args.location,
        rooms=args.rooms,
        bathrooms=args.bathrooms,
        square_meters=args.square_meters,
        year_built=args.year_built,
    )


# ───────────────────────── COMMANDS ────────────────────────── #

def cmd_demo(args) -> int:
    data = load_data(args.data)
    model, pipeline = train_model(data, config=_experiment_config(args))
    save_model(model, args.model, pipeline=pipeline)
    price = predict_price(model, pipeline, SAMPLE)
    print(f"Model trained and saved successfully. {price:.2f}")
    return 0


def cmd_train(args) -> int:
    data = load_data(args.data)
    result = train_and_evaluate(data, test_fraction=args.test_fraction, config=_experiment_config(args))
    save_model(result.model, args.model, pipeline=result.pipeline)
    print(f"Test {result.label_rmse}")
    print(f"Test {result.price_rmse}")
    if args.plots:
        from plotting import plot_actual_vs_predicted

        actual, predicted = actual_vs_predicted(result.model, result.pipeline, result.test_set)
        plot_actual_vs_predicted(actual, predicted, args.plot_dir)
    return 0


def cmd_predict(args) -> int:
    model, pipeline = load_bundle(args.model)
    if pipeline is None:
        raise DataFormatError(
            f"Model bundle {args.model} was saved without its feature pipeline", path=args.model
        )
    price = predict_price(model, pipeline, _record_from_args(args))
    print(f"{price:.2f}")
    return 0


def cmd_cv(args) -> int:
    data = load_data(args.data)
    result = cross_validate(data, k=args.folds, config=_experiment_config(args))
    for i, score in enumerate(result.fold_rmse, start=1):
        print(f"Fold {i}: RMSE[{result.space.value}]={score:.6g}")
    print(f"Cross-Validation RMSE[{result.space.value}]: {result.mean_rmse:.6g}")
    return 0


def cmd_convergence(args) -> int:
    data = load_data(args.data)
    curve = track_convergence(data, max_trees=args.max_trees, step=args.step, config=_experiment_config(args))
    for trees, score in zip(curve.tree_counts, curve.rmse):
        print(f"Trees: {trees}, RMSE[{curve.space.value}] = {score:.6g}")
    print(f"Decrease Ratio: {curve.decrease_ratio():.2%}")
    if args.plots:
        from plotting import plot_convergence

        plot_convergence(curve, args.plot_dir)
    return 0


def cmd_importance(args) -> int:
    data = load_data(args.data)
    cfg = _experiment_config(args)
    model, pipeline = train_model(data, config=cfg)
    ranked = permutation_importance(
        model, pipeline, data, repeats=args.repeats, metric=args.metric, seed=cfg.seed
    )
    for item in ranked:
        print(f"{item.rank}. {item.feature}: {item.mean:.6g} ± {item.std:.3g}")
    if args.plots:
        from plotting import plot_permutation_importance

        plot_permutation_importance(ranked, args.plot_dir)
    return 0


# ───────────────────────── PARSER ────────────────────────── #

def build_parser() -> argparse.ArgumentParser:
    cli_parser = argparse.ArgumentParser(description="Real-estate price model (CatBoost, log-price target)")
    cli_parser.add_argument("--log-level", default="INFO", help="DEBUG | INFO | WARNING | ERROR")
    cli_parser.add_argument("--data", default=_cfg.DATA_PATH, help="Input CSV path")
    cli_parser.add_argument("--model", default=_cfg.MODEL_PATH, help="Model bundle path")
    cli_parser.add_argument("--plot-dir", default=_cfg.PLOT_DIR, help="Directory for PNG plots")
    cli_parser.add_argument("--plots", action="store_true", help="Save diagnostic plots")
    cli_parser.add_argument("--seed", type=int, default=_cfg.RANDOM_STATE)
    cli_parser.add_argument("--trees", type=int, default=_cfg.TREE_COUNT, help="Number of boosting rounds")
    cli_parser.add_argument("--learning-rate", type=float, default=_cfg.LEARNING_RATE)
    cli_parser.add_argument("--n-jobs", type=int, default=1, help="Parallel folds for cross-validation")

    sub = cli_parser.add_subparsers(dest="command")
    sub.add_parser("demo", help="Train, save and predict the sample property (default)")

    p_train = sub.add_parser("train", help="Train on a split and report test RMSE")
    p_train.add_argument("--test-fraction", type=float, default=_cfg.EVAL_TEST_FRACTION)

    p_pred = sub.add_parser("predict", help="Predict one property with a saved model")
    p_pred.add_argument("--location", type=float)
    p_pred.add_argument("--rooms", type=float)
    p_pred.add_argument("--bathrooms", type=float)
    p_pred.add_argument("--square-meters", type=float)
    p_pred.add_argument("--year-built", type=float)

    p_cv = sub.add_parser("cv", help="k-fold cross-validation (label-space RMSE)")
    p_cv.add_argument("--folds", type=int, default=_cfg.CV_FOLDS)

    p_conv = sub.add_parser("convergence", help="RMSE over increasing tree counts")
    p_conv.add_argument("--max-trees", type=int, default=_cfg.CONVERGENCE_MAX_TREES)
    p_conv.add_argument("--step", type=int, default=_cfg.CONVERGENCE_STEP)

    p_imp = sub.add_parser("importance", help="Permutation feature importance")
    p_imp.add_argument("--repeats", type=int, default=_cfg.PERMUTATION_REPEATS)
    p_imp.add_argument("--metric", choices=["rmse", "r2"], default="rmse")
    return cli_parser


COMMANDS = {
    None: cmd_demo,
    "demo": cmd_demo,
    "train": cmd_train,
    "predict": cmd_predict,
    "cv": cmd_cv,
    "convergence": cmd_convergence,
    "importance": cmd_importance,
}


def cli(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    if args.plots:
        create_directories([args.plot_dir])
    try:
        return COMMANDS[args.command](args)
    except PricingError as e:
        logging.error(f"{type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(cli())
