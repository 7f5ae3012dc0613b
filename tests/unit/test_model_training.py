import numpy as np
import pytest

from errors import DataFormatError, InvalidArgumentError, NotFoundError, TrainingError
from feature_pipeline import FeaturePipeline
from model_training import (
    CatBoostTrainer,
    Hyperparameters,
    TrainedModel,
    load_bundle,
    load_model,
    save_model,
)


def test_default_hyperparameters():
    hp = Hyperparameters()
    assert hp.tree_count == 700
    assert hp.learning_rate == pytest.approx(0.02)
    assert hp.max_leaves_per_tree == 50
    assert hp.min_examples_per_leaf == 5


def test_with_tree_count_returns_copy():
    hp = Hyperparameters()
    other = hp.with_tree_count(30)
    assert other.tree_count == 30
    assert hp.tree_count == 700
    assert other.learning_rate == hp.learning_rate


@pytest.mark.parametrize("field", ["tree_count", "learning_rate", "max_leaves_per_tree", "min_examples_per_leaf"])
def test_non_positive_hyperparameter_rejected(field):
    with pytest.raises(InvalidArgumentError) as info:
        Hyperparameters(**{field: 0})
    assert info.value.parameter == field


def test_hyperparameters_pass_through_to_catboost():
    hp = Hyperparameters(tree_count=42, learning_rate=0.3, max_leaves_per_tree=12, min_examples_per_leaf=7)
    params = CatBoostTrainer(seed=3)._make_estimator(hp).get_params()
    assert params["iterations"] == 42
    assert params["learning_rate"] == pytest.approx(0.3)
    assert params["max_leaves"] == 12
    assert params["min_data_in_leaf"] == 7
    assert params["grow_policy"] == "Lossguide"
    assert params["random_seed"] == 3


def test_fit_returns_model_that_predicts(small_dataset):
    features, labels = FeaturePipeline().build(small_dataset)
    model = CatBoostTrainer().fit(features, labels, Hyperparameters(tree_count=50, learning_rate=0.1))
    assert isinstance(model, TrainedModel)
    assert model.n_train == len(small_dataset)
    preds = model.predict(features)
    assert preds.shape == (len(small_dataset),)
    assert np.isfinite(preds).all()


def test_refit_produces_independent_model(small_dataset):
    features, labels = FeaturePipeline().build(small_dataset)
    trainer = CatBoostTrainer()
    first = trainer.fit(features, labels, Hyperparameters(tree_count=20, learning_rate=0.1))
    first_preds = first.predict(features)
    second = trainer.fit(features, labels + 1.0, Hyperparameters(tree_count=20, learning_rate=0.1))
    assert second.estimator is not first.estimator
    np.testing.assert_allclose(first.predict(features), first_preds)


def test_empty_dataset_raises_training_error():
    with pytest.raises(TrainingError):
        CatBoostTrainer().fit(np.empty((0, 4)), np.empty(0), Hyperparameters(tree_count=5))


def test_nan_features_raise_training_error():
    features = np.ones((10, 4))
    features[3, 1] = np.nan
    with pytest.raises(TrainingError, match="row 3"):
        CatBoostTrainer().fit(features, np.arange(10.0), Hyperparameters(tree_count=5))


def test_length_mismatch_raises_training_error():
    with pytest.raises(TrainingError):
        CatBoostTrainer().fit(np.ones((10, 4)), np.ones(9), Hyperparameters(tree_count=5))


def test_save_and_load_round_trip(tmp_path, small_dataset):
    pipeline = FeaturePipeline()
    features, labels = pipeline.build(small_dataset)
    model = CatBoostTrainer().fit(features, labels, Hyperparameters(tree_count=30, learning_rate=0.1))

    path = save_model(model, tmp_path / "models" / "real_estate_model.joblib", pipeline=pipeline)
    loaded_model, loaded_pipeline = load_bundle(path)

    np.testing.assert_allclose(loaded_model.predict(features), model.predict(features))
    np.testing.assert_allclose(loaded_pipeline.transform(small_dataset), features)
    assert loaded_model.hyperparams == model.hyperparams
    assert isinstance(load_model(path), TrainedModel)


def test_load_missing_bundle_raises_not_found(tmp_path):
    with pytest.raises(NotFoundError):
        load_model(tmp_path / "missing.joblib")


def test_load_garbage_bundle_raises_data_format_error(tmp_path):
    path = tmp_path / "garbage.joblib"
    path.write_bytes(b"not a joblib file")
    with pytest.raises(DataFormatError):
        load_model(path)
