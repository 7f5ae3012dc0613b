import numpy as np
import pytest
from sklearn.exceptions import NotFittedError

from data_loading import FEATURE_COLUMNS
from errors import DegenerateFeatureError, InvalidLabelError
from experiments import split_dataset
from feature_pipeline import FeaturePipeline, LogLabelTransform, MeanImputer


def test_build_returns_normalized_features_and_log_labels(small_dataset):
    features, labels = FeaturePipeline().build(small_dataset)
    assert features.shape == (len(small_dataset), len(FEATURE_COLUMNS))
    np.testing.assert_allclose(features.mean(axis=0), 0.0, atol=1e-9)
    np.testing.assert_allclose(features.std(axis=0), 1.0, atol=1e-9)
    np.testing.assert_allclose(labels, np.log(small_dataset["Price"].to_numpy()))


def test_feature_order_is_fixed(small_dataset):
    pipeline = FeaturePipeline().fit(small_dataset)
    features = pipeline.transform(small_dataset)
    rooms = small_dataset["Rooms"].to_numpy()
    expected = (rooms - rooms.mean()) / rooms.std()
    np.testing.assert_allclose(features[:, 0], expected)
    assert pipeline.feature_names == ["Rooms", "Bathrooms", "SquareMeters", "YearBuilt"]


def test_missing_values_are_imputed_with_fitting_mean(small_dataset):
    data = small_dataset.copy()
    data.loc[[0, 5], "SquareMeters"] = np.nan
    pipeline = FeaturePipeline().fit(data)
    expected_mean = data["SquareMeters"].mean()
    assert pipeline.statistics()["impute_mean"]["SquareMeters"] == pytest.approx(expected_mean)
    features = pipeline.transform(data)
    assert np.isfinite(features).all()
    # imputed rows sit at the column mean of the imputed data
    assert features[0, 2] == pytest.approx(features[5, 2])


def test_statistics_come_from_fitting_data_only(dataset):
    split = split_dataset(dataset, 0.3, seed=0)
    pipeline = FeaturePipeline().fit(split.train)
    stats = pipeline.statistics()
    assert stats["norm_mean"]["Rooms"] == pytest.approx(split.train["Rooms"].mean())
    assert stats["norm_std"]["Rooms"] == pytest.approx(split.train["Rooms"].std(ddof=0))

    before = pipeline.statistics()
    pipeline.transform(split.test)
    assert pipeline.statistics() == before


def test_transform_before_fit_raises(small_dataset):
    with pytest.raises(NotFittedError):
        FeaturePipeline().transform(small_dataset)


def test_constant_feature_raises_degenerate_error(small_dataset):
    data = small_dataset.copy()
    data["SquareMeters"] = 75.0
    with pytest.raises(DegenerateFeatureError) as info:
        FeaturePipeline().fit(data)
    assert info.value.feature == "SquareMeters"


def test_all_missing_feature_raises_degenerate_error(small_dataset):
    data = small_dataset.copy()
    data["YearBuilt"] = np.nan
    with pytest.raises(DegenerateFeatureError):
        MeanImputer().fit(data)


@pytest.mark.parametrize("bad_price", [0.0, -10.0, np.nan])
def test_non_positive_or_missing_price_raises_invalid_label(small_dataset, bad_price):
    data = small_dataset.copy()
    data.loc[7, "Price"] = bad_price
    with pytest.raises(InvalidLabelError) as info:
        FeaturePipeline().build(data)
    assert info.value.row == 7


def test_log_label_round_trip():
    prices = np.array([1.0, 1234.5, 98765.4321, 2.5e7])
    transform = LogLabelTransform()
    np.testing.assert_allclose(transform.inverse(transform.forward(prices)), prices, rtol=1e-6)


def test_small_scale_feature_is_not_degenerate(small_dataset):
    data = small_dataset.copy()
    data["SquareMeters"] = data["SquareMeters"] * 1e-6
    features, _ = FeaturePipeline().build(data)
    assert np.isfinite(features).all()
    np.testing.assert_allclose(features[:, 2].std(), 1.0, atol=1e-6)
