import numpy as np
import pytest

from errors import InvalidArgumentError
from evaluation import Space, regression_metrics, rmse, root_mean_squared_error


class _ConstantModel:
    def __init__(self, value):
        self.value = value

    def predict(self, features):
        return np.full(len(features), self.value, dtype=float)


def test_root_mean_squared_error_matches_formula():
    y_true = np.array([1.0, 2.0, 3.0, 4.0])
    y_pred = np.array([1.5, 2.0, 2.0, 5.0])
    expected = np.sqrt(np.mean((y_pred - y_true) ** 2))
    assert root_mean_squared_error(y_true, y_pred) == pytest.approx(expected)


def test_rmse_label_space():
    labels = np.log(np.array([100.0, 200.0, 400.0]))
    model = _ConstantModel(np.log(200.0))
    result = rmse(model, np.zeros((3, 4)), labels)
    assert result.space is Space.LABEL
    expected = np.sqrt(np.mean((np.log(200.0) - labels) ** 2))
    assert float(result) == pytest.approx(expected)


def test_rmse_price_space_inverts_log():
    prices = np.array([100.0, 200.0, 400.0])
    model = _ConstantModel(np.log(200.0))
    result = rmse(model, np.zeros((3, 4)), np.log(prices), Space.PRICE)
    assert result.space is Space.PRICE
    expected = np.sqrt(np.mean((200.0 - prices) ** 2))
    assert result.value == pytest.approx(expected)


def test_rmse_string_always_names_space():
    assert "label" in str(rmse(_ConstantModel(0.0), np.zeros((2, 4)), [0.0, 1.0]))
    assert "price" in str(rmse(_ConstantModel(0.0), np.zeros((2, 4)), [0.0, 1.0], "price"))


def test_regression_metrics():
    metrics = regression_metrics([1.0, 2.0, 3.0], [1.0, 2.0, 4.0], Space.PRICE)
    assert metrics.mae == pytest.approx(1 / 3)
    assert metrics.mse == pytest.approx(1 / 3)
    assert metrics.rmse == pytest.approx(np.sqrt(1 / 3))
    assert metrics.r2 == pytest.approx(0.5)
    assert metrics.n_samples == 3
    assert metrics.space is Space.PRICE


def test_mismatched_lengths_rejected():
    with pytest.raises(InvalidArgumentError):
        root_mean_squared_error([1.0, 2.0], [1.0])


def test_empty_arrays_rejected():
    with pytest.raises(InvalidArgumentError):
        root_mean_squared_error([], [])
