# prediction.py

from __future__ import annotations

import logging
import threading
from typing import Any, Mapping

import numpy as np
import pandas as pd

from data_loading import SCHEMA_COLUMNS, TARGET_COLUMN, PropertyRecord, dataset_from_records
from errors import PredictionSessionError


class PredictionSession:
    """Single-row price predictor bound to one trained model and pipeline.

    The session owns a reusable one-row buffer, so it serves one caller at a
    time: concurrent use raises PredictionSessionError instead of blocking.
    Open one session per concurrent caller; they share the model read-only.
    """

    def __init__(self, model, pipeline):
        self.model = model
        self.pipeline = pipeline
        self._buffer = pd.DataFrame(np.nan, index=[0], columns=list(SCHEMA_COLUMNS), dtype=np.float64)
        self._lock = threading.Lock()
        self._closed = False

    def __enter__(self) -> "PredictionSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the buffer; waits for an in-flight predict() to finish."""
        with self._lock:
            self._closed = True
            self._buffer = None

    def _load_row(self, row: PropertyRecord | Mapping[str, Any]) -> None:
        values = dataset_from_records([row]).iloc[0]
        self._buffer.loc[0, :] = values.to_numpy()
        self._buffer.loc[0, TARGET_COLUMN] = np.nan

    def predict(self, row: PropertyRecord | Mapping[str, Any]) -> float:
        """Price estimate for one row; any price on the row is ignored."""
        if not self._lock.acquire(blocking=False):
            raise PredictionSessionError("Prediction session is already in use by another caller")
        try:
            if self._closed:
                raise PredictionSessionError("Prediction session is closed")
            self._load_row(row)
            features = self.pipeline.transform(self._buffer)
            raw = float(self.model.predict(features)[0])
        finally:
            self._lock.release()
        return float(np.exp(raw))


def predict_price(model, pipeline, row: PropertyRecord | Mapping[str, Any]) -> float:
    with PredictionSession(model, pipeline) as session:
        price = session.predict(row)
    logging.info(f"Predicted price: {price:,.2f}")
    return price


def actual_vs_predicted(model, pipeline, dataset: pd.DataFrame) -> tuple[np.ndarray, np.ndarray]:
    """(actual price, predicted price) arrays for the scatter comparison."""
    actual = dataset[TARGET_COLUMN].to_numpy(dtype=np.float64)
    predicted = pipeline.inverse_labels(model.predict(pipeline.transform(dataset)))
    return actual, predicted
