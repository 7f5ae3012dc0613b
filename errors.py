"""Custom exceptions for the price model pipeline."""


class PricingError(Exception):
    """Base exception for all pipeline errors."""

    pass


# --- Data loading errors ---


class NotFoundError(PricingError, FileNotFoundError):
    """
    Raised when the input file does not exist.

    This can happen when:
    - The CSV path is misspelled or relative to the wrong directory
    - A saved model bundle was moved or deleted
    """

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class DataFormatError(PricingError):
    """
    Raised when input data does not match the expected schema.

    This can happen when:
    - The CSV has a different number of columns than the schema
    - A cell holds a non-numeric value
    - The file is empty or cannot be parsed
    - A model bundle is corrupt or was written by an unknown version
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        row: int | None = None,
        column: str | None = None,
    ):
        super().__init__(message)
        self.path = path
        self.row = row
        self.column = column


# --- Feature pipeline errors ---


class InvalidLabelError(PricingError):
    """
    Raised when a price cannot be log-transformed.

    This can happen when:
    - Price is zero or negative
    - Price is missing in training data
    """

    def __init__(self, message: str, row: int | None = None, value: float | None = None):
        super().__init__(message)
        self.row = row
        self.value = value


class DegenerateFeatureError(PricingError):
    """
    Raised when a feature column cannot be normalized.

    This can happen when:
    - A column has the same value in every fitting row (zero variance)
    - A column has no observed values at all
    """

    def __init__(self, message: str, feature: str | None = None):
        super().__init__(message)
        self.feature = feature


# --- Training errors ---


class TrainingError(PricingError):
    """
    Raised when the boosted-tree trainer rejects its input.

    This can happen when:
    - The training set is empty
    - Features or labels contain NaN or Inf
    - Feature and label lengths disagree
    - CatBoost raises during fit
    """

    pass


class InvalidArgumentError(PricingError, ValueError):
    """
    Raised when an experiment parameter is out of range.

    This can happen when:
    - k < 2 for cross-validation
    - test fraction outside (0, 1)
    - non-positive hyperparameters or tree-count step
    """

    def __init__(self, message: str, parameter: str | None = None, value: object = None):
        super().__init__(message)
        self.parameter = parameter
        self.value = value


# --- Prediction errors ---


class PredictionSessionError(PricingError):
    """
    Raised when a prediction session is misused.

    This can happen when:
    - Two callers use the same session at the same time
    - The session is used after close()
    """

    pass
