# data_loading.py

from __future__ import annotations

import csv
import logging
import os
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import numpy as np
import pandas as pd

from errors import DataFormatError, NotFoundError

# Fixed column order of the input file; columns are bound by position.
SCHEMA_COLUMNS = ("Location", "Rooms", "Bathrooms", "SquareMeters", "YearBuilt", "Price")
FEATURE_COLUMNS = ("Rooms", "Bathrooms", "SquareMeters", "YearBuilt")
TARGET_COLUMN = "Price"

_FIELD_TO_COLUMN = {
    "location": "Location",
    "rooms": "Rooms",
    "bathrooms": "Bathrooms",
    "square_meters": "SquareMeters",
    "year_built": "YearBuilt",
    "price": "Price",
}


@dataclass(frozen=True)
class PropertyRecord:
    """One property row. ``price`` is absent for inference inputs."""

    location: float | None = None
    rooms: float | None = None
    bathrooms: float | None = None
    square_meters: float | None = None
    year_built: float | None = None
    price: float | None = None

    def to_row(self) -> dict[str, float]:
        return {
            column: (np.nan if getattr(self, field) is None else float(getattr(self, field)))
            for field, column in _FIELD_TO_COLUMN.items()
        }


def _row_from_mapping(values: Mapping[str, Any]) -> dict[str, float]:
    row = {column: np.nan for column in SCHEMA_COLUMNS}
    for key, value in values.items():
        column = _FIELD_TO_COLUMN.get(key, key)
        if column not in row:
            continue
        row[column] = np.nan if value is None else float(value)
    return row


def dataset_from_records(records: Iterable[PropertyRecord | Mapping[str, Any]]) -> pd.DataFrame:
    """Build a dataset from records or mappings (snake_case or schema keys)."""
    rows = []
    for record in records:
        if isinstance(record, PropertyRecord):
            rows.append(record.to_row())
        else:
            rows.append(_row_from_mapping(record))
    return pd.DataFrame(rows, columns=list(SCHEMA_COLUMNS), dtype=np.float64)


def validate_dataset(data: pd.DataFrame) -> None:
    """Ensure every schema column is present."""
    missing = [c for c in SCHEMA_COLUMNS if c not in data.columns]
    if missing:
        raise DataFormatError(f"Dataset is missing schema columns: {missing}", column=missing[0])


def _check_field_counts(file_path: str) -> None:
    """Every non-blank line must hold exactly one field per schema column."""
    expected = len(SCHEMA_COLUMNS)
    with open(file_path, newline="", encoding="utf-8-sig") as fh:
        reader = csv.reader(fh, skipinitialspace=True)
        row = -1  # header
        for fields in reader:
            if not fields:
                continue
            if len(fields) != expected:
                where = "header" if row < 0 else f"row {row}"
                logging.error(f"Line {reader.line_num} of {file_path} has {len(fields)} fields, expected {expected}")
                raise DataFormatError(
                    f"Expected {expected} columns {list(SCHEMA_COLUMNS)} but found {len(fields)} "
                    f"in {where} (line {reader.line_num}) of {file_path}",
                    path=file_path,
                    row=None if row < 0 else row,
                )
            row += 1


def load_data(file_path: str | os.PathLike) -> pd.DataFrame:
    """Load a real-estate CSV into a float dataset with the fixed schema.

    Columns are taken by position; header names only trigger a warning when
    they differ from the schema. Empty cells become NaN and are imputed later
    by the feature pipeline.
    """
    file_path = os.fspath(file_path)
    if not os.path.isfile(file_path):
        logging.error(f"File not found at path: {file_path}")
        raise NotFoundError(f"Data file not found: {file_path}", path=file_path)
    _check_field_counts(file_path)

    try:
        raw = pd.read_csv(
            file_path,
            encoding="utf-8-sig",  # Use 'utf-8-sig' for UTF-8 with BOM
            dtype=str,
            skipinitialspace=True,
            index_col=False,
        )
    except pd.errors.EmptyDataError as e:
        raise DataFormatError(f"Data file is empty: {file_path}", path=file_path) from e
    except pd.errors.ParserError as e:
        raise DataFormatError(f"Malformed CSV {file_path}: {e}", path=file_path) from e

    if raw.shape[1] != len(SCHEMA_COLUMNS):
        raise DataFormatError(
            f"Expected {len(SCHEMA_COLUMNS)} columns {list(SCHEMA_COLUMNS)} in {file_path}, "
            f"found {raw.shape[1]}: {raw.columns.tolist()}",
            path=file_path,
        )

    header = [str(c).strip() for c in raw.columns]
    if [h.lower() for h in header] != [c.lower() for c in SCHEMA_COLUMNS]:
        logging.warning(f"Header {header} differs from schema {list(SCHEMA_COLUMNS)}; binding by position")
    raw.columns = list(SCHEMA_COLUMNS)

    data = pd.DataFrame(index=raw.index)
    for column in SCHEMA_COLUMNS:
        text = raw[column].str.strip()
        values = pd.to_numeric(text, errors="coerce")
        bad = text.notna() & (text != "") & values.isna()
        if bad.any():
            row = int(bad.idxmax())
            raise DataFormatError(
                f"Non-numeric value {raw.at[row, column]!r} in column '{column}' "
                f"at row {row} (line {row + 2}) of {file_path}",
                path=file_path,
                row=row,
                column=column,
            )
        data[column] = values.astype(np.float64)

    data = data.reset_index(drop=True)
    logging.info(f"Data loaded successfully from {file_path}: {len(data)} rows")
    n_missing = int(data[list(FEATURE_COLUMNS)].isna().sum().sum())
    if n_missing:
        logging.info(f"{n_missing} missing feature values will be mean-imputed")
    return data
