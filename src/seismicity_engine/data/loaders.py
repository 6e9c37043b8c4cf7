"""Data loading utilities for seismicity record sets.

Reads the prepared well-stage table from CSV or Parquet files.
"""

import logging
from pathlib import Path

import pandas as pd

from seismicity_engine.data.schemas import ID_COLUMN, SeismicityRecord, record_columns
from seismicity_engine.exceptions import DataValidationError, IOFailure

logger = logging.getLogger(__name__)


def load_records(
    path: str | Path,
    id_column: str | None = ID_COLUMN,
    validate: bool = False,
) -> pd.DataFrame:
    """Load a prepared record set.

    The file format is chosen from the suffix (.csv or .parquet).

    Args:
        path: Path to the record file
        id_column: Column to use as the index; ignored if absent
        validate: If True, validate each row against SeismicityRecord

    Returns:
        DataFrame with one row per record

    Raises:
        IOFailure: If the file cannot be read
        DataValidationError: If validate is True and a row is invalid

    Example:
        >>> records = load_records("data/duvernay_stages.csv")
    """
    path = Path(path)

    try:
        if path.suffix.lower() in (".parquet", ".pq"):
            df = pd.read_parquet(path)
        else:
            df = pd.read_csv(path, low_memory=False)
    except OSError as e:
        raise IOFailure(str(e), path=str(path)) from e
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DataValidationError(f"Cannot parse {path}: {e}") from e

    logger.info(f"Loaded {len(df)} records with {len(df.columns)} columns from {path}")

    if validate:
        validate_records(df)

    if id_column and id_column in df.columns:
        df = df.set_index(id_column)

    return df


def validate_records(df: pd.DataFrame) -> None:
    """Validate record rows against the SeismicityRecord schema.

    Only canonical columns present in the table are checked.

    Args:
        df: DataFrame with record rows

    Raises:
        DataValidationError: On the first invalid row
    """
    from pydantic import ValidationError

    columns = [c for c in record_columns() if c in df.columns]
    rows = df[columns].astype(object).where(df[columns].notna(), None)

    if ID_COLUMN not in rows.columns:
        rows = rows.assign(**{ID_COLUMN: df.index.astype(str)})
    else:
        rows[ID_COLUMN] = rows[ID_COLUMN].astype(str)

    for position, row in enumerate(rows.to_dict(orient="records")):
        try:
            SeismicityRecord.model_validate(row)
        except ValidationError as e:
            first = e.errors()[0]
            column = str(first["loc"][0]) if first["loc"] else None
            raise DataValidationError(
                f"Row {position} failed validation on '{column}': {first['msg']}",
                column=column,
            ) from e
