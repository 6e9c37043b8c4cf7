"""Final model training with tuned hyperparameters."""

import logging
from dataclasses import dataclass
from typing import Any

import pandas as pd
from sklearn.model_selection import train_test_split

from seismicity_engine.modeling.models import Regressor, fit_model

logger = logging.getLogger(__name__)


@dataclass
class TrainingResult:
    """Fitted models and the split they were trained on.

    Attributes:
        train_model: Model fitted on the train split
        full_model: Model fitted on the full table (for global interpretation)
        train_index: Index labels of the train split
        test_index: Index labels of the held-out test split
        features: Feature columns
        target: Target column
        family: Model family
        params: Hyperparameter assignment used for both fits
        seed: Seed of the split and the learners
    """

    train_model: Regressor
    full_model: Regressor
    train_index: pd.Index
    test_index: pd.Index
    features: list[str]
    target: str
    family: str
    params: dict[str, Any]
    seed: int


def split_table(
    table: pd.DataFrame,
    test_size: float = 0.1,
    seed: int = 42,
) -> tuple[pd.Index, pd.Index]:
    """Randomly split table rows into train and test index labels.

    Args:
        table: Modeling table
        test_size: Fraction of rows held out
        seed: Random seed

    Returns:
        Tuple of (train_index, test_index); disjoint and covering the table
    """
    if not 0 < test_size < 1:
        raise ValueError(f"test_size must be between 0 and 1, got {test_size}")
    if not table.index.is_unique:
        raise ValueError("Table index must be unique to split by label")

    train_index, test_index = train_test_split(
        table.index, test_size=test_size, random_state=seed
    )
    return pd.Index(train_index), pd.Index(test_index)


def train_final_models(
    table: pd.DataFrame,
    target: str,
    features: list[str],
    family: str,
    params: dict[str, Any],
    test_size: float = 0.1,
    seed: int = 42,
) -> TrainingResult:
    """Fit the train-split and full-table models.

    Args:
        table: Modeling table from select_records
        target: Target column
        features: Feature columns
        family: Model family name
        params: Tuned hyperparameter assignment
        test_size: Fraction of rows held out for testing
        seed: Random seed for the split and the learners

    Returns:
        TrainingResult with both fitted models and the split indices

    Raises:
        FitFailure: If either fit is rejected by the modeling library

    Example:
        >>> training = train_final_models(table, "max_magnitude", features,
        ...                               "xgboost", tuning.best_params)
    """
    train_index, test_index = split_table(table, test_size=test_size, seed=seed)
    train = table.loc[train_index]

    logger.info(
        f"Training {family}: {len(train_index)} train rows, {len(test_index)} test rows"
    )

    train_model = fit_model(family, train[features], train[target], params, random_state=seed)
    full_model = fit_model(family, table[features], table[target], params, random_state=seed)

    return TrainingResult(
        train_model=train_model,
        full_model=full_model,
        train_index=train_index,
        test_index=test_index,
        features=list(features),
        target=target,
        family=family,
        params=dict(params),
        seed=seed,
    )
