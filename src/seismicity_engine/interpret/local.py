"""Local explanations for individual records.

Two attributions per record:

- LIME: a sparse linear surrogate fitted to model predictions on
  perturbations around the record.
- Shapley values: Monte Carlo estimates of each feature's fair share of
  (prediction - baseline), where baseline is the mean prediction over the
  reference dataset.
"""

import logging
from collections.abc import Callable, Hashable
from typing import Any

import numpy as np
import pandas as pd

from seismicity_engine.exceptions import DataValidationError
from seismicity_engine.modeling.models import Regressor

logger = logging.getLogger(__name__)

LOCAL_COLUMNS = ["record", "method", "feature", "feature_value", "attribution", "prediction", "baseline"]


def _predict_fn(model: Regressor, columns: list[str]) -> Callable[[np.ndarray], np.ndarray]:
    """Wrap model.predict for explainers that pass plain arrays."""

    def _fn(values: np.ndarray) -> np.ndarray:
        frame = pd.DataFrame(np.atleast_2d(values), columns=columns)
        return np.asarray(model.predict(frame), dtype=float).ravel()

    return _fn


def _record(X: pd.DataFrame, record_id: Hashable) -> pd.Series:
    if record_id not in X.index:
        raise DataValidationError(f"Record {record_id!r} is not in the reference dataset")
    return X.loc[record_id]


def _first_value(value: Any) -> float:
    """Unwrap explainer outputs that are keyed by label."""
    if isinstance(value, dict):
        value = next(iter(value.values()))
    return float(np.ravel(value)[0])


def lime_explanation(
    model: Regressor,
    X: pd.DataFrame,
    record_id: Hashable,
    num_features: int | None = None,
    num_samples: int = 5000,
    seed: int = 42,
) -> pd.DataFrame:
    """Explain one record with a sparse local linear surrogate.

    Args:
        model: Fitted model
        X: Reference feature table (defines the perturbation distribution)
        record_id: Index label of the record to explain
        num_features: Number of features kept in the surrogate (default: all)
        num_samples: Perturbations drawn around the record
        seed: Random seed

    Returns:
        DataFrame with LOCAL_COLUMNS; baseline is the surrogate intercept,
        rows sorted by absolute attribution

    Example:
        >>> lime_explanation(model, X, "STAGE-0042", num_features=5)
    """
    from lime.lime_tabular import LimeTabularExplainer

    row = _record(X, record_id)
    columns = list(X.columns)
    predict_fn = _predict_fn(model, columns)

    explainer = LimeTabularExplainer(
        X.to_numpy(dtype=float),
        feature_names=columns,
        mode="regression",
        discretize_continuous=False,
        random_state=seed,
    )
    explanation = explainer.explain_instance(
        row.to_numpy(dtype=float),
        predict_fn,
        num_features=num_features or len(columns),
        num_samples=num_samples,
    )

    # Regression explanations keep the surrogate under label 1 (label 0 is negated)
    weights = explanation.as_map()[1]
    prediction = float(predict_fn(row.to_numpy(dtype=float))[0])
    intercept = float(explanation.intercept[1])

    df = pd.DataFrame(
        [
            {
                "record": record_id,
                "method": "lime",
                "feature": columns[idx],
                "feature_value": float(row.iloc[idx]),
                "attribution": float(weight),
                "prediction": prediction,
                "baseline": intercept,
            }
            for idx, weight in weights
        ],
        columns=LOCAL_COLUMNS,
    )
    return _sort_by_magnitude(df)


def shapley_values(
    model: Regressor,
    X: pd.DataFrame,
    record_id: Hashable,
    sample_size: int = 100,
    seed: int = 42,
) -> pd.DataFrame:
    """Estimate Shapley values for one record by coalition sampling.

    The attributions sum to prediction - baseline, where baseline is the
    mean prediction over X.

    Args:
        model: Fitted model
        X: Reference feature table (background distribution)
        record_id: Index label of the record to explain
        sample_size: Coalition draws per feature
        seed: Random seed

    Returns:
        DataFrame with LOCAL_COLUMNS, rows sorted by absolute attribution

    Example:
        >>> phi = shapley_values(model, X, "STAGE-0042", sample_size=100)
        >>> phi["attribution"].sum()  # == prediction - baseline
    """
    import shap

    row = _record(X, record_id)
    columns = list(X.columns)
    predict_fn = _predict_fn(model, columns)
    background = X.to_numpy(dtype=float)
    instance = row.to_numpy(dtype=float).reshape(1, -1)

    # SamplingExplainer draws from numpy's global generator
    state = np.random.get_state()
    np.random.seed(seed)
    try:
        explainer = shap.SamplingExplainer(predict_fn, background)
        phi = np.asarray(
            explainer.shap_values(instance, nsamples=sample_size * len(columns)),
            dtype=float,
        ).reshape(-1)[: len(columns)]
    finally:
        np.random.set_state(state)

    baseline = _first_value(explainer.expected_value)
    prediction = float(predict_fn(instance)[0])

    df = pd.DataFrame(
        {
            "record": record_id,
            "method": "shapley",
            "feature": columns,
            "feature_value": row.to_numpy(dtype=float),
            "attribution": phi,
            "prediction": prediction,
            "baseline": baseline,
        },
        columns=LOCAL_COLUMNS,
    )
    return _sort_by_magnitude(df)


def explain_records(
    model: Regressor,
    X: pd.DataFrame,
    record_ids: list[Hashable],
    num_features: int | None = None,
    sample_size: int = 100,
    seed: int = 42,
) -> pd.DataFrame:
    """Compute LIME and Shapley attributions for a list of records.

    Args:
        model: Fitted model
        X: Reference feature table
        record_ids: Index labels of the records to explain
        num_features: Features kept in the LIME surrogate (default: all)
        sample_size: Shapley coalition draws per feature
        seed: Random seed

    Returns:
        Concatenated DataFrame with LOCAL_COLUMNS

    Raises:
        DataValidationError: If a record id is not in X
    """
    missing = [r for r in record_ids if r not in X.index]
    if missing:
        raise DataValidationError(f"Records not in the reference dataset: {missing}")

    tables = []
    for record_id in record_ids:
        tables.append(lime_explanation(model, X, record_id, num_features=num_features, seed=seed))
        tables.append(shapley_values(model, X, record_id, sample_size=sample_size, seed=seed))
        logger.debug(f"Explained record {record_id}")

    logger.info(f"Local explanations for {len(record_ids)} records")
    if not tables:
        return pd.DataFrame(columns=LOCAL_COLUMNS)
    return pd.concat(tables, ignore_index=True)


def _sort_by_magnitude(df: pd.DataFrame) -> pd.DataFrame:
    order = df["attribution"].abs().sort_values(ascending=False, kind="mergesort").index
    return df.loc[order].reset_index(drop=True)
