"""Feature interaction strength (Friedman's H-statistic).

Partial dependence functions are evaluated at the observed data points, so
each feature costs two batches of n * n predictions. Use `sample_size` to
bound n on large tables.
"""

import logging

import numpy as np
import pandas as pd

from seismicity_engine.modeling.models import Regressor

logger = logging.getLogger(__name__)


def interaction_strength(
    model: Regressor,
    X: pd.DataFrame,
    features: list[str] | None = None,
    sample_size: int | None = None,
    seed: int = 42,
) -> pd.DataFrame:
    """Calculate the overall interaction strength of each feature.

    H_j measures the share of prediction variance that is explained by
    interactions between feature j and all other features:

        H_j^2 = sum_i [f(x_i) - PD_j(x_ij) - PD_-j(x_i,-j)]^2 / sum_i f(x_i)^2

    with every term centered. 0 means no interaction, 1 means the effect
    of j comes only through interactions.

    Args:
        model: Fitted model
        X: Reference feature table
        features: Features to score (default: all columns)
        sample_size: Rows sampled from X before computing (default: all)
        seed: Random seed for the row sample

    Returns:
        DataFrame with columns: feature, interaction; sorted descending

    Example:
        >>> strength = interaction_strength(model, X, sample_size=200)
    """
    sample = _sample_rows(X, sample_size, seed)
    values = sample.to_numpy(dtype=float)
    columns = list(sample.columns)
    features = columns if features is None else features

    prediction = _centered(_predict(model, values, columns))
    denominator = float(np.sum(prediction**2))

    rows = []
    for feature in features:
        j = columns.index(feature)
        pd_j = _centered(_partial_dependence_at_points(model, values, columns, [j]))
        others = [k for k in range(len(columns)) if k != j]
        pd_rest = _centered(_partial_dependence_at_points(model, values, columns, others))
        numerator = float(np.sum((prediction - pd_j - pd_rest) ** 2))
        rows.append({"feature": feature, "interaction": _h_value(numerator, denominator)})

    logger.info(f"Interaction strength for {len(features)} features on {len(sample)} rows")
    return (
        pd.DataFrame(rows)
        .sort_values("interaction", ascending=False, kind="mergesort")
        .reset_index(drop=True)
    )


def pairwise_interaction_strength(
    model: Regressor,
    X: pd.DataFrame,
    feature: str,
    sample_size: int | None = None,
    seed: int = 42,
) -> pd.DataFrame:
    """Calculate the 2-way interaction strength of one feature with each other.

        H_jk^2 = sum_i [PD_jk(x_ij, x_ik) - PD_j(x_ij) - PD_k(x_ik)]^2
                 / sum_i PD_jk(x_ij, x_ik)^2

    Args:
        model: Fitted model
        X: Reference feature table
        feature: Feature paired with every other column
        sample_size: Rows sampled from X before computing (default: all)
        seed: Random seed for the row sample

    Returns:
        DataFrame with columns: feature, other, interaction; sorted descending
    """
    sample = _sample_rows(X, sample_size, seed)
    values = sample.to_numpy(dtype=float)
    columns = list(sample.columns)
    j = columns.index(feature)

    pd_j = _centered(_partial_dependence_at_points(model, values, columns, [j]))

    rows = []
    for k, other in enumerate(columns):
        if k == j:
            continue
        pd_k = _centered(_partial_dependence_at_points(model, values, columns, [k]))
        pd_jk = _centered(_partial_dependence_at_points(model, values, columns, [j, k]))
        numerator = float(np.sum((pd_jk - pd_j - pd_k) ** 2))
        denominator = float(np.sum(pd_jk**2))
        rows.append(
            {"feature": feature, "other": other, "interaction": _h_value(numerator, denominator)}
        )

    return (
        pd.DataFrame(rows)
        .sort_values("interaction", ascending=False, kind="mergesort")
        .reset_index(drop=True)
    )


def _partial_dependence_at_points(
    model: Regressor,
    values: np.ndarray,
    columns: list[str],
    fixed: list[int],
) -> np.ndarray:
    """Partial dependence on the `fixed` columns evaluated at each data row.

    Entry i averages the prediction over all rows with the `fixed` columns
    set to the values of row i.
    """
    n = len(values)
    data = np.tile(values, (n, 1))
    data[:, fixed] = np.repeat(values[:, fixed], n, axis=0)
    return _predict(model, data, columns).reshape(n, n).mean(axis=1)


def _predict(model: Regressor, values: np.ndarray, columns: list[str]) -> np.ndarray:
    return np.asarray(model.predict(pd.DataFrame(values, columns=columns)), dtype=float).ravel()


def _centered(values: np.ndarray) -> np.ndarray:
    return values - values.mean()


def _h_value(numerator: float, denominator: float) -> float:
    if denominator <= 0:
        return 0.0
    return float(np.sqrt(min(max(numerator / denominator, 0.0), 1.0)))


def _sample_rows(X: pd.DataFrame, sample_size: int | None, seed: int) -> pd.DataFrame:
    if sample_size is None or sample_size >= len(X):
        return X
    return X.sample(n=sample_size, random_state=seed)
