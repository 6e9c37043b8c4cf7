"""Partial dependence (PDP) with individual conditional expectation (ICE).

Curves are centered at a reference value so that ICE lines of different
records are comparable.
"""

import logging

import numpy as np
import pandas as pd
from sklearn.inspection import partial_dependence

from seismicity_engine.modeling.models import Regressor

logger = logging.getLogger(__name__)


def partial_dependence_table(
    model: Regressor,
    X: pd.DataFrame,
    feature: str,
    grid_resolution: int = 20,
    center_at: float | None = None,
) -> pd.DataFrame:
    """Calculate centered PDP and ICE curves for a single feature.

    The feature is varied over its observed range while every other
    feature keeps its observed value (ICE); the PDP is the mean ICE curve.

    Args:
        model: Fitted model
        X: Reference feature table
        feature: Feature to vary
        grid_resolution: Number of grid points across the observed range
        center_at: Reference value at which every curve is zero
            (default: grid minimum)

    Returns:
        Long DataFrame with columns: feature, grid_value, record, effect,
        kind ("ice" rows per record, "pdp" rows with record None)

    Example:
        >>> effects = partial_dependence_table(model, X, "distance_to_fault_m")
        >>> pdp = effects[effects["kind"] == "pdp"]
    """
    data = X.astype(float)
    result = partial_dependence(
        model,
        data,
        features=[feature],
        kind="both",
        grid_resolution=grid_resolution,
        percentiles=(0.0, 1.0),
    )

    grid = np.asarray(result["grid_values"][0], dtype=float)
    individual = np.asarray(result["individual"][0], dtype=float)

    reference = float(grid[0]) if center_at is None else float(center_at)
    offsets = np.array([np.interp(reference, grid, curve) for curve in individual])
    individual = individual - offsets[:, None]
    average = individual.mean(axis=0)

    ice = pd.DataFrame(
        {
            "feature": feature,
            "grid_value": np.tile(grid, len(individual)),
            "record": np.repeat(X.index.to_numpy(), len(grid)),
            "effect": individual.ravel(),
            "kind": "ice",
        }
    )
    pdp = pd.DataFrame(
        {
            "feature": feature,
            "grid_value": grid,
            "record": None,
            "effect": average,
            "kind": "pdp",
        }
    )
    return pd.concat([ice, pdp], ignore_index=True)


def feature_effects(
    model: Regressor,
    X: pd.DataFrame,
    features: list[str] | None = None,
    grid_resolution: int = 20,
) -> pd.DataFrame:
    """Calculate centered PDP/ICE curves for several features.

    Args:
        model: Fitted model
        X: Reference feature table
        features: Features to vary (default: all columns)
        grid_resolution: Number of grid points per feature

    Returns:
        Concatenation of partial_dependence_table for each feature
    """
    features = list(X.columns) if features is None else features
    tables = [
        partial_dependence_table(model, X, feature, grid_resolution=grid_resolution)
        for feature in features
    ]
    logger.info(f"Computed PDP/ICE for {len(features)} features")
    return pd.concat(tables, ignore_index=True)
