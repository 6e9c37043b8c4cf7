"""Model families for magnitude prediction.

Every family is exposed through the scikit-learn estimator API (``fit`` and
``predict``), so the tuner, evaluator and interpreter work with any of them
without knowing which library sits underneath.
"""

import logging
from dataclasses import dataclass
from typing import Any, Literal, Protocol, runtime_checkable

import numpy as np
import pandas as pd

from seismicity_engine.exceptions import FitFailure

logger = logging.getLogger(__name__)

ModelFamily = Literal["xgboost", "random_forest", "linear"]
MODEL_FAMILIES: tuple[str, ...] = ("xgboost", "random_forest", "linear")


@runtime_checkable
class Regressor(Protocol):
    """Minimal interface a fitted model must provide."""

    def fit(self, X: pd.DataFrame, y: pd.Series) -> Any: ...

    def predict(self, X: pd.DataFrame) -> np.ndarray: ...


@dataclass(frozen=True)
class ParamDomain:
    """Bounded search domain for a single hyperparameter.

    Attributes:
        kind: "float" for a continuous range, "int" for an integer range
        lower: Lower bound (inclusive)
        upper: Upper bound (inclusive)
        log: Search the range on a log scale
    """

    kind: Literal["float", "int"]
    lower: float
    upper: float
    log: bool = False

    def __post_init__(self) -> None:
        """Validate bounds."""
        if self.kind not in ("float", "int"):
            raise ValueError(f"kind must be 'float' or 'int', got {self.kind}")
        if self.lower > self.upper:
            raise ValueError(f"lower must be <= upper, got {self.lower} > {self.upper}")
        if self.log and self.lower <= 0:
            raise ValueError(f"log domains need a positive lower bound, got {self.lower}")
        # Integral bounds; with log this also forces lower >= 1
        if self.kind == "int" and (
            self.lower != int(self.lower) or self.upper != int(self.upper)
        ):
            raise ValueError(f"int domains need integral bounds, got {self.lower}, {self.upper}")

    def contains(self, value: float) -> bool:
        """Check whether a value lies inside the domain."""
        if self.kind == "int" and value != int(value):
            return False
        return self.lower <= value <= self.upper


HyperparameterSpace = dict[str, ParamDomain]

# Fixed (non-searched) settings per family
_DEFAULT_PARAMS: dict[str, dict[str, Any]] = {
    "xgboost": {
        "n_estimators": 200,
        "max_depth": 4,
        "learning_rate": 0.1,
        "objective": "reg:squarederror",
        "n_jobs": 1,
    },
    "random_forest": {
        "n_estimators": 200,
        "max_depth": 10,
        "n_jobs": 1,
    },
    "linear": {},
}

_DEFAULT_SPACES: dict[str, HyperparameterSpace] = {
    "xgboost": {
        "n_estimators": ParamDomain("int", 50, 600),
        "max_depth": ParamDomain("int", 2, 8),
        "learning_rate": ParamDomain("float", 0.005, 0.3, log=True),
        "min_child_weight": ParamDomain("float", 0.5, 10.0, log=True),
        "subsample": ParamDomain("float", 0.5, 1.0),
        "colsample_bytree": ParamDomain("float", 0.5, 1.0),
        "gamma": ParamDomain("float", 0.0, 5.0),
    },
    "random_forest": {
        "n_estimators": ParamDomain("int", 50, 500),
        "max_depth": ParamDomain("int", 2, 20),
        "min_samples_leaf": ParamDomain("int", 1, 20),
        "max_features": ParamDomain("float", 0.3, 1.0),
    },
    "linear": {
        "alpha": ParamDomain("float", 1e-4, 100.0, log=True),
    },
}


def default_search_space(family: str) -> HyperparameterSpace:
    """Return the default hyperparameter space for a model family.

    Args:
        family: Model family name

    Returns:
        Mapping from parameter name to ParamDomain
    """
    _check_family(family)
    return dict(_DEFAULT_SPACES[family])


def create_model(family: str, random_state: int = 42, **params: Any) -> Regressor:
    """Create an unfitted model instance for a family.

    Args:
        family: Type of model:
            - "xgboost": XGBoost gradient-boosted trees
            - "random_forest": Random Forest regressor
            - "linear": Ridge regression
        random_state: Random seed for stochastic learners
        **params: Hyperparameters overriding the family defaults

    Returns:
        Unfitted scikit-learn compatible regressor

    Example:
        >>> model = create_model("xgboost", max_depth=3, learning_rate=0.05)
    """
    _check_family(family)

    if family == "xgboost":
        from xgboost import XGBRegressor

        return XGBRegressor(
            **{**_DEFAULT_PARAMS["xgboost"], "random_state": random_state, **params}
        )

    elif family == "random_forest":
        from sklearn.ensemble import RandomForestRegressor

        return RandomForestRegressor(
            **{**_DEFAULT_PARAMS["random_forest"], "random_state": random_state, **params}
        )

    else:  # linear
        from sklearn.linear_model import Ridge

        return Ridge(**params)


def fit_model(
    family: str,
    X: pd.DataFrame,
    y: pd.Series,
    params: dict[str, Any] | None = None,
    random_state: int = 42,
) -> Regressor:
    """Fit a model of the given family.

    Args:
        family: Model family name
        X: Feature table
        y: Target values
        params: Hyperparameter assignment
        random_state: Random seed for stochastic learners

    Returns:
        Fitted model

    Raises:
        FitFailure: If the modeling library rejects the data
    """
    model = create_model(family, random_state=random_state, **(params or {}))
    try:
        model.fit(X, y)
    except (ValueError, np.linalg.LinAlgError) as e:
        raise FitFailure(f"{family} fit failed on {len(X)} rows: {e}", family=family) from e

    logger.debug(f"Fitted {family} on {len(X)} rows")
    return model


def predict(model: Regressor, X: pd.DataFrame) -> np.ndarray:
    """Predict with a fitted model and return a flat float array."""
    return np.asarray(model.predict(X), dtype=float).ravel()


def _check_family(family: str) -> None:
    if family not in MODEL_FAMILIES:
        raise ValueError(f"Unknown model family: {family}")
