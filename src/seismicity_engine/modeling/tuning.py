"""Hyperparameter tuning with cross-validated model-based optimization.

Candidates are proposed by Optuna's Tree-structured Parzen Estimator, a
sequential surrogate-model-guided search, and each candidate is scored by
k-fold cross-validation.
"""

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np
import optuna
import pandas as pd
from sklearn.model_selection import KFold, cross_validate

from seismicity_engine.exceptions import FitFailure, TuningFailure
from seismicity_engine.modeling.models import (
    HyperparameterSpace,
    create_model,
    default_search_space,
)

logger = logging.getLogger(__name__)

# Metric name -> (sklearn scorer, sign to turn the score into a loss)
SCORERS: dict[str, tuple[str, float]] = {
    "mae": ("neg_mean_absolute_error", -1.0),
    "rmse": ("neg_root_mean_squared_error", -1.0),
    "mse": ("neg_mean_squared_error", -1.0),
    "medae": ("neg_median_absolute_error", -1.0),
}


@dataclass(frozen=True)
class TuningResult:
    """Outcome of a hyperparameter search.

    Attributes:
        family: Model family that was tuned
        best_params: Best hyperparameter assignment found
        best_score: Cross-validated primary metric of best_params
        metric: Primary metric name
        trace: One row per trial: number, state, params and metrics
        seed: Random seed of the sampler and fold assignment
        n_trials: Search budget
        cv_folds: Number of cross-validation folds
    """

    family: str
    best_params: dict[str, Any]
    best_score: float
    metric: str
    trace: pd.DataFrame
    seed: int
    n_trials: int
    cv_folds: int

    def to_dict(self) -> dict[str, Any]:
        """Serializable representation (trace as a list of records)."""
        return {
            "family": self.family,
            "best_params": self.best_params,
            "best_score": self.best_score,
            "metric": self.metric,
            "seed": self.seed,
            "n_trials": self.n_trials,
            "cv_folds": self.cv_folds,
            "trace": self.trace.to_dict(orient="records"),
        }


def cross_validate_params(
    X: pd.DataFrame,
    y: pd.Series,
    family: str,
    params: dict[str, Any],
    cv_folds: int = 5,
    metrics: list[str] | tuple[str, ...] = ("mae", "rmse"),
    seed: int = 42,
) -> dict[str, float]:
    """Cross-validated loss estimates for one hyperparameter assignment.

    Args:
        X: Feature table
        y: Target values
        family: Model family name
        params: Hyperparameter assignment
        cv_folds: Number of folds
        metrics: Loss metrics to estimate
        seed: Seed for fold assignment and the learner

    Returns:
        Dictionary mapping metric name to mean loss across folds

    Raises:
        FitFailure: If any fold fails to fit or yields a non-finite score
    """
    model = create_model(family, random_state=seed, **params)
    folds = KFold(n_splits=cv_folds, shuffle=True, random_state=seed)
    scoring = {m: SCORERS[m][0] for m in metrics}

    try:
        scores = cross_validate(model, X, y, cv=folds, scoring=scoring, error_score="raise")
    except (ValueError, np.linalg.LinAlgError) as e:
        raise FitFailure(f"Cross-validation failed for {params}: {e}", family=family) from e

    result = {m: float(SCORERS[m][1] * np.mean(scores[f"test_{m}"])) for m in metrics}

    if not all(np.isfinite(v) for v in result.values()):
        raise FitFailure(f"Non-finite cross-validation score for {params}", family=family)

    return result


def tune_hyperparameters(
    table: pd.DataFrame,
    target: str,
    features: list[str],
    family: str = "xgboost",
    space: HyperparameterSpace | None = None,
    cv_folds: int = 5,
    n_trials: int = 100,
    metrics: list[str] | tuple[str, ...] = ("mae", "rmse"),
    seed: int = 42,
) -> TuningResult:
    """Search a bounded hyperparameter space for the lowest CV loss.

    Args:
        table: Modeling table from select_records
        target: Target column
        features: Feature columns
        family: Model family name
        space: Hyperparameter space (default: family default space)
        cv_folds: Cross-validation fold count
        n_trials: Number of candidates evaluated
        metrics: Loss metrics; the first is minimized
        seed: Random seed recorded with the result

    Returns:
        TuningResult with the best assignment and the search trace

    Raises:
        TuningFailure: If no candidate could be evaluated

    Example:
        >>> result = tune_hyperparameters(table, "max_magnitude", features, n_trials=100)
        >>> print(result.best_params)
    """
    if space is None:
        space = default_search_space(family)
    metrics = list(metrics)

    unknown = [m for m in metrics if m not in SCORERS]
    if unknown:
        raise ValueError(f"Unknown metrics: {', '.join(unknown)}")
    if not metrics:
        raise ValueError("At least one metric is required")
    if cv_folds < 2:
        raise ValueError(f"cv_folds must be at least 2, got {cv_folds}")
    if n_trials < 1:
        raise ValueError(f"n_trials must be positive, got {n_trials}")
    if len(table) < cv_folds:
        raise TuningFailure(f"{len(table)} rows cannot be split into {cv_folds} folds")

    X = table[features]
    y = table[target]
    primary = metrics[0]

    def objective(trial: optuna.Trial) -> float:
        params = _suggest(trial, space)
        losses = cross_validate_params(X, y, family, params, cv_folds, metrics, seed)
        for name, value in losses.items():
            trial.set_user_attr(name, value)
        return losses[primary]

    logger.info(
        f"Tuning {family}: {len(space)} parameters, {n_trials} trials, "
        f"{cv_folds}-fold CV on {len(table)} rows (seed={seed})"
    )

    verbosity = optuna.logging.get_verbosity()
    optuna.logging.set_verbosity(optuna.logging.WARNING)
    try:
        study = optuna.create_study(
            direction="minimize",
            sampler=optuna.samplers.TPESampler(seed=seed),
        )
        study.optimize(objective, n_trials=n_trials, catch=(FitFailure,))
    finally:
        optuna.logging.set_verbosity(verbosity)

    trace = _trace(study, metrics)
    completed = trace[trace["state"] == "COMPLETE"]
    n_failed = len(trace) - len(completed)
    if n_failed:
        logger.warning(f"{n_failed} of {len(trace)} candidates failed")
    if completed.empty:
        raise TuningFailure(f"All {len(trace)} candidates failed for {family}")

    best = study.best_trial
    logger.info(f"Best {primary}={best.value:.4f} with {best.params}")

    return TuningResult(
        family=family,
        best_params=dict(best.params),
        best_score=float(best.value),
        metric=primary,
        trace=trace,
        seed=seed,
        n_trials=n_trials,
        cv_folds=cv_folds,
    )


def _suggest(trial: optuna.Trial, space: HyperparameterSpace) -> dict[str, Any]:
    """Draw one assignment from the space."""
    params: dict[str, Any] = {}

    for name, domain in space.items():
        if domain.kind == "int":
            params[name] = trial.suggest_int(
                name, int(domain.lower), int(domain.upper), log=domain.log
            )
        else:
            params[name] = trial.suggest_float(
                name, float(domain.lower), float(domain.upper), log=domain.log
            )

    return params


def _trace(study: optuna.Study, metrics: list[str]) -> pd.DataFrame:
    """Flatten study trials into a DataFrame."""
    rows = []

    for trial in study.trials:
        row: dict[str, Any] = {"trial": trial.number, "state": trial.state.name}
        row.update(trial.params)
        for name in metrics:
            row[name] = trial.user_attrs.get(name, np.nan)
        rows.append(row)

    return pd.DataFrame(rows)
