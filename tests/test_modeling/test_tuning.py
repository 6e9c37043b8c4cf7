"""Tests for hyperparameter tuning."""

import numpy as np
import optuna
import pytest

from seismicity_engine.exceptions import FitFailure, TuningFailure
from seismicity_engine.modeling.models import ParamDomain
from seismicity_engine.modeling.tuning import (
    cross_validate_params,
    tune_hyperparameters,
)

RIDGE_SPACE = {"alpha": ParamDomain("float", 1e-3, 10.0, log=True)}


class TestCrossValidateParams:
    """Tests for cross_validate_params function."""

    def test_returns_positive_losses(self, linear_table, linear_features):
        losses = cross_validate_params(
            linear_table[linear_features], linear_table["y"], "linear", {"alpha": 0.01}, cv_folds=3
        )

        assert set(losses) == {"mae", "rmse"}
        assert 0 < losses["mae"] <= losses["rmse"]
        # Noise scale is 0.1
        assert losses["rmse"] < 0.2

    def test_invalid_data_raises_fit_failure(self, linear_table, linear_features):
        X = linear_table[linear_features].copy()
        X.iloc[:10, 1] = np.nan

        with pytest.raises(FitFailure):
            cross_validate_params(X, linear_table["y"], "linear", {}, cv_folds=3)


class TestTuneHyperparameters:
    """Tests for tune_hyperparameters function."""

    def test_result_within_bounds(self, linear_table, linear_features):
        result = tune_hyperparameters(
            linear_table, "y", linear_features, family="linear",
            space=RIDGE_SPACE, cv_folds=3, n_trials=6, seed=1,
        )

        assert RIDGE_SPACE["alpha"].contains(result.best_params["alpha"])
        assert result.metric == "mae"
        assert result.best_score == pytest.approx(result.trace["mae"].min())
        assert len(result.trace) == 6
        assert set(result.trace.columns) >= {"trial", "state", "alpha", "mae", "rmse"}

    def test_same_seed_is_reproducible(self, linear_table, linear_features):
        kwargs = dict(family="linear", space=RIDGE_SPACE, cv_folds=3, n_trials=5, seed=11)

        first = tune_hyperparameters(linear_table, "y", linear_features, **kwargs)
        second = tune_hyperparameters(linear_table, "y", linear_features, **kwargs)

        assert first.best_params == second.best_params
        assert first.best_score == second.best_score

    def test_integer_domains_yield_integers(self, linear_table, linear_features):
        space = {
            "n_estimators": ParamDomain("int", 5, 15),
            "max_depth": ParamDomain("int", 2, 4),
        }

        result = tune_hyperparameters(
            linear_table, "y", linear_features, family="random_forest",
            space=space, cv_folds=2, n_trials=3,
        )

        assert isinstance(result.best_params["n_estimators"], int)
        assert 2 <= result.best_params["max_depth"] <= 4

    def test_optuna_verbosity_restored(self, linear_table, linear_features):
        previous = optuna.logging.get_verbosity()
        optuna.logging.set_verbosity(optuna.logging.INFO)
        try:
            tune_hyperparameters(
                linear_table, "y", linear_features, family="linear",
                space=RIDGE_SPACE, cv_folds=3, n_trials=2,
            )

            assert optuna.logging.get_verbosity() == optuna.logging.INFO
        finally:
            optuna.logging.set_verbosity(previous)

    def test_all_candidates_failing_raises(self, linear_table, linear_features):
        table = linear_table.copy()
        table.iloc[:10, 0] = np.nan

        with pytest.raises(TuningFailure, match="All 3 candidates failed"):
            tune_hyperparameters(
                table, "y", linear_features, family="linear",
                space=RIDGE_SPACE, cv_folds=3, n_trials=3,
            )

    def test_too_few_rows_raises(self, linear_table, linear_features):
        with pytest.raises(TuningFailure, match="cannot be split"):
            tune_hyperparameters(
                linear_table.head(3), "y", linear_features, family="linear",
                space=RIDGE_SPACE, cv_folds=5, n_trials=2,
            )

    def test_unknown_metric_raises(self, linear_table, linear_features):
        with pytest.raises(ValueError, match="Unknown metrics"):
            tune_hyperparameters(
                linear_table, "y", linear_features, family="linear",
                space=RIDGE_SPACE, metrics=["r2"],
            )

    def test_to_dict_includes_trace(self, linear_table, linear_features):
        result = tune_hyperparameters(
            linear_table, "y", linear_features, family="linear",
            space=RIDGE_SPACE, cv_folds=3, n_trials=2,
        )

        data = result.to_dict()

        assert data["family"] == "linear"
        assert len(data["trace"]) == 2
