"""Tests for model evaluation."""

import numpy as np
import pandas as pd
import pytest

from seismicity_engine.data import storage
from seismicity_engine.modeling.evaluation import (
    evaluate_model,
    monte_carlo_resample,
    regression_metrics,
    residuals_table,
    summarize_resampling,
)


class TestRegressionMetrics:
    """Tests for regression_metrics function."""

    def test_known_values(self):
        y_true = np.array([1.0, 2.0, 3.0, 4.0])
        y_pred = np.array([1.0, 2.0, 3.0, 6.0])

        metrics = regression_metrics(y_true, y_pred)

        assert metrics["mae"] == pytest.approx(0.5)
        assert metrics["rmse"] == pytest.approx(1.0)

    def test_perfect_prediction_is_zero(self):
        y = np.array([1.5, 2.5, 3.5])

        assert regression_metrics(y, y) == {"mae": 0.0, "rmse": 0.0}


class TestMonteCarloResample:
    """Tests for monte_carlo_resample function."""

    def test_refit_rows_and_sizes(self, linear_table, linear_training):
        samples = monte_carlo_resample(
            linear_table, linear_training, n_resamples=5, fraction=0.8, mode="refit", seed=3
        )

        assert list(samples.columns) == ["repeat", "n_fit", "n_scored", "mae", "rmse"]
        assert samples["repeat"].tolist() == [0, 1, 2, 3, 4]
        assert (samples["n_fit"] == 80).all()
        assert (samples["n_scored"] == 20).all()
        assert (samples[["mae", "rmse"]] >= 0).all().all()

    def test_holdout_scores_test_split_only(self, linear_table, linear_training):
        samples = monte_carlo_resample(
            linear_table, linear_training, n_resamples=4, fraction=0.5, mode="holdout"
        )

        assert (samples["n_scored"] == 10).all()
        assert (samples["n_fit"] == len(linear_training.train_index)).all()

    def test_same_seed_is_deterministic(self, linear_table, linear_training):
        first = monte_carlo_resample(linear_table, linear_training, n_resamples=4, seed=8)
        second = monte_carlo_resample(linear_table, linear_training, n_resamples=4, seed=8)

        pd.testing.assert_frame_equal(first, second)

    def test_parallel_matches_sequential(self, linear_table, linear_training):
        sequential = monte_carlo_resample(linear_table, linear_training, n_resamples=4, seed=2)
        parallel = monte_carlo_resample(
            linear_table, linear_training, n_resamples=4, seed=2, n_jobs=2
        )

        pd.testing.assert_frame_equal(sequential, parallel)

    def test_invalid_arguments_raise(self, linear_table, linear_training):
        with pytest.raises(ValueError, match="fraction"):
            monte_carlo_resample(linear_table, linear_training, fraction=1.0)
        with pytest.raises(ValueError, match="mode"):
            monte_carlo_resample(linear_table, linear_training, mode="full")
        with pytest.raises(ValueError, match="n_resamples"):
            monte_carlo_resample(linear_table, linear_training, n_resamples=0)


class TestSummarizeResampling:
    def test_percentiles(self):
        samples = pd.DataFrame({"mae": np.arange(11, dtype=float), "rmse": np.ones(11)})

        summary = summarize_resampling(samples)

        assert summary["mae"]["p10"] == pytest.approx(1.0)
        assert summary["mae"]["p50"] == pytest.approx(5.0)
        assert summary["mae"]["p90"] == pytest.approx(9.0)
        assert summary["rmse"]["std"] == 0.0


class TestEvaluateModel:
    """Tests for evaluate_model function."""

    def test_report_contents(self, linear_table, linear_training):
        report = evaluate_model(linear_table, linear_training, n_resamples=3, seed=1)

        assert report.family == "linear"
        assert report.resample_mode == "refit"
        assert len(report.resampling) == 3
        # Noise scale is 0.1, so held-out error stays small
        assert report.test["rmse"] < 0.3
        assert report.resampling_summary["mae"]["mean"] < 0.3

    def test_deterministic(self, linear_table, linear_training):
        first = evaluate_model(linear_table, linear_training, n_resamples=3, seed=4)
        second = evaluate_model(linear_table, linear_training, n_resamples=3, seed=4)

        assert first.train == second.train
        assert first.test == second.test
        assert first.resampling_summary == second.resampling_summary

    def test_to_dict_is_json_serializable(self, linear_table, linear_training, tmp_path):
        report = evaluate_model(linear_table, linear_training, n_resamples=2)

        path = storage.write_json(report.to_dict(), tmp_path / "run_report.json")
        data = storage.read_json(path)

        assert data["n_resamples"] == 2
        assert len(data["test_index"]) == 20
        assert set(data["train_index"]).isdisjoint(data["test_index"])

    def test_summary_text(self, linear_table, linear_training):
        report = evaluate_model(linear_table, linear_training, n_resamples=2)

        text = report.summary_text()

        assert "Model family: linear" in text
        assert "test" in text
        assert "P10/P50/P90" in text


class TestResidualsTable:
    def test_labels_splits(self, linear_table, linear_training):
        residuals = residuals_table(linear_table, linear_training)

        assert (residuals["split"] == "test").sum() == 20
        assert residuals["residual"].to_numpy() == pytest.approx(
            (residuals["actual"] - residuals["predicted"]).to_numpy()
        )
