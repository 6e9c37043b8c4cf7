"""Model evaluation: point metrics and Monte Carlo resampling estimates.

Provides MAE/RMSE on the train and test splits and a resampling
distribution of held-out error from repeated random subsamples.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from sklearn.metrics import mean_absolute_error, mean_squared_error

from seismicity_engine.modeling.models import fit_model, predict
from seismicity_engine.modeling.training import TrainingResult

logger = logging.getLogger(__name__)

ResampleMode = Literal["refit", "holdout"]
METRICS: tuple[str, ...] = ("mae", "rmse")


def regression_metrics(
    y_true: pd.Series | np.ndarray,
    y_pred: np.ndarray,
) -> dict[str, float]:
    """Calculate regression error metrics.

    Args:
        y_true: Actual values
        y_pred: Predicted values

    Returns:
        Dictionary with:
        - mae: Mean absolute error
        - rmse: Root mean squared error
    """
    return {
        "mae": float(mean_absolute_error(y_true, y_pred)),
        "rmse": float(np.sqrt(mean_squared_error(y_true, y_pred))),
    }


@dataclass
class EvaluationReport:
    """Terminal artifact of a pipeline run.

    Attributes:
        family: Model family
        params: Hyperparameter assignment
        train: Metrics of the train model on the train split
        test: Metrics of the train model on the held-out test split
        resampling: One row per Monte Carlo repeat with its metrics
        resampling_summary: Per-metric mean, std and P10/P50/P90
        resample_mode: How the resampling models were obtained
        training: Fitted models and split indices
    """

    family: str
    params: dict[str, Any]
    train: dict[str, float]
    test: dict[str, float]
    resampling: pd.DataFrame
    resampling_summary: dict[str, dict[str, float]]
    resample_mode: str
    training: TrainingResult | None = field(default=None, repr=False)

    def to_dict(self) -> dict[str, Any]:
        """Serializable representation without the fitted models."""
        result: dict[str, Any] = {
            "family": self.family,
            "params": self.params,
            "train": self.train,
            "test": self.test,
            "resample_mode": self.resample_mode,
            "n_resamples": int(len(self.resampling)),
            "resampling_summary": self.resampling_summary,
            "resampling": self.resampling.to_dict(orient="list"),
        }
        if self.training is not None:
            result["train_index"] = [str(i) for i in self.training.train_index]
            result["test_index"] = [str(i) for i in self.training.test_index]
        return result

    def summary_text(self) -> str:
        """Human-readable summary of the report."""
        lines = [
            f"Model family: {self.family}",
            f"Hyperparameters: {self.params}",
            "",
            f"{'split':<12}{'MAE':>10}{'RMSE':>10}",
            f"{'train':<12}{self.train['mae']:>10.4f}{self.train['rmse']:>10.4f}",
            f"{'test':<12}{self.test['mae']:>10.4f}{self.test['rmse']:>10.4f}",
        ]
        if self.resampling_summary:
            mae = self.resampling_summary["mae"]
            rmse = self.resampling_summary["rmse"]
            lines.append(f"{'resampled':<12}{mae['mean']:>10.4f}{rmse['mean']:>10.4f}")
            lines.append("")
            lines.append(
                f"Monte Carlo ({self.resample_mode}, {len(self.resampling)} repeats): "
                f"MAE P10/P50/P90 = {mae['p10']:.4f}/{mae['p50']:.4f}/{mae['p90']:.4f}, "
                f"RMSE P10/P50/P90 = {rmse['p10']:.4f}/{rmse['p50']:.4f}/{rmse['p90']:.4f}"
            )
        return "\n".join(lines)


def monte_carlo_resample(
    table: pd.DataFrame,
    training: TrainingResult,
    n_resamples: int = 500,
    fraction: float = 0.8,
    mode: ResampleMode = "refit",
    seed: int = 42,
    n_jobs: int = 1,
) -> pd.DataFrame:
    """Estimate held-out error over repeated random subsamples.

    Args:
        table: Modeling table
        training: Result of train_final_models
        n_resamples: Number of Monte Carlo repeats
        fraction: Subsample fraction
        mode: How each repeat is scored:
            - "refit": fit a fresh model on a random `fraction` of the
              table and score the remaining rows
            - "holdout": score a random `fraction` of the test split with
              the train-split model
        seed: Random seed; each repeat derives its own stream from it
        n_jobs: Number of joblib workers

    Returns:
        DataFrame with columns: repeat, n_fit, n_scored, mae, rmse

    Example:
        >>> samples = monte_carlo_resample(table, training, n_resamples=500)
        >>> samples["rmse"].describe()
    """
    if n_resamples < 1:
        raise ValueError(f"n_resamples must be positive, got {n_resamples}")
    if not 0 < fraction < 1:
        raise ValueError(f"fraction must be between 0 and 1, got {fraction}")
    if mode not in ("refit", "holdout"):
        raise ValueError(f"Unknown resample mode: {mode}")

    children = np.random.SeedSequence(seed).spawn(n_resamples)

    if mode == "refit":
        n_fit = int(round(fraction * len(table)))
        if n_fit < 1 or n_fit >= len(table):
            raise ValueError(f"Cannot hold out rows from {len(table)} rows at fraction {fraction}")
        jobs = (
            delayed(_refit_once)(table, training, n_fit, child, repeat)
            for repeat, child in enumerate(children)
        )
    else:
        test = table.loc[training.test_index]
        n_scored = max(1, int(round(fraction * len(test))))
        jobs = (
            delayed(_holdout_once)(test, training, n_scored, child, repeat)
            for repeat, child in enumerate(children)
        )

    logger.info(f"Running {n_resamples} Monte Carlo repeats ({mode}, fraction={fraction})")
    rows = Parallel(n_jobs=n_jobs)(jobs)

    return pd.DataFrame(rows, columns=["repeat", "n_fit", "n_scored", *METRICS])


def _refit_once(
    table: pd.DataFrame,
    training: TrainingResult,
    n_fit: int,
    seed_seq: np.random.SeedSequence,
    repeat: int,
) -> dict[str, Any]:
    rng = np.random.default_rng(seed_seq)
    order = rng.permutation(len(table))
    fit_rows = table.iloc[order[:n_fit]]
    score_rows = table.iloc[order[n_fit:]]

    model = fit_model(
        training.family,
        fit_rows[training.features],
        fit_rows[training.target],
        training.params,
        random_state=int(seed_seq.generate_state(1)[0] % (2**31 - 1)),
    )
    metrics = regression_metrics(
        score_rows[training.target], predict(model, score_rows[training.features])
    )
    return {"repeat": repeat, "n_fit": len(fit_rows), "n_scored": len(score_rows), **metrics}


def _holdout_once(
    test: pd.DataFrame,
    training: TrainingResult,
    n_scored: int,
    seed_seq: np.random.SeedSequence,
    repeat: int,
) -> dict[str, Any]:
    rng = np.random.default_rng(seed_seq)
    rows = test.iloc[rng.choice(len(test), size=n_scored, replace=False)]
    metrics = regression_metrics(
        rows[training.target], predict(training.train_model, rows[training.features])
    )
    return {
        "repeat": repeat,
        "n_fit": len(training.train_index),
        "n_scored": len(rows),
        **metrics,
    }


def summarize_resampling(samples: pd.DataFrame) -> dict[str, dict[str, float]]:
    """Calculate the distribution summary of resampled metrics.

    Args:
        samples: DataFrame from monte_carlo_resample

    Returns:
        Dictionary per metric with mean, std, p10, p50, p90
    """
    summary = {}

    for metric in METRICS:
        values = samples[metric].to_numpy(dtype=float)
        summary[metric] = {
            "mean": float(np.mean(values)),
            "std": float(np.std(values)),
            "p10": float(np.percentile(values, 10)),
            "p50": float(np.percentile(values, 50)),
            "p90": float(np.percentile(values, 90)),
        }

    return summary


def evaluate_model(
    table: pd.DataFrame,
    training: TrainingResult,
    n_resamples: int = 500,
    fraction: float = 0.8,
    mode: ResampleMode = "refit",
    seed: int = 42,
    n_jobs: int = 1,
) -> EvaluationReport:
    """Build the evaluation report for a training result.

    Train metrics score the train model on its own split; test metrics and
    every resampling repeat score rows the scoring model never saw.

    Args:
        table: Modeling table
        training: Result of train_final_models
        n_resamples: Number of Monte Carlo repeats
        fraction: Subsample fraction for each repeat
        mode: Resampling mode ("refit" or "holdout")
        seed: Random seed
        n_jobs: Number of joblib workers for the resampling loop

    Returns:
        EvaluationReport
    """
    train = table.loc[training.train_index]
    test = table.loc[training.test_index]

    train_metrics = regression_metrics(
        train[training.target], predict(training.train_model, train[training.features])
    )
    test_metrics = regression_metrics(
        test[training.target], predict(training.train_model, test[training.features])
    )
    logger.info(
        f"Train MAE={train_metrics['mae']:.4f} RMSE={train_metrics['rmse']:.4f}; "
        f"test MAE={test_metrics['mae']:.4f} RMSE={test_metrics['rmse']:.4f}"
    )

    samples = monte_carlo_resample(
        table, training, n_resamples=n_resamples, fraction=fraction,
        mode=mode, seed=seed, n_jobs=n_jobs,
    )

    return EvaluationReport(
        family=training.family,
        params=training.params,
        train=train_metrics,
        test=test_metrics,
        resampling=samples,
        resampling_summary=summarize_resampling(samples),
        resample_mode=mode,
        training=training,
    )


def residuals_table(
    table: pd.DataFrame,
    training: TrainingResult,
) -> pd.DataFrame:
    """Actual, predicted and residual values of the train model per row.

    Returns:
        DataFrame indexed like table with columns: split, actual,
        predicted, residual
    """
    predicted = predict(training.train_model, table[training.features])
    result = pd.DataFrame(
        {
            "split": np.where(table.index.isin(training.test_index), "test", "train"),
            "actual": table[training.target].to_numpy(dtype=float),
            "predicted": predicted,
        },
        index=table.index,
    )
    result["residual"] = result["actual"] - result["predicted"]
    return result
