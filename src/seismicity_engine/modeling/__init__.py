"""Modeling module - model families, tuning, training and evaluation."""

from seismicity_engine.modeling.evaluation import (
    EvaluationReport,
    evaluate_model,
    monte_carlo_resample,
    regression_metrics,
    residuals_table,
    summarize_resampling,
)
from seismicity_engine.modeling.models import (
    MODEL_FAMILIES,
    ParamDomain,
    Regressor,
    create_model,
    default_search_space,
    fit_model,
)
from seismicity_engine.modeling.training import TrainingResult, split_table, train_final_models
from seismicity_engine.modeling.tuning import (
    TuningResult,
    cross_validate_params,
    tune_hyperparameters,
)

__all__ = [
    # Models
    "MODEL_FAMILIES",
    "ParamDomain",
    "Regressor",
    "create_model",
    "default_search_space",
    "fit_model",
    # Tuning
    "TuningResult",
    "cross_validate_params",
    "tune_hyperparameters",
    # Training
    "TrainingResult",
    "split_table",
    "train_final_models",
    # Evaluation
    "EvaluationReport",
    "regression_metrics",
    "monte_carlo_resample",
    "summarize_resampling",
    "evaluate_model",
    "residuals_table",
]
