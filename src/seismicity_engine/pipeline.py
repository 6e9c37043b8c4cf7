"""End-to-end run: select, tune, train, evaluate, interpret.

Stages run once each, in order, and every artifact is written as soon as
its stage finishes. A failure in a later stage leaves earlier artifacts
untouched.
"""

import logging
from collections.abc import Hashable
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from seismicity_engine.config import PipelineConfig
from seismicity_engine.data import storage
from seismicity_engine.data.loaders import load_records
from seismicity_engine.data.selection import get_population, select_records
from seismicity_engine.exceptions import DataValidationError
from seismicity_engine.interpret.effects import feature_effects
from seismicity_engine.interpret.importance import permutation_importance_table
from seismicity_engine.interpret.interaction import interaction_strength
from seismicity_engine.interpret.local import explain_records
from seismicity_engine.modeling.evaluation import (
    EvaluationReport,
    evaluate_model,
    residuals_table,
)
from seismicity_engine.modeling.training import train_final_models
from seismicity_engine.modeling.tuning import TuningResult, tune_hyperparameters

logger = logging.getLogger(__name__)


@dataclass
class Interpretation:
    """Global and local explanations of the full-table model."""

    importance: pd.DataFrame
    interaction: pd.DataFrame
    effects: pd.DataFrame
    local: pd.DataFrame


@dataclass
class PipelineResult:
    """Everything a run produced."""

    table: pd.DataFrame
    tuning: TuningResult
    report: EvaluationReport
    interpretation: Interpretation
    artifacts: dict[str, Path] = field(default_factory=dict)


def resolve_record_ids(index: pd.Index, record_ids: list[str]) -> list[Hashable]:
    """Map configured record ids (strings) to index labels.

    Raises:
        DataValidationError: If an id is not in the index
    """
    lookup = {str(label): label for label in index}
    missing = [r for r in record_ids if str(r) not in lookup]
    if missing:
        raise DataValidationError(f"Records not in the selected table: {missing}")
    return [lookup[str(r)] for r in record_ids]


def interpret_model(
    table: pd.DataFrame,
    report: EvaluationReport,
    config: PipelineConfig,
) -> Interpretation:
    """Run the four interpretation analyses on the full-table model."""
    training = report.training
    model = training.full_model
    X = table[training.features]
    y = table[training.target]

    importance = permutation_importance_table(
        model, X, y, n_repeats=config.importance_repeats, seed=config.seed, n_jobs=config.n_jobs
    )
    interaction = interaction_strength(
        model, X, sample_size=config.interaction_sample_size, seed=config.seed
    )
    effects = feature_effects(model, X, grid_resolution=config.grid_resolution)
    local = explain_records(
        model,
        X,
        resolve_record_ids(X.index, config.explain_records),
        num_features=config.lime_num_features,
        sample_size=config.shapley_sample_size,
        seed=config.seed,
    )

    return Interpretation(
        importance=importance, interaction=interaction, effects=effects, local=local
    )


def run_pipeline(config: PipelineConfig) -> PipelineResult:
    """Execute one complete run.

    Args:
        config: Pipeline configuration

    Returns:
        PipelineResult with every stage output and the written artifact paths

    Raises:
        DataValidationError: If the records fail selection
        TuningFailure: If no hyperparameter candidate could be evaluated
        FitFailure: If a final fit is rejected
        IOFailure: If an input or output path is unusable

    Example:
        >>> result = run_pipeline(load_config("config.yaml"))
        >>> print(result.report.summary_text())
    """
    prefix = config.output_prefix
    artifacts: dict[str, Path] = {}

    # 1. Select
    population = get_population(config.population)
    target = config.target or population.target
    records = load_records(config.input_path, id_column=config.id_column)
    table = select_records(
        records,
        target=target,
        features=config.features,
        rules=population.rules,
        non_causal=config.non_causal_features,
    )
    record_ids = resolve_record_ids(table.index, config.explain_records)

    # 2. Tune
    tuning = tune_hyperparameters(
        table,
        target,
        config.features,
        family=config.model_family,
        space=config.hyperparameter_space,
        cv_folds=config.cv_folds,
        n_trials=config.n_trials,
        metrics=config.metrics,
        seed=config.seed,
    )
    artifacts["tuning"] = storage.write_json(
        tuning.to_dict(), storage.artifact_path(prefix, "tuning", ".json")
    )

    # 3. Train
    training = train_final_models(
        table,
        target,
        config.features,
        family=config.model_family,
        params=tuning.best_params,
        test_size=config.test_size,
        seed=config.seed,
    )

    # 4. Evaluate
    report = evaluate_model(
        table,
        training,
        n_resamples=config.n_resamples,
        fraction=config.resample_fraction,
        mode=config.resample_mode,
        seed=config.seed,
        n_jobs=config.n_jobs,
    )
    artifacts["report_json"] = storage.write_json(
        report.to_dict(), storage.artifact_path(prefix, "report", ".json")
    )
    artifacts["report_text"] = storage.write_text(
        report.summary_text() + "\n", storage.artifact_path(prefix, "report", ".txt")
    )
    artifacts["report"] = storage.write_object(
        report, storage.artifact_path(prefix, "report", ".joblib")
    )

    # 5. Interpret
    config = config.model_copy(update={"explain_records": [str(r) for r in record_ids]})
    interpretation = interpret_model(table, report, config)
    for name in ("importance", "interaction", "effects", "local"):
        artifacts[name] = storage.write_table(
            getattr(interpretation, name), storage.artifact_path(prefix, name, ".csv")
        )

    if config.render_charts:
        artifacts.update(
            render_charts(table, report, interpretation, record_ids, prefix)
        )

    logger.info(f"Run complete: {len(artifacts)} artifacts under {prefix}")
    return PipelineResult(
        table=table,
        tuning=tuning,
        report=report,
        interpretation=interpretation,
        artifacts=artifacts,
    )


def render_charts(
    table: pd.DataFrame,
    report: EvaluationReport,
    interpretation: Interpretation,
    record_ids: list[Hashable],
    prefix: str,
) -> dict[str, Path]:
    """Write the evaluation and interpretation charts as HTML files."""
    from seismicity_engine.viz.plots import (
        plot_feature_effects,
        plot_importance,
        plot_local_attribution,
        plot_residuals,
    )

    figures = {
        "residuals": plot_residuals(residuals_table(table, report.training)),
        "importance_chart": plot_importance(interpretation.importance),
        "interaction_chart": plot_importance(
            interpretation.interaction, value_column="interaction", title="Interaction Strength (H)"
        ),
        "effects_chart": plot_feature_effects(interpretation.effects),
    }
    for record in record_ids:
        for method in ("shapley", "lime"):
            figures[f"{method}_{record}"] = plot_local_attribution(
                interpretation.local, record, method=method
            )

    paths = {
        name: storage.write_figure(fig, storage.artifact_path(prefix, name, ".html"))
        for name, fig in figures.items()
    }

    logger.info(f"Rendered {len(paths)} charts")
    return paths
