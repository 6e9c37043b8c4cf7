"""End-to-end tests for the pipeline and the command line."""

import pandas as pd
import pytest
import yaml
from typer.testing import CliRunner

from seismicity_engine.cli import app
from seismicity_engine.config import PipelineConfig, load_config
from seismicity_engine.data import storage
from seismicity_engine.exceptions import DataValidationError
from seismicity_engine.pipeline import resolve_record_ids, run_pipeline


@pytest.fixture
def pipeline_config(linear_table, tmp_path) -> PipelineConfig:
    """Small-budget linear run over linear_table written to CSV."""
    records = linear_table.copy()
    records["distance_to_fault_m"] = 1000.0
    records.to_csv(tmp_path / "records.csv")

    settings = {
        "pipeline": {
            "input_path": "records.csv",
            "output_prefix": "out/linear",
            "id_column": "record_id",
            "target": "y",
            "features": ["f1", "f2", "f3", "f4", "f5"],
            "non_causal_features": [],
            "model_family": "linear",
            "search_space": {"alpha": {"lower": 0.001, "upper": 1.0, "log": True}},
            "cv_folds": 3,
            "n_trials": 4,
            "n_resamples": 5,
            "importance_repeats": 5,
            "interaction_sample_size": 30,
            "grid_resolution": 5,
            "shapley_sample_size": 20,
            "explain_records": ["REC-005"],
        }
    }
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.safe_dump(settings))
    return load_config(config_file)


class TestRunPipeline:
    """Tests for run_pipeline function."""

    def test_writes_every_artifact(self, pipeline_config, tmp_path):
        result = run_pipeline(pipeline_config)

        expected = {
            "tuning": "linear_tuning.json",
            "report_json": "linear_report.json",
            "report_text": "linear_report.txt",
            "report": "linear_report.joblib",
            "importance": "linear_importance.csv",
            "interaction": "linear_interaction.csv",
            "effects": "linear_effects.csv",
            "local": "linear_local.csv",
        }
        assert {name: path.name for name, path in result.artifacts.items()} == expected
        for path in result.artifacts.values():
            assert path.parent == tmp_path / "out"
            assert path.exists()

    def test_recovers_known_signal(self, pipeline_config):
        result = run_pipeline(pipeline_config)

        importance = result.interpretation.importance
        assert set(importance["feature"].iloc[:2]) == {"f1", "f3"}
        unused = importance.set_index("feature").loc[["f2", "f4", "f5"], "importance"]
        assert (unused.abs() < 0.05).all()
        assert result.report.test["rmse"] < 0.3

    def test_artifacts_match_results(self, pipeline_config):
        result = run_pipeline(pipeline_config)

        tuning = storage.read_json(result.artifacts["tuning"])
        assert tuning["best_params"] == result.tuning.best_params
        assert len(tuning["trace"]) == 4

        report = storage.read_object(result.artifacts["report"])
        assert report.test == result.report.test

        local = pd.read_csv(result.artifacts["local"])
        assert set(local["record"]) == {"REC-005"}
        assert set(local["method"]) == {"lime", "shapley"}

    def test_same_seed_reproduces_report(self, pipeline_config):
        first = run_pipeline(pipeline_config)
        second = run_pipeline(pipeline_config)

        assert first.tuning.best_params == second.tuning.best_params
        assert first.report.to_dict() == second.report.to_dict()

    def test_render_charts(self, pipeline_config, tmp_path):
        config = pipeline_config.model_copy(update={"render_charts": True})

        result = run_pipeline(config)

        assert result.artifacts["residuals"].suffix == ".html"
        assert (tmp_path / "out" / "linear_shapley_REC-005.html").exists()

    def test_unknown_record_fails_before_tuning(self, pipeline_config, tmp_path):
        config = pipeline_config.model_copy(update={"explain_records": ["REC-999"]})

        with pytest.raises(DataValidationError, match="REC-999"):
            run_pipeline(config)

        assert not (tmp_path / "out").exists()


class TestResolveRecordIds:
    def test_matches_string_form(self):
        index = pd.Index([101, 102, 103])

        assert resolve_record_ids(index, ["102"]) == [102]


class TestCli:
    """Tests for the command line entry point."""

    def test_validate(self, pipeline_config, tmp_path):
        result = CliRunner().invoke(app, ["validate", str(tmp_path / "config.yaml")])

        assert result.exit_code == 0
        assert "100 rows x 6 columns" in result.output

    def test_run(self, pipeline_config, tmp_path):
        result = CliRunner().invoke(app, ["run", str(tmp_path / "config.yaml")])

        assert result.exit_code == 0
        assert "Model family: linear" in result.output
        assert (tmp_path / "out" / "linear_report.txt").exists()

    def test_missing_input_exits_nonzero(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("pipeline:\n  input_path: missing.csv\n")

        result = CliRunner().invoke(app, ["run", str(config_file)])

        assert result.exit_code == 1
