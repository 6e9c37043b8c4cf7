"""Configuration management for Seismicity Engine.

A pipeline run is fully described by a PipelineConfig, loaded from the
``pipeline`` section of a YAML file. Random seeds and search bounds live
here rather than in module state, so a rerun with the same file reproduces
the same artifacts.
"""

from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from seismicity_engine.data.schemas import DEFAULT_FEATURES, NON_CAUSAL_FEATURES
from seismicity_engine.exceptions import IOFailure
from seismicity_engine.modeling.models import (
    HyperparameterSpace,
    ParamDomain,
    default_search_space,
)
from seismicity_engine.modeling.tuning import SCORERS


class SearchDomain(BaseModel):
    """Search bounds for one hyperparameter."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["float", "int"] = "float"
    lower: float
    upper: float
    log: bool = False

    @model_validator(mode="after")
    def _check_bounds(self) -> "SearchDomain":
        self.to_domain()
        return self

    def to_domain(self) -> ParamDomain:
        return ParamDomain(kind=self.kind, lower=self.lower, upper=self.upper, log=self.log)


class PipelineConfig(BaseModel):
    """Configuration for one tuning/training/interpretation run."""

    model_config = ConfigDict(extra="ignore", protected_namespaces=())

    # Data
    input_path: str
    output_prefix: str = "output/magnitude"
    id_column: Optional[str] = "stage_id"
    population: Literal["magnitude", "seismogenic"] = "magnitude"
    target: Optional[str] = None  # None: the population's target
    features: list[str] = Field(default_factory=lambda: list(DEFAULT_FEATURES))
    non_causal_features: list[str] = Field(default_factory=lambda: list(NON_CAUSAL_FEATURES))

    # Tuning
    model_family: Literal["xgboost", "random_forest", "linear"] = "xgboost"
    search_space: Optional[dict[str, SearchDomain]] = None  # None: family default
    cv_folds: int = Field(5, ge=2)
    n_trials: int = Field(100, ge=1)
    metrics: list[str] = Field(default_factory=lambda: ["mae", "rmse"])

    # Training and evaluation
    test_size: float = Field(0.1, gt=0, lt=1)
    seed: int = 42
    n_resamples: int = Field(500, ge=1)
    resample_fraction: float = Field(0.8, gt=0, lt=1)
    resample_mode: Literal["refit", "holdout"] = "refit"

    # Interpretation
    importance_repeats: int = Field(50, ge=1)
    interaction_sample_size: Optional[int] = Field(200, ge=2)  # None: every row
    grid_resolution: int = Field(20, ge=2)
    shapley_sample_size: int = Field(100, ge=1)
    lime_num_features: Optional[int] = Field(None, ge=1)  # None: all features
    explain_records: list[str] = Field(default_factory=list)

    # Execution
    render_charts: bool = False
    n_jobs: int = 1

    @field_validator("explain_records", mode="before")
    @classmethod
    def _ids_as_strings(cls, value: object) -> object:
        if isinstance(value, list):
            return [str(v) for v in value]
        return value

    @field_validator("metrics")
    @classmethod
    def _check_metrics(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("At least one metric is required")
        unknown = [m for m in value if m not in SCORERS]
        if unknown:
            raise ValueError(f"Unknown metrics: {', '.join(unknown)}")
        return value

    @model_validator(mode="after")
    def _check_features(self) -> "PipelineConfig":
        unknown = [c for c in self.non_causal_features if c not in self.features]
        if unknown:
            raise ValueError(f"Non-causal columns are not features: {', '.join(unknown)}")
        return self

    @property
    def hyperparameter_space(self) -> HyperparameterSpace:
        """Search space for the configured family."""
        if self.search_space is None:
            return default_search_space(self.model_family)
        return {name: domain.to_domain() for name, domain in self.search_space.items()}

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "PipelineConfig":
        """Load from the ``pipeline`` section of a YAML file.

        Relative input and output paths are resolved against the directory
        containing the YAML file.
        """
        config_path = Path(config_path)

        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise IOFailure(str(e), path=str(config_path)) from e

        section = dict(data.get("pipeline", data))

        base = config_path.parent
        for key in ("input_path", "output_prefix"):
            if key in section and not Path(str(section[key])).is_absolute():
                section[key] = str(base / str(section[key]))

        return cls.model_validate(section)


def load_config(config_path: str | Path) -> PipelineConfig:
    """Load pipeline configuration."""
    return PipelineConfig.from_yaml(config_path)
