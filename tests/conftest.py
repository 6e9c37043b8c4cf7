"""Shared test fixtures for Seismicity Engine.

Provides reusable fixtures for raw stage records and small synthetic
modeling tables with a known linear signal.
"""

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def sample_records_df() -> pd.DataFrame:
    """Create sample well-stage records for testing.

    Generates 40 stages with realistic completion and geologic values,
    including rows that each selection step should remove:
    - stages 0-4: not seismogenic (no magnitude)
    - stages 5-6: non-positive distance to fault
    - stages 7-8: non-positive shmin_grasby
    - stages 9-11: missing interwell distance (imputed)
    - stage 12: missing structural depth (dropped)
    """
    rng = np.random.default_rng(42)
    n = 40

    df = pd.DataFrame(
        {
            "stage_id": [f"STAGE-{i:03d}" for i in range(n)],
            "total_fluid_m3": rng.uniform(20_000, 120_000, n),
            "total_proppant_t": rng.uniform(2_000, 10_000, n),
            "stage_count": rng.integers(20, 60, n),
            "lateral_length_m": rng.uniform(1_500, 3_500, n),
            "treatment_rate_m3_min": rng.uniform(8, 16, n),
            "interwell_distance_m": rng.uniform(200, 600, n),
            "shmin_grasby": rng.uniform(18, 24, n),
            "shmax_gradient": rng.uniform(25, 35, n),
            "distance_to_fault_m": rng.uniform(100, 5_000, n),
            "structural_depth_m": rng.uniform(2_800, 3_600, n),
            "pressure_ratio": rng.uniform(1.2, 2.0, n),
            "seismogenic": np.ones(n, dtype=int),
            "max_magnitude": rng.uniform(1.0, 4.0, n),
        }
    )

    df.loc[0:4, "seismogenic"] = 0
    df.loc[0:4, "max_magnitude"] = np.nan
    df.loc[5, "distance_to_fault_m"] = 0.0
    df.loc[6, "distance_to_fault_m"] = -10.0
    df.loc[7, "shmin_grasby"] = 0.0
    df.loc[8, "shmin_grasby"] = -1.0
    df.loc[9:11, "interwell_distance_m"] = np.nan
    df.loc[12, "structural_depth_m"] = np.nan

    return df


@pytest.fixture
def sample_features() -> list[str]:
    """A small feature subset present in sample_records_df."""
    return [
        "total_fluid_m3",
        "interwell_distance_m",
        "shmin_grasby",
        "distance_to_fault_m",
        "structural_depth_m",
    ]


@pytest.fixture
def linear_table() -> pd.DataFrame:
    """Create a synthetic modeling table with a known linear signal.

    100 records, 5 standard-normal features; y = 2*f1 - f3 + noise,
    so f2, f4 and f5 are unused.
    """
    rng = np.random.default_rng(7)
    n = 100

    X = pd.DataFrame(
        rng.normal(size=(n, 5)),
        columns=["f1", "f2", "f3", "f4", "f5"],
        index=pd.Index([f"REC-{i:03d}" for i in range(n)], name="record_id"),
    )
    X["y"] = 2 * X["f1"] - X["f3"] + rng.normal(scale=0.1, size=n)
    return X


@pytest.fixture
def linear_features() -> list[str]:
    return ["f1", "f2", "f3", "f4", "f5"]


@pytest.fixture
def linear_model(linear_table, linear_features):
    """Ridge model fitted on linear_table."""
    from seismicity_engine.modeling.models import fit_model

    return fit_model(
        "linear", linear_table[linear_features], linear_table["y"], {"alpha": 1e-3}
    )


@pytest.fixture
def linear_training(linear_table, linear_features):
    """TrainingResult for a Ridge model on linear_table."""
    from seismicity_engine.modeling.training import train_final_models

    return train_final_models(
        linear_table,
        "y",
        linear_features,
        family="linear",
        params={"alpha": 1e-3},
        test_size=0.2,
        seed=0,
    )
