"""Tests for PDP/ICE feature effects."""

import numpy as np
import pytest

from seismicity_engine.interpret.effects import feature_effects, partial_dependence_table


class TestPartialDependenceTable:
    """Tests for partial_dependence_table function."""

    def test_shape_and_kinds(self, linear_model, linear_table, linear_features):
        X = linear_table[linear_features]

        df = partial_dependence_table(linear_model, X, "f1", grid_resolution=10)

        assert list(df.columns) == ["feature", "grid_value", "record", "effect", "kind"]
        assert (df["kind"] == "ice").sum() == 10 * len(X)
        assert (df["kind"] == "pdp").sum() == 10
        assert df.loc[df["kind"] == "pdp", "record"].isna().all()
        assert set(df.loc[df["kind"] == "ice", "record"]) == set(X.index)

    def test_grid_spans_observed_range(self, linear_model, linear_table, linear_features):
        X = linear_table[linear_features]

        pdp = partial_dependence_table(linear_model, X, "f3", grid_resolution=10).query(
            "kind == 'pdp'"
        )

        assert pdp["grid_value"].min() == pytest.approx(X["f3"].min())
        assert pdp["grid_value"].max() == pytest.approx(X["f3"].max())

    def test_curves_centered_at_grid_minimum(self, linear_model, linear_table, linear_features):
        df = partial_dependence_table(linear_model, linear_table[linear_features], "f1")

        first = df[df["grid_value"] == df["grid_value"].min()]
        assert np.allclose(first["effect"], 0.0)

    def test_linear_slope_recovered(self, linear_model, linear_table, linear_features):
        pdp = partial_dependence_table(
            linear_model, linear_table[linear_features], "f1"
        ).query("kind == 'pdp'")

        slope = np.polyfit(pdp["grid_value"], pdp["effect"], 1)[0]
        assert slope == pytest.approx(2.0, abs=0.1)

    def test_custom_center(self, linear_model, linear_table, linear_features):
        pdp = partial_dependence_table(
            linear_model, linear_table[linear_features], "f3", center_at=0.0
        ).query("kind == 'pdp'")

        # Effect of f3 (coefficient ~ -1) is positive below the reference
        assert pdp["effect"].iloc[0] > 0
        assert np.interp(0.0, pdp["grid_value"], pdp["effect"]) == pytest.approx(0.0, abs=1e-9)


class TestFeatureEffects:
    def test_all_features_by_default(self, linear_model, linear_table, linear_features):
        df = feature_effects(linear_model, linear_table[linear_features], grid_resolution=5)

        assert set(df["feature"]) == set(linear_features)

    def test_unused_feature_is_flat(self, linear_model, linear_table, linear_features):
        df = feature_effects(
            linear_model, linear_table[linear_features], features=["f5"], grid_resolution=5
        )

        pdp = df[df["kind"] == "pdp"]
        assert pdp["effect"].abs().max() < 0.25
