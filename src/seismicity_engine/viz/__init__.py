"""Viz module - charts for evaluation and interpretation outputs."""

from seismicity_engine.viz.plots import (
    plot_feature_effects,
    plot_importance,
    plot_local_attribution,
    plot_residuals,
)

__all__ = [
    "plot_residuals",
    "plot_importance",
    "plot_feature_effects",
    "plot_local_attribution",
]
