"""Interpret module - global and local explanations of fitted models."""

from seismicity_engine.interpret.effects import feature_effects, partial_dependence_table
from seismicity_engine.interpret.importance import permutation_importance_table
from seismicity_engine.interpret.interaction import (
    interaction_strength,
    pairwise_interaction_strength,
)
from seismicity_engine.interpret.local import explain_records, lime_explanation, shapley_values

__all__ = [
    # Global
    "permutation_importance_table",
    "interaction_strength",
    "pairwise_interaction_strength",
    "partial_dependence_table",
    "feature_effects",
    # Local
    "lime_explanation",
    "shapley_values",
    "explain_records",
]
