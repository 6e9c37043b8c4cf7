"""Record selection for model experiments.

Restricts a prepared record set to a target population and feature subset,
applying row validity rules and mean imputation of non-causal columns.
"""

import logging
from dataclasses import dataclass

import pandas as pd

from seismicity_engine.data.schemas import (
    MAGNITUDE_TARGET,
    NON_CAUSAL_FEATURES,
    SEISMOGENIC_TARGET,
)
from seismicity_engine.exceptions import DataValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidityRule:
    """Row predicate: column value must lie above a lower bound.

    Attributes:
        column: Column the rule applies to
        lower: Lower bound
        inclusive: If False, the value must be strictly greater than lower
    """

    column: str
    lower: float = 0.0
    inclusive: bool = False

    def mask(self, df: pd.DataFrame) -> pd.Series:
        """Boolean mask of rows satisfying the rule (missing values fail)."""
        values = df[self.column]
        return values >= self.lower if self.inclusive else values > self.lower

    def __str__(self) -> str:
        op = ">=" if self.inclusive else ">"
        return f"{self.column} {op} {self.lower:g}"


@dataclass(frozen=True)
class Population:
    """Target population preset: a target label and its validity rules."""

    name: str
    target: str
    rules: tuple[ValidityRule, ...]


# The stress-gradient rule only applies to the seismogenic (classification)
# population; the magnitude population keeps rows with shmin_grasby <= 0.
POPULATIONS: dict[str, Population] = {
    "magnitude": Population(
        name="magnitude",
        target=MAGNITUDE_TARGET,
        rules=(ValidityRule("distance_to_fault_m"),),
    ),
    "seismogenic": Population(
        name="seismogenic",
        target=SEISMOGENIC_TARGET,
        rules=(ValidityRule("distance_to_fault_m"), ValidityRule("shmin_grasby")),
    ),
}


def get_population(name: str) -> Population:
    """Look up a population preset by name."""
    if name not in POPULATIONS:
        raise ValueError(f"Unknown population: {name}")
    return POPULATIONS[name]


def select_records(
    records: pd.DataFrame,
    target: str,
    features: list[str],
    rules: list[ValidityRule] | tuple[ValidityRule, ...] | None = None,
    non_causal: list[str] | None = None,
) -> pd.DataFrame:
    """Select the modeling table for one experiment.

    Keeps rows with a defined target that satisfy every validity rule,
    fills missing non-causal values with the mean of the retained rows and
    drops rows still missing a feature value.

    Args:
        records: Prepared record set
        target: Target label column
        features: Ordered feature columns
        rules: Row validity rules; failing rows are dropped silently
        non_causal: Feature columns imputed with the column mean
            (default: NON_CAUSAL_FEATURES present in features)

    Returns:
        DataFrame with columns features + [target], original index kept

    Raises:
        DataValidationError: If columns are missing, the target is listed
            as a feature, or no rows survive

    Example:
        >>> pop = get_population("magnitude")
        >>> table = select_records(records, pop.target, DEFAULT_FEATURES, pop.rules)
    """
    rules = list(rules or [])
    if non_causal is None:
        non_causal = [c for c in NON_CAUSAL_FEATURES if c in features]

    if target in features:
        raise DataValidationError(f"Target '{target}' is also listed as a feature", column=target)
    if len(set(features)) != len(features):
        raise DataValidationError("Feature list contains duplicates")

    required = list(features) + [target] + [r.column for r in rules]
    missing = [c for c in dict.fromkeys(required) if c not in records.columns]
    if missing:
        raise DataValidationError(
            f"Missing required columns: {', '.join(missing)}", column=missing[0]
        )

    unknown = [c for c in non_causal if c not in features]
    if unknown:
        raise DataValidationError(
            f"Non-causal columns are not features: {', '.join(unknown)}", column=unknown[0]
        )

    df = records[records[target].notna()]
    n_labelled = len(df)

    for rule in rules:
        df = df[rule.mask(df)]
    if len(df) < n_labelled:
        logger.info(
            f"Dropped {n_labelled - len(df)} of {n_labelled} rows failing "
            f"{', '.join(str(r) for r in rules)}"
        )

    df = impute_means(df[list(features) + [target]], non_causal)

    causal = [c for c in features if c not in non_causal]
    complete = df[causal].notna().all(axis=1)
    if not complete.all():
        logger.info(f"Dropped {int((~complete).sum())} rows with missing feature values")
        df = df[complete]

    if df.empty:
        predicates = [f"{target} is defined"] + [str(r) for r in rules]
        raise DataValidationError(
            f"No rows satisfy: {' and '.join(predicates)}", column=target
        )

    logger.info(f"Selected {len(df)} rows, {len(features)} features, target '{target}'")
    return df


def impute_means(df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    """Fill missing values with the column mean.

    Idempotent: a table with no missing values in `columns` is returned
    unchanged.

    Args:
        df: DataFrame to impute
        columns: Columns to fill

    Returns:
        Copy of df with missing values in `columns` filled
    """
    result = df.copy()

    for col in columns:
        if result[col].isna().any():
            mean = result[col].mean()
            logger.debug(f"Imputing {int(result[col].isna().sum())} values in {col} with {mean:.4g}")
            result[col] = result[col].fillna(mean)

    return result
