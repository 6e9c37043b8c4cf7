"""Data module - Loading, selection, and storage of seismicity records."""

from seismicity_engine.data.loaders import load_records, validate_records
from seismicity_engine.data.schemas import (
    COMPLETION_FEATURES,
    DEFAULT_FEATURES,
    GEOLOGIC_FEATURES,
    NON_CAUSAL_FEATURES,
    SeismicityRecord,
)
from seismicity_engine.data.selection import (
    POPULATIONS,
    Population,
    ValidityRule,
    get_population,
    impute_means,
    select_records,
)
from seismicity_engine.data.storage import (
    artifact_path,
    read_json,
    read_object,
    write_json,
    write_object,
    write_table,
    write_text,
)

__all__ = [
    # Loaders
    "load_records",
    "validate_records",
    # Schemas
    "SeismicityRecord",
    "COMPLETION_FEATURES",
    "GEOLOGIC_FEATURES",
    "DEFAULT_FEATURES",
    "NON_CAUSAL_FEATURES",
    # Selection
    "ValidityRule",
    "Population",
    "POPULATIONS",
    "get_population",
    "select_records",
    "impute_means",
    # Storage
    "artifact_path",
    "write_json",
    "read_json",
    "write_text",
    "write_table",
    "write_object",
    "read_object",
]
