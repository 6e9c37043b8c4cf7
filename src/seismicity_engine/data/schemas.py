"""Data schemas for induced-seismicity records.

Uses Pydantic for validation and type safety. These models define the
canonical column names used throughout the framework.
"""

from typing import Annotated

from pydantic import BaseModel, Field


class SeismicityRecord(BaseModel):
    """Well-stage record - completion, geology and seismicity outcome.

    One record per hydraulic-fracturing stage (or well, when stage-level
    data is aggregated upstream). Distances and depths are metric.
    """

    stage_id: str = Field(..., description="Unique stage identifier")

    # Completion
    total_fluid_m3: Annotated[float, Field(ge=0)] | None = Field(
        None, description="Injected fluid volume (m3)"
    )
    total_proppant_t: Annotated[float, Field(ge=0)] | None = Field(
        None, description="Placed proppant mass (tonnes)"
    )
    stage_count: Annotated[int, Field(ge=0)] | None = Field(None, description="Number of stages")
    lateral_length_m: Annotated[float, Field(ge=0)] | None = Field(
        None, description="Lateral length (m)"
    )
    treatment_rate_m3_min: Annotated[float, Field(ge=0)] | None = Field(
        None, description="Average treatment rate (m3/min)"
    )
    interwell_distance_m: Annotated[float, Field(ge=0)] | None = Field(
        None, description="Distance to the nearest offset well (m)"
    )

    # Geology
    shmin_grasby: float | None = Field(
        None, description="Minimum horizontal stress gradient, Grasby model (kPa/m)"
    )
    shmax_gradient: float | None = Field(
        None, description="Maximum horizontal stress gradient (kPa/m)"
    )
    distance_to_fault_m: float | None = Field(
        None, description="Distance to the nearest mapped fault (m)"
    )
    structural_depth_m: float | None = Field(
        None, description="Depth to the Duvernay structure top (m)"
    )
    pressure_ratio: float | None = Field(None, description="Pore pressure to hydrostatic ratio")

    # Outcomes
    seismogenic: Annotated[int, Field(ge=0, le=1)] | None = Field(
        None, description="1 if the stage was associated with induced seismicity"
    )
    max_magnitude: float | None = Field(
        None, description="Maximum local magnitude of associated events"
    )


COMPLETION_FEATURES: list[str] = [
    "total_fluid_m3",
    "total_proppant_t",
    "stage_count",
    "lateral_length_m",
    "treatment_rate_m3_min",
    "interwell_distance_m",
]

GEOLOGIC_FEATURES: list[str] = [
    "shmin_grasby",
    "shmax_gradient",
    "distance_to_fault_m",
    "structural_depth_m",
    "pressure_ratio",
]

DEFAULT_FEATURES: list[str] = COMPLETION_FEATURES + GEOLOGIC_FEATURES

# Filled with the column mean rather than excluding the row
NON_CAUSAL_FEATURES: list[str] = ["interwell_distance_m"]

ID_COLUMN = "stage_id"
MAGNITUDE_TARGET = "max_magnitude"
SEISMOGENIC_TARGET = "seismogenic"


def record_columns() -> list[str]:
    """Return every canonical record column, in schema order."""
    return list(SeismicityRecord.model_fields)
