from __future__ import annotations

import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_serializer


class ErrorType(str, Enum):
    NO_GROUND = "NO_GROUND"
    NO_POWER = "NO_POWER"
    SHORT_CIRCUIT = "SHORT_CIRCUIT"
    OPEN_CIRCUIT = "OPEN_CIRCUIT"
    REVERSE_POLARITY = "REVERSE_POLARITY"
    MISSING_RESISTOR = "MISSING_RESISTOR"
    OVERCURRENT = "OVERCURRENT"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"  # reserved, no rule emits it yet


class SimulationError(BaseModel):
    type: ErrorType
    message: str
    affected_components: list[str] = Field(default_factory=list)
    severity: Severity = Severity.ERROR
    cluster_id: str | None = None


class ComponentState(BaseModel):
    component_id: str
    type: str
    is_active: bool = False
    powered: bool = False
    properties: dict[str, Any] = Field(default_factory=dict)


class NetState(BaseModel):
    net_id: str
    voltage: float | None  # NaN while floating, serialized as null
    current: float = 0.0
    is_ground: bool = False
    is_power: bool = False

    @field_serializer("voltage")
    def _floating_as_null(self, voltage: float | None) -> float | None:
        if voltage is None or math.isnan(voltage):
            return None
        return voltage


class CircuitSummary(BaseModel):
    id: str
    component_ids: list[str] = Field(default_factory=list)
    net_ids: list[str] = Field(default_factory=list)
    wire_ids: list[str] = Field(default_factory=list)
    has_ground: bool = False
    has_power: bool = False
    is_complete: bool = False


class SimulationResult(BaseModel):
    is_valid: bool
    circuits: list[CircuitSummary] = Field(default_factory=list)
    errors: list[SimulationError] = Field(default_factory=list)
    warnings: list[SimulationError] = Field(default_factory=list)
    component_states: dict[str, ComponentState] = Field(default_factory=dict)
    net_states: dict[str, NetState] = Field(default_factory=dict)


class ServoSignal(BaseModel):
    voltage: float | None = None
    powered: bool = False
