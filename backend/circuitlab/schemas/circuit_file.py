from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from circuitlab.schemas.circuit import CircuitData, ControlState
from circuitlab.schemas.simulation import SimulationResult


class CircuitFile(BaseModel):
    version: str
    type: Literal["electronic-simulation"] = "electronic-simulation"
    timestamp: int
    data: CircuitData


class CircuitFileExport(BaseModel):
    filename: str
    file: CircuitFile


class SimulationRunResponse(BaseModel):
    result: SimulationResult
    control_states: dict[str, ControlState] = Field(default_factory=dict)


class CircuitFileUpload(BaseModel):
    content: str  # raw file text as read by the browser
