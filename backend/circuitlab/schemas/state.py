"""Per-type component state bags.

Each placed component owns exactly one of these models. The host mutates
them between runs (button presses, slider positions, sensor readings) and
the engine reads them while propagating and evaluating. Assignment is not
validated, so whatever the host writes is kept verbatim until the engine
normalizes it.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, Field


class LedState(BaseModel):
    glowing: bool = False
    brightness: float = 0.0
    color: str = "red"


class ResistorState(BaseModel):
    resistance: float | None = 220.0
    power_dissipation: float = 0.0


class ButtonState(BaseModel):
    pressed: Any = False


class BuzzerState(BaseModel):
    active: bool = False
    frequency: float = 440.0


class PotentiometerState(BaseModel):
    position: float = 0.5
    resistance: float = 10000.0


class ServoState(BaseModel):
    angle: float = 90.0
    powered: bool = False


class UltrasonicState(BaseModel):
    distance: float = 0.0
    trig_active: bool = False
    output_voltage: float = 0.5


class IrSensorState(BaseModel):
    detected: bool = False


class Dht11State(BaseModel):
    temperature: float | None = 25.0
    humidity: float | None = 50.0


class PowerSourceState(BaseModel):
    voltage: float = 5.0
    enabled: bool = True


class GroundState(BaseModel):
    voltage: float = 0.0


class BoardState(BaseModel):
    powered: bool = False
    pins: dict[str, str] = Field(default_factory=dict)


class BreadboardState(BaseModel):
    connections: list[list[str]] = Field(default_factory=list)


class EmptyState(BaseModel):
    pass


ComponentStateBag = Union[
    LedState,
    ResistorState,
    ButtonState,
    BuzzerState,
    PotentiometerState,
    ServoState,
    UltrasonicState,
    IrSensorState,
    Dht11State,
    PowerSourceState,
    GroundState,
    BoardState,
    BreadboardState,
    EmptyState,
]
