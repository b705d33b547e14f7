from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, FiniteFloat

PinLogicState = Literal["HIGH", "LOW", "INPUT"]

# board placed id -> pin id -> logic level
McuPinStateMap = dict[str, dict[str, PinLogicState]]


class PlacedComponent(BaseModel):
    id: str
    type: str  # catalog key: led, resistor, button, arduino-uno, ...
    x: float = 0.0
    y: float = 0.0
    rotation: float = 0.0


class TerminalRef(BaseModel):
    component_id: str
    terminal_id: str


class WireData(BaseModel):
    id: str
    start_terminal: TerminalRef | None = None
    end_terminal: TerminalRef | None = None
    start_x: float = 0.0
    start_y: float = 0.0
    end_x: float = 0.0
    end_y: float = 0.0


class ControlState(BaseModel):
    button_pressed: bool | None = None
    pot_position: float | None = None  # 0-1
    ir_detected: bool | None = None
    ultrasonic_distance: float | None = None  # cm
    temperature: float | None = None  # °C
    humidity: float | None = None  # %
    servo_angle: float | None = None  # 0-180 degrees


class CircuitData(BaseModel):
    placed_components: list[PlacedComponent] = Field(default_factory=list)
    wires: list[WireData] = Field(default_factory=list)
    resistor_values: dict[str, FiniteFloat] = Field(default_factory=dict)
    control_states: dict[str, ControlState] = Field(default_factory=dict)
    mcu_pin_states: McuPinStateMap = Field(default_factory=dict)
