from __future__ import annotations

from enum import Enum
from pydantic import BaseModel, Field


class TerminalRole(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    SIGNAL = "signal"
    POWER = "power"
    GROUND = "ground"
    DATA = "data"
    GPIO = "gpio"


class TerminalMode(str, Enum):
    INPUT = "INPUT"
    OUTPUT = "OUTPUT"
    BIDIRECTIONAL = "BIDIRECTIONAL"


class TerminalDefinition(BaseModel):
    id: str
    name: str
    role: TerminalRole
    offset_x: float
    offset_y: float
    mode: TerminalMode = TerminalMode.BIDIRECTIONAL


class CatalogEntry(BaseModel):
    type: str
    terminals: list[TerminalDefinition] = Field(default_factory=list)


class TerminalHit(BaseModel):
    component_id: str
    terminal_id: str
    x: float
    y: float
