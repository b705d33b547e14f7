"""Live simulation entities, rebuilt on every pass.

Only `SimComponent.state` outlives a pass; everything else is discarded
once the result snapshot has been taken.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from circuitlab.schemas.catalog import TerminalMode, TerminalRole
from circuitlab.schemas.state import ComponentStateBag

TerminalKey = tuple[str, str]  # (placed component id, terminal id)


@dataclass
class SimTerminal:
    id: str
    name: str
    role: TerminalRole
    mode: TerminalMode
    offset_x: float = 0.0
    offset_y: float = 0.0


@dataclass
class SimComponent:
    placed_id: str
    type: str
    terminals: list[SimTerminal]
    state: ComponentStateBag
    x: float = 0.0
    y: float = 0.0
    rotation: float = 0.0

    def terminal(self, terminal_id: str) -> SimTerminal | None:
        for terminal in self.terminals:
            if terminal.id == terminal_id:
                return terminal
        return None

    def other_terminal(self, terminal_id: str) -> SimTerminal | None:
        for terminal in self.terminals:
            if terminal.id != terminal_id:
                return terminal
        return None


@dataclass
class SimWire:
    id: str
    start_component_id: str
    start_terminal_id: str
    end_component_id: str
    end_terminal_id: str
    resistance: float = 0.01

    @property
    def start(self) -> TerminalKey:
        return (self.start_component_id, self.start_terminal_id)

    @property
    def end(self) -> TerminalKey:
        return (self.end_component_id, self.end_terminal_id)

    def touches(self, component_id: str, terminal_id: str) -> bool:
        key = (component_id, terminal_id)
        return self.start == key or self.end == key


@dataclass
class Net:
    id: str
    terminals: list[TerminalKey] = field(default_factory=list)
    voltage: float = math.nan
    is_power: bool = False
    is_ground: bool = False
    power_voltage: float = 0.0

    @property
    def is_resolved(self) -> bool:
        return not math.isnan(self.voltage)

    def component_ids(self) -> list[str]:
        """Owning component ids in terminal order, without duplicates."""
        return list(dict.fromkeys(cid for cid, _ in self.terminals))


@dataclass
class Netlist:
    nets: dict[str, Net] = field(default_factory=dict)
    terminal_index: dict[TerminalKey, str] = field(default_factory=dict)

    def add(self, net: Net) -> None:
        self.nets[net.id] = net
        for key in net.terminals:
            self.terminal_index[key] = net.id

    def net_id_for(self, component_id: str, terminal_id: str) -> str | None:
        return self.terminal_index.get((component_id, terminal_id))

    def net_for(self, component_id: str, terminal_id: str) -> Net | None:
        net_id = self.net_id_for(component_id, terminal_id)
        return self.nets.get(net_id) if net_id is not None else None

    def voltage_at(self, component_id: str, terminal_id: str) -> float:
        """Resolved voltage at a terminal, NaN when floating or unknown."""
        net = self.net_for(component_id, terminal_id)
        return net.voltage if net is not None else math.nan


@dataclass
class Circuit:
    id: str
    nets: list[Net] = field(default_factory=list)
    components: list[SimComponent] = field(default_factory=list)
    wires: list[SimWire] = field(default_factory=list)
    has_ground: bool = False
    has_power: bool = False

    @property
    def is_complete(self) -> bool:
        return self.has_ground and self.has_power

    def contains(self, component_id: str) -> bool:
        return any(c.placed_id == component_id for c in self.components)
