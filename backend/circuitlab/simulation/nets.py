"""Net Builder — electrical connectivity from wires and closed switches.

Terminals form an undirected graph: one edge per wire, one implicit edge
across every closed switch and, optionally, edges along the breadboard's
internal strips. Each connected component of that graph is a net. While
flood-filling, a net is classified as power (5V source, a board supply
pin, or a GPIO driven HIGH) and/or ground (any ground-role terminal, the
GND fixture, or a GPIO driven LOW).
"""

from __future__ import annotations

import logging
import math

from circuitlab.schemas.catalog import TerminalRole
from circuitlab.schemas.circuit import McuPinStateMap
from circuitlab.simulation.catalog import (
    BOARD_SUPPLY,
    BREADBOARD_TYPE,
    GROUND_TYPE,
    POWER_SOURCE_TYPE,
    POWER_SOURCE_VOLTAGE,
    breadboard_internal_connections,
)
from circuitlab.simulation.components import is_closed_switch
from circuitlab.simulation.models import (
    Net,
    Netlist,
    SimComponent,
    SimTerminal,
    SimWire,
    TerminalKey,
)

logger = logging.getLogger(__name__)

# insertion-ordered neighbour sets keep traversal order reproducible
Adjacency = dict[TerminalKey, dict[TerminalKey, None]]


def _link(adjacency: Adjacency, a: TerminalKey, b: TerminalKey) -> None:
    adjacency.setdefault(a, {})[b] = None
    adjacency.setdefault(b, {})[a] = None


def build_adjacency(
    components: list[SimComponent],
    wires: list[SimWire],
    breadboard_strips: bool = True,
) -> Adjacency:
    adjacency: Adjacency = {}

    for wire in wires:
        _link(adjacency, wire.start, wire.end)

    for component in components:
        if is_closed_switch(component) and len(component.terminals) >= 2:
            first, second = component.terminals[0], component.terminals[1]
            _link(
                adjacency,
                (component.placed_id, first.id),
                (component.placed_id, second.id),
            )

        if breadboard_strips and component.type == BREADBOARD_TYPE:
            for strip in breadboard_internal_connections():
                for a, b in zip(strip, strip[1:]):
                    _link(
                        adjacency,
                        (component.placed_id, a),
                        (component.placed_id, b),
                    )

    return adjacency


def _source_for(
    component: SimComponent,
    terminal: SimTerminal,
    pin_states: McuPinStateMap,
) -> tuple[bool, bool, float | None]:
    """(is_power, is_ground, source voltage) evidence from one terminal."""
    is_power = False
    is_ground = False
    voltage: float | None = None

    if component.type == POWER_SOURCE_TYPE and terminal.role == TerminalRole.POWER:
        is_power, voltage = True, POWER_SOURCE_VOLTAGE
    if component.type == GROUND_TYPE or terminal.role == TerminalRole.GROUND:
        is_ground = True

    board = BOARD_SUPPLY.get(component.type)
    if board is not None:
        supply_pin, board_voltage = board
        if terminal.id == supply_pin:
            is_power, voltage = True, board_voltage
        pin_state = pin_states.get(component.placed_id, {}).get(terminal.id)
        if pin_state == "HIGH":
            is_power, voltage = True, board_voltage
        elif pin_state == "LOW":
            is_ground = True

    return is_power, is_ground, voltage


def build_nets(
    components: list[SimComponent],
    wires: list[SimWire],
    pin_states: McuPinStateMap | None = None,
    breadboard_strips: bool = True,
) -> Netlist:
    """Flood-fill terminals into nets.

    Deterministic: nets are numbered in component order, then catalog
    terminal order. Wire endpoints naming unknown components still join
    the graph but never seed a net on their own.
    """
    pin_states = pin_states or {}
    by_id = {c.placed_id: c for c in components}
    adjacency = build_adjacency(components, wires, breadboard_strips)

    netlist = Netlist()
    visited: set[TerminalKey] = set()

    for component in components:
        for terminal in component.terminals:
            start = (component.placed_id, terminal.id)
            if start in visited:
                continue

            members: list[TerminalKey] = []
            is_power = False
            is_ground = False
            power_voltage = 0.0
            stack = [start]

            while stack:
                current = stack.pop()
                if current in visited:
                    continue
                visited.add(current)

                owner = by_id.get(current[0])
                owned = owner.terminal(current[1]) if owner is not None else None
                if owned is not None:
                    members.append(current)
                    power, ground, voltage = _source_for(owner, owned, pin_states)
                    if power:
                        is_power = True
                        power_voltage = voltage
                    is_ground = is_ground or ground

                for neighbor in adjacency.get(current, ()):
                    if neighbor not in visited:
                        stack.append(neighbor)

            net = Net(
                id=f"net-{len(netlist.nets)}",
                terminals=members,
                is_power=is_power,
                is_ground=is_ground,
                power_voltage=power_voltage,
                voltage=power_voltage if is_power else 0.0 if is_ground else math.nan,
            )
            netlist.add(net)

    logger.debug(
        "Built %d nets from %d components and %d wires",
        len(netlist.nets),
        len(components),
        len(wires),
    )
    return netlist
