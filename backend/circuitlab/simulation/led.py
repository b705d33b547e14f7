"""LED Path Analyzer — closed loop, series resistor, polarity and current.

For one LED the analyzer derives a series graph whose nodes are nets and
whose edges are the cluster's two-terminal parts (open switches excluded),
then searches for a power → ground path that runs through the LED. The
first such simple path found by a depth-first walk is the loop that gets
judged:

  1. at least one resistor on the loop        else MISSING_RESISTOR
  2. LED crossed anode → cathode              else REVERSE_POLARITY
  3. total series resistance > 0              else OVERCURRENT
  4. I = (Vsupply - Vf) / R within the rating else OVERCURRENT

"First path found" depends on traversal order and is not guaranteed to be
the shortest loop.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from circuitlab.schemas.simulation import ErrorType, SimulationError
from circuitlab.simulation.components import is_open_switch
from circuitlab.simulation.models import Circuit, Net, Netlist, SimComponent, SimWire

DEFAULT_RESISTANCE_OHMS = 220.0
LED_TYPE = "led"

# Potentiometer fallback: below this drop the LED stays dark
FALLBACK_MIN_DROP_V = 1.8
FALLBACK_FULL_BRIGHTNESS_V = 3.0


@dataclass(frozen=True)
class LedRating:
    forward_voltage: float
    max_current: float  # amps


LED_DEFAULTS: dict[str, LedRating] = {
    "red": LedRating(forward_voltage=1.8, max_current=0.02),
    "yellow": LedRating(forward_voltage=2.0, max_current=0.02),
    "green": LedRating(forward_voltage=2.2, max_current=0.02),
}


def get_led_rating(color: str | None) -> LedRating:
    """Electrical rating for an LED colour; unknown colours behave as red."""
    key = (color or "red").lower()
    return LED_DEFAULTS.get(key, LED_DEFAULTS["red"])


@dataclass
class LedAnalysis:
    is_on: bool = False
    powered: bool = False
    brightness: float = 0.0
    current: float | None = None
    errors: list[SimulationError] = field(default_factory=list)


@dataclass
class _Edge:
    source: str
    target: str
    component: SimComponent


def _error(kind: ErrorType, message: str, led: SimComponent) -> SimulationError:
    return SimulationError(
        type=kind,
        message=message,
        affected_components=[led.placed_id],
    )


def _is_wired(led: SimComponent, terminal_id: str, wires: list[SimWire]) -> bool:
    return any(w.touches(led.placed_id, terminal_id) for w in wires)


def _awaiting_user(circuit: Circuit) -> bool:
    """An open switch or a potentiometer means the loop may still be closed
    by the user, so a missing loop is not reported."""
    return any(
        is_open_switch(c) or c.type == "potentiometer" for c in circuit.components
    )


def build_series_graph(
    circuit: Circuit, netlist: Netlist
) -> dict[str, list[_Edge]]:
    adjacency: dict[str, list[_Edge]] = {}
    for component in circuit.components:
        if len(component.terminals) != 2 or is_open_switch(component):
            continue
        first, second = component.terminals
        n1 = netlist.net_id_for(component.placed_id, first.id)
        n2 = netlist.net_id_for(component.placed_id, second.id)
        if n1 is None or n2 is None or n1 == n2:
            continue
        adjacency.setdefault(n1, []).append(_Edge(n1, n2, component))
        adjacency.setdefault(n2, []).append(_Edge(n2, n1, component))
    return adjacency


def find_led_loop(
    led: SimComponent,
    power_nets: list[Net],
    ground_nets: list[Net],
    adjacency: dict[str, list[_Edge]],
) -> tuple[list[_Edge], Net] | None:
    """First power → ground path through `led`, with its power net.

    Walks simple paths: a net is only excluded while it is already on the
    current path, so a branch that reaches ground around the LED (a
    parallel load) does not hide a later branch through it.
    """
    for power in power_nets:
        for ground in ground_nets:
            stack: list[tuple[str, list[_Edge], frozenset[str]]] = [
                (power.id, [], frozenset({power.id}))
            ]

            while stack:
                net_id, path, on_path = stack.pop()

                if net_id == ground.id:
                    if any(e.component is led for e in path):
                        return path, power
                    continue

                for edge in adjacency.get(net_id, []):
                    if edge.target not in on_path:
                        stack.append(
                            (edge.target, path + [edge], on_path | {edge.target})
                        )
    return None


def _potentiometer_fallback(
    circuit: Circuit, anode: Net, cathode: Net
) -> LedAnalysis | None:
    # Voltage-only heuristic for LEDs fed from a potentiometer wiper; the
    # loop is not verified and the current assumes a 220Ω resistor.
    if not anode.is_resolved or not cathode.is_resolved:
        return None
    drop = anode.voltage - cathode.voltage
    if drop < FALLBACK_MIN_DROP_V:
        return None
    if not any(c.type == "resistor" for c in circuit.components):
        return None
    return LedAnalysis(
        is_on=True,
        powered=True,
        brightness=min(1.0, drop / FALLBACK_FULL_BRIGHTNESS_V),
        current=drop / DEFAULT_RESISTANCE_OHMS,
    )


def analyze_led(
    led: SimComponent,
    circuit: Circuit,
    netlist: Netlist,
    wires: list[SimWire],
    default_resistance: float = DEFAULT_RESISTANCE_OHMS,
) -> LedAnalysis:
    result = LedAnalysis()

    if not _is_wired(led, "anode", wires) or not _is_wired(led, "cathode", wires):
        return result

    anode = netlist.net_for(led.placed_id, "anode")
    cathode = netlist.net_for(led.placed_id, "cathode")
    if anode is None or cathode is None:
        return result

    power_nets = [n for n in circuit.nets if n.is_power]
    ground_nets = [n for n in circuit.nets if n.is_ground]

    if not power_nets or not ground_nets:
        if not _awaiting_user(circuit):
            result.errors.append(
                _error(
                    ErrorType.OPEN_CIRCUIT,
                    "No closed loop detected for LED. Ensure there is both a "
                    "power source and ground in the circuit.",
                    led,
                )
            )
        return result

    adjacency = build_series_graph(circuit, netlist)
    loop = find_led_loop(led, power_nets, ground_nets, adjacency)

    if loop is None:
        if not _awaiting_user(circuit):
            result.errors.append(
                _error(
                    ErrorType.OPEN_CIRCUIT,
                    "No closed loop detected through this LED. Complete the path "
                    "from power through a resistor and LED to ground.",
                    led,
                )
            )
        if any(c.type == "potentiometer" for c in circuit.components):
            fallback = _potentiometer_fallback(circuit, anode, cathode)
            if fallback is not None:
                fallback.errors = result.errors
                return fallback
        return result

    path, power = loop
    led_edge = next(e for e in path if e.component is led)

    if not any(e.component.type == "resistor" for e in path):
        result.errors.append(
            _error(
                ErrorType.MISSING_RESISTOR,
                "LED is missing a series resistor in its loop. Add a resistor "
                "in series to limit current.",
                led,
            )
        )

    forward = led_edge.source == anode.id and led_edge.target == cathode.id
    reverse = led_edge.source == cathode.id and led_edge.target == anode.id

    if not forward and not reverse:
        result.errors.append(
            _error(
                ErrorType.OPEN_CIRCUIT,
                "LED is wired but not oriented in a valid path between power "
                "and ground. Check your wiring.",
                led,
            )
        )
        return result

    if reverse:
        result.errors.append(
            _error(
                ErrorType.REVERSE_POLARITY,
                "Wrong LED polarity: anode is at lower potential than cathode "
                "in the detected loop. Swap the LED leads.",
                led,
            )
        )
        result.powered = True
        return result

    total_resistance = 0.0
    for edge in path:
        if edge.component.type == "resistor":
            resistance = edge.component.state.resistance
            total_resistance += (
                default_resistance if resistance is None else resistance
            )

    result.powered = True

    if total_resistance <= 0:
        result.errors.append(
            _error(
                ErrorType.OVERCURRENT,
                "No resistance detected in LED loop. Add a resistor in series "
                "to limit current.",
                led,
            )
        )
        return result

    rating = get_led_rating(led.state.color)
    available = power.power_voltage - rating.forward_voltage
    if available <= 0:
        result.current = 0.0
        return result

    current = available / total_resistance
    result.current = current
    if current <= 0 or math.isnan(current):
        return result

    if current > rating.max_current:
        result.errors.append(
            _error(
                ErrorType.OVERCURRENT,
                f"Current exceeds safe limit for LED. Calculated current is "
                f"{current * 1000:.1f} mA (max {rating.max_current * 1000:.0f} mA). "
                f"Increase the resistor value.",
                led,
            )
        )
        return result

    result.is_on = True
    result.brightness = min(1.0, current / rating.max_current)
    return result
