"""Voltage Propagator — fixed-point relaxation of floating nets.

Power nets are pinned to their source voltage and ground nets to 0V. Each
round then walks the still-floating nets and lets the parts touching them
drive a value:

  * resistor / closed switch: copy the voltage across from the other lead
    (node-voltage model; the resistor's drop only matters for current)
  * potentiometer wiper: GND + position * (VCC - GND)
  * IR sensor OUT: VCC when detecting, GND otherwise
  * ultrasonic ECHO: GND + the stored output voltage
  * DHT11 DATA: VCC while it holds a reading

Active parts only drive once their own supply is resolved and wide enough.
Nets that no round can reach stay NaN, i.e. floating.
"""

from __future__ import annotations

import logging

from circuitlab.simulation.components import is_closed_switch
from circuitlab.simulation.models import Circuit, Net, Netlist, SimComponent

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 100

IR_MIN_SUPPLY_V = 3.0
ULTRASONIC_MIN_SUPPLY_V = 4.0
DHT11_MIN_SUPPLY_V = 3.0


def resolved_supply(
    component: SimComponent,
    netlist: Netlist,
    vcc_terminal: str = "vcc",
    gnd_terminal: str = "gnd",
) -> tuple[Net, Net] | None:
    """(VCC net, GND net) of a part, or None unless both are resolved."""
    vcc = netlist.net_for(component.placed_id, vcc_terminal)
    gnd = netlist.net_for(component.placed_id, gnd_terminal)
    if vcc is None or gnd is None or not vcc.is_resolved or not gnd.is_resolved:
        return None
    return vcc, gnd


def _pass_through(
    component: SimComponent, terminal_id: str, netlist: Netlist
) -> float | None:
    other = component.other_terminal(terminal_id)
    if other is None:
        return None
    other_net = netlist.net_for(component.placed_id, other.id)
    if other_net is None or not other_net.is_resolved:
        return None
    return other_net.voltage


def _driven_voltage(
    component: SimComponent, terminal_id: str, netlist: Netlist
) -> float | None:
    """Voltage this part drives onto the net holding `terminal_id`, if any."""
    kind = component.type

    if kind == "resistor":
        return _pass_through(component, terminal_id, netlist)

    if kind == "button":
        if is_closed_switch(component):
            return _pass_through(component, terminal_id, netlist)
        return None

    if kind == "potentiometer" and terminal_id == "signal":
        supply = resolved_supply(component, netlist)
        if supply is None:
            return None
        vcc, gnd = supply
        position = component.state.position
        return gnd.voltage + position * (vcc.voltage - gnd.voltage)

    if kind == "ir-sensor" and terminal_id == "out":
        supply = resolved_supply(component, netlist)
        if supply is None:
            return None
        vcc, gnd = supply
        if vcc.voltage - gnd.voltage < IR_MIN_SUPPLY_V:
            return None
        return vcc.voltage if component.state.detected else gnd.voltage

    if kind == "ultrasonic" and terminal_id == "echo":
        supply = resolved_supply(component, netlist)
        if supply is None:
            return None
        vcc, gnd = supply
        if vcc.voltage - gnd.voltage < ULTRASONIC_MIN_SUPPLY_V:
            return None
        return gnd.voltage + component.state.output_voltage

    if kind == "dht11" and terminal_id == "data":
        supply = resolved_supply(component, netlist)
        if supply is None:
            return None
        vcc, gnd = supply
        if vcc.voltage - gnd.voltage < DHT11_MIN_SUPPLY_V:
            return None
        state = component.state
        if state.temperature is None or state.humidity is None:
            return None
        return vcc.voltage

    return None


def propagate_voltages(
    circuit: Circuit,
    netlist: Netlist,
    max_iterations: int = MAX_ITERATIONS,
) -> int:
    """Resolve as many floating nets of `circuit` as possible.

    Returns the number of rounds run. Stops early on a round that
    resolves nothing; `max_iterations` bounds pathological graphs.
    """
    for net in circuit.nets:
        if net.is_power:
            net.voltage = net.power_voltage
        elif net.is_ground:
            net.voltage = 0.0

    components = {c.placed_id: c for c in circuit.components}
    changed = True
    iterations = 0

    while changed and iterations < max_iterations:
        changed = False
        iterations += 1

        for net in circuit.nets:
            if net.is_resolved:
                continue
            for component_id, terminal_id in net.terminals:
                component = components.get(component_id)
                if component is None:
                    continue
                voltage = _driven_voltage(component, terminal_id, netlist)
                if voltage is not None:
                    net.voltage = voltage
                    changed = True
                    break

    if changed:
        logger.warning(
            "Propagation for %s hit the %d-round cap; remaining nets stay floating",
            circuit.id,
            max_iterations,
        )
    else:
        logger.debug("Propagation for %s settled after %d rounds", circuit.id, iterations)
    return iterations
