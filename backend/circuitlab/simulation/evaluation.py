"""Component Evaluator — resolved net voltages into visible part state."""

from __future__ import annotations

from circuitlab.schemas.simulation import ComponentState
from circuitlab.simulation.catalog import BOARD_GROUND_PIN, BOARD_SUPPLY
from circuitlab.simulation.led import LedAnalysis
from circuitlab.simulation.models import Circuit, Netlist, SimComponent
from circuitlab.simulation.propagation import (
    DHT11_MIN_SUPPLY_V,
    IR_MIN_SUPPLY_V,
    ULTRASONIC_MIN_SUPPLY_V,
    resolved_supply,
)

BUZZER_MIN_DROP_V = 3.0
SERVO_MIN_SUPPLY_V = 4.0
POTENTIOMETER_MIN_SUPPLY_V = 1.0


def _supply_difference(component: SimComponent, netlist: Netlist) -> float | None:
    supply = resolved_supply(component, netlist)
    if supply is None:
        return None
    vcc, gnd = supply
    return vcc.voltage - gnd.voltage


def inert_state(component: SimComponent) -> ComponentState:
    """Unpowered, inactive snapshot of a part's own state bag."""
    return ComponentState(
        component_id=component.placed_id,
        type=component.type,
        properties=component.state.model_dump(),
    )


def evaluate_component(
    component: SimComponent,
    netlist: Netlist,
    led_analysis: LedAnalysis | None = None,
) -> ComponentState:
    result = inert_state(component)
    props = result.properties
    kind = component.type

    if kind == "led":
        if led_analysis is not None:
            result.is_active = led_analysis.is_on
            result.powered = led_analysis.powered
            props["glowing"] = led_analysis.is_on
            props["brightness"] = led_analysis.brightness
            if led_analysis.current is not None:
                props["current"] = led_analysis.current

    elif kind == "buzzer":
        pos = netlist.net_for(component.placed_id, "positive")
        neg = netlist.net_for(component.placed_id, "negative")
        if pos and neg and pos.is_resolved and neg.is_resolved:
            if abs(pos.voltage - neg.voltage) >= BUZZER_MIN_DROP_V:
                result.is_active = True
                result.powered = True
                props["active"] = True

    elif kind == "servo":
        diff = _supply_difference(component, netlist)
        if diff is not None and diff >= SERVO_MIN_SUPPLY_V:
            result.powered = True
            props["powered"] = True
            props["angle"] = component.state.angle

    elif kind == "ir-sensor":
        diff = _supply_difference(component, netlist)
        if diff is not None and diff >= IR_MIN_SUPPLY_V:
            result.powered = True
            result.is_active = True
            props["detected"] = component.state.detected

    elif kind == "ultrasonic":
        diff = _supply_difference(component, netlist)
        if diff is not None and diff >= ULTRASONIC_MIN_SUPPLY_V:
            result.powered = True
            result.is_active = True
            props["distance"] = component.state.distance

    elif kind == "dht11":
        diff = _supply_difference(component, netlist)
        if diff is not None and diff >= DHT11_MIN_SUPPLY_V:
            result.powered = True
            result.is_active = True
            props["temperature"] = component.state.temperature
            props["humidity"] = component.state.humidity

    elif kind == "potentiometer":
        supply = resolved_supply(component, netlist)
        if supply is not None:
            vcc, gnd = supply
            diff = vcc.voltage - gnd.voltage
            if diff >= POTENTIOMETER_MIN_SUPPLY_V:
                result.powered = True
                result.is_active = True
                props["position"] = component.state.position
                props["output_voltage"] = gnd.voltage + component.state.position * diff

    elif kind == "5v":
        result.is_active = True
        result.powered = True

    elif kind == "gnd":
        result.is_active = True

    elif kind in BOARD_SUPPLY:
        supply_pin, _ = BOARD_SUPPLY[kind]
        # no threshold: any resolved supply and ground will do
        if resolved_supply(component, netlist, supply_pin, BOARD_GROUND_PIN):
            result.powered = True
            result.is_active = True
            props["powered"] = True

    return result


def evaluate_components(
    circuit: Circuit,
    netlist: Netlist,
    led_analyses: dict[str, LedAnalysis] | None = None,
) -> dict[str, ComponentState]:
    analyses = led_analyses or {}
    return {
        c.placed_id: evaluate_component(c, netlist, analyses.get(c.placed_id))
        for c in circuit.components
    }
