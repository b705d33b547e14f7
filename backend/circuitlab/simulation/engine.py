"""Simulation Engine — one deterministic pass over a placed circuit.

Pipeline per `simulate()` call:
  normalize switches → build nets → partition clusters → per cluster:
  short-circuit guard → propagate voltages → classify errors → evaluate
  components → snapshot nets.

Nets and clusters are rebuilt from scratch on every call. Only the
components' state bags persist between calls; the host writes them through
the mutators below (button presses, slider positions, sensor readings).
"""

from __future__ import annotations

import logging
import math

from circuitlab.config import Settings, get_settings
from circuitlab.schemas.circuit import McuPinStateMap, PlacedComponent, WireData
from circuitlab.schemas.simulation import (
    CircuitSummary,
    ComponentState,
    NetState,
    Severity,
    ServoSignal,
    SimulationError,
    SimulationResult,
)
from circuitlab.schemas.state import ButtonState
from circuitlab.simulation.components import create_sim_component, normalize_switches
from circuitlab.simulation.diagnostics import (
    detect_circuit_errors,
    detect_short_circuit,
)
from circuitlab.simulation.evaluation import (
    SERVO_MIN_SUPPLY_V,
    evaluate_components,
    inert_state,
)
from circuitlab.simulation.led import LED_TYPE, LedAnalysis, analyze_led
from circuitlab.simulation.models import Circuit, Net, Netlist, SimComponent, SimWire
from circuitlab.simulation.nets import build_nets
from circuitlab.simulation.partition import build_circuits
from circuitlab.simulation.propagation import propagate_voltages, resolved_supply

logger = logging.getLogger(__name__)

SERVO_MAX_ANGLE = 180.0
ULTRASONIC_MIN_OUTPUT_V = 0.5
ULTRASONIC_MAX_OUTPUT_V = 4.5
DHT11_TEMPERATURE_RANGE = (0.0, 50.0)
DHT11_HUMIDITY_RANGE = (0.0, 100.0)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _net_state(net: Net) -> NetState:
    return NetState(
        net_id=net.id,
        voltage=net.voltage,
        is_ground=net.is_ground,
        is_power=net.is_power,
    )


def _summarize(circuit: Circuit) -> CircuitSummary:
    return CircuitSummary(
        id=circuit.id,
        component_ids=[c.placed_id for c in circuit.components],
        net_ids=[n.id for n in circuit.nets],
        wire_ids=[w.id for w in circuit.wires],
        has_ground=circuit.has_ground,
        has_power=circuit.has_power,
        is_complete=circuit.is_complete,
    )


class SimulationEngine:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.components: dict[str, SimComponent] = {}
        self.wires: list[SimWire] = []
        self.netlist = Netlist()
        self.circuits: list[Circuit] = []
        self.pin_states: McuPinStateMap = {}

    def reset(self) -> None:
        self.components = {}
        self.wires = []
        self.netlist = Netlist()
        self.circuits = []
        self.pin_states = {}

    # ─── Loading ───

    def load_circuit(
        self, placed: list[PlacedComponent], wires: list[WireData]
    ) -> None:
        """Replace the loaded circuit. Wires missing either terminal are dropped."""
        self.reset()

        for record in placed:
            component = create_sim_component(record)
            if component is not None:
                self.components[record.id] = component

        for wire in wires:
            if wire.start_terminal is None or wire.end_terminal is None:
                logger.debug("Ignoring wire %s: not attached at both ends", wire.id)
                continue
            self.wires.append(
                SimWire(
                    id=wire.id,
                    start_component_id=wire.start_terminal.component_id,
                    start_terminal_id=wire.start_terminal.terminal_id,
                    end_component_id=wire.end_terminal.component_id,
                    end_terminal_id=wire.end_terminal.terminal_id,
                )
            )

    # ─── Mutators ───

    def _component(self, placed_id: str, component_type: str) -> SimComponent | None:
        component = self.components.get(placed_id)
        if component is None or component.type != component_type:
            logger.debug("No %s with id %s; ignoring update", component_type, placed_id)
            return None
        return component

    def set_resistor_resistance(self, placed_id: str, resistance: float) -> None:
        component = self._component(placed_id, "resistor")
        if component is None:
            return
        if not math.isfinite(resistance):
            logger.debug("Ignoring non-finite resistance for %s", placed_id)
            return
        component.state.resistance = resistance

    def set_button_pressed(self, placed_id: str, pressed: bool) -> None:
        component = self._component(placed_id, "button")
        if component:
            if not isinstance(component.state, ButtonState):
                component.state = ButtonState()
            component.state.pressed = pressed is True

    def set_potentiometer_position(self, placed_id: str, position: float) -> None:
        component = self._component(placed_id, "potentiometer")
        if component:
            component.state.position = _clamp(position, 0.0, 1.0)

    def set_ir_detected(self, placed_id: str, detected: bool) -> None:
        component = self._component(placed_id, "ir-sensor")
        if component:
            component.state.detected = detected is True

    def set_ultrasonic_voltage(self, placed_id: str, voltage: float) -> None:
        component = self._component(placed_id, "ultrasonic")
        if component:
            component.state.output_voltage = _clamp(
                voltage, ULTRASONIC_MIN_OUTPUT_V, ULTRASONIC_MAX_OUTPUT_V
            )

    def set_ultrasonic_distance(self, placed_id: str, distance: float) -> None:
        component = self._component(placed_id, "ultrasonic")
        if component:
            component.state.distance = distance

    def set_dht11_values(
        self, placed_id: str, temperature: float, humidity: float
    ) -> None:
        component = self._component(placed_id, "dht11")
        if component:
            component.state.temperature = _clamp(temperature, *DHT11_TEMPERATURE_RANGE)
            component.state.humidity = _clamp(humidity, *DHT11_HUMIDITY_RANGE)

    def set_servo_angle(self, placed_id: str, angle: float) -> None:
        component = self._component(placed_id, "servo")
        if component:
            component.state.angle = _clamp(angle, 0.0, SERVO_MAX_ANGLE)

    # ─── Queries ───

    def servo_signal_voltage(self, placed_id: str) -> ServoSignal:
        """Signal voltage relative to the servo's GND, from the last pass.

        `powered` requires VCC - GND >= 4V; `voltage` is None while the
        signal net floats.
        """
        component = self.components.get(placed_id)
        if component is None or component.type != "servo":
            return ServoSignal()

        supply = resolved_supply(component, self.netlist)
        if supply is None:
            return ServoSignal()
        vcc, gnd = supply
        if vcc.voltage - gnd.voltage < SERVO_MIN_SUPPLY_V:
            return ServoSignal()

        signal = self.netlist.net_for(placed_id, "signal")
        if signal is None or not signal.is_resolved:
            return ServoSignal(powered=True)
        return ServoSignal(voltage=max(0.0, signal.voltage - gnd.voltage), powered=True)

    def servo_angle_from_signal(self, placed_id: str) -> float | None:
        """Map the signal voltage linearly onto 0°..180° across the supply."""
        signal = self.servo_signal_voltage(placed_id)
        if not signal.powered or signal.voltage is None:
            return None
        vcc, gnd = resolved_supply(self.components[placed_id], self.netlist)
        supply = vcc.voltage - gnd.voltage
        return _clamp(signal.voltage / supply * SERVO_MAX_ANGLE, 0.0, SERVO_MAX_ANGLE)

    def get_circuits(self) -> list[Circuit]:
        return self.circuits

    def get_nets(self) -> dict[str, Net]:
        return self.netlist.nets

    def get_components(self) -> dict[str, SimComponent]:
        return self.components

    # ─── Simulation ───

    def _analyze_leds(self, circuit: Circuit) -> dict[str, LedAnalysis]:
        return {
            c.placed_id: analyze_led(
                c,
                circuit,
                self.netlist,
                self.wires,
                self.settings.default_resistance_ohms,
            )
            for c in circuit.components
            if c.type == LED_TYPE
        }

    def simulate(self, pin_states: McuPinStateMap | None = None) -> SimulationResult:
        self.pin_states = pin_states or {}
        components = list(self.components.values())

        normalize_switches(components)
        self.netlist = build_nets(
            components,
            self.wires,
            self.pin_states,
            breadboard_strips=self.settings.breadboard_strips,
        )
        self.circuits = build_circuits(components, self.netlist, self.wires)

        component_states: dict[str, ComponentState] = {}
        net_states: dict[str, NetState] = {}
        issues: list[SimulationError] = []

        for circuit in self.circuits:
            short = detect_short_circuit(circuit)
            if short is not None:
                logger.info(
                    "%s is short-circuited; skipping propagation and evaluation",
                    circuit.id,
                )
                issues.append(short)
                for component in circuit.components:
                    component_states[component.placed_id] = inert_state(component)
                for net in circuit.nets:
                    net_states[net.id] = _net_state(net)
                continue

            propagate_voltages(
                circuit, self.netlist, self.settings.propagation_max_iterations
            )
            led_analyses = self._analyze_leds(circuit)
            issues.extend(detect_circuit_errors(circuit, led_analyses))
            component_states.update(
                evaluate_components(circuit, self.netlist, led_analyses)
            )
            for net in circuit.nets:
                net_states[net.id] = _net_state(net)

        errors = [e for e in issues if e.severity == Severity.ERROR]
        warnings = [e for e in issues if e.severity == Severity.WARNING]

        logger.debug(
            "Simulated %d components in %d circuits: %d errors, %d warnings",
            len(components),
            len(self.circuits),
            len(errors),
            len(warnings),
        )

        return SimulationResult(
            is_valid=len(errors) == 0,
            circuits=[_summarize(c) for c in self.circuits],
            errors=errors,
            warnings=warnings,
            component_states=component_states,
            net_states=net_states,
        )


def simulate_circuit(
    placed: list[PlacedComponent],
    wires: list[WireData],
    pin_states: McuPinStateMap | None = None,
    settings: Settings | None = None,
) -> SimulationResult:
    """Load and simulate a circuit once on a throwaway engine."""
    engine = SimulationEngine(settings)
    engine.load_circuit(placed, wires)
    return engine.simulate(pin_states)
