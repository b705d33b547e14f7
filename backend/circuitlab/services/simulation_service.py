"""Run session — the host's "run" step around the engine.

Pushes resistor values, control states and scene-derived sensor readings
into the engine, simulates, then feeds each servo's signal voltage back
into its angle so the next run starts from the moved horn.
"""

from __future__ import annotations

import logging
import math

from circuitlab.schemas.circuit import CircuitData, ControlState, PlacedComponent
from circuitlab.schemas.circuit_file import SimulationRunResponse
from circuitlab.simulation.engine import SimulationEngine

logger = logging.getLogger(__name__)

OBJECT_TYPE = "object"
IR_DETECTION_RADIUS_PX = 80.0
ULTRASONIC_MAX_RADIUS_PX = 400.0
ULTRASONIC_MIN_CM = 2.0
ULTRASONIC_MAX_CM = 400.0
DEFAULT_POT_POSITION = 0.5
DEFAULT_TEMPERATURE_C = 25.0
DEFAULT_HUMIDITY_PCT = 50.0
DEFAULT_SERVO_ANGLE = 90.0


def _distance_px(a: PlacedComponent, b: PlacedComponent) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def ir_detects_object(sensor: PlacedComponent, objects: list[PlacedComponent]) -> bool:
    return any(_distance_px(sensor, obj) <= IR_DETECTION_RADIUS_PX for obj in objects)


def ultrasonic_distance_cm(
    sensor: PlacedComponent, objects: list[PlacedComponent]
) -> float:
    """Nearest object mapped from pixels onto the sensor's 2..400 cm range."""
    if not objects:
        return ULTRASONIC_MAX_CM
    nearest_px = min(_distance_px(sensor, obj) for obj in objects)
    span = ULTRASONIC_MAX_CM - ULTRASONIC_MIN_CM
    distance = ULTRASONIC_MIN_CM + (nearest_px / ULTRASONIC_MAX_RADIUS_PX) * span
    return max(ULTRASONIC_MIN_CM, min(ULTRASONIC_MAX_CM, distance))


def ultrasonic_voltage(distance_cm: float) -> float:
    """2 cm → 4.5V down to 400 cm → 0.5V, linear and clamped."""
    span = ULTRASONIC_MAX_CM - ULTRASONIC_MIN_CM
    voltage = 4.5 - ((distance_cm - ULTRASONIC_MIN_CM) / span) * 4.0
    return max(0.5, min(4.5, voltage))


def apply_controls(engine: SimulationEngine, data: CircuitData) -> dict[str, ControlState]:
    """Write every host-side reading into the engine's state bags.

    Returns the control states as applied, including readings derived from
    `object` props in the scene.
    """
    objects = [p for p in data.placed_components if p.type == OBJECT_TYPE]
    applied = {k: v.model_copy() for k, v in data.control_states.items()}

    for placed_id, resistance in data.resistor_values.items():
        engine.set_resistor_resistance(placed_id, resistance)

    for placed in data.placed_components:
        control = applied.setdefault(placed.id, ControlState())

        if placed.type == "button":
            engine.set_button_pressed(placed.id, control.button_pressed is True)

        elif placed.type == "potentiometer":
            position = control.pot_position
            engine.set_potentiometer_position(
                placed.id, DEFAULT_POT_POSITION if position is None else position
            )

        elif placed.type == "ir-sensor":
            if control.ir_detected is None:
                control.ir_detected = ir_detects_object(placed, objects)
            engine.set_ir_detected(placed.id, control.ir_detected)

        elif placed.type == "ultrasonic":
            if control.ultrasonic_distance is None:
                control.ultrasonic_distance = ultrasonic_distance_cm(placed, objects)
            engine.set_ultrasonic_distance(placed.id, control.ultrasonic_distance)
            engine.set_ultrasonic_voltage(
                placed.id, ultrasonic_voltage(control.ultrasonic_distance)
            )

        elif placed.type == "dht11":
            engine.set_dht11_values(
                placed.id,
                DEFAULT_TEMPERATURE_C if control.temperature is None else control.temperature,
                DEFAULT_HUMIDITY_PCT if control.humidity is None else control.humidity,
            )

        elif placed.type == "servo":
            if control.servo_angle is not None:
                engine.set_servo_angle(placed.id, control.servo_angle)

    return applied


def update_servos(
    engine: SimulationEngine,
    data: CircuitData,
    control_states: dict[str, ControlState],
) -> None:
    """Drive each powered servo from its signal; unpowered servos stay frozen."""
    for placed in data.placed_components:
        if placed.type != "servo":
            continue
        signal = engine.servo_signal_voltage(placed.id)
        if not signal.powered:
            continue

        control = control_states.setdefault(placed.id, ControlState())
        angle = engine.servo_angle_from_signal(placed.id)
        if angle is None:
            # floating signal: hold the last commanded angle
            angle = (
                DEFAULT_SERVO_ANGLE
                if control.servo_angle is None
                else control.servo_angle
            )
        engine.set_servo_angle(placed.id, angle)
        control.servo_angle = angle


def run_circuit(
    data: CircuitData, engine: SimulationEngine | None = None
) -> SimulationRunResponse:
    engine = engine or SimulationEngine()
    engine.load_circuit(data.placed_components, data.wires)

    control_states = apply_controls(engine, data)
    result = engine.simulate(data.mcu_pin_states)
    update_servos(engine, data, control_states)

    logger.info(
        "Run finished: %d circuits, valid=%s, %d errors",
        len(result.circuits),
        result.is_valid,
        len(result.errors),
    )
    return SimulationRunResponse(result=result, control_states=control_states)
