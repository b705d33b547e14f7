"""Circuit file format — save/load of a whole workbench session.

A file wraps `CircuitData` (parts, wires, resistor values, control states
and the logic panel's pin map) in a small versioned envelope.
"""

from __future__ import annotations

import json
import time
from datetime import datetime

from pydantic import ValidationError

from circuitlab.schemas.circuit import CircuitData
from circuitlab.schemas.circuit_file import CircuitFile

CIRCUIT_FILE_VERSION = "1.0"
CIRCUIT_FILE_TYPE = "electronic-simulation"
CIRCUIT_FILE_SUFFIX = ".circuit.json"


class CircuitFileError(ValueError):
    """Raised when a circuit file cannot be parsed or has the wrong shape."""


def serialize_circuit(data: CircuitData, timestamp: int | None = None) -> CircuitFile:
    return CircuitFile(
        version=CIRCUIT_FILE_VERSION,
        type=CIRCUIT_FILE_TYPE,
        timestamp=timestamp if timestamp is not None else int(time.time() * 1000),
        data=data,
    )


def generate_filename(now: datetime | None = None) -> str:
    """circuit-YYYY-MM-DD-HHMM.circuit.json"""
    now = now or datetime.now()
    return f"circuit-{now:%Y-%m-%d-%H%M}{CIRCUIT_FILE_SUFFIX}"


def _require_list(data: dict, key: str) -> list:
    value = data.get(key)
    if not isinstance(value, list):
        raise CircuitFileError(f"Invalid {key} format")
    return value


def parse_circuit_file(content: str) -> CircuitData:
    """Validate raw file text and return its circuit data.

    Optional maps (resistor values, control states, pin states) default to
    empty when absent.

    The envelope and the component and wire lists are checked by hand first,
    so a broken file reports the loader's own message (e.g. "Invalid wire
    data structure") to the upload dialog. Everything else, such as field
    types and non-finite resistor values, is left to `CircuitData` and
    surfaces as "Invalid circuit data: <n> error(s)".
    """
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        raise CircuitFileError("Invalid JSON format") from e

    if not isinstance(parsed, dict):
        raise CircuitFileError("Invalid JSON format")
    if not parsed.get("version"):
        raise CircuitFileError("Missing version field")
    if parsed.get("type") != CIRCUIT_FILE_TYPE:
        raise CircuitFileError(
            f"Invalid file type. Expected '{CIRCUIT_FILE_TYPE}'"
        )

    data = parsed.get("data")
    if not isinstance(data, dict):
        raise CircuitFileError("Missing data field")

    for component in _require_list(data, "placed_components"):
        if (
            not isinstance(component, dict)
            or not component.get("id")
            or not component.get("type")
            or not isinstance(component.get("x"), (int, float))
            or not isinstance(component.get("y"), (int, float))
        ):
            raise CircuitFileError("Invalid component data structure")

    for wire in _require_list(data, "wires"):
        if not isinstance(wire, dict) or not wire.get("id"):
            raise CircuitFileError("Invalid wire data structure")

    try:
        return CircuitData(
            placed_components=data["placed_components"],
            wires=data["wires"],
            resistor_values=data.get("resistor_values") or {},
            control_states=data.get("control_states") or {},
            mcu_pin_states=data.get("mcu_pin_states") or {},
        )
    except ValidationError as e:
        raise CircuitFileError(f"Invalid circuit data: {e.error_count()} error(s)") from e
