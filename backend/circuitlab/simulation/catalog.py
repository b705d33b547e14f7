"""Terminal Catalog — static terminal layout for every placeable component.

Pure data plus a few geometry helpers. The engine only reads terminal ids
and electrical roles; offsets are reported back to the renderer so wire
endpoints line up with the drawn pins.
"""

from __future__ import annotations

import math

from circuitlab.schemas.catalog import (
    CatalogEntry,
    TerminalDefinition,
    TerminalHit,
    TerminalMode,
    TerminalRole,
)
from circuitlab.schemas.circuit import PlacedComponent

_IN = TerminalMode.INPUT
_OUT = TerminalMode.OUTPUT
_BI = TerminalMode.BIDIRECTIONAL


def _t(
    terminal_id: str,
    name: str,
    role: TerminalRole,
    offset_x: float,
    offset_y: float,
    mode: TerminalMode,
) -> TerminalDefinition:
    return TerminalDefinition(
        id=terminal_id,
        name=name,
        role=role,
        offset_x=offset_x,
        offset_y=offset_y,
        mode=mode,
    )


# ─── Breadboard ───

BREADBOARD_COLUMNS = 30
BREADBOARD_PITCH = 8
_UPPER_ROWS = ("a", "b", "c", "d", "e")
_LOWER_ROWS = ("f", "g", "h", "i", "j")
_ROW_OFFSETS_Y = {
    "a": -35, "b": -27, "c": -19, "d": -11, "e": -3,
    "f": 13, "g": 21, "h": 29, "i": 37, "j": 45,
}
_RAILS = (
    ("power-top", "+", TerminalRole.POWER, -50),
    ("gnd-top", "-", TerminalRole.GROUND, -43),
    ("power-bottom", "+", TerminalRole.POWER, 52),
    ("gnd-bottom", "-", TerminalRole.GROUND, 59),
)


def _breadboard_column_x(col: int) -> float:
    start_x = -(BREADBOARD_COLUMNS * BREADBOARD_PITCH) / 2 + BREADBOARD_PITCH / 2
    return start_x + col * BREADBOARD_PITCH


def _breadboard_terminals() -> list[TerminalDefinition]:
    terminals: list[TerminalDefinition] = []
    for col in range(BREADBOARD_COLUMNS):
        x = _breadboard_column_x(col)
        for row in _UPPER_ROWS + _LOWER_ROWS:
            terminals.append(
                _t(
                    f"{row}{col + 1}",
                    f"{row.upper()}{col + 1}",
                    TerminalRole.SIGNAL,
                    x,
                    _ROW_OFFSETS_Y[row],
                    _BI,
                )
            )
    for col in range(BREADBOARD_COLUMNS):
        x = _breadboard_column_x(col)
        for prefix, name, role, offset_y in _RAILS:
            terminals.append(_t(f"{prefix}-{col + 1}", name, role, x, offset_y, _BI))
    return terminals


def breadboard_internal_connections() -> list[list[str]]:
    """Groups of breadboard holes that are joined by the board's metal strips."""
    strips: list[list[str]] = []
    for col in range(1, BREADBOARD_COLUMNS + 1):
        strips.append([f"{row}{col}" for row in _UPPER_ROWS])
        strips.append([f"{row}{col}" for row in _LOWER_ROWS])
    for prefix, _, _, _ in _RAILS:
        strips.append([f"{prefix}-{i}" for i in range(1, BREADBOARD_COLUMNS + 1)])
    return strips


# ─── Component terminal definitions ───

P = TerminalRole.POSITIVE
N = TerminalRole.NEGATIVE
S = TerminalRole.SIGNAL
PWR = TerminalRole.POWER
GND = TerminalRole.GROUND
D = TerminalRole.DATA
IO = TerminalRole.GPIO

TERMINAL_DEFINITIONS: dict[str, list[TerminalDefinition]] = {
    "led": [
        _t("anode", "Anode (+)", P, -8, 28, _IN),
        _t("cathode", "Cathode (-)", N, 8, 28, _IN),
    ],
    "resistor": [
        _t("term-a", "Terminal A", S, -30, 0, _BI),
        _t("term-b", "Terminal B", S, 30, 0, _BI),
    ],
    "button": [
        _t("in", "Input", S, -26, 0, _BI),
        _t("out", "Output", S, 26, 0, _BI),
    ],
    "buzzer": [
        _t("positive", "Positive (+)", P, -6, 20, _IN),
        _t("negative", "Negative (-)", N, 6, 20, _IN),
    ],
    "potentiometer": [
        _t("vcc", "VCC", PWR, -12, 24, _IN),
        _t("signal", "Signal", S, 0, 24, _OUT),
        _t("gnd", "GND", GND, 12, 24, _IN),
    ],
    "ultrasonic": [
        _t("vcc", "VCC", PWR, -15, 24, _IN),
        _t("trig", "TRIG", S, -5, 24, _IN),
        _t("echo", "ECHO", D, 5, 24, _OUT),
        _t("gnd", "GND", GND, 15, 24, _IN),
    ],
    "ir-sensor": [
        _t("vcc", "VCC", PWR, -10, 24, _IN),
        _t("out", "OUT", D, 0, 24, _OUT),
        _t("gnd", "GND", GND, 10, 24, _IN),
    ],
    "dht11": [
        _t("vcc", "VCC", PWR, -10, 28, _IN),
        _t("data", "DATA", D, 0, 28, _OUT),
        _t("gnd", "GND", GND, 10, 28, _IN),
    ],
    "servo": [
        _t("signal", "Signal (Orange)", S, -14, 20, _IN),
        _t("vcc", "VCC (Red)", PWR, 0, 20, _IN),
        _t("gnd", "GND (Brown)", GND, 14, 20, _IN),
    ],
    "5v": [
        _t("out", "5V Output", PWR, 0, 20, _OUT),
    ],
    "gnd": [
        _t("in", "Ground", GND, 0, -14, _IN),
    ],
    "arduino-uno": [
        # power row
        _t("5v", "5V", PWR, -56, -38, _OUT),
        _t("3v3", "3.3V", PWR, -42, -38, _OUT),
        _t("gnd", "GND", GND, -28, -38, _IN),
        _t("gnd2", "GND", GND, -14, -38, _IN),
        _t("vin", "VIN", PWR, 0, -38, _IN),
        # analog
        _t("a0", "A0", S, 18, -38, _BI),
        _t("a1", "A1", S, 32, -38, _BI),
        _t("a2", "A2", S, 46, -38, _BI),
        _t("a3", "A3", S, 60, -38, _BI),
        # digital
        _t("d13", "D13", IO, -56, 38, _BI),
        _t("d12", "D12", IO, -42, 38, _BI),
        _t("d11", "D11~", IO, -28, 38, _BI),
        _t("d10", "D10~", IO, -14, 38, _BI),
        _t("d9", "D9~", IO, 0, 38, _BI),
        _t("d8", "D8", IO, 14, 38, _BI),
        _t("d7", "D7", IO, 28, 38, _BI),
        _t("d6", "D6~", IO, 42, 38, _BI),
        _t("d5", "D5~", IO, 56, 38, _BI),
    ],
    "esp32": [
        # left header
        _t("3v3", "3.3V", PWR, -38, -35, _OUT),
        _t("gnd", "GND", GND, -38, -21, _IN),
        _t("d15", "D15", IO, -38, -7, _BI),
        _t("d2", "D2", IO, -38, 7, _BI),
        _t("d4", "D4", IO, -38, 21, _BI),
        _t("d5", "D5", IO, -38, 35, _BI),
        # right header
        _t("vin", "VIN", PWR, 38, -35, _IN),
        _t("gnd2", "GND", GND, 38, -21, _IN),
        _t("d13", "D13", IO, 38, -7, _BI),
        _t("d12", "D12", IO, 38, 7, _BI),
        _t("d14", "D14", IO, 38, 21, _BI),
        _t("d27", "D27", IO, 38, 35, _BI),
    ],
    "breadboard": _breadboard_terminals(),
}


# ─── Structural classification ───

POWER_SOURCE_TYPE = "5v"
POWER_SOURCE_VOLTAGE = 5.0
GROUND_TYPE = "gnd"
BREADBOARD_TYPE = "breadboard"

# Fixtures that cannot malfunction on their own
PASSIVE_FIXTURE_TYPES = frozenset({POWER_SOURCE_TYPE, GROUND_TYPE, BREADBOARD_TYPE})

# Two-terminal parts that only conduct while closed
SWITCH_TYPES = frozenset({"button"})

# board type -> (supply pin, logic/supply voltage)
BOARD_SUPPLY: dict[str, tuple[str, float]] = {
    "arduino-uno": ("5v", 5.0),
    "esp32": ("3v3", 3.3),
}
BOARD_GROUND_PIN = "gnd"


def component_types() -> list[str]:
    return list(TERMINAL_DEFINITIONS)


def get_terminals(component_type: str) -> list[TerminalDefinition] | None:
    return TERMINAL_DEFINITIONS.get(component_type)


def get_catalog_entry(component_type: str) -> CatalogEntry | None:
    terminals = get_terminals(component_type)
    if terminals is None:
        return None
    return CatalogEntry(type=component_type, terminals=terminals)


# ─── Geometry ───


def terminal_position(
    x: float,
    y: float,
    rotation: float,
    terminal: TerminalDefinition,
) -> tuple[float, float]:
    """Absolute canvas position of a terminal on a rotated component."""
    radians = math.radians(rotation)
    cos = math.cos(radians)
    sin = math.sin(radians)
    rotated_x = terminal.offset_x * cos - terminal.offset_y * sin
    rotated_y = terminal.offset_x * sin + terminal.offset_y * cos
    return x + rotated_x, y + rotated_y


def find_nearest_terminal(
    x: float,
    y: float,
    placed: list[PlacedComponent],
    threshold: float = 32,
) -> TerminalHit | None:
    """Closest terminal to (x, y) within `threshold` px, across all parts."""
    nearest: TerminalHit | None = None
    nearest_distance = threshold

    for component in placed:
        for terminal in TERMINAL_DEFINITIONS.get(component.type, []):
            tx, ty = terminal_position(
                component.x, component.y, component.rotation, terminal
            )
            distance = math.hypot(tx - x, ty - y)
            if distance < nearest_distance:
                nearest_distance = distance
                nearest = TerminalHit(
                    component_id=component.id,
                    terminal_id=terminal.id,
                    x=tx,
                    y=ty,
                )

    return nearest
