"""Component Instantiator — placed records into live component instances."""

from __future__ import annotations

import logging

from circuitlab.schemas.circuit import PlacedComponent
from circuitlab.schemas.state import (
    BoardState,
    BreadboardState,
    ButtonState,
    BuzzerState,
    ComponentStateBag,
    Dht11State,
    EmptyState,
    GroundState,
    IrSensorState,
    LedState,
    PotentiometerState,
    PowerSourceState,
    ResistorState,
    ServoState,
    UltrasonicState,
)
from circuitlab.simulation.catalog import SWITCH_TYPES, get_terminals
from circuitlab.simulation.models import SimComponent, SimTerminal

logger = logging.getLogger(__name__)

_INITIAL_STATES: dict[str, type[ComponentStateBag]] = {
    "led": LedState,
    "resistor": ResistorState,
    "button": ButtonState,
    "buzzer": BuzzerState,
    "potentiometer": PotentiometerState,
    "servo": ServoState,
    "ultrasonic": UltrasonicState,
    "ir-sensor": IrSensorState,
    "dht11": Dht11State,
    "5v": PowerSourceState,
    "gnd": GroundState,
    "arduino-uno": BoardState,
    "esp32": BoardState,
    "breadboard": BreadboardState,
}


def initial_state(component_type: str) -> ComponentStateBag:
    """Fresh default state bag for a component type."""
    return _INITIAL_STATES.get(component_type, EmptyState)()


def create_sim_component(placed: PlacedComponent) -> SimComponent | None:
    """Instantiate a placed component, or None when the type has no terminals
    in the catalog (scene props such as `object`)."""
    definitions = get_terminals(placed.type)
    if definitions is None:
        logger.debug("Skipping %s: no catalog entry for type %r", placed.id, placed.type)
        return None

    terminals = [
        SimTerminal(
            id=d.id,
            name=d.name,
            role=d.role,
            mode=d.mode,
            offset_x=d.offset_x,
            offset_y=d.offset_y,
        )
        for d in definitions
    ]
    return SimComponent(
        placed_id=placed.id,
        type=placed.type,
        terminals=terminals,
        state=initial_state(placed.type),
        x=placed.x,
        y=placed.y,
        rotation=placed.rotation,
    )


def is_closed_switch(component: SimComponent) -> bool:
    return component.type in SWITCH_TYPES and getattr(
        component.state, "pressed", False
    ) is True


def is_open_switch(component: SimComponent) -> bool:
    return component.type in SWITCH_TYPES and not is_closed_switch(component)


def normalize_switches(components: list[SimComponent]) -> None:
    """Collapse every switch's pressed flag to a strict bool.

    Anything other than a literal True (None, "true", 1, a missing state)
    becomes False, so a half-initialized bag can never close a contact.
    """
    for component in components:
        if component.type not in SWITCH_TYPES:
            continue
        if not isinstance(component.state, ButtonState):
            component.state = ButtonState()
        component.state.pressed = component.state.pressed is True
