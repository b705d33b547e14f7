"""Error Classifier — structural wiring checks per circuit cluster.

Faults are returned as `SimulationError` records tagged with the cluster
id; nothing here raises. A short circuit is the only fault that silences a
whole cluster, and it is checked before any voltage is propagated.
"""

from __future__ import annotations

from circuitlab.schemas.simulation import ErrorType, SimulationError
from circuitlab.simulation.catalog import PASSIVE_FIXTURE_TYPES
from circuitlab.simulation.led import LedAnalysis
from circuitlab.simulation.models import Circuit

SHORT_CIRCUIT_MESSAGE = (
    "Short circuit in this circuit cluster! Power and ground are directly connected."
)


def detect_short_circuit(circuit: Circuit) -> SimulationError | None:
    """First net that is both power and ground, reported as a short."""
    for net in circuit.nets:
        if net.is_power and net.is_ground:
            return SimulationError(
                type=ErrorType.SHORT_CIRCUIT,
                message=SHORT_CIRCUIT_MESSAGE,
                affected_components=net.component_ids(),
                cluster_id=circuit.id,
            )
    return None


def has_active_components(circuit: Circuit) -> bool:
    return any(c.type not in PASSIVE_FIXTURE_TYPES for c in circuit.components)


def detect_circuit_errors(
    circuit: Circuit,
    led_analyses: dict[str, LedAnalysis] | None = None,
) -> list[SimulationError]:
    """Ground/power presence, shorts and per-LED findings for one cluster."""
    errors: list[SimulationError] = []
    if not has_active_components(circuit):
        return errors

    all_ids = [c.placed_id for c in circuit.components]

    if not circuit.has_ground:
        errors.append(
            SimulationError(
                type=ErrorType.NO_GROUND,
                message="Circuit is missing a ground connection. Add a GND component.",
                affected_components=all_ids,
                cluster_id=circuit.id,
            )
        )

    if not circuit.has_power:
        errors.append(
            SimulationError(
                type=ErrorType.NO_POWER,
                message=(
                    "Circuit is missing a power source. Add a 5V or use "
                    "Arduino/ESP32 power pins."
                ),
                affected_components=all_ids,
                cluster_id=circuit.id,
            )
        )

    for net in circuit.nets:
        if net.is_power and net.is_ground:
            errors.append(
                SimulationError(
                    type=ErrorType.SHORT_CIRCUIT,
                    message=SHORT_CIRCUIT_MESSAGE,
                    affected_components=net.component_ids(),
                    cluster_id=circuit.id,
                )
            )

    for analysis in (led_analyses or {}).values():
        errors.extend(
            e.model_copy(update={"cluster_id": circuit.id}) for e in analysis.errors
        )

    return errors
