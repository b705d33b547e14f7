from circuitlab.schemas.circuit import CircuitData, PlacedComponent, WireData
from circuitlab.schemas.catalog import CatalogEntry, TerminalDefinition
from circuitlab.schemas.simulation import SimulationError, SimulationResult
from circuitlab.schemas.circuit_file import CircuitFile

__all__ = [
    "CircuitData",
    "PlacedComponent",
    "WireData",
    "CatalogEntry",
    "TerminalDefinition",
    "SimulationError",
    "SimulationResult",
    "CircuitFile",
]
