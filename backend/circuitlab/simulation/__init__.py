from circuitlab.simulation.engine import SimulationEngine, simulate_circuit

__all__ = ["SimulationEngine", "simulate_circuit"]
