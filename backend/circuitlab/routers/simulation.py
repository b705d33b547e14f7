"""Simulation router — stateless run and circuit file endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from circuitlab.schemas import CircuitData
from circuitlab.schemas.circuit_file import (
    CircuitFileExport,
    CircuitFileUpload,
    SimulationRunResponse,
)
from circuitlab.services.circuit_file import (
    CircuitFileError,
    generate_filename,
    parse_circuit_file,
    serialize_circuit,
)
from circuitlab.services.simulation_service import run_circuit

router = APIRouter()


@router.post("/run", response_model=SimulationRunResponse)
async def run_simulation(data: CircuitData):
    """Simulate a circuit snapshot. Nothing is stored between calls."""
    return run_circuit(data)


@router.post("/files/validate", response_model=CircuitData)
async def validate_file(upload: CircuitFileUpload):
    """Parse raw circuit file text and return its data."""
    try:
        return parse_circuit_file(upload.content)
    except CircuitFileError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e


@router.post("/files/export", response_model=CircuitFileExport)
async def export_file(data: CircuitData):
    """Wrap circuit data in a versioned file envelope."""
    return CircuitFileExport(
        filename=generate_filename(),
        file=serialize_circuit(data),
    )
