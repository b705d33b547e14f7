"""Components router — terminal catalog lookups for the canvas."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from circuitlab.schemas import CatalogEntry
from circuitlab.simulation.catalog import component_types, get_catalog_entry

router = APIRouter()


@router.get("/", response_model=list[CatalogEntry])
async def list_all_components():
    """Return every placeable component with its terminal layout."""
    return [get_catalog_entry(t) for t in component_types()]


@router.get("/{component_type}", response_model=CatalogEntry)
async def get_component(component_type: str):
    """Return one component's terminal layout."""
    entry = get_catalog_entry(component_type)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Component type {component_type!r} not found",
        )
    return entry
