"""Circuit Lab — virtual electronics workbench backend.

Responsibilities:
  1. Terminal catalog for the canvas
  2. Circuit simulation (nets, clusters, voltages, wiring diagnostics)
  3. Circuit file import/export

Stateless: every request carries the full circuit snapshot.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from circuitlab import __version__
from circuitlab.config import get_settings
from circuitlab.routers import components, simulation


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    application = FastAPI(
        title=settings.app_name,
        version=__version__,
        description=(
            "Circuit Lab — virtual electronics workbench.\n\n"
            "Builds nets from placed parts and wires, propagates node "
            "voltages and reports wiring faults per circuit cluster."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ─── Component catalog ───
    application.include_router(
        components.router, prefix="/api/components", tags=["Components"]
    )

    # ─── Simulation + circuit files ───
    application.include_router(
        simulation.router, prefix="/api/simulation", tags=["Simulation"]
    )

    return application


app = create_app()


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "circuit-lab", "version": __version__}
