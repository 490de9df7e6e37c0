"""
Interaction Graph: API Server
=============================

HTTP surface over one InteractionGraphEngine instance.

Endpoints:
- GET  /health                     -> Liveness
- GET  /api/v1/view                -> Current derived view
- GET  /api/v1/positions           -> Simulation status, state and positions
- POST /api/v1/filter              -> Replace selection
- POST /api/v1/filter/toggle       -> Toggle ALL or one assignment
- POST /api/v1/simulation/{start,tick,run,stop}
- POST /api/v1/drag/{start,move,end}
- GET  /api/v1/audit               -> Audit report and unified log

Environment:
- INTERACTION_GRAPH_DATA: payload JSON path (synthetic dataset when unset)
- INTERACTION_GRAPH_SEED: simulation and synthetic-data seed

Usage:
    uvicorn interaction_graph.api.server:app --reload
"""
import os
import warnings
from contextlib import asynccontextmanager
from typing import List, Optional, Union

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..engine import InteractionGraphEngine, EngineConfig
from ..simulation import SimulationConfig
from ..contracts.base import DataIntegrityError, PreconditionViolation, UnknownAssignmentWarning
from ..contracts.views import ALL, FilterSelection
from ..ingestion import generate_payload
from .mapper import (
    map_audit_log, map_error, map_simulation_to_dto, map_state, map_view_to_dto
)

# =============================================================================
# INFRASTRUCTURE SETUP
# =============================================================================

# Global Engine Instance
engine_instance: Optional[InteractionGraphEngine] = None


def _read_seed() -> Optional[int]:
    raw = os.environ.get("INTERACTION_GRAPH_SEED")
    if raw is None or raw == "":
        return None
    return int(raw)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the graph and build the engine on startup."""
    global engine_instance

    data_path = os.environ.get("INTERACTION_GRAPH_DATA")
    seed = _read_seed()
    config = EngineConfig(simulation=SimulationConfig(seed=seed))

    try:
        if data_path:
            print(f"[*] Loading interaction graph from: {data_path}")
            engine_instance = InteractionGraphEngine.from_json_file(data_path, config)
        else:
            print("[*] INTERACTION_GRAPH_DATA not set; using synthetic dataset")
            engine_instance = InteractionGraphEngine.from_payload(generate_payload(seed=seed), config)
        print(
            f"[*] Engine initialized: {len(engine_instance.model.nodes)} nodes, "
            f"{len(engine_instance.model.edges)} edges."
        )
    except Exception as e:
        print(f"[!] FAILED to initialize engine: {e}")
        raise e

    yield

    print("[*] Shutting down engine.")
    if engine_instance is not None:
        engine_instance.stop()
    engine_instance = None

app = FastAPI(
    title="Interaction Graph API",
    version="0.1.0",
    description="Filter, aggregation and force layout over a social-interaction graph",
    lifespan=lifespan
)

# CORS (Allow Frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


# =============================================================================
# ERROR MAPPING
# =============================================================================

@app.exception_handler(PreconditionViolation)
async def precondition_handler(request: Request, exc: PreconditionViolation):
    return JSONResponse(status_code=409, content={"detail": map_error(exc)})


@app.exception_handler(DataIntegrityError)
async def integrity_handler(request: Request, exc: DataIntegrityError):
    return JSONResponse(status_code=422, content={"detail": map_error(exc)})


def _engine() -> InteractionGraphEngine:
    if not engine_instance:
        raise HTTPException(status_code=503, detail="Engine not initialized")
    return engine_instance


# =============================================================================
# REQUEST MODELS
# =============================================================================

class FilterRequest(BaseModel):
    all: bool = False
    assignment_ids: Optional[List[int]] = None


class ToggleRequest(BaseModel):
    key: Union[int, str]


class TickRequest(BaseModel):
    count: int = Field(default=1, ge=1)


class RunRequest(BaseModel):
    max_ticks: Optional[int] = Field(default=None, ge=0)


class DragRequest(BaseModel):
    node_id: int


class DragMoveRequest(BaseModel):
    node_id: int
    x: float
    y: float


# =============================================================================
# ENDPOINTS
# =============================================================================

@app.get("/health")
async def health_check():
    """System status."""
    engine = _engine()
    return {"status": "online", "simulation": engine.simulation_status.value}


@app.get("/api/v1/view")
async def get_view():
    """Current selection, active edges, counts, isolated nodes and metrics."""
    return map_view_to_dto(_engine().view)


@app.get("/api/v1/positions")
async def get_positions():
    engine = _engine()
    return map_simulation_to_dto(engine.simulation_status, engine.simulation_state, engine.positions())


@app.post("/api/v1/filter")
async def set_filter(request: FilterRequest):
    """Replace the selection. Unknown ids are dropped and listed as warnings."""
    engine = _engine()
    if request.all:
        selection = ALL
    elif request.assignment_ids is not None:
        selection = FilterSelection.of(request.assignment_ids)
    else:
        raise HTTPException(status_code=422, detail="Provide either all=true or assignment_ids")

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", UnknownAssignmentWarning)
        view = engine.set_filter_selection(selection)

    return {"view": map_view_to_dto(view), "warnings": _warning_messages(caught)}


@app.post("/api/v1/filter/toggle")
async def toggle_filter(request: ToggleRequest):
    """Toggle the "all" entry or one assignment id."""
    engine = _engine()
    if isinstance(request.key, str):
        if request.key.lower() != "all":
            raise HTTPException(status_code=422, detail=f"Unknown toggle key {request.key!r}")
        key = ALL
    else:
        key = request.key

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", UnknownAssignmentWarning)
        view = engine.toggle_assignment(key)

    return {"view": map_view_to_dto(view), "warnings": _warning_messages(caught)}


def _warning_messages(caught) -> List[str]:
    return [str(w.message) for w in caught if issubclass(w.category, UnknownAssignmentWarning)]


@app.post("/api/v1/simulation/start")
async def start_simulation():
    engine = _engine()
    engine.start()
    return map_simulation_to_dto(engine.simulation_status, engine.simulation_state, engine.positions())


@app.post("/api/v1/simulation/tick")
async def tick_simulation(request: Optional[TickRequest] = None):
    engine = _engine()
    count = request.count if request else 1
    for _ in range(count):
        engine.tick()
    return map_simulation_to_dto(engine.simulation_status, engine.simulation_state, engine.positions())


@app.post("/api/v1/simulation/run")
async def run_simulation(request: Optional[RunRequest] = None):
    engine = _engine()
    engine.run_to_convergence(request.max_ticks if request else None)
    return map_simulation_to_dto(engine.simulation_status, engine.simulation_state, engine.positions())


@app.post("/api/v1/simulation/stop")
async def stop_simulation():
    engine = _engine()
    engine.stop()
    return {"status": engine.simulation_status.value, "state": map_state(engine.simulation_state)}


@app.post("/api/v1/drag/start")
async def drag_start(request: DragRequest):
    engine = _engine()
    engine.drag_start(request.node_id)
    return {"status": engine.simulation_status.value, "state": map_state(engine.simulation_state)}


@app.post("/api/v1/drag/move")
async def drag_move(request: DragMoveRequest):
    engine = _engine()
    engine.drag_move(request.node_id, request.x, request.y)
    return {"status": engine.simulation_status.value, "state": map_state(engine.simulation_state)}


@app.post("/api/v1/drag/end")
async def drag_end(request: DragRequest):
    engine = _engine()
    engine.drag_end(request.node_id)
    return {"status": engine.simulation_status.value, "state": map_state(engine.simulation_state)}


@app.get("/api/v1/audit")
async def get_audit(limit: int = 100):
    """Audit report plus the most recent unified log entries."""
    engine = _engine()
    entries = engine.get_unified_log()
    return {
        "report": engine.get_audit_report(),
        "entries": map_audit_log(entries[-limit:] if limit > 0 else []),
    }
