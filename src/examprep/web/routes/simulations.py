"""Exam simulations across the whole question bank."""

from fastapi import APIRouter, Depends, Query, status

from examprep.core import simulation
from examprep.core.simulation import GeneratedSimulation, SimulationConfig
from examprep.db.simulation_repository import SimulationRecord
from examprep.db.users_repository import UserRecord
from examprep.web.deps import get_current_user
from examprep.web.schemas import (
    GeneratedSimulationResponse,
    SimulationConfigRequest,
    SimulationResponse,
    SimulationResultRequest,
)

router = APIRouter(prefix="/api/simulations", tags=["simulations"])


@router.post("", response_model=GeneratedSimulationResponse, status_code=status.HTTP_201_CREATED)
def generate(
    data: SimulationConfigRequest,
    user: UserRecord = Depends(get_current_user),
) -> GeneratedSimulation:
    """Open a new simulation for the given mode; answer keys stay on the server."""
    return simulation.generate_simulation(user.uid, SimulationConfig(**data.model_dump()))


@router.post("/results", response_model=SimulationResponse, status_code=status.HTTP_201_CREATED)
def save_result(
    data: SimulationResultRequest,
    user: UserRecord = Depends(get_current_user),
) -> SimulationRecord:
    return simulation.save_simulation_result(
        user.uid, data.simulation_id, data.answers, data.time_spent
    )


@router.get("/history", response_model=list[SimulationResponse])
def history(
    limit: int = Query(default=10, ge=1, le=50),
    user: UserRecord = Depends(get_current_user),
) -> list[SimulationRecord]:
    return simulation.simulation_history(user.uid, limit=limit)
