"""Pedestrian visits."""

from fastapi import APIRouter, Depends
from gatelog.runtime import GateLogRuntime, get_runtime
from gatelog.routers.responses import operation_response
from gatelog.schemas.history import OperationOut
from gatelog.schemas.pedestrian_entry import PedestrianEntryCreate
from gatelog.services import gate_service

router = APIRouter()


@router.post("/pedestrians", response_model=OperationOut, status_code=201, summary="Register a pedestrian")
def register_pedestrian(body: PedestrianEntryCreate, runtime: GateLogRuntime = Depends(get_runtime)):
    return operation_response(gate_service.register_pedestrian(runtime, body))
