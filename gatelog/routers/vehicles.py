"""Vehicle visits: entry form, plate auto-fill, evidence viewer."""

from fastapi import APIRouter, Depends, HTTPException
from starlette.concurrency import run_in_threadpool
from gatelog.runtime import GateLogRuntime, get_runtime
from gatelog.routers.responses import operation_response
from gatelog.schemas.history import OperationOut
from gatelog.schemas.vehicle_entry import PlateSuggestionOut, VehicleEntryCreate
from gatelog.services import gate_service

router = APIRouter()


@router.post("/vehicles", response_model=OperationOut, status_code=201, summary="Register a vehicle entry or exit")
async def register_vehicle(body: VehicleEntryCreate, runtime: GateLogRuntime = Depends(get_runtime)):
    """Photos (data URLs) are stored first; the visit is recorded even if they fail."""
    result = await gate_service.register_vehicle(runtime, body)
    return operation_response(result)


@router.get("/vehicles/suggestions", response_model=list[PlateSuggestionOut], summary="Last visit per matching plate")
def plate_suggestions(prefix: str = "", runtime: GateLogRuntime = Depends(get_runtime)):
    rows = runtime.record_store.query_vehicles_by_plate_prefix(prefix)
    return [PlateSuggestionOut.model_validate(r.model_dump()) for r in rows]


@router.get("/vehicles/{vehicle_id}/evidence", summary="Evidence photos of a visit")
async def vehicle_evidence(vehicle_id: int, runtime: GateLogRuntime = Depends(get_runtime)):
    vehicle = await run_in_threadpool(runtime.record_store.get_vehicle, vehicle_id)
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle entry not found")
    images = await runtime.linker.resolve(vehicle)
    return {"vehicle_id": vehicle_id, "images": images}
