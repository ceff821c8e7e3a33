"""Admin panel: stats, maintenance, full database download, evidence upkeep."""

from fastapi import APIRouter, Depends
from gatelog.runtime import GateLogRuntime, get_runtime
from gatelog.routers.responses import attachment, operation_response
from gatelog.schemas.history import OperationOut, StatsOut
from gatelog.services import gate_service
from gatelog.services.persistence_gateway import EXPORT_FILENAME

router = APIRouter()


@router.get("/stats", response_model=StatsOut, summary="Record counts")
def get_stats(runtime: GateLogRuntime = Depends(get_runtime)):
    store = runtime.record_store
    return StatsOut(
        vehicles=store.count_vehicles(),
        pedestrians=store.count_pedestrians(),
        notes=store.count_notes(),
        guards=store.count_guards(),
    )


@router.post("/admin/compact", response_model=OperationOut, summary="Compact the database (VACUUM)")
def compact(runtime: GateLogRuntime = Depends(get_runtime)):
    return operation_response(gate_service.compact_database(runtime))


@router.get("/admin/export", summary="Download the whole database file")
def export_database(runtime: GateLogRuntime = Depends(get_runtime)):
    snapshot = runtime.gateway.export_snapshot(runtime.record_store)
    return attachment(snapshot, EXPORT_FILENAME, "application/octet-stream")


@router.get("/admin/evidence/dangling", summary="Evidence references with no stored photo")
async def dangling_evidence(runtime: GateLogRuntime = Depends(get_runtime)):
    dangling = await runtime.linker.find_dangling()
    return [{"vehicle_id": d.vehicle_id, "field": d.field, "handle": d.handle} for d in dangling]


@router.post("/admin/evidence/sweep", summary="Delete photos no visit references")
async def sweep_evidence(runtime: GateLogRuntime = Depends(get_runtime)):
    removed = await runtime.linker.sweep_orphans()
    return {"removed": removed, "count": len(removed)}


@router.get("/vehicle-models", response_model=list[str], summary="Known vehicle models for the entry form")
def vehicle_models(runtime: GateLogRuntime = Depends(get_runtime)):
    return runtime.vehicle_models
