"""Admin panel: guard account management."""

from fastapi import APIRouter, Depends
from gatelog.runtime import GateLogRuntime, get_runtime
from gatelog.routers.responses import operation_response
from gatelog.schemas.guard_account import GuardAccountCreate, GuardAccountOut
from gatelog.schemas.history import OperationOut
from gatelog.services import gate_service
from gatelog.services.record_store import EntityKind

router = APIRouter()


@router.get("/guards", response_model=list[GuardAccountOut], summary="List guard accounts")
def list_guards(runtime: GateLogRuntime = Depends(get_runtime)):
    return runtime.record_store.query_all(EntityKind.GUARDS)


@router.post("/guards", response_model=OperationOut, status_code=201, summary="Add a guard account")
def add_guard(body: GuardAccountCreate, runtime: GateLogRuntime = Depends(get_runtime)):
    return operation_response(gate_service.add_guard(runtime, body))


@router.delete("/guards/{guard_id}", response_model=OperationOut, summary="Remove a guard account")
def delete_guard(guard_id: int, runtime: GateLogRuntime = Depends(get_runtime)):
    return operation_response(gate_service.delete_guard(runtime, guard_id))
