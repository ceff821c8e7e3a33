"""Shift log (bitácora): add, list, delete, export."""

from fastapi import APIRouter, Depends
from gatelog.runtime import GateLogRuntime, get_runtime
from gatelog.routers.responses import attachment, operation_response
from gatelog.schemas.history import OperationOut
from gatelog.schemas.log_note import LogNoteCreate, LogNoteOut
from gatelog.services import gate_service
from gatelog.services.csv_export import NOTES_FILENAME, notes_to_csv

router = APIRouter()


@router.get("/notes", response_model=list[LogNoteOut], summary="Shift notes, newest first")
def list_notes(runtime: GateLogRuntime = Depends(get_runtime)):
    return runtime.record_store.list_notes()


@router.post("/notes", response_model=OperationOut, status_code=201, summary="Add a shift note")
def add_note(body: LogNoteCreate, runtime: GateLogRuntime = Depends(get_runtime)):
    return operation_response(gate_service.add_note(runtime, body))


@router.delete("/notes/{note_id}", response_model=OperationOut, summary="Delete a shift note")
def delete_note(note_id: int, runtime: GateLogRuntime = Depends(get_runtime)):
    return operation_response(gate_service.delete_note(runtime, note_id))


@router.get("/notes/export", summary="Shift notes as CSV")
def export_notes(runtime: GateLogRuntime = Depends(get_runtime)):
    csv_text = notes_to_csv(runtime.record_store.list_notes())
    return attachment(csv_text, NOTES_FILENAME, "text/csv; charset=utf-8")
