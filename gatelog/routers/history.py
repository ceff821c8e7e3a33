"""Visit history: unified vehicles + pedestrians, filtered and sorted."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from gatelog.runtime import GateLogRuntime, get_runtime
from gatelog.routers.responses import attachment
from gatelog.schemas.history import HistoryFilters, HistoryRow
from gatelog.services.csv_export import HISTORY_FILENAME, history_to_csv
from gatelog.services.history_service import ASC, DESC, SortState, build_history_view

router = APIRouter()


def _sort_state(sort: Optional[str], direction: Optional[str]) -> SortState:
    """A column without a direction starts the way a first click on it would."""
    if direction is None:
        return SortState().toggle(sort) if sort else SortState()
    if direction not in (ASC, DESC):
        raise HTTPException(status_code=400, detail=f"direction must be '{ASC}' or '{DESC}'")
    return SortState(key=sort, direction=direction)


@router.get("/history", response_model=list[HistoryRow], summary="Visit history")
def get_history(
    filters: HistoryFilters = Depends(),
    sort: Optional[str] = None,
    direction: Optional[str] = None,
    runtime: GateLogRuntime = Depends(get_runtime),
):
    """
    Defaults to date descending. `sort` takes any history column; without
    `direction`, date starts descending and other columns ascending.
    """
    return build_history_view(runtime.record_store, filters, _sort_state(sort, direction))


@router.get("/history/export", summary="Visit history as CSV (same filters and sort)")
def export_history(
    filters: HistoryFilters = Depends(),
    sort: Optional[str] = None,
    direction: Optional[str] = None,
    runtime: GateLogRuntime = Depends(get_runtime),
):
    rows = build_history_view(runtime.record_store, filters, _sort_state(sort, direction))
    return attachment(history_to_csv(rows), HISTORY_FILENAME, "text/csv; charset=utf-8")
