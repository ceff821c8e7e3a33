"""
System health check endpoint.
Returns status of the record store, the evidence blob store and the durable slot.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from gatelog.exceptions import GateLogError
from gatelog.runtime import GateLogRuntime, get_runtime
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(runtime: GateLogRuntime = Depends(get_runtime)):
    """
    Returns:
    - Record store status and database size
    - Evidence blob store connectivity
    - Migrations that could not be applied at startup
    """
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "database": "unknown",
        "database_bytes": None,
        "evidence_store": "unknown",
        "migrations_failed": runtime.migration_report.failed,
    }

    # Check record store
    try:
        result["database_bytes"] = len(runtime.record_store.export_bytes())
        result["database"] = "ok"
    except GateLogError as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    # Check blob store
    try:
        with runtime.blob_store.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        result["evidence_store"] = "ok"
    except SQLAlchemyError as e:
        result["evidence_store"] = f"error: {str(e)}"
        result["status"] = "degraded"

    if runtime.migration_report.failed:
        result["status"] = "degraded"

    return result
