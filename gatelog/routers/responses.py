"""Shared translation of OperationResult into HTTP responses."""

from fastapi import HTTPException, Response

from gatelog.exceptions import ValidationError
from gatelog.schemas.history import OperationOut


def operation_response(result) -> OperationOut:
    """
    Failed operations become HTTP errors (404 / 400 / 500). A change that was
    applied but not saved is still a success, flagged durable=false.
    """
    if not result.ok:
        if result.not_found:
            raise HTTPException(status_code=404, detail=result.message)
        status_code = 400 if isinstance(result.error, ValidationError) else 500
        raise HTTPException(status_code=status_code, detail=result.message)
    return OperationOut(
        ok=True,
        message=result.message,
        id=result.record_id,
        durable=result.durable,
        warnings=result.warnings,
    )


def attachment(content, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
