from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, HTTPException, UploadFile
from fastapi.responses import StreamingResponse

from ouca.api.deps import get_import_status_store, get_import_submitter, get_import_user
from ouca.config import settings
from ouca.models.user import User
from ouca.schemas.import_status import ImportType, UploadResponse
from ouca.services.import_service import (
    ImportSubmitter,
    create_import_job,
    get_import_status,
)
from ouca.services.import_status_store import ImportStatusStore

router = APIRouter(prefix="/import", tags=["import"])


@router.post("/{entity_kind}", response_model=dict, status_code=202)
async def upload_file(
    entity_kind: ImportType,
    file: UploadFile | None = None,
    store: ImportStatusStore = Depends(get_import_status_store),
    submit: ImportSubmitter = Depends(get_import_submitter),
    current_user: User = Depends(get_import_user),
) -> dict:
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")

    upload_id = create_import_job(store, content, entity_kind, current_user, submit)
    return {"data": UploadResponse(upload_id=upload_id)}


@router.get("/status/{import_id}", response_model=dict)
async def import_status(
    import_id: str,
    store: ImportStatusStore = Depends(get_import_status_store),
    current_user: User = Depends(get_import_user),
) -> dict:
    status = get_import_status(store, import_id, current_user)
    if status is None:
        raise HTTPException(status_code=404, detail="Import not found")
    return {"data": status}


@router.get("/status/{import_id}/stream")
async def import_status_stream(
    import_id: str,
    store: ImportStatusStore = Depends(get_import_status_store),
    current_user: User = Depends(get_import_user),
) -> StreamingResponse:
    # Verify visibility once
    if get_import_status(store, import_id, current_user) is None:
        raise HTTPException(status_code=404, detail="Import not found")

    async def event_stream():
        while True:
            status = store.read(import_id)
            if status is None:
                break

            yield f"data: {status.model_dump_json()}\n\n"

            if status.is_terminal:
                break

            await asyncio.sleep(settings.IMPORT_STREAM_POLL_SECONDS)

    return StreamingResponse(event_stream(), media_type="text/event-stream")
