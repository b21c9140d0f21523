"""Draft session API endpoints."""
import logging
from datetime import datetime
from typing import List, Optional, Union
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from salesnote.core.dependencies import get_draft_manager
from salesnote.services.completion.client import CompletionFailure
from salesnote.services.draft.manager import DraftNotFound, DraftSessionManager
from salesnote.services.draft.stages import DraftStage
from salesnote.services.draft.state import DraftSession, LedgerSubmission
from salesnote.services.draft.transitions import InvalidTransition, LineItemNotFound
from salesnote.services.extraction.models import ExtractedOrder
from salesnote.services.persistence.ledger import LedgerWriteError
from salesnote.services.speech.stt import TranscriptionFailure

router = APIRouter(prefix="/api/drafts")
logger = logging.getLogger(__name__)

Number = Union[float, str]


class DraftResponse(BaseModel):
    """Draft session response model."""
    session_key: str
    organization_id: str
    stage: DraftStage
    note_text: str
    order: Optional[ExtractedOrder] = None
    issues: List[str] = []
    error: Optional[str] = None
    pending_submission: Optional[LedgerSubmission] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProcessRequest(BaseModel):
    organization_id: str
    note: Optional[str] = None  # accumulated note text is used when omitted


class CustomerUpdate(BaseModel):
    customer: str


class NoteUpdate(BaseModel):
    note: str


class TaskUpdate(BaseModel):
    task: str


class LineItemFields(BaseModel):
    """Fields of a line item; only the fields sent are changed."""
    product_name: Optional[str] = None
    quantity: Optional[Number] = None
    unit_price: Optional[Number] = None
    discount_percent: Optional[Number] = None


def _respond(session: DraftSession) -> DraftResponse:
    return DraftResponse.model_validate(session)


def _http_error(e: Exception, action: str, session_key: str) -> HTTPException:
    """Map a draft failure to an HTTP error."""
    if isinstance(e, (CompletionFailure, TranscriptionFailure)):
        status_code = 502
    elif isinstance(e, InvalidTransition):
        status_code = 409
    elif isinstance(e, (DraftNotFound, LineItemNotFound)):
        status_code = 404
    else:
        status_code = 500

    if status_code >= 500:
        logger.error(
            f"[DRAFTS API] {action} failed - session: {session_key}, "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
    else:
        logger.info(f"[DRAFTS API] {action} rejected - session: {session_key}: {e}")
    return HTTPException(status_code=status_code, detail=str(e))


@router.get("/{session_key}", response_model=DraftResponse)
async def get_draft(
    session_key: str,
    manager: DraftSessionManager = Depends(get_draft_manager),
):
    """Get the live draft for a session."""
    try:
        return _respond(manager.get_session(session_key))
    except DraftNotFound as e:
        raise _http_error(e, "get", session_key)


@router.post("/{session_key}/process", response_model=DraftResponse)
async def process_note(
    session_key: str,
    body: ProcessRequest,
    request: Request,
    manager: DraftSessionManager = Depends(get_draft_manager),
):
    """Extract a draft order from the note (replaces any draft on screen)."""
    logger.info(
        f"[DRAFTS API] Process request - session: {session_key}, "
        f"organization: {body.organization_id}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )
    try:
        session = await manager.process_note(session_key, body.organization_id, body.note)
    except Exception as e:
        raise _http_error(e, "process", session_key)
    return _respond(session)


@router.post("/{session_key}/transcriptions", response_model=DraftResponse)
async def add_transcription(
    session_key: str,
    request: Request,
    encoding: str = "webm",
    manager: DraftSessionManager = Depends(get_draft_manager),
):
    """Transcribe dictated audio (raw request body) and append it to the note."""
    audio_data = await request.body()
    logger.info(
        f"[DRAFTS API] Transcription request - session: {session_key}, "
        f"{len(audio_data)} bytes of {encoding}"
    )
    try:
        session = await manager.append_transcription(session_key, audio_data, encoding)
    except Exception as e:
        raise _http_error(e, "transcription", session_key)
    return _respond(session)


@router.patch("/{session_key}/customer", response_model=DraftResponse)
async def rename_customer(
    session_key: str,
    body: CustomerUpdate,
    manager: DraftSessionManager = Depends(get_draft_manager),
):
    try:
        return _respond(manager.rename_customer(session_key, body.customer))
    except Exception as e:
        raise _http_error(e, "rename customer", session_key)


@router.patch("/{session_key}/note", response_model=DraftResponse)
async def edit_note(
    session_key: str,
    body: NoteUpdate,
    manager: DraftSessionManager = Depends(get_draft_manager),
):
    try:
        return _respond(manager.edit_note(session_key, body.note))
    except Exception as e:
        raise _http_error(e, "edit note", session_key)


@router.patch("/{session_key}/task", response_model=DraftResponse)
async def edit_task(
    session_key: str,
    body: TaskUpdate,
    manager: DraftSessionManager = Depends(get_draft_manager),
):
    try:
        return _respond(manager.edit_task(session_key, body.task))
    except Exception as e:
        raise _http_error(e, "edit task", session_key)


@router.post("/{session_key}/items", response_model=DraftResponse)
async def add_line_item(
    session_key: str,
    body: Optional[LineItemFields] = None,
    manager: DraftSessionManager = Depends(get_draft_manager),
):
    """Add a line item (blank unless fields are sent)."""
    fields = body.model_dump(exclude_unset=True) if body else {}
    try:
        return _respond(manager.add_line_item(session_key, fields))
    except Exception as e:
        raise _http_error(e, "add item", session_key)


@router.patch("/{session_key}/items/{index}", response_model=DraftResponse)
async def edit_line_item(
    session_key: str,
    index: int,
    body: LineItemFields,
    manager: DraftSessionManager = Depends(get_draft_manager),
):
    """Edit a line item; the item is re-validated against the draft's catalog."""
    try:
        return _respond(
            manager.edit_line_item(session_key, index, body.model_dump(exclude_unset=True))
        )
    except Exception as e:
        raise _http_error(e, "edit item", session_key)


@router.delete("/{session_key}/items/{index}", response_model=DraftResponse)
async def remove_line_item(
    session_key: str,
    index: int,
    manager: DraftSessionManager = Depends(get_draft_manager),
):
    try:
        return _respond(manager.remove_line_item(session_key, index))
    except Exception as e:
        raise _http_error(e, "remove item", session_key)


@router.post("/{session_key}/confirm", response_model=DraftResponse)
async def confirm_draft(
    session_key: str,
    manager: DraftSessionManager = Depends(get_draft_manager),
):
    """Write the draft to the ledger. On failure the draft is kept for retry."""
    try:
        session = await manager.confirm(session_key)
    except Exception as e:
        raise _http_error(e, "confirm", session_key)
    logger.info(f"[DRAFTS API] Draft confirmed - session: {session_key}")
    return _respond(session)


@router.post("/{session_key}/cancel", response_model=DraftResponse)
async def cancel_draft(
    session_key: str,
    manager: DraftSessionManager = Depends(get_draft_manager),
):
    try:
        return _respond(manager.cancel(session_key))
    except Exception as e:
        raise _http_error(e, "cancel", session_key)
