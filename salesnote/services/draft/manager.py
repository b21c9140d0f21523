"""Draft session manager."""
import logging
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import uuid4

from salesnote.services.catalog.repository import CatalogRepository
from salesnote.services.completion.client import CompletionFailure
from salesnote.services.draft import transitions
from salesnote.services.draft.stages import DraftStage
from salesnote.services.draft.state import DraftSession
from salesnote.services.extraction.pipeline import ExtractionPipeline
from salesnote.services.persistence.ledger import LedgerService, LedgerWriteError
from salesnote.services.speech.stt import SpeechToTextService

logger = logging.getLogger(__name__)

# Module-level session storage (persists across requests), one live draft per key
# In production, use Redis or similar
_sessions: Dict[str, DraftSession] = {}


class DraftNotFound(Exception):
    """No draft session exists for the key."""


def reset_sessions() -> None:
    """Drop every live draft."""
    _sessions.clear()


class DraftSessionManager:
    """Owns live draft sessions and runs processing, edits and confirm against them."""

    def __init__(
        self,
        catalog_repository: CatalogRepository,
        pipeline: ExtractionPipeline,
        ledger: Optional[LedgerService] = None,
        transcription_service: Optional[SpeechToTextService] = None,
        fallback_on_completion_failure: bool = True,
    ):
        self.catalog_repository = catalog_repository
        self.pipeline = pipeline
        self.ledger = ledger
        self.transcription_service = transcription_service
        self.fallback_on_completion_failure = fallback_on_completion_failure

    def get_session(self, session_key: str) -> DraftSession:
        session = _sessions.get(session_key)
        if session is None:
            raise DraftNotFound(f"No draft for session '{session_key}'")
        return session

    def _store(self, session: DraftSession) -> DraftSession:
        _sessions[session.session_key] = session
        return session

    def _current_run(self, session_key: str, processing_id: str) -> Optional[DraftSession]:
        """The session if it is still waiting on this processing run, else None."""
        session = _sessions.get(session_key)
        if (
            session is None
            or session.stage != DraftStage.PROCESSING
            or session.processing_id != processing_id
        ):
            logger.info(
                f"[DRAFT] {session_key}: discarding result of processing run {processing_id}, "
                f"the session has moved on"
            )
            return None
        return session

    async def process_note(
        self, session_key: str, organization_id: str, note: Optional[str] = None
    ) -> DraftSession:
        """
        Run the extraction pipeline on a note and show the result as a draft.

        Args:
            session_key: Key of the user's live session
            organization_id: Organization whose catalog is used
            note: Note text; the session's accumulated note text if omitted

        Returns:
            The session after processing (or the newer session state, if the
            run was cancelled or superseded while the completion was in flight)

        Raises:
            InvalidTransition: if there is no note text to process
            CompletionFailure: if the completion failed and fallback is disabled
        """
        current = _sessions.get(session_key) or DraftSession(session_key=session_key)
        text = note if note is not None else current.note_text
        processing_id = uuid4().hex
        self._store(transitions.begin_processing(current, text, organization_id, processing_id))
        logger.info(f"[DRAFT] {session_key}: processing run {processing_id} started")

        try:
            snapshot = await self.catalog_repository.get_snapshot(organization_id)
        except Exception as e:
            logger.error(f"[DRAFT] {session_key}: catalog read failed: {e}", exc_info=True)
            session = self._current_run(session_key, processing_id)
            if session is not None:
                self._store(transitions.fail_processing(session, processing_id, f"Catalog unavailable: {e}"))
            raise

        error = None
        try:
            result = await self.pipeline.run(text, snapshot)
        except CompletionFailure as e:
            session = self._current_run(session_key, processing_id)
            if session is None:
                return self.get_session(session_key)
            if not self.fallback_on_completion_failure:
                self._store(transitions.fail_processing(session, processing_id, str(e)))
                raise
            logger.warning(f"[DRAFT] {session_key}: {e}; building the draft from the note alone")
            error = str(e)
            result = self.pipeline.build_draft(text, None, snapshot)

        session = self._current_run(session_key, processing_id)
        if session is None:
            return self.get_session(session_key)
        return self._store(
            transitions.complete_processing(
                session, processing_id, result.order, snapshot, result.issues, error
            )
        )

    async def append_transcription(
        self, session_key: str, audio_data: bytes, encoding: str = "webm"
    ) -> DraftSession:
        """
        Transcribe dictated audio and append it to the session's note text.

        Raises:
            TranscriptionFailure: the note text is left unchanged
        """
        if self.transcription_service is None:
            raise RuntimeError("No transcription service configured")
        text = await self.transcription_service.transcribe_audio(audio_data, encoding)
        session = _sessions.get(session_key) or DraftSession(session_key=session_key)
        return self._store(transitions.append_transcript(session, text))

    def rename_customer(self, session_key: str, name: str) -> DraftSession:
        return self._store(transitions.rename_customer(self.get_session(session_key), name))

    def add_line_item(self, session_key: str, fields: Optional[Dict[str, Any]] = None) -> DraftSession:
        return self._store(
            transitions.add_line_item(self.get_session(session_key), fields, self.pipeline.resolver)
        )

    def edit_line_item(self, session_key: str, index: int, fields: Dict[str, Any]) -> DraftSession:
        return self._store(
            transitions.edit_line_item(
                self.get_session(session_key), index, fields, self.pipeline.resolver
            )
        )

    def remove_line_item(self, session_key: str, index: int) -> DraftSession:
        return self._store(transitions.remove_line_item(self.get_session(session_key), index))

    def edit_note(self, session_key: str, note: str) -> DraftSession:
        return self._store(transitions.edit_note(self.get_session(session_key), note))

    def edit_task(self, session_key: str, task: str) -> DraftSession:
        return self._store(transitions.edit_task(self.get_session(session_key), task))

    def cancel(self, session_key: str) -> DraftSession:
        return self._store(transitions.cancel(self.get_session(session_key)))

    async def confirm(self, session_key: str) -> DraftSession:
        """
        Write the draft to the ledger: an order if it has line items, a task if it has one.

        On failure the draft stays in place with the staged payload, so calling
        confirm again resends the same records and skips writes that succeeded.

        Raises:
            LedgerWriteError: if a ledger write fails
        """
        if self.ledger is None:
            raise RuntimeError("No ledger configured")

        session = self._store(
            transitions.stage_submission(self.get_session(session_key), datetime.utcnow())
        )
        submission = session.pending_submission

        try:
            if submission.order_pending:
                order = await self.ledger.create_order(
                    vendor_id=submission.vendor_id,
                    organization_id=submission.organization_id,
                    line_items=submission.line_items,
                    notes=submission.notes,
                    timestamp=submission.timestamp,
                )
                session = self._store(transitions.record_ledger_write(session, order_id=order.id))
            if submission.task_pending:
                task = await self.ledger.create_task(
                    description=submission.task,
                    organization_id=submission.organization_id,
                    vendor_id=submission.vendor_id,
                    timestamp=submission.timestamp,
                )
                session = self._store(transitions.record_ledger_write(session, task_id=task.id))
        except LedgerWriteError as e:
            logger.error(f"[DRAFT] {session_key}: confirm failed, draft kept for retry: {e}")
            self._store(transitions.fail_submission(session, str(e)))
            raise

        logger.info(
            f"[DRAFT] {session_key}: confirmed (order={session.pending_submission.order_id}, "
            f"task={session.pending_submission.task_id})"
        )
        return self._store(transitions.mark_confirmed(session))
