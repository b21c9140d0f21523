"""Speech-to-text service."""
import logging
from typing import Optional
from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

# encoding hint -> (upload file name, MIME type)
AUDIO_FORMATS = {
    "webm": ("recording.webm", "audio/webm"),
    "wav": ("recording.wav", "audio/wav"),
    "mp3": ("recording.mp3", "audio/mpeg"),
    "m4a": ("recording.m4a", "audio/mp4"),
    "ogg": ("recording.ogg", "audio/ogg"),
}


class TranscriptionFailure(Exception):
    """The transcription service was unreachable, errored, or returned no text."""


class SpeechToTextService:
    """Service for converting dictated notes to text."""

    def __init__(
        self,
        api_key: str,
        model: str = "whisper-1",
        client: Optional[AsyncOpenAI] = None,
    ):
        self.client = client or AsyncOpenAI(api_key=api_key, max_retries=0)
        self.model = model

    async def transcribe_audio(self, audio_data: bytes, encoding: str = "webm") -> str:
        """
        Transcribe audio to text using OpenAI Whisper.

        Args:
            audio_data: Raw audio bytes
            encoding: Audio format hint (webm, wav, mp3, ...)

        Returns:
            Transcribed text, stripped
        """
        if not audio_data:
            raise TranscriptionFailure("Transcription failed: no audio received")

        file_name, mime_type = AUDIO_FORMATS.get(
            (encoding or "").lower(), (f"recording.{encoding}", f"audio/{encoding}")
        )
        try:
            transcript = await self.client.audio.transcriptions.create(
                model=self.model,
                file=(file_name, audio_data, mime_type),
            )
        except Exception as e:
            logger.error(f"[STT] Transcription request failed: {type(e).__name__}: {e}")
            raise TranscriptionFailure(f"Transcription failed: {e}") from e

        text = (getattr(transcript, "text", "") or "").strip()
        if not text:
            raise TranscriptionFailure("Transcription failed: no transcription returned")
        logger.info(f"[STT] Transcribed {len(audio_data)} bytes into {len(text)} chars")
        return text
