"""HTTP client for the speech-to-text service (Deepgram prerecorded API)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from .exceptions import ConfigurationError, TranscriptionError

logger = logging.getLogger(__name__)


class DeepgramTranscriber:
    """
    Converts a recorded audio clip into text.

    An empty transcript is a valid result (silence or no speech detected).
    """

    def __init__(
        self,
        api_key: Optional[str],
        api_url: str = "https://api.deepgram.com/v1/listen",
        model: str = "nova-3",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            api_key: Deepgram API key
            api_url: prerecorded transcription endpoint
            model: transcription model name
            timeout: request timeout in seconds
            session: injected requests session (tests)
        """
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self.session = session or requests.Session()

    def transcribe(self, audio: bytes, content_type: str = "audio/webm") -> str:
        """
        Transcribe one audio clip.

        Args:
            audio: raw audio bytes
            content_type: MIME type of the recording

        Returns:
            transcript text, possibly empty

        Raises:
            ConfigurationError: no API key configured
            TranscriptionError: the request failed or the reply was unreadable
        """
        if not self.api_key:
            raise ConfigurationError("Speech-to-text API key is not configured.")
        if not audio:
            raise TranscriptionError("No audio provided.")

        try:
            response = self.session.post(
                self.api_url,
                params={"model": self.model, "smart_format": "true"},
                headers={
                    "Authorization": f"Token {self.api_key}",
                    "Content-Type": content_type or "application/octet-stream",
                },
                data=audio,
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Transcription request failed: {e}")
            raise TranscriptionError(f"Transcription service returned an error: {e}") from e
        except ValueError as e:
            logger.error(f"Transcription response is not JSON: {e}")
            raise TranscriptionError("Transcription service returned an invalid response.") from e

        transcript = self._extract_transcript(payload)
        logger.info(f"Transcribed {len(audio)} bytes into {len(transcript)} characters")
        return transcript

    @staticmethod
    def _extract_transcript(payload: Dict[str, Any]) -> str:
        try:
            alternatives = payload["results"]["channels"][0]["alternatives"]
            return (alternatives[0].get("transcript") or "").strip()
        except (KeyError, IndexError, TypeError):
            return ""
