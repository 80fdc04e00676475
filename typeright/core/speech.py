"""Text-to-speech and speech-to-text clients for dictation lessons."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import requests

logger = logging.getLogger(__name__)


class SpeechServiceError(RuntimeError):
    """Raised when a speech provider is misconfigured or its API call fails."""


class TextToSpeech:
    def synthesize(self, text: str) -> str:
        """Return a playable URL for *text*."""
        raise NotImplementedError


class SpeechToText:
    def transcribe(self, audio_path: Union[str, Path]) -> str:
        """Return the transcript of the audio file at *audio_path*."""
        raise NotImplementedError


@dataclass
class ElevenLabsConfig:
    api_key: Optional[str] = None
    voice_id: str = "21m00Tcm4TlvDq8ikWAM"
    base_url: str = "https://api.elevenlabs.io/v1"
    model_id: str = "eleven_monolingual_v1"
    stability: float = 0.5
    similarity_boost: float = 0.75
    timeout_seconds: int = 60


class ElevenLabsTextToSpeech(TextToSpeech):
    """Generates lesson audio with ElevenLabs and returns it as a data URL."""

    def __init__(self, config: ElevenLabsConfig) -> None:
        self.config = config

    def synthesize(self, text: str) -> str:
        if not text or not self.config.voice_id:
            raise SpeechServiceError("Text and voice id are required")
        if not self.config.api_key:
            raise SpeechServiceError("ElevenLabs API key not configured")

        url = f"{self.config.base_url}/text-to-speech/{self.config.voice_id}"
        payload: Dict[str, Any] = {
            "text": text,
            "model_id": self.config.model_id,
            "voice_settings": {
                "stability": self.config.stability,
                "similarity_boost": self.config.similarity_boost,
            },
        }
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self.config.api_key,
        }
        logger.info("Generating audio with ElevenLabs (%d chars, voice %s)", len(text), self.config.voice_id)
        try:
            response = requests.post(url, headers=headers, json=payload, timeout=self.config.timeout_seconds)
        except requests.RequestException as e:
            raise SpeechServiceError(f"Failed to reach ElevenLabs: {e}") from e

        if not response.ok:
            logger.error("ElevenLabs API error %s: %s", response.status_code, response.text)
            raise SpeechServiceError(f"Failed to generate audio from ElevenLabs ({response.status_code})")

        audio = response.content
        logger.debug("Audio generated, %d bytes", len(audio))
        return "data:audio/mpeg;base64," + base64.b64encode(audio).decode("ascii")


@dataclass
class WhisperConfig:
    api_key: Optional[str] = None
    url: str = "https://api.openai.com/v1/audio/transcriptions"
    model: str = "whisper-1"
    timeout_seconds: int = 120


class WhisperSpeechToText(SpeechToText):
    """Transcribes lesson audio with OpenAI Whisper.

    Used when preparing dictation lessons from recordings; the app itself
    does not call it, so the API key is passed in directly.
    """

    def __init__(self, config: WhisperConfig) -> None:
        self.config = config

    def transcribe(self, audio_path: Union[str, Path]) -> str:
        if not self.config.api_key:
            raise SpeechServiceError("OpenAI API key not configured")
        path = Path(audio_path)
        if not path.is_file():
            raise SpeechServiceError(f"Audio file is required: {path}")

        logger.info("Transcribing %s (%d bytes)", path.name, path.stat().st_size)
        headers = {"Authorization": f"Bearer {self.config.api_key}"}
        try:
            with path.open("rb") as audio_file:
                response = requests.post(
                    self.config.url,
                    headers=headers,
                    files={"file": (path.name, audio_file)},
                    data={"model": self.config.model},
                    timeout=self.config.timeout_seconds,
                )
        except requests.RequestException as e:
            raise SpeechServiceError(f"Failed to reach OpenAI: {e}") from e

        if not response.ok:
            logger.error("OpenAI API error %s: %s", response.status_code, response.text)
            raise SpeechServiceError(f"Failed to transcribe audio ({response.status_code})")

        return response.json().get("text") or ""


def decode_data_url(url: str) -> bytes:
    """Return the bytes embedded in a ``data:...;base64,`` URL."""
    header, sep, data = url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise SpeechServiceError("Not a base64 data URL")
    try:
        return base64.b64decode(data, validate=True)
    except ValueError as e:
        raise SpeechServiceError(f"Invalid audio data: {e}") from e
