"""
Google Speech-to-Text gateway.

This module wraps the Google Cloud Speech API behind a narrow contract: WAV
bytes in, ranked :class:`~voicemail_pipeline.models.TranscriptAlternative`
records out.  The recogniser is configured for telephony audio (``phone_call``
model, 8 kHz LINEAR16) with Japanese as the primary language and English as
fallback, and is nudged towards common greeting phrases.

One :class:`SpeechGateway` is built at process start and shared; the
underlying ``SpeechClient`` is thread-safe.

Usage::

    from voicemail_pipeline.stt_service import SpeechGateway

    gateway = SpeechGateway.from_settings(settings)
    alternatives = gateway.transcribe(open("output/123.wav", "rb").read())
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple

from google.api_core import exceptions as api_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import speech_v1p1beta1 as speech
from google.protobuf.json_format import MessageToDict
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import Settings
from .errors import ProviderError
from .models import TranscriptAlternative, TranscriptionResult

logger = logging.getLogger(__name__)

DEFAULT_PHRASES = (
    "はい",
    "もしもし",
    "お疲れ様です",
    "留守番電話",
    "hello",
    "yes",
    "voicemail",
    "answering machine",
)
DEFAULT_BOOST = 20.0

# Errors worth another attempt; everything else is surfaced immediately.
TRANSIENT_ERRORS = (api_exceptions.ServiceUnavailable, api_exceptions.DeadlineExceeded)


@dataclass(frozen=True)
class RecognitionSettings:
    encoding: str = "LINEAR16"
    sample_rate: int = 8000
    channel_count: int = 1
    primary_language: str = "ja-JP"
    fallback_languages: Tuple[str, ...] = ("en-US",)
    automatic_punctuation: bool = True
    phrase_hints: Tuple[Tuple[str, float], ...] = tuple((phrase, DEFAULT_BOOST) for phrase in DEFAULT_PHRASES)
    model: str = "phone_call"
    use_enhanced: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "RecognitionSettings":
        return cls(
            sample_rate=settings.audio_format.sample_rate,
            channel_count=settings.audio_format.channels,
            primary_language=settings.primary_language,
            fallback_languages=settings.fallback_languages,
        )


class TranscriptionGateway(Protocol):
    def transcribe(self, container: bytes) -> List[TranscriptAlternative]:
        ...


def build_recognition_config(settings: RecognitionSettings) -> speech.RecognitionConfig:
    """Translate :class:`RecognitionSettings` into a ``RecognitionConfig``."""
    boosts: Dict[float, List[str]] = {}
    for phrase, boost in settings.phrase_hints:
        boosts.setdefault(float(boost), []).append(phrase)
    contexts = [speech.SpeechContext(phrases=phrases, boost=boost) for boost, phrases in boosts.items()]
    return speech.RecognitionConfig(
        encoding=speech.RecognitionConfig.AudioEncoding[settings.encoding],
        sample_rate_hertz=settings.sample_rate,
        audio_channel_count=settings.channel_count,
        language_code=settings.primary_language,
        alternative_language_codes=list(settings.fallback_languages),
        enable_automatic_punctuation=settings.automatic_punctuation,
        enable_word_time_offsets=True,
        model=settings.model,
        use_enhanced=settings.use_enhanced,
        profanity_filter=False,
        speech_contexts=contexts,
    )


def parse_response(data: Dict[str, Any]) -> List[TranscriptAlternative]:
    """Extract one alternative per result from a recognise response.

    Args:
        data: The response as a dictionary (see ``MessageToDict``).  Fields
            left at their default value are absent, so a missing confidence
            reads as ``0``.

    Returns:
        The top alternative of every result, in result order.
    """
    alternatives: List[TranscriptAlternative] = []
    for result in data.get("results", []):
        candidates = result.get("alternatives", [])
        if not candidates:
            continue
        top = candidates[0]
        alternatives.append(
            TranscriptAlternative(
                text=top.get("transcript", ""),
                confidence=float(top.get("confidence", 0) or 0),
                word_count=len(top.get("words", [])),
            )
        )
    return alternatives


class SpeechGateway:
    """Synchronous recogniser around a long-lived ``SpeechClient``."""

    def __init__(
        self,
        client: Any,
        settings: Optional[RecognitionSettings] = None,
        *,
        max_attempts: int = 1,
    ) -> None:
        self.client = client
        self.settings = settings or RecognitionSettings()
        self.max_attempts = max(1, max_attempts)
        self.retry_wait = wait_exponential(multiplier=1)
        self._config = build_recognition_config(self.settings)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SpeechGateway":
        """Create the client once, from the configured service-account file if present."""
        try:
            if settings.credentials_path and os.path.exists(settings.credentials_path):
                client = speech.SpeechClient.from_service_account_file(settings.credentials_path)
            else:
                client = speech.SpeechClient()
        except (auth_exceptions.GoogleAuthError, ValueError) as exc:
            raise ProviderError(exc) from exc
        return cls(
            client,
            RecognitionSettings.from_settings(settings),
            max_attempts=settings.stt_max_attempts,
        )

    def _recognize(self, audio: speech.RecognitionAudio) -> Any:
        retrying = Retrying(
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            wait=self.retry_wait,
            stop=stop_after_attempt(self.max_attempts),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning("Retrying STT request (attempt %d)", attempt.retry_state.attempt_number)
                return self.client.recognize(config=self._config, audio=audio)

    def transcribe(self, container: bytes) -> List[TranscriptAlternative]:
        """Send WAV bytes to the recogniser and return its alternatives.

        Raises:
            ProviderError: On any API, transport or authentication failure.
        """
        audio = speech.RecognitionAudio(content=container)
        try:
            response = self._recognize(audio)
        except (api_exceptions.GoogleAPICallError, api_exceptions.RetryError, auth_exceptions.GoogleAuthError) as exc:
            raise ProviderError(exc) from exc
        return parse_response(MessageToDict(response._pb))


def transcribe_file(path: str, gateway: TranscriptionGateway) -> TranscriptionResult:
    """Transcribe the WAV file at ``path`` and time the call."""
    start = time.monotonic()
    with open(path, "rb") as f:
        container = f.read()
    logger.info("Starting STT job for %s", path)
    alternatives = gateway.transcribe(container)
    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.info("STT job complete for %s: %d transcripts in %dms", path, len(alternatives), elapsed_ms)
    return TranscriptionResult(
        alternatives=tuple(alternatives),
        source_path=str(path),
        processing_ms=elapsed_ms,
    )
