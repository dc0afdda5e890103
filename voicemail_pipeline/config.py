"""
Runtime configuration.

Settings are read from environment variables once, at process start, into an
immutable :class:`Settings` object that is then passed explicitly to whatever
needs it.  Nothing in the pipeline changes these values while it runs; a batch
that needs a different output directory receives it as an argument.

Recognised environment variables:

* ``DATA_DIR`` – folder holding ``<id>_data`` / ``<id>_timeSize`` captures
  (default ``./data``).
* ``OUTPUT_DIR`` – root folder for WAV files, transcripts and exports
  (default ``./output``).
* ``GOOGLE_APPLICATION_CREDENTIALS`` – service-account key used by the speech
  client (default ``./credentials/google-speech-api.json``).
* ``SAMPLE_RATE`` / ``CHANNELS`` / ``BITS_PER_SAMPLE`` – PCM layout of the
  captured payloads (default 8000 / 1 / 16).
* ``MAX_PAYLOAD_SIZE`` – largest payload accepted, in bytes (default 50 MiB).
* ``PRIMARY_LANGUAGE`` / ``FALLBACK_LANGUAGES`` – recogniser languages
  (default ``ja-JP`` and ``en-US``; fallbacks are comma separated).
* ``STT_MAX_ATTEMPTS`` – attempts per recognise call on transient transport
  errors (default 1, i.e. no retry).
* ``BATCH_MAX_WORKERS`` – items processed concurrently (default 1).
* ``KEYWORDS_PATH`` – JSON keyword list for the detector (default: bundled).
* ``OUTPUT_BUCKET`` / ``OUTPUT_PREFIX`` – optional Cloud Storage destination
  for exported results.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from .models import AudioFormat

MAX_PAYLOAD_SIZE = 50 * 1024 * 1024  # 50 MiB

DATA_SUFFIX = "_data"
LEDGER_SUFFIX = "_timeSize"


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _languages(raw: str) -> Tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    data_dir: str = "./data"
    output_dir: str = "./output"
    credentials_path: str = "./credentials/google-speech-api.json"
    audio_format: AudioFormat = AudioFormat()
    max_payload_size: int = MAX_PAYLOAD_SIZE
    primary_language: str = "ja-JP"
    fallback_languages: Tuple[str, ...] = ("en-US",)
    stt_max_attempts: int = 1
    batch_max_workers: int = 1
    keywords_path: Optional[str] = None
    output_bucket: Optional[str] = None
    output_prefix: str = "results/"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``env`` (defaults to :data:`os.environ`)."""
        env = os.environ if env is None else env
        defaults = cls()
        audio_format = AudioFormat(
            sample_rate=_int(env, "SAMPLE_RATE", defaults.audio_format.sample_rate),
            channels=_int(env, "CHANNELS", defaults.audio_format.channels),
            bits_per_sample=_int(env, "BITS_PER_SAMPLE", defaults.audio_format.bits_per_sample),
        )
        fallback = env.get("FALLBACK_LANGUAGES")
        return cls(
            data_dir=env.get("DATA_DIR", defaults.data_dir),
            output_dir=env.get("OUTPUT_DIR", defaults.output_dir),
            credentials_path=env.get("GOOGLE_APPLICATION_CREDENTIALS", defaults.credentials_path),
            audio_format=audio_format,
            max_payload_size=_int(env, "MAX_PAYLOAD_SIZE", defaults.max_payload_size),
            primary_language=env.get("PRIMARY_LANGUAGE", defaults.primary_language),
            fallback_languages=_languages(fallback) if fallback is not None else defaults.fallback_languages,
            stt_max_attempts=max(1, _int(env, "STT_MAX_ATTEMPTS", defaults.stt_max_attempts)),
            batch_max_workers=max(1, _int(env, "BATCH_MAX_WORKERS", defaults.batch_max_workers)),
            keywords_path=env.get("KEYWORDS_PATH") or None,
            output_bucket=env.get("OUTPUT_BUCKET") or None,
            output_prefix=env.get("OUTPUT_PREFIX", defaults.output_prefix),
        )
