"""Exception hierarchy for the pipeline.

Every failure raised by the pipeline derives from :class:`PipelineError` so the
batch orchestrator can catch one type at its boundary and record the stage that
failed.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class MalformedEntryError(PipelineError):
    """A timing ledger segment could not be parsed."""

    def __init__(self, index: int, raw_text: str, reason: str = "invalid timing entry") -> None:
        self.index = index
        self.raw_text = raw_text
        self.reason = reason
        super().__init__(f"{reason} at index {index}: {raw_text!r}")


class InvalidLengthError(PipelineError):
    """A WAV header was requested for a length that is not a non-negative int."""

    def __init__(self, length: object) -> None:
        self.length = length
        super().__init__(f"Invalid audio data length: {length!r}")


class ReconstructionError(PipelineError):
    """Base class for payload read failures."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(message)


class NotFoundError(ReconstructionError):
    def __init__(self, path: str) -> None:
        super().__init__(path, f"Audio file not found: {path}")


class EmptyPayloadError(ReconstructionError):
    def __init__(self, path: str) -> None:
        super().__init__(path, f"Audio file is empty: {path}")


class PayloadTooLargeError(ReconstructionError):
    def __init__(self, path: str, size: int, max_size: int) -> None:
        self.size = size
        self.max_size = max_size
        super().__init__(path, f"File too large: {size} bytes (max: {max_size})")


class ProviderError(PipelineError):
    """The speech recognition provider failed (transport, auth or quota)."""

    def __init__(self, cause: BaseException, item_id: Optional[str] = None) -> None:
        self.cause = cause
        self.item_id = item_id
        prefix = f"[{item_id}] " if item_id else ""
        super().__init__(f"{prefix}Speech transcription failed: {cause}")

    def with_item(self, item_id: str) -> "ProviderError":
        """Return a copy of this error carrying ``item_id`` context."""
        return ProviderError(self.cause, item_id=item_id)


class NoItemsFoundError(PipelineError):
    """Discovery found nothing to process in a folder."""

    def __init__(self, folder: str, reason: str = "No audio files found") -> None:
        self.folder = folder
        super().__init__(f"{reason} in {folder}")


class InvalidTransitionError(PipelineError):
    """An item tracker was asked to leave a terminal state."""
