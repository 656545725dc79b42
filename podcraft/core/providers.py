from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Union


class TranscriptionProvider(ABC):
    """Abstract base class for speech-to-text providers."""

    def __init__(self, provider_config: Any = None):
        self.provider_config = provider_config

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the unique name of the provider."""
        pass

    @abstractmethod
    def transcribe(self, audio: bytes, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Transcribe a single audio file that fits within the provider's limits.

        Args:
            audio: Raw audio bytes.
            options: Request options; always contains 'filename'.

        Returns:
            Dict containing at least:
            - transcript: str
            - estimated_cost: float (USD)
        """
        pass


TranscribeFn = Callable[[bytes, Dict[str, Any]], Dict[str, Any]]


def as_transcribe_fn(transcriber: Union[TranscriptionProvider, TranscribeFn]) -> TranscribeFn:
    """Accept either a provider object or a plain callable."""
    if isinstance(transcriber, TranscriptionProvider):
        return transcriber.transcribe
    if callable(transcriber):
        return transcriber
    raise TypeError(f"Expected a TranscriptionProvider or callable, got {type(transcriber).__name__}")
