"""Request-scoped value objects for audio handling and response parsing."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class AudioAsset:
    """An uploaded audio file held in memory for one request."""
    buffer: bytes
    filename: str

    @property
    def size_bytes(self) -> int:
        return len(self.buffer)


@dataclass
class AudioChunk:
    """A time-bounded segment of an oversized audio file."""
    buffer: bytes
    filename: str
    index: int

    @property
    def size_bytes(self) -> int:
        return len(self.buffer)


@dataclass
class SplitResult:
    """Outcome of splitting an audio file, chunks ordered by index."""
    chunked: bool
    chunks: List[AudioChunk]
    original_size: int
    audio_duration_seconds: Optional[float] = None

    @property
    def total_chunks(self) -> int:
        return len(self.chunks)


@dataclass
class ChunkTranscriptionResult:
    index: int
    transcript: str
    cost: float = 0.0


@dataclass
class ParseDiagnostics:
    """Where and why a JSON parse failed."""
    error_message: str
    position: Optional[int] = None
    context: Optional[str] = None
    problematic_char: Optional[Dict[str, Any]] = None
    control_chars_found: List[Dict[str, Any]] = field(default_factory=list)
    strategy_errors: List[str] = field(default_factory=list)
