import math
import shutil
import logging
import tempfile
from pathlib import Path
from typing import Optional

from . import ffmpeg
from ..core.errors import ConfigurationError, ProcessingError
from ..core.models import AudioConfig
from ..models import AudioChunk, SplitResult
from ..constants import MB

logger = logging.getLogger("Podcraft.Audio")


def chunk_duration_for(size_bytes: int, duration_seconds: float, config: AudioConfig) -> int:
    """
    Segment length that keeps each chunk near the target size.

    The bitrate is estimated from the whole file, so chunk sizes are only
    approximate; the maximum chunk duration is a second bound on top.
    """
    estimated_bitrate = (size_bytes * 8) / duration_seconds  # bits per second
    by_size = math.floor((config.target_chunk_size_bytes * 8) / estimated_bitrate)
    return max(1, min(config.max_chunk_duration_seconds, by_size))


def _extension_for(filename: str) -> str:
    suffix = Path(filename).suffix.lower().lstrip(".")
    return suffix or "mp3"


class AudioSplitter:
    """Splits audio above the provider's single-file limit into ordered chunks."""

    def __init__(self, config: Optional[AudioConfig] = None):
        self.config = config or AudioConfig()

    def split_if_needed(self, audio_buffer: bytes, filename: str = "audio.mp3") -> SplitResult:
        file_size = len(audio_buffer)
        logger.info(f"Starting audio chunking for {filename} ({file_size / MB:.2f} MB)")

        if file_size > self.config.max_large_file_size_bytes:
            raise ConfigurationError(
                f"File size ({file_size / MB:.1f} MB) exceeds maximum of "
                f"{self.config.max_large_file_size_mb:g} MB",
                capability="max_large_file_size",
            )

        if file_size <= self.config.provider_max_file_size_bytes:
            logger.debug(f"File is small enough, no chunking needed ({file_size / MB:.2f} MB)")
            return SplitResult(
                chunked=False,
                chunks=[AudioChunk(buffer=audio_buffer, filename=filename, index=0)],
                original_size=file_size,
            )

        ffmpeg.require_ffmpeg(self.config.ffmpeg_binary, self.config.ffprobe_binary)

        extension = _extension_for(filename)
        stem = Path(filename).stem or "audio"
        temp_dir = Path(tempfile.mkdtemp(prefix="audio-chunks-", dir=self.config.temp_dir))
        input_path = temp_dir / f"input.{extension}"

        try:
            input_path.write_bytes(audio_buffer)

            duration = ffmpeg.probe_duration(input_path, self.config.ffprobe_binary)
            chunk_duration = chunk_duration_for(file_size, duration, self.config)
            logger.debug(
                f"Chunk parameters: ~{(file_size * 8) / duration / 1000:.0f} kbps, "
                f"{chunk_duration}s per chunk ({chunk_duration / 60:.1f} min)"
            )

            segment_dir = temp_dir / "segments"
            segment_dir.mkdir()
            chunk_paths = ffmpeg.split_by_time(
                input_path, segment_dir, extension, chunk_duration, self.config.ffmpeg_binary
            )
            if not chunk_paths:
                raise ProcessingError(self.config.ffmpeg_binary, "segmentation produced no chunk files")

            chunks = [
                AudioChunk(
                    buffer=chunk_path.read_bytes(),
                    filename=f"{stem}_chunk{index + 1}.{extension}",
                    index=index,
                )
                for index, chunk_path in enumerate(chunk_paths)
            ]

            logger.info(
                f"Audio chunking completed for {filename}: {len(chunks)} chunks "
                f"({', '.join(f'{c.size_bytes / MB:.2f} MB' for c in chunks)})"
            )

            return SplitResult(
                chunked=True,
                chunks=chunks,
                original_size=file_size,
                audio_duration_seconds=duration,
            )
        finally:
            self._cleanup(temp_dir)

    def _cleanup(self, temp_dir: Path) -> None:
        try:
            shutil.rmtree(temp_dir)
            logger.debug(f"Cleaned up temp files in {temp_dir}")
        except OSError as e:
            logger.warning(f"Failed to clean up temp files in {temp_dir}: {e}")


def split_audio_into_chunks(audio_buffer: bytes, filename: str = "audio.mp3",
                            config: Optional[AudioConfig] = None) -> SplitResult:
    return AudioSplitter(config).split_if_needed(audio_buffer, filename)
