import time
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from .chunking import AudioSplitter
from ..core.errors import ValidationError
from ..core.providers import TranscriptionProvider, TranscribeFn, as_transcribe_fn
from ..models import ChunkTranscriptionResult
from ..constants import (
    MB, MIN_AUDIO_FILE_SIZE_BYTES, SUPPORTED_AUDIO_FORMATS, MIME_TO_EXTENSION,
    WHISPER_MODEL, WHISPER_PRICE_PER_MINUTE, DEFAULT_ASSUMED_BITRATE_KBPS,
    PROVIDER_MAX_FILE_SIZE_MB, TRANSCRIPT_CHUNK_SEPARATOR
)

logger = logging.getLogger("Podcraft.Audio.Transcription")


def merge_chunk_results(results: Iterable[ChunkTranscriptionResult]) -> str:
    """Join chunk transcripts in index order, whatever order they arrived in."""
    ordered = sorted(results, key=lambda r: r.index)
    return TRANSCRIPT_CHUNK_SEPARATOR.join(r.transcript for r in ordered)


def validate_audio_file(audio_data: Optional[bytes], filename: Optional[str] = None,
                        mime_type: Optional[str] = None,
                        max_size_bytes: Optional[int] = PROVIDER_MAX_FILE_SIZE_MB * MB) -> Dict[str, Any]:
    """
    Basic sanity checks before audio is sent anywhere.

    Returns:
        Dict with 'extension' (may be None) and 'file_size'.

    Raises:
        ValidationError: If the data is missing, too small, too large or
            in an unsupported format.
    """
    if not audio_data:
        raise ValidationError("audio_data", "Audio file data is required")

    file_size = len(audio_data)

    if max_size_bytes is not None and file_size > max_size_bytes:
        raise ValidationError(
            "audio_data",
            f"Audio file size ({file_size / MB:.2f} MB) exceeds maximum of {max_size_bytes / MB:g} MB"
        )

    if file_size < MIN_AUDIO_FILE_SIZE_BYTES:
        raise ValidationError("audio_data", "Audio file appears to be empty or corrupted (less than 1KB)")

    extension = None
    if filename:
        suffix = Path(filename).suffix.lower().lstrip(".")
        extension = suffix or None
    if not extension and mime_type:
        extension = MIME_TO_EXTENSION.get(mime_type.lower())

    if not extension:
        # Let the provider decide
        logger.warning(f"Could not determine audio format (filename: {filename}, mime type: {mime_type})")
    elif extension not in SUPPORTED_AUDIO_FORMATS:
        raise ValidationError(
            "audio_data",
            f"Unsupported audio format: .{extension}. Supported formats: {', '.join(SUPPORTED_AUDIO_FORMATS)}"
        )

    logger.debug(f"Audio file validation passed: {filename} ({extension}, {file_size // 1024} KB)")
    return {"extension": extension, "file_size": file_size}


def estimate_transcription_cost(file_size_bytes: int, bitrate_kbps: int = DEFAULT_ASSUMED_BITRATE_KBPS) -> Dict[str, Any]:
    """Estimate transcription cost from file size, assuming a constant bitrate."""
    if not file_size_bytes or file_size_bytes <= 0:
        return {
            "estimated_duration_minutes": 0,
            "estimated_duration_seconds": 0,
            "estimated_cost": 0.0,
            "formatted_cost": "$0.00",
            "price_per_minute": WHISPER_PRICE_PER_MINUTE,
            "note": "No file size provided",
        }

    duration_seconds = (file_size_bytes * 8) / (bitrate_kbps * 1000)
    duration_minutes = duration_seconds / 60
    cost = duration_minutes * WHISPER_PRICE_PER_MINUTE

    return {
        "estimated_duration_minutes": round(duration_minutes, 2),
        "estimated_duration_seconds": round(duration_seconds),
        "estimated_cost": round(cost, 4),
        "formatted_cost": f"${cost:.4f}",
        "price_per_minute": WHISPER_PRICE_PER_MINUTE,
        "file_size_mb": round(file_size_bytes / MB, 2),
        "note": f"Estimated based on {bitrate_kbps} kbps bitrate",
    }


def calculate_transcription_cost(duration_seconds: float) -> Dict[str, Any]:
    duration_minutes = duration_seconds / 60
    cost = duration_minutes * WHISPER_PRICE_PER_MINUTE
    return {
        "duration_seconds": duration_seconds,
        "duration_minutes": round(duration_minutes, 2),
        "cost": round(cost, 4),
        "formatted_cost": f"${cost:.4f}",
        "price_per_minute": WHISPER_PRICE_PER_MINUTE,
    }


def get_audio_requirements(splitter: Optional[AudioSplitter] = None) -> Dict[str, Any]:
    config = (splitter or AudioSplitter()).config
    return {
        "supported_formats": list(SUPPORTED_AUDIO_FORMATS),
        "supported_mime_types": list(MIME_TO_EXTENSION),
        "max_file_size_mb": config.provider_max_file_size_mb,
        "max_large_file_size_mb": config.max_large_file_size_mb,
        "price_per_minute": WHISPER_PRICE_PER_MINUTE,
        "model": WHISPER_MODEL,
    }


class ChunkedTranscriber:
    """
    Transcribes audio of any accepted size through a single-file transcriber.

    Oversized files are split and the chunks are transcribed one at a time,
    in order. A failing chunk aborts the whole request; partial transcripts
    are never returned.
    """

    def __init__(self, transcriber: Union[TranscriptionProvider, TranscribeFn],
                 splitter: Optional[AudioSplitter] = None):
        self.transcribe_fn = as_transcribe_fn(transcriber)
        self.splitter = splitter or AudioSplitter()

    def transcribe_large(self, audio_buffer: bytes, filename: str = "audio.mp3",
                         options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        options = dict(options or {})
        options["filename"] = filename
        start_time = time.monotonic()

        split = self.splitter.split_if_needed(audio_buffer, filename)

        if not split.chunked:
            return self.transcribe_fn(audio_buffer, options)

        duration = split.audio_duration_seconds
        duration_note = f", {duration / 60:.1f} min" if duration else ""
        logger.info(f"Transcribing chunked audio {filename}: {split.total_chunks} chunks{duration_note}")

        chunk_results = []
        total_cost = 0.0

        for chunk in split.chunks:
            logger.debug(
                f"Transcribing chunk {chunk.index + 1}/{split.total_chunks} "
                f"({chunk.filename}, {chunk.size_bytes / MB:.2f} MB)"
            )
            result = self.transcribe_fn(chunk.buffer, {**options, "filename": chunk.filename})
            cost = float(result.get("estimated_cost") or 0.0)

            chunk_results.append(ChunkTranscriptionResult(
                index=chunk.index,
                transcript=result.get("transcript") or "",
                cost=cost,
            ))
            total_cost += cost

        merged_transcript = merge_chunk_results(chunk_results)
        processing_duration_ms = int((time.monotonic() - start_time) * 1000)

        logger.info(
            f"Large audio transcription completed for {filename}: {split.total_chunks} chunks, "
            f"cost ${total_cost:.4f}, {processing_duration_ms} ms, {len(merged_transcript)} chars"
        )

        return {
            "transcript": merged_transcript,
            "audio_duration_seconds": duration,
            "audio_duration_minutes": round(duration / 60, 2) if duration else None,
            "processing_duration_ms": processing_duration_ms,
            "estimated_cost": total_cost,
            "formatted_cost": f"${total_cost:.4f}",
            "filename": filename,
            "chunked": True,
            "total_chunks": split.total_chunks,
        }


def transcribe_large_audio(audio_buffer: bytes, filename: str,
                           transcriber: Union[TranscriptionProvider, TranscribeFn],
                           options: Optional[Dict[str, Any]] = None,
                           splitter: Optional[AudioSplitter] = None) -> Dict[str, Any]:
    return ChunkedTranscriber(transcriber, splitter).transcribe_large(audio_buffer, filename, options)
