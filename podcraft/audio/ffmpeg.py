"""Thin wrappers around the ffmpeg/ffprobe command line tools."""

import json
import math
import shutil
import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from ..core.errors import ConfigurationError, ProcessingError
from ..constants import CHUNK_FILENAME_PATTERN, FFMPEG_STDERR_TAIL

logger = logging.getLogger("Podcraft.Audio.FFmpeg")


def _tail(text: Optional[str], size: int = FFMPEG_STDERR_TAIL) -> str:
    return (text or "")[-size:]


def missing_tools(ffmpeg: str = "ffmpeg", ffprobe: str = "ffprobe") -> List[str]:
    return [tool for tool in (ffmpeg, ffprobe) if not shutil.which(tool)]


def is_ffmpeg_available(ffmpeg: str = "ffmpeg", ffprobe: str = "ffprobe") -> bool:
    """Check that both ffmpeg and ffprobe are on PATH."""
    missing = missing_tools(ffmpeg, ffprobe)
    if missing:
        logger.warning(f"{', '.join(missing)} not found on system - large file support disabled")
        return False
    logger.debug("FFmpeg is available")
    return True


def require_ffmpeg(ffmpeg: str = "ffmpeg", ffprobe: str = "ffprobe") -> None:
    """
    Fail fast when the media toolchain is missing.

    Raises:
        ConfigurationError: naming the first missing binary.
    """
    missing = missing_tools(ffmpeg, ffprobe)
    if missing:
        raise ConfigurationError(
            f"{missing[0]} is required for audio files larger than the provider limit "
            f"but was not found in PATH. Install ffmpeg:\n"
            f"  macOS: brew install ffmpeg\n"
            f"  Ubuntu: sudo apt update && sudo apt install ffmpeg",
            capability=missing[0],
        )


def _run(cmd: List[str], tool: str) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError:
        raise ConfigurationError(f"{tool} not found in PATH", capability=tool)
    except OSError as e:
        raise ProcessingError(tool, f"could not be started: {e}")


def probe_duration(filepath: Path, ffprobe: str = "ffprobe") -> float:
    """Get audio duration in seconds using ffprobe."""
    cmd = [
        ffprobe, '-v', 'error',
        '-show_entries', 'format=duration',
        '-of', 'json',
        str(filepath)
    ]
    result = _run(cmd, ffprobe)

    if result.returncode != 0:
        stderr_tail = _tail(result.stderr)
        logger.error(f"FFprobe command failed (exit {result.returncode}): {stderr_tail}")
        raise ProcessingError(
            ffprobe, f"failed with exit code {result.returncode}",
            returncode=result.returncode, stderr_tail=stderr_tail
        )

    try:
        info = json.loads(result.stdout or "{}")
        duration = float(info.get('format', {}).get('duration'))
    except (ValueError, TypeError, AttributeError):
        raise ProcessingError(ffprobe, "could not parse audio duration", returncode=0,
                              stderr_tail=_tail(result.stderr))

    if not math.isfinite(duration) or duration <= 0:
        raise ProcessingError(ffprobe, f"reported an unusable duration ({duration})", returncode=0)

    logger.debug(f"Audio duration detected: {duration:.1f}s ({duration / 60:.1f} min)")
    return duration


def split_by_time(input_path: Path, output_dir: Path, extension: str,
                  segment_seconds: int, ffmpeg: str = "ffmpeg") -> List[Path]:
    """
    Split audio into fixed-length segments without re-encoding.

    Returns the segment files in lexical order, which is chronological
    because of the zero-padded pattern.
    """
    output_pattern = output_dir / f"{CHUNK_FILENAME_PATTERN}.{extension}"
    cmd = [
        ffmpeg,
        '-i', str(input_path),
        '-f', 'segment',
        '-segment_time', str(segment_seconds),
        '-c', 'copy',
        '-reset_timestamps', '1',
        '-y',
        str(output_pattern)
    ]
    logger.debug(f"Running FFmpeg split: {input_path} -> {output_pattern} ({segment_seconds}s segments)")

    result = _run(cmd, ffmpeg)
    if result.returncode != 0:
        stderr_tail = _tail(result.stderr)
        logger.error(f"FFmpeg split failed (exit {result.returncode}): {stderr_tail}")
        raise ProcessingError(
            ffmpeg, f"split failed with exit code {result.returncode}",
            returncode=result.returncode, stderr_tail=stderr_tail
        )

    chunk_files = sorted(output_dir.glob(f"chunk_*.{extension}"))
    logger.info(f"FFmpeg split completed: {len(chunk_files)} chunks in {output_dir}")
    return chunk_files
