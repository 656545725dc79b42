import logging
from typing import Optional

from jinja2 import Template

from .tokens import estimate_tokens, split_words, tokens_to_words
from ..core.models import (
    TranscriptConfig, TruncationDetails, TruncationResult, PreparedTranscript
)
from .. import constants

logger = logging.getLogger("Podcraft.Transcript")


class Truncator:
    """
    Fits transcripts into a token budget by keeping the beginning and the end.

    The middle is dropped and replaced with a marker stating how much was
    removed. The split ratio and the marker are tunable through
    TranscriptConfig.
    """

    def __init__(self, config: Optional[TranscriptConfig] = None):
        self.config = config or TranscriptConfig()
        self._marker = Template(self.config.marker_template, keep_trailing_newline=True)

    def render_marker(self, removed_words: int, removed_percent: int,
                      beginning_words: int = 0, ending_words: int = 0) -> str:
        return self._marker.render(
            removed_words=removed_words,
            removed_words_display=f"{removed_words:,}",
            removed_percent=removed_percent,
            beginning_words=beginning_words,
            ending_words=ending_words,
        )

    def _marker_reserve(self) -> int:
        # Digits never add words, so a sample rendering sizes every marker
        sample = self.render_marker(0, 0)
        return max(self.config.marker_reserve_tokens, estimate_tokens(sample))

    def truncate(self, text: Optional[str], max_tokens: Optional[int] = None,
                 beginning_ratio: Optional[float] = None,
                 model: Optional[str] = None) -> TruncationResult:
        if max_tokens is None:
            max_tokens = self.config.max_transcript_tokens
        if beginning_ratio is None:
            beginning_ratio = self.config.beginning_ratio
        beginning_ratio = min(max(beginning_ratio, 0.0), 1.0)

        if not text:
            return TruncationResult(text="")

        original_tokens = estimate_tokens(text)

        if original_tokens <= max_tokens:
            logger.debug(f"Transcript fits within token limit ({original_tokens}/{max_tokens}, model: {model})")
            return TruncationResult(
                text=text,
                original_tokens=original_tokens,
                truncated_tokens=original_tokens,
                was_truncated=False,
            )

        logger.warning(
            f"Transcript exceeds token limit, truncating "
            f"({original_tokens} > {max_tokens}, excess: {original_tokens - max_tokens}, model: {model})"
        )

        words = split_words(text)
        total_words = len(words)
        marker_reserve = self._marker_reserve()
        with_marker = max_tokens >= marker_reserve

        if with_marker:
            usable_tokens = max_tokens - marker_reserve
            beginning_tokens = int(usable_tokens * beginning_ratio)
            ending_tokens = usable_tokens - beginning_tokens

            beginning_words = min(tokens_to_words(beginning_tokens), total_words)
            ending_words = min(tokens_to_words(ending_tokens), total_words - beginning_words)
        else:
            # Budget too small for the marker: keep only what fits from the start
            logger.warning(f"Token limit {max_tokens} leaves no room for the truncation marker ({marker_reserve})")
            beginning_words = min(tokens_to_words(max_tokens), total_words)
            while beginning_words and estimate_tokens(" ".join(words[:beginning_words])) > max_tokens:
                beginning_words -= 1
            ending_words = 0

        beginning_portion = " ".join(words[:beginning_words])
        ending_portion = " ".join(words[total_words - ending_words:]) if ending_words else ""

        removed_words = total_words - beginning_words - ending_words
        removed_percent = round(removed_words / total_words * 100)
        marker = ""
        if with_marker:
            marker = self.render_marker(removed_words, removed_percent, beginning_words, ending_words)

        truncated_text = beginning_portion + marker + ending_portion
        truncated_tokens = estimate_tokens(truncated_text)

        logger.info(
            f"Transcript truncated: {original_tokens} -> {truncated_tokens} tokens, "
            f"removed {removed_words} words ({removed_percent}%), "
            f"kept {beginning_words} beginning / {ending_words} ending words"
        )

        return TruncationResult(
            text=truncated_text,
            original_tokens=original_tokens,
            truncated_tokens=truncated_tokens,
            was_truncated=True,
            details=TruncationDetails(
                removed_words=removed_words,
                removed_percent=removed_percent,
                beginning_words=beginning_words,
                ending_words=ending_words,
            ),
        )

    def prepare(self, transcript, max_tokens: Optional[int] = None,
                model: Optional[str] = None, stage_number: Optional[int] = None,
                episode_id: Optional[str] = None) -> PreparedTranscript:
        """
        Validate and truncate a transcript before it is embedded in a prompt.

        Invalid input (not a string, or empty) yields an invalid result
        instead of raising, so the caller decides how to report it.
        """
        if not transcript or not isinstance(transcript, str):
            logger.warning(
                f"Invalid transcript provided (type: {type(transcript).__name__}, "
                f"stage: {stage_number}, episode: {episode_id})"
            )
            return PreparedTranscript(
                text="",
                is_valid=False,
                validation_error="Transcript is empty or invalid",
            )

        original_tokens = estimate_tokens(transcript)
        if original_tokens < self.config.min_transcript_tokens:
            logger.warning(
                f"Transcript may be too short for meaningful analysis "
                f"({original_tokens} < {self.config.min_transcript_tokens} tokens, "
                f"stage: {stage_number}, episode: {episode_id})"
            )

        result = self.truncate(transcript, max_tokens=max_tokens, model=model)

        logger.debug(
            f"Transcript prepared for analysis: {result.original_tokens} -> {result.truncated_tokens} tokens, "
            f"chars {len(transcript)} -> {len(result.text)}, truncated: {result.was_truncated}, "
            f"stage: {stage_number}, episode: {episode_id}"
        )

        return PreparedTranscript(**result.model_dump())


def truncate_transcript(text: Optional[str],
                        max_tokens: int = constants.DEFAULT_MAX_TRANSCRIPT_TOKENS,
                        beginning_ratio: float = constants.DEFAULT_BEGINNING_RATIO,
                        model: Optional[str] = None,
                        marker_template: Optional[str] = None) -> TruncationResult:
    """Truncate with default settings. See Truncator.truncate."""
    config = TranscriptConfig(marker_template=marker_template) if marker_template else None
    return Truncator(config).truncate(text, max_tokens=max_tokens, beginning_ratio=beginning_ratio, model=model)


def prepare_transcript(transcript, max_tokens: int = constants.DEFAULT_MAX_TRANSCRIPT_TOKENS,
                       model: Optional[str] = None, stage_number: Optional[int] = None,
                       episode_id: Optional[str] = None) -> PreparedTranscript:
    return Truncator().prepare(
        transcript, max_tokens=max_tokens, model=model,
        stage_number=stage_number, episode_id=episode_id
    )
