import logging
from typing import Any, Dict, Optional, Union

from .config import load_config
from .logger import ParseFailureLog
from .models import ConfigContext, PreparedTranscript
from .providers import TranscriptionProvider, TranscribeFn
from ..audio import ffmpeg
from ..audio.chunking import AudioSplitter
from ..audio.transcription import ChunkedTranscriber
from ..response_parser import ResponseParser
from ..transcript.budget import ContextBudgetCalculator
from ..transcript.truncation import Truncator
from ..models import SplitResult

logger = logging.getLogger("Podcraft.Service")


class PrepService:
    """
    Transcript preparation for the content generation stages.

    Holds the configured components. Nothing is built until initialize() is
    called, and nothing is shared between instances.
    """

    def __init__(self, config: Optional[ConfigContext] = None,
                 transcriber: Union[TranscriptionProvider, TranscribeFn, None] = None):
        self.config = config or load_config()
        self.transcriber = transcriber

        self.truncator: Optional[Truncator] = None
        self.budget: Optional[ContextBudgetCalculator] = None
        self.splitter: Optional[AudioSplitter] = None
        self.parser: Optional[ResponseParser] = None
        self.chunked_transcriber: Optional[ChunkedTranscriber] = None
        self.ffmpeg_available = False
        self.initialized = False

    def initialize(self) -> "PrepService":
        if self.initialized:
            return self

        self.truncator = Truncator(self.config.transcript)
        self.budget = ContextBudgetCalculator(self.config.budget)
        self.splitter = AudioSplitter(self.config.audio)

        failure_log = None
        if self.config.parser.failure_log_dir:
            failure_log = ParseFailureLog(self.config.parser.failure_log_dir)
        self.parser = ResponseParser(self.config.parser, failure_log=failure_log)

        if self.transcriber is not None:
            self.chunked_transcriber = ChunkedTranscriber(self.transcriber, self.splitter)

        self.ffmpeg_available = ffmpeg.is_ffmpeg_available(
            self.config.audio.ffmpeg_binary, self.config.audio.ffprobe_binary
        )
        if not self.ffmpeg_available:
            logger.warning("ffmpeg/ffprobe not found: audio above the provider limit cannot be split")

        self.initialized = True
        logger.debug(f"Prep service initialized (ffmpeg available: {self.ffmpeg_available})")
        return self

    def _require_initialized(self):
        if not self.initialized:
            raise RuntimeError("PrepService.initialize() must be called before use")

    def transcript_budget(self, stage_number: int, model: Optional[str] = None,
                          previous_stages: Optional[Dict[Any, Any]] = None) -> int:
        self._require_initialized()
        return self.budget.calculate(stage_number, model, previous_stages)

    def prepare_stage_transcript(self, transcript, stage_number: int, model: Optional[str] = None,
                                 previous_stages: Optional[Dict[Any, Any]] = None,
                                 episode_id: Optional[str] = None) -> PreparedTranscript:
        """
        Fit a transcript into what is left of the model's context for a stage.

        The budget accounts for prompt overhead and the output of earlier
        stages that is sent along with the transcript.
        """
        self._require_initialized()
        max_tokens = self.budget.calculate(stage_number, model, previous_stages)
        return self.truncator.prepare(
            transcript, max_tokens=max_tokens, model=model,
            stage_number=stage_number, episode_id=episode_id
        )

    def split_audio(self, audio_buffer: bytes, filename: str = "audio.mp3") -> SplitResult:
        self._require_initialized()
        return self.splitter.split_if_needed(audio_buffer, filename)

    def transcribe_upload(self, audio_buffer: bytes, filename: str,
                          options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        self._require_initialized()
        if self.chunked_transcriber is None:
            raise RuntimeError("PrepService was created without a transcriber")
        return self.chunked_transcriber.transcribe_large(audio_buffer, filename, options)

    def parse_stage_output(self, raw: str, context: str = "json-parser") -> Any:
        self._require_initialized()
        return self.parser.parse_response(raw, context=context)
