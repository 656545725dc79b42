from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from .. import constants


class TruncationDetails(BaseModel):
    removed_words: int
    removed_percent: int
    beginning_words: int
    ending_words: int
    strategy: str = constants.TRUNCATION_STRATEGY


class TruncationResult(BaseModel):
    text: str
    original_tokens: int = 0
    truncated_tokens: int = 0
    was_truncated: bool = False
    details: Optional[TruncationDetails] = None


class PreparedTranscript(TruncationResult):
    is_valid: bool = True
    validation_error: Optional[str] = None


class TranscriptConfig(BaseModel):
    max_transcript_tokens: int = constants.DEFAULT_MAX_TRANSCRIPT_TOKENS
    min_transcript_tokens: int = constants.MIN_TRANSCRIPT_TOKENS
    beginning_ratio: float = Field(default=constants.DEFAULT_BEGINNING_RATIO, ge=0.0, le=1.0)
    marker_reserve_tokens: int = constants.TRUNCATION_MARKER_RESERVE_TOKENS
    marker_template: str = constants.DEFAULT_TRUNCATION_MARKER


class BudgetReserves(BaseModel):
    prompt_template: int = constants.PROMPT_TEMPLATE_RESERVE
    system_message: int = constants.SYSTEM_MESSAGE_RESERVE
    output_buffer: int = constants.OUTPUT_BUFFER_RESERVE
    safety_margin: int = constants.SAFETY_MARGIN_RESERVE

    @property
    def total(self) -> int:
        return self.prompt_template + self.system_message + self.output_buffer + self.safety_margin


class BudgetConfig(BaseModel):
    default_model: str = constants.DEFAULT_MODEL
    default_context_limit: int = constants.DEFAULT_CONTEXT_LIMIT
    model_limits: Dict[str, int] = Field(default_factory=lambda: dict(constants.MODEL_LIMITS))
    reserves: BudgetReserves = Field(default_factory=BudgetReserves)
    stage_context_step: float = constants.STAGE_CONTEXT_STEP
    stage_context_max: float = constants.STAGE_CONTEXT_MAX
    min_transcript_tokens: int = constants.MIN_TRANSCRIPT_TOKENS

    @field_validator("model_limits")
    @classmethod
    def normalize_model_names(cls, limits: Dict[str, int]) -> Dict[str, int]:
        # Lookups lower-case the model name
        return {name.strip().lower(): limit for name, limit in limits.items()}


class AudioConfig(BaseModel):
    provider_max_file_size_mb: float = constants.PROVIDER_MAX_FILE_SIZE_MB
    target_chunk_size_mb: float = constants.TARGET_CHUNK_SIZE_MB
    max_large_file_size_mb: float = constants.MAX_LARGE_FILE_SIZE_MB
    max_chunk_duration_seconds: int = constants.MAX_CHUNK_DURATION_SECONDS
    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"
    temp_dir: Optional[str] = None

    @property
    def provider_max_file_size_bytes(self) -> int:
        return int(self.provider_max_file_size_mb * constants.MB)

    @property
    def target_chunk_size_bytes(self) -> int:
        return int(self.target_chunk_size_mb * constants.MB)

    @property
    def max_large_file_size_bytes(self) -> int:
        return int(self.max_large_file_size_mb * constants.MB)


class ParserConfig(BaseModel):
    context_window: int = constants.PARSE_CONTEXT_WINDOW
    control_char_scan_limit: int = constants.CONTROL_CHAR_SCAN_LIMIT
    control_char_report_limit: int = constants.CONTROL_CHAR_REPORT_LIMIT
    preview_chars: int = constants.RESPONSE_PREVIEW_CHARS
    failure_log_dir: Optional[str] = None


class LoggingConfig(BaseModel):
    log_dir: Optional[str] = None
    output_mode: str = "standard"


class ConfigContext(BaseModel):
    debug: bool = False
    transcript: TranscriptConfig = Field(default_factory=TranscriptConfig)
    budget: BudgetConfig = Field(default_factory=BudgetConfig)
    audio: AudioConfig = Field(default_factory=AudioConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
