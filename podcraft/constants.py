"""Constants used throughout the Podcraft application."""

# Token estimation
TOKENS_PER_WORD = 1.3
TOKENS_PER_CHAR = 0.25

# Transcript budgets (in tokens)
DEFAULT_MAX_TRANSCRIPT_TOKENS = 100_000
MIN_TRANSCRIPT_TOKENS = 500
TRUNCATION_MARKER_RESERVE_TOKENS = 50
DEFAULT_BEGINNING_RATIO = 0.6
TRUNCATION_STRATEGY = "beginning-end-preserve"

DEFAULT_TRUNCATION_MARKER = (
    "\n\n[... TRANSCRIPT TRUNCATED: ~{{ removed_words_display }} words "
    "({{ removed_percent }}% of transcript) removed to fit context limit. "
    "The middle portion of the conversation has been omitted. ...]\n\n"
)

# Model context windows (in tokens)
DEFAULT_MODEL = "gpt-5-mini"
DEFAULT_CONTEXT_LIMIT = 128_000
MODEL_LIMITS = {
    "gpt-5-mini": 128_000,
    "gpt-4o-mini": 128_000,
    "gpt-4o": 128_000,
    "claude-sonnet-4": 200_000,
    "claude-3-5-sonnet": 200_000,
}

# Prompt reserves (in tokens)
PROMPT_TEMPLATE_RESERVE = 2000
SYSTEM_MESSAGE_RESERVE = 500
OUTPUT_BUFFER_RESERVE = 4096
SAFETY_MARGIN_RESERVE = 5000
STAGE_CONTEXT_STEP = 0.1
STAGE_CONTEXT_MAX = 0.5

# Audio limits
MB = 1024 * 1024
PROVIDER_MAX_FILE_SIZE_MB = 25
TARGET_CHUNK_SIZE_MB = 20
MAX_LARGE_FILE_SIZE_MB = 100
MAX_CHUNK_DURATION_SECONDS = 1200
MIN_AUDIO_FILE_SIZE_BYTES = 1000
FFMPEG_STDERR_TAIL = 1000
CHUNK_FILENAME_PATTERN = "chunk_%03d"
TRANSCRIPT_CHUNK_SEPARATOR = "\n\n"

# Transcription pricing
WHISPER_MODEL = "whisper-1"
WHISPER_PRICE_PER_MINUTE = 0.006
DEFAULT_ASSUMED_BITRATE_KBPS = 128

SUPPORTED_AUDIO_FORMATS = [
    "mp3", "mp4", "mpeg", "mpga", "m4a", "wav", "webm", "flac", "ogg",
]

MIME_TO_EXTENSION = {
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/mp4": "mp4",
    "audio/m4a": "m4a",
    "audio/x-m4a": "m4a",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/webm": "webm",
    "audio/flac": "flac",
    "audio/x-flac": "flac",
    "audio/ogg": "ogg",
    "video/mp4": "mp4",
    "video/webm": "webm",
}

# Response parsing
PARSE_CONTEXT_WINDOW = 30
CONTROL_CHAR_SCAN_LIMIT = 5000
CONTROL_CHAR_REPORT_LIMIT = 5
RESPONSE_PREVIEW_CHARS = 300
PARSE_FAILURE_LOG_FILENAME = "parse_failures.log"

# Config
DEFAULT_CONFIG_FILENAME = "podcraft.yaml"
