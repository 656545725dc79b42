import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from .models import (
    ConfigContext, TranscriptConfig, BudgetConfig, AudioConfig,
    ParserConfig, LoggingConfig
)
from ..constants import DEFAULT_CONFIG_FILENAME, MODEL_LIMITS

logger = logging.getLogger("Podcraft.Config")

# Environment variable -> (section, key, type)
ENV_OVERRIDES = {
    "PODCRAFT_MAX_TRANSCRIPT_TOKENS": ("transcript", "max_transcript_tokens", int),
    "PODCRAFT_BEGINNING_RATIO": ("transcript", "beginning_ratio", float),
    "PODCRAFT_DEFAULT_MODEL": ("budget", "default_model", str),
    "PODCRAFT_TARGET_CHUNK_SIZE_MB": ("audio", "target_chunk_size_mb", float),
    "PODCRAFT_MAX_CHUNK_DURATION_SECONDS": ("audio", "max_chunk_duration_seconds", int),
    "PODCRAFT_FFMPEG": ("audio", "ffmpeg_binary", str),
    "PODCRAFT_FFPROBE": ("audio", "ffprobe_binary", str),
    "PODCRAFT_FAILURE_LOG_DIR": ("parser", "failure_log_dir", str),
    "PODCRAFT_LOG_DIR": ("logging", "log_dir", str),
}


def load_yaml(path: Path) -> Dict[str, Any]:
    if path.exists():
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}
    return {}


def _merge_dicts(base: Dict, update: Dict):
    """Recursively merge update dict into base dict."""
    for k, v in update.items():
        if isinstance(v, dict) and k in base and isinstance(base[k], dict):
            _merge_dicts(base[k], v)
        else:
            base[k] = v


def _find_config_path(config_path: Optional[str]) -> Optional[Path]:
    if config_path:
        return Path(config_path)

    # Search order: current dir -> user home
    cwd_config = Path(DEFAULT_CONFIG_FILENAME)
    home_config = Path.home() / ".config" / "podcraft" / DEFAULT_CONFIG_FILENAME

    if cwd_config.exists():
        return cwd_config
    if home_config.exists():
        return home_config
    return None


def _apply_env_overrides(user_config: Dict[str, Any]) -> None:
    for env_name, (section, key, cast) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is None or raw == "":
            continue
        try:
            value = cast(raw)
        except ValueError:
            logger.warning(f"Ignoring {env_name}={raw!r}: expected {cast.__name__}")
            continue
        _merge_dicts(user_config, {section: {key: value}})

    debug = os.environ.get("PODCRAFT_DEBUG")
    if debug:
        user_config["debug"] = debug.lower() in ("1", "true", "yes", "on")


def load_config(config_path: Optional[str] = None, use_env: bool = True) -> ConfigContext:
    """Load configuration from file and env vars."""
    if use_env:
        # Load environment variables from .env file
        load_dotenv()

    # 1. Determine config path
    user_config_path = _find_config_path(config_path)

    # 2. Load user config
    user_config = load_yaml(user_config_path) if user_config_path else {}
    if user_config_path and not user_config_path.exists():
        logger.warning(f"Config file not found: {user_config_path}. Using defaults.")

    # 3. Environment wins over the file
    if use_env:
        _apply_env_overrides(user_config)

    # 4. Model limits extend the built-in table rather than replace it
    budget_conf = {"model_limits": dict(MODEL_LIMITS)}
    _merge_dicts(budget_conf, user_config.get("budget", {}))

    # 5. Parse sections
    return ConfigContext(
        debug=bool(user_config.get("debug", False)),
        transcript=TranscriptConfig(**user_config.get("transcript", {})),
        budget=BudgetConfig(**budget_conf),
        audio=AudioConfig(**user_config.get("audio", {})),
        parser=ParserConfig(**user_config.get("parser", {})),
        logging=LoggingConfig(**user_config.get("logging", {})),
    )
