# focus_timer/config.py
"""
Configuration for the Focus Timer audio server

Priority for every key:
1. options.json (Home Assistant add-on style)
2. Environment variable (upper-cased key)
3. Default value
"""
import json
import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_OPTIONS_FILE = "/data/options.json"

UNSET_VALUES = [None, "", "null", "None"]

PLATFORMS = ("youtube", "soundcloud")


def _load_options(options_file: str) -> dict:
    if not os.path.exists(options_file):
        return {}
    try:
        with open(options_file, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"⚠️ Could not read {options_file}: {e}")
        return {}


def get_config(key: str, default=None, options_file: str = None):
    """
    Get configuration value from options.json or environment
    """
    if options_file is None:
        options_file = os.getenv('FOCUS_TIMER_OPTIONS', DEFAULT_OPTIONS_FILE)

    options = _load_options(options_file)
    if key in options and options[key] not in UNSET_VALUES:
        return options[key]

    env_value = os.getenv(key.upper())
    if env_value not in UNSET_VALUES:
        return env_value

    return default


def safe_int(value, default: int) -> int:
    """Safely convert value to int, handle null/None."""
    if value in UNSET_VALUES:
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def safe_float(value, default: float) -> float:
    """Safely convert value to float, handle null/None."""
    if value in UNSET_VALUES:
        return default
    try:
        return float(value)
    except (ValueError, TypeError):
        return default


def safe_bool(value, default: bool) -> bool:
    if value in UNSET_VALUES:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"
    default_platform: str = "youtube"

    # Search & selection
    search_limit: int = 20
    min_duration_minutes: int = 10
    keyword: str = "ambient"
    query_suffix: str = "ambient music"

    # Streaming
    chunk_size: int = 8192
    cache_max_age: int = 3600
    http_timeout: float = 30.0
    transcode: bool = False
    ffmpeg_path: str = "ffmpeg"

    def __post_init__(self):
        self.default_platform = self.default_platform.lower()
        if self.default_platform not in PLATFORMS:
            raise ValueError(
                f"Unknown platform '{self.default_platform}', expected one of {PLATFORMS}"
            )
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.search_limit <= 0:
            raise ValueError("search_limit must be positive")

    @classmethod
    def from_environment(cls, options_file: str = None) -> "ServerConfig":
        """Build the config from options.json / environment variables."""
        defaults = cls()

        def get(key, default):
            return get_config(key, default, options_file=options_file)

        return cls(
            host=get('host', defaults.host),
            port=safe_int(get('port', None), defaults.port),
            log_level=str(get('log_level', defaults.log_level)).upper(),
            default_platform=str(get('default_platform', defaults.default_platform)),
            search_limit=safe_int(get('search_limit', None), defaults.search_limit),
            min_duration_minutes=safe_int(
                get('min_duration_minutes', None), defaults.min_duration_minutes
            ),
            keyword=get('keyword', defaults.keyword),
            query_suffix=get('query_suffix', defaults.query_suffix),
            chunk_size=safe_int(get('chunk_size', None), defaults.chunk_size),
            cache_max_age=safe_int(get('cache_max_age', None), defaults.cache_max_age),
            http_timeout=safe_float(get('http_timeout', None), defaults.http_timeout),
            transcode=safe_bool(get('transcode', None), defaults.transcode),
            ffmpeg_path=get('ffmpeg_path', defaults.ffmpeg_path),
        )
