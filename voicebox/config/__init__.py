"""Simple YAML configuration loader for VoiceBox."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "voicebox.yaml"

# Debounce window accepted for the ready-to-send re-evaluation
MIN_DEBOUNCE_SECONDS = 0.2
MAX_DEBOUNCE_SECONDS = 0.3

DEFAULTS: Dict[str, Any] = {
    "google_cloud": {
        "credentials_path": None,
        "language": "en-US",
        "model": "latest_long",
        "enable_automatic_punctuation": True,
    },
    "audio": {
        "sample_rate": 16000,
        "chunk_size": 1024,
        "channels": 1,
        "loudness_gain": 10.0,
    },
    "composer": {
        "debounce_seconds": 0.3,
        "min_words": 4,
        "placeholder": "Listening...",
    },
    "chat": {
        "enabled": True,
        "base_url": "https://api.openai.com/v1/chat/completions",
        "model": "gpt-4o-mini",
        "api_key_env": "OPENAI_API_KEY",
        "instructions": (
            "You are a helpful writing assistant that helps users improve their content. "
            "Focus on clarity, tone, and structure. Keep responses concise and actionable."
        ),
        "temperature": 0.7,
        "max_tokens": 400,
        "supported_languages": ["en", "es", "fr", "de", "it", "pt", "ja", "zh", "ko"],
    },
    "logging": {
        "level": "INFO",
        "file_path": "data/logs/voicebox.log",
        "console_output": True,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class VoiceBoxConfig:
    """VoiceBox configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, uses voicebox.yaml
                        in the current directory when present, built-in defaults otherwise.
        """
        if config_path is None:
            candidate = Path.cwd() / DEFAULT_CONFIG_FILENAME
            if not candidate.exists():
                logger.info("No configuration file found, using built-in defaults")
                self.config_file: Optional[Path] = None
                self.config = copy.deepcopy(DEFAULTS)
                self._check_debounce()
                return
            config_path = str(candidate)

        self.config_file = Path(config_path)

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()
        self._check_debounce()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e

        if not loaded:
            raise ValueError("Configuration file is empty")
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")

        config = _merge(DEFAULTS, loaded)

        # Resolve relative paths
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        creds_path = config['google_cloud'].get('credentials_path')
        if creds_path and not os.path.isabs(creds_path):
            config['google_cloud']['credentials_path'] = str(config_dir / creds_path)

        log_path = config['logging'].get('file_path')
        if log_path and not os.path.isabs(log_path):
            config['logging']['file_path'] = str(config_dir / log_path)

    def _check_debounce(self) -> None:
        delay = float(self.get('composer.debounce_seconds'))
        clamped = min(max(delay, MIN_DEBOUNCE_SECONDS), MAX_DEBOUNCE_SECONDS)
        if clamped != delay:
            logger.warning(
                f"composer.debounce_seconds={delay} outside "
                f"[{MIN_DEBOUNCE_SECONDS}, {MAX_DEBOUNCE_SECONDS}], using {clamped}"
            )
        self.set('composer.debounce_seconds', clamped)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'google_cloud.language').

        Args:
            key_path: Dot-separated key path (e.g., 'google_cloud.credentials_path')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'composer.min_words')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_google_credentials_path(self) -> Optional[str]:
        """Get Google credentials path, or None when not configured.

        A missing path is not fatal: the recognition backend reports it as
        missing authorization when capture is requested.
        """
        creds_path = self.get('google_cloud.credentials_path')
        if not creds_path:
            return None
        return str(Path(creds_path).absolute())

    def get_chat_api_key(self) -> Optional[str]:
        """Read the chat API key from the configured environment variable."""
        env_name = self.get('chat.api_key_env', 'OPENAI_API_KEY')
        return os.environ.get(env_name)
