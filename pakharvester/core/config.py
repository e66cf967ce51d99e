# ==============================================================================
# PAK HARVESTER - CONFIGURATION MODULE
# ==============================================================================
# Centralized configuration management for the application.
#
# This module handles:
#   - Loading/saving configuration from JSON file
#   - Default values for all settings
#   - Range clamping for numeric parser limits
#
# Configuration is stored in the per-user data directory (see Paths).
#
# Usage:
#   from pakharvester.core.config import Config
#   config = Config()
#   config.load()
#   print(config.max_entry_count)
#   config.debug_mode = True
#   config.save()
# ==============================================================================

import os
import json
from typing import Optional, Dict, Any, List

from .paths import Paths


# ==============================================================================
# DEFAULT CONFIGURATION VALUES
# ==============================================================================
# These are used when no config file exists or when values are missing.

DEFAULT_CONFIG = {
    # -------------------------------------------------------------------------
    # PARSER LIMITS
    # -------------------------------------------------------------------------
    # Reject container tables claiming more entries than this
    "max_entry_count": 10000,

    # Reject entry names longer than this (bytes)
    "max_name_length": 1024,

    # Bytes taken for an embedded image with no end marker
    "speculative_window_size": 32768,

    # -------------------------------------------------------------------------
    # RAW IMAGE GUESSING
    # -------------------------------------------------------------------------
    # Candidate widths/heights for headerless pixel data
    "raw_dimensions": [16, 32, 64, 128, 256, 512],

    # Candidate bytes per pixel (4 = BGRA, 3 = BGR)
    "raw_strides": [4, 3],

    # Skip raw guesses where every pixel is gray
    "reject_grayscale": True,

    # -------------------------------------------------------------------------
    # FILES AND EXPORT
    # -------------------------------------------------------------------------
    # File patterns picked up when scanning a folder
    "pak_patterns": ["*.pak"],

    # Default export format (PNG, BMP, JPG)
    "default_export_format": "PNG",

    # Default output folder for extractions
    "default_output_path": "",

    # -------------------------------------------------------------------------
    # ADVANCED
    # -------------------------------------------------------------------------
    # Print [DEBUG] lines for every strategy and entry
    "debug_mode": False,
}

EXPORT_FORMATS = ('PNG', 'BMP', 'JPG', 'JPEG', 'GIF')

# Bytes per pixel the raw image guesser understands (BGRA, BGR)
RAW_STRIDE_CHOICES = (4, 3)


def _int_list(value, key: str) -> List[int]:
    """
    Coerce a config value to a non-empty list of ints.

    Accepts a single int, a list of ints, or a comma-separated string
    (as typed on the command line).

    Raises:
        ValueError: If any item is not an integer or the list is empty
    """
    if isinstance(value, str):
        value = [part.strip() for part in value.split(',') if part.strip()]
    elif isinstance(value, int) and not isinstance(value, bool):
        value = [value]

    if not isinstance(value, (list, tuple)) or not value:
        raise ValueError(f"{key} must be an integer or a non-empty list of integers")

    result = []
    for item in value:
        if isinstance(item, bool):
            raise ValueError(f"{key} must contain integers, got {item!r}")
        try:
            result.append(int(item))
        except (TypeError, ValueError):
            raise ValueError(f"{key} must contain integers, got {item!r}") from None
    return result


# ==============================================================================
# CONFIGURATION CLASS
# ==============================================================================
class Config:
    """
    Configuration manager for PakHarvester.

    Handles loading, saving, and accessing application settings.
    Settings are stored in a JSON file and can be accessed as
    properties on this object.

    Attributes:
        config_path: Path to the configuration file
        data: Dictionary containing all settings

    Example:
        >>> config = Config()
        >>> config.load()
        >>> config.max_name_length = 512
        >>> config.save()
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to config file. If None, uses default location.
        """
        self.config_path = config_path or Paths.get_config_path()

        # Initialize with defaults (lists copied so edits don't leak)
        self.data: Dict[str, Any] = json.loads(json.dumps(DEFAULT_CONFIG))

        # Track if config has been modified
        self._modified = False

    # -------------------------------------------------------------------------
    # LOADING AND SAVING
    # -------------------------------------------------------------------------

    def load(self) -> bool:
        """
        Load configuration from file.

        If the file doesn't exist, defaults are used.
        Missing keys are filled with defaults; unknown keys are ignored.

        Returns:
            True if file was loaded, False if using defaults
        """
        if not os.path.isfile(self.config_path):
            return False

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
        except json.JSONDecodeError as e:
            print(f"[ERROR] Invalid config file: {e}")
            return False
        except OSError as e:
            print(f"[ERROR] Failed to load config: {e}")
            return False

        if not isinstance(loaded, dict):
            print(f"[ERROR] Invalid config file: expected an object")
            return False

        # Merge with defaults (so new settings get default values).
        # Values go through set() so a hand-edited file is validated too.
        for key, value in loaded.items():
            if key not in self.data:
                continue
            try:
                self.set(key, value)
            except (TypeError, ValueError) as e:
                print(f"[WARN] Ignoring config value for {key}: {e}")

        self._modified = False
        return True

    def save(self) -> bool:
        """
        Save configuration to file.

        Creates the directory if it doesn't exist.

        Returns:
            True if saved successfully
        """
        try:
            directory = os.path.dirname(self.config_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(self.data, f, indent=4, sort_keys=True)

            print(f"[INFO] Saved config to {self.config_path}")
            self._modified = False
            return True

        except OSError as e:
            print(f"[ERROR] Failed to save config: {e}")
            return False

    def reset_to_defaults(self):
        """Reset all settings to their default values."""
        self.data = json.loads(json.dumps(DEFAULT_CONFIG))
        self._modified = True

    @property
    def is_modified(self) -> bool:
        return self._modified

    # -------------------------------------------------------------------------
    # PROPERTY ACCESS
    # -------------------------------------------------------------------------
    # These properties provide type-safe access to common settings

    @property
    def max_entry_count(self) -> int:
        """Get the entry count ceiling for strict parsers."""
        return self.data.get('max_entry_count', 10000)

    @max_entry_count.setter
    def max_entry_count(self, value: int):
        self.data['max_entry_count'] = max(1, min(1000000, int(value)))
        self._modified = True

    @property
    def max_name_length(self) -> int:
        """Get the entry name length ceiling."""
        return self.data.get('max_name_length', 1024)

    @max_name_length.setter
    def max_name_length(self, value: int):
        self.data['max_name_length'] = max(1, min(65536, int(value)))
        self._modified = True

    @property
    def speculative_window_size(self) -> int:
        """Get the window size for images with no end marker."""
        return self.data.get('speculative_window_size', 32768)

    @speculative_window_size.setter
    def speculative_window_size(self, value: int):
        self.data['speculative_window_size'] = max(1024, min(64 * 1024 * 1024, int(value)))
        self._modified = True

    @property
    def raw_dimensions(self) -> List[int]:
        """Get the candidate widths/heights for raw pixel guessing."""
        return list(self.data.get('raw_dimensions', DEFAULT_CONFIG['raw_dimensions']))

    @raw_dimensions.setter
    def raw_dimensions(self, value):
        values = _int_list(value, 'raw_dimensions')
        if any(v <= 0 for v in values):
            raise ValueError("raw_dimensions must be positive integers")
        self.data['raw_dimensions'] = sorted(set(values))
        self._modified = True

    @property
    def raw_strides(self) -> List[int]:
        """Get the candidate bytes per pixel for raw pixel guessing."""
        return list(self.data.get('raw_strides', DEFAULT_CONFIG['raw_strides']))

    @raw_strides.setter
    def raw_strides(self, value):
        values = _int_list(value, 'raw_strides')
        if any(v not in RAW_STRIDE_CHOICES for v in values):
            raise ValueError(f"raw_strides may only contain {RAW_STRIDE_CHOICES}")
        # Keep the given priority order, drop repeats
        self.data['raw_strides'] = list(dict.fromkeys(values))
        self._modified = True

    @property
    def pak_patterns(self) -> List[str]:
        """Get the folder scan patterns."""
        return list(self.data.get('pak_patterns', ["*.pak"]))

    @pak_patterns.setter
    def pak_patterns(self, value: List[str]):
        if isinstance(value, str):
            value = [p.strip() for p in value.split(',') if p.strip()]
        self.data['pak_patterns'] = list(value) or ["*.pak"]
        self._modified = True

    @property
    def default_export_format(self) -> str:
        """Get the default export format."""
        return self.data.get('default_export_format', 'PNG')

    @default_export_format.setter
    def default_export_format(self, value: str):
        value = str(value).upper()
        if value not in EXPORT_FORMATS:
            raise ValueError(f"default_export_format must be one of {', '.join(EXPORT_FORMATS)}")
        self.data['default_export_format'] = value
        self._modified = True

    @property
    def debug_mode(self) -> bool:
        """Check if debug mode is enabled."""
        return self.data.get('debug_mode', False)

    @debug_mode.setter
    def debug_mode(self, value: bool):
        """Set debug mode."""
        self.data['debug_mode'] = bool(value)
        self._modified = True

    # -------------------------------------------------------------------------
    # GENERIC ACCESS
    # -------------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            The configuration value
        """
        return self.data.get(key, default)

    def set(self, key: str, value: Any):
        """
        Set a configuration value.

        Keys with a typed property go through it, so clamping applies.

        Args:
            key: Configuration key
            value: Value to set
        """
        if isinstance(getattr(type(self), key, None), property):
            setattr(self, key, value)
        else:
            self.data[key] = value
            self._modified = True

    def set_from_string(self, key: str, text: str):
        """
        Set a value given as text (as typed on the command line).

        The value is parsed as JSON when possible so numbers, booleans and
        lists keep their types; otherwise it is stored as a string.

        Raises:
            KeyError: If key is not a known setting
        """
        if key not in DEFAULT_CONFIG:
            raise KeyError(key)
        try:
            value = json.loads(text)
        except json.JSONDecodeError:
            value = text
        self.set(key, value)

    def __getitem__(self, key: str) -> Any:
        """Allow dictionary-style access: config['key']"""
        return self.data[key]

    def __setitem__(self, key: str, value: Any):
        """Allow dictionary-style setting: config['key'] = value"""
        self.set(key, value)


# ==============================================================================
# GLOBAL CONFIG INSTANCE
# ==============================================================================
# This provides a singleton-like access to configuration

_global_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Creates and loads config on first call.

    Returns:
        The global Config instance
    """
    global _global_config

    if _global_config is None:
        _global_config = Config()
        _global_config.load()

    return _global_config
