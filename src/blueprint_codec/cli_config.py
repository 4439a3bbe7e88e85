"""
Configuration management for blueprint-codec.

Settings come from dataclass defaults, then the first config file found in
the standard locations, then ``BLUEPRINT_CODEC_*`` environment variables.
"""

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console

try:
    import yaml

    HAS_YAML = True
except ImportError:
    HAS_YAML = False

console = Console(stderr=True)

OUTPUT_FORMATS = ("console", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class CodecConfig:
    """Line decoding behaviour."""

    case_sensitive_categories: bool = False
    fail_on_errors: bool = True
    output_format: str = "console"


@dataclass
class SecurityConfig:
    """Input limits for blueprint files."""

    max_file_size_mb: int = 5
    max_line_length: int = 4096
    allowed_file_extensions: List[str] = field(default_factory=lambda: [".json"])

    @property
    def max_file_size_bytes(self) -> int:
        """Convert MB to bytes for internal use."""
        return self.max_file_size_mb * 1024 * 1024


@dataclass
class LoggingConfig:
    """Logging and error handling configuration."""

    log_level: str = "WARNING"
    enable_json: bool = True
    enable_sensitive_data_masking: bool = True


@dataclass
class ComprehensiveConfig:
    """Main configuration containing all subsections."""

    codec: CodecConfig = field(default_factory=CodecConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Global configuration instance
_global_config: Optional[ComprehensiveConfig] = None


def validate_config_values(config: ComprehensiveConfig) -> List[str]:
    """
    Validate configuration values and return any errors.

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    errors = []

    if config.codec.output_format not in OUTPUT_FORMATS:
        errors.append(
            f"codec.output_format must be one of {', '.join(OUTPUT_FORMATS)}"
        )

    if config.security.max_file_size_mb <= 0:
        errors.append("security.max_file_size_mb must be positive")
    if config.security.max_line_length <= 0:
        errors.append("security.max_line_length must be positive")
    if not config.security.allowed_file_extensions:
        errors.append("security.allowed_file_extensions must not be empty")

    if config.logging.log_level.upper() not in LOG_LEVELS:
        errors.append(f"logging.log_level must be one of {', '.join(LOG_LEVELS)}")

    return errors


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Load config from file."""
    if not config_path.exists():
        return None

    try:
        with open(config_path, encoding="utf-8") as f:
            if config_path.suffix.lower() in [".yaml", ".yml"]:
                if HAS_YAML:
                    return yaml.safe_load(f)
                console.print(
                    "⚠️  PyYAML not installed, skipping YAML config", style="yellow"
                )
                return None
            elif config_path.suffix.lower() == ".json":
                return json.load(f)
    except (OSError, ValueError) as e:
        console.print(
            f"⚠️  Error loading config from {config_path}: {e}", style="yellow"
        )

    return None


def find_config_file() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / ".blueprint-codec.json",
        Path.cwd() / ".blueprint-codec.yaml",
        Path.cwd() / ".blueprint-codec.yml",
        Path.home() / ".config" / "blueprint-codec" / "config.json",
        Path.home() / ".config" / "blueprint-codec" / "config.yaml",
        Path.home() / ".blueprint-codec.json",
    ]

    for location in locations:
        if location.exists():
            return location

    return None


def load_environment_overrides(config: ComprehensiveConfig) -> None:
    """Apply BLUEPRINT_CODEC_* environment variables."""

    def get_env_bool(key: str, default: bool = False) -> bool:
        value = os.environ.get(key, "").lower()
        return value in ["true", "1", "yes", "on"] if value else default

    def get_env_int(key: str, default: Optional[int] = None) -> Optional[int]:
        try:
            return int(os.environ[key]) if key in os.environ else default
        except ValueError:
            console.print(f"⚠️  Invalid integer value for {key}, using default", style="yellow")
            return default

    config.codec.case_sensitive_categories = get_env_bool(
        "BLUEPRINT_CODEC_CASE_SENSITIVE", config.codec.case_sensitive_categories
    )
    config.codec.fail_on_errors = get_env_bool(
        "BLUEPRINT_CODEC_FAIL_ON_ERRORS", config.codec.fail_on_errors
    )
    if output_format := os.environ.get("BLUEPRINT_CODEC_OUTPUT_FORMAT"):
        config.codec.output_format = output_format.lower()

    if max_file_size := get_env_int("BLUEPRINT_CODEC_MAX_FILE_SIZE_MB"):
        config.security.max_file_size_mb = max_file_size
    if max_line_length := get_env_int("BLUEPRINT_CODEC_MAX_LINE_LENGTH"):
        config.security.max_line_length = max_line_length

    if log_level := os.environ.get("BLUEPRINT_CODEC_LOG_LEVEL"):
        config.logging.log_level = log_level.upper()


def _type_error(section_name: str, key: str, value: Any, default: Any) -> Optional[str]:
    expected = type(default)
    if isinstance(default, list):
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return None
        return f"{section_name}.{key} must be a list of strings"
    # bool is an int subclass, so compare exact types
    if type(value) is expected:
        return None
    return (
        f"{section_name}.{key} must be of type {expected.__name__}, "
        f"got {type(value).__name__}"
    )


def apply_config_section(
    config: Any, section_data: Dict[str, Any], section_name: str
) -> List[str]:
    """
    Apply configuration from dictionary to config section.

    Values whose type differs from the field default are not applied.

    Returns:
        List[str]: One error per rejected value
    """
    errors = []
    for key, value in section_data.items():
        if hasattr(config, key):
            error = _type_error(section_name, key, value, getattr(config, key))
            if error:
                errors.append(error)
            else:
                setattr(config, key, value)
        else:
            console.print(
                f"⚠️  Unknown config key in {section_name}: {key}", style="yellow"
            )
    return errors


def apply_file_config(config: ComprehensiveConfig, file_config: Dict[str, Any]) -> List[str]:
    """Apply the codec, security and logging sections of a config file."""
    errors = []
    for section_name in ("codec", "security", "logging"):
        section_data = file_config.get(section_name)
        if section_data is None:
            continue
        if not isinstance(section_data, dict):
            errors.append(f"{section_name} must be an object")
            continue
        errors.extend(
            apply_config_section(getattr(config, section_name), section_data, section_name)
        )
    return errors


def build_config(file_config: Optional[Dict[str, Any]] = None) -> ComprehensiveConfig:
    """Build a configuration from defaults, file data and the environment."""
    config = ComprehensiveConfig()

    type_errors = []
    if isinstance(file_config, dict):
        type_errors = apply_file_config(config, file_config)
    elif file_config is not None:
        type_errors = ["Configuration must be a JSON or YAML object"]

    load_environment_overrides(config)

    validation_errors = type_errors + validate_config_values(config)
    if validation_errors:
        console.print("⚠️  Configuration validation errors:", style="red")
        for error in validation_errors:
            console.print(f"  • {error}", style="red")
        console.print("Using default values for invalid settings.", style="yellow")
        config = _restore_invalid_defaults(config)

    return config


def _restore_invalid_defaults(config: ComprehensiveConfig) -> ComprehensiveConfig:
    defaults = ComprehensiveConfig()
    if config.codec.output_format not in OUTPUT_FORMATS:
        config.codec.output_format = defaults.codec.output_format
    if config.security.max_file_size_mb <= 0:
        config.security.max_file_size_mb = defaults.security.max_file_size_mb
    if config.security.max_line_length <= 0:
        config.security.max_line_length = defaults.security.max_line_length
    if not config.security.allowed_file_extensions:
        config.security.allowed_file_extensions = defaults.security.allowed_file_extensions
    if config.logging.log_level.upper() not in LOG_LEVELS:
        config.logging.log_level = defaults.logging.log_level
    return config


def load_config() -> ComprehensiveConfig:
    """Load configuration from file and environment."""
    global _global_config

    if _global_config is not None:
        return _global_config

    file_config = None
    config_file = find_config_file()
    if config_file:
        file_config = load_config_file(config_file)

    _global_config = build_config(file_config)
    return _global_config


def get_config() -> ComprehensiveConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _global_config
    _global_config = None


def create_sample_config() -> str:
    """Generate sample configuration."""
    return json.dumps(ComprehensiveConfig().to_dict(), indent=2)
