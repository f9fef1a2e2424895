"""
Configuration management for the spritesheet builder.
Supports TOML and JSON configuration files with environment overrides.
"""

import os
import json
from dataclasses import dataclass, asdict

# Handle tomllib import for different Python versions
try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11
from typing import Dict, List, Any, Union
from pathlib import Path


LAYOUT_POLICIES = ("pow2", "square")
ENV_PREFIX = "SHEETIFY_"


@dataclass
class SheetConfig:
    """Main configuration class for spritesheet generation."""

    # Input
    input_dir: str = "./out"
    extension: str = ".png"

    # Tiles
    sprite_size: int = 32

    # Decoding
    concurrency_limit: int = 8

    # Layout
    layout: str = "pow2"
    max_columns: int = 16
    max_texture_size: int = 8192

    # Output
    output_path: str = "spritesheet.png"
    compression_level: int = 6

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "SheetConfig":
        """Load configuration from TOML or JSON file."""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix.lower() == '.toml':
            return cls._from_toml(config_path)
        elif config_path.suffix.lower() == '.json':
            return cls._from_json(config_path)
        else:
            raise ValueError(f"Unsupported configuration format: {config_path.suffix}")

    @classmethod
    def _from_toml(cls, config_path: Path) -> "SheetConfig":
        with open(config_path, 'rb') as f:
            data = tomllib.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_json(cls, config_path: Path) -> "SheetConfig":
        with open(config_path, 'r') as f:
            data = json.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "SheetConfig":
        """Create configuration from a sectioned dictionary."""
        defaults = cls()
        config_data = {}

        if 'input' in data:
            section = data['input']
            config_data['input_dir'] = section.get('dir', defaults.input_dir)
            config_data['extension'] = section.get('extension', defaults.extension)

        if 'sprites' in data:
            config_data['sprite_size'] = int(data['sprites'].get('size', defaults.sprite_size))

        if 'decode' in data:
            config_data['concurrency_limit'] = int(
                data['decode'].get('concurrency_limit', defaults.concurrency_limit)
            )

        if 'layout' in data:
            section = data['layout']
            config_data['layout'] = section.get('policy', defaults.layout)
            config_data['max_columns'] = int(section.get('max_columns', defaults.max_columns))
            config_data['max_texture_size'] = int(
                section.get('max_texture_size', defaults.max_texture_size)
            )

        if 'output' in data:
            section = data['output']
            config_data['output_path'] = section.get('path', defaults.output_path)
            config_data['compression_level'] = int(
                section.get('compression_level', defaults.compression_level)
            )

        if 'logging' in data:
            config_data['log_level'] = data['logging'].get('level', defaults.log_level)

        return cls(**config_data)

    @classmethod
    def default(cls) -> "SheetConfig":
        """Create default configuration with environment variable overrides."""
        return cls._apply_env_overrides(cls())

    @classmethod
    def _apply_env_overrides(cls, config: "SheetConfig") -> "SheetConfig":
        """Apply SHEETIFY_* environment variable overrides to configuration."""
        string_fields = {
            'INPUT_DIR': 'input_dir',
            'EXTENSION': 'extension',
            'LAYOUT': 'layout',
            'OUTPUT_PATH': 'output_path',
            'LOG_LEVEL': 'log_level',
        }
        int_fields = {
            'SPRITE_SIZE': 'sprite_size',
            'CONCURRENCY_LIMIT': 'concurrency_limit',
            'MAX_COLUMNS': 'max_columns',
            'MAX_TEXTURE_SIZE': 'max_texture_size',
            'COMPRESSION_LEVEL': 'compression_level',
        }

        for suffix, attr in string_fields.items():
            value = os.getenv(ENV_PREFIX + suffix)
            if value:
                setattr(config, attr, value)

        for suffix, attr in int_fields.items():
            value = os.getenv(ENV_PREFIX + suffix)
            if value:
                try:
                    setattr(config, attr, int(value))
                except ValueError:
                    raise ValueError(f"{ENV_PREFIX + suffix} must be an integer, got '{value}'")

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Return configuration as a flat dictionary."""
        return asdict(self)

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if self.sprite_size <= 0:
            errors.append("sprite_size must be positive")

        if self.concurrency_limit <= 0:
            errors.append("concurrency_limit must be positive")

        if self.layout not in LAYOUT_POLICIES:
            errors.append(f"layout must be one of {', '.join(LAYOUT_POLICIES)}")

        if self.max_columns <= 0:
            errors.append("max_columns must be positive")

        if self.max_texture_size < 0:
            errors.append("max_texture_size must be zero (unlimited) or positive")
        elif self.max_texture_size and self.layout == "pow2" and self.sprite_size > 0:
            if self.max_columns * self.sprite_size > self.max_texture_size:
                errors.append(
                    f"max_columns * sprite_size ({self.max_columns * self.sprite_size}) "
                    f"exceeds max_texture_size ({self.max_texture_size})"
                )

        if not 0 <= self.compression_level <= 9:
            errors.append("compression_level must be between 0 and 9")

        if not self.extension.startswith('.'):
            errors.append("extension must start with '.'")

        if self.log_level.upper() not in ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']:
            errors.append("log_level must be DEBUG, INFO, WARNING, ERROR or CRITICAL")

        return errors
