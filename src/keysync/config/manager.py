"""Configuration manager for keysync.

This module provides functionality for loading and validating YAML
configuration files with Pydantic models, and for writing a documented
sample configuration.
"""

import logging
from pathlib import Path

import yaml

from .schema import KeySyncConfig


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "keysync.yml"


class ConfigManager:
    """Loads, validates and creates keysync configuration files."""

    @staticmethod
    def load_config(config_path: Path) -> KeySyncConfig:
        """
        Load and validate configuration from a YAML file.

        Relative paths in the ``paths`` section are resolved against the
        directory containing the configuration file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            KeySyncConfig: Validated configuration object

        Raises:
            FileNotFoundError: If the config file doesn't exist
            yaml.YAMLError: If the YAML syntax is invalid
            ValueError: If the file does not contain a mapping
            ValidationError: If the configuration fails Pydantic validation
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with config_path.open("r", encoding="utf-8") as f:
                raw_config_data: object = yaml.safe_load(f)  # pyright: ignore[reportAny]
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML syntax in {config_path}: {e}") from e

        if raw_config_data is None:
            config_data: dict[str, object] = {}
        elif isinstance(raw_config_data, dict):
            config_data = raw_config_data  # pyright: ignore[reportUnknownVariableType]
        else:
            raise ValueError(
                f"Configuration file must contain a YAML dictionary, got {type(raw_config_data).__name__}"
            )

        config = KeySyncConfig.model_validate(config_data)
        logger.debug(f"Loaded configuration from {config_path}")
        return ConfigManager.resolve_paths(config, config_path.resolve().parent)

    @staticmethod
    def resolve_paths(config: KeySyncConfig, base_dir: Path) -> KeySyncConfig:
        """Return a copy of the configuration with paths anchored at ``base_dir``."""
        return config.model_copy(update={"paths": config.paths.resolved(base_dir)})

    @staticmethod
    def get_default_config(base_dir: Path | None = None) -> KeySyncConfig:
        """
        Get a configuration object with default values.

        Args:
            base_dir: Directory the default relative paths are anchored at
                (defaults to the current working directory)
        """
        return ConfigManager.resolve_paths(KeySyncConfig(), base_dir or Path.cwd())

    @staticmethod
    def load_or_default(config_path: Path | None, base_dir: Path | None = None) -> KeySyncConfig:
        """
        Load an explicit configuration file, else ``keysync.yml`` if present,
        else the defaults.
        """
        if config_path is not None:
            return ConfigManager.load_config(config_path)

        candidate = (base_dir or Path.cwd()) / DEFAULT_CONFIG_FILENAME
        if candidate.exists():
            return ConfigManager.load_config(candidate)

        logger.debug("No configuration file found, using defaults")
        return ConfigManager.get_default_config(base_dir)

    @staticmethod
    def create_sample_config(sample_path: Path) -> None:
        """
        Create a sample configuration file with all options and documentation.

        Args:
            sample_path: Path where to create the sample configuration file
        """
        _ = sample_path.parent.mkdir(parents=True, exist_ok=True)
        _ = sample_path.write_text(ConfigManager._generate_sample_content(), encoding="utf-8")

    @staticmethod
    def _generate_sample_content() -> str:
        return """# keysync configuration file
# Copy this file to keysync.yml in your project root and adjust as needed.
# Relative paths are resolved against the directory of this file.

paths:
  # Root directory scanned for t(...) call sites
  source_dir: src
  # One sub-directory of <namespace>.json documents per language
  messages_dir: src/messages
  # Change-detection snapshot, rewritten on every extract
  hash_file: i18n/hashes.json

languages:
  - value: en
    label: English
    default: true
  - value: tr
    label: Türkçe
  - value: fr
    label: Français

scan:
  extensions: [py]
  ignore_dirs: [__pycache__, .git, .venv, venv, node_modules, messages, dist, build]
  default_namespace: translation
  translate_function: t
  hook_function: use_translation
  type_hint: TFunction
  component: Trans

behavior:
  # true: nested keys removed from source are dropped from other languages
  sync_translations_strictly: true
  # false disables the clean command entirely
  clean_unused_keys: true
  # Delete documents left empty by clean (otherwise they are kept as {})
  remove_empty_files: true
  # skeleton: seed other languages with placeholders only; default: with source text
  fill_policy: skeleton

translation:
  api_url: https://api.anthropic.com/v1/messages
  model: claude-haiku-4-5-20251001
  anthropic_version: "2023-06-01"
  # The key itself is read from this environment variable
  api_key_env: ANTHROPIC_API_KEY
  max_tokens: 4096
  batch_size: 50
"""
