"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from keysync.config.manager import DEFAULT_CONFIG_FILENAME, ConfigManager
from keysync.config.schema import KeySyncConfig


class TestConfigManager:
    """Test cases for ConfigManager."""

    def test_load_config_resolves_relative_paths(self, tmp_path: Path) -> None:
        """Paths are resolved against the directory of the config file."""
        config_path = tmp_path / "keysync.yml"
        _ = config_path.write_text(
            "paths:\n"
            "  source_dir: app\n"
            "languages:\n"
            "  - value: de\n"
            "    default: true\n"
            "  - value: es\n"
            "    label: Español\n"
            "behavior:\n"
            "  fill_policy: default\n",
            encoding="utf-8",
        )

        config = ConfigManager.load_config(config_path)

        assert config.paths.source_dir == tmp_path.resolve() / "app"
        assert config.paths.messages_dir == tmp_path.resolve() / "src" / "messages"
        assert config.default_language == "de"
        assert config.behavior.fill_policy == "default"

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        """An empty file yields the default configuration."""
        config_path = tmp_path / "keysync.yml"
        _ = config_path.write_text("", encoding="utf-8")
        assert ConfigManager.load_config(config_path).language_codes == ["en", "tr", "fr"]

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            _ = ConfigManager.load_config(tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Broken YAML raises yaml.YAMLError."""
        config_path = tmp_path / "keysync.yml"
        _ = config_path.write_text("paths: [unclosed\n", encoding="utf-8")
        with pytest.raises(yaml.YAMLError):
            _ = ConfigManager.load_config(config_path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        """A top-level list is rejected."""
        config_path = tmp_path / "keysync.yml"
        _ = config_path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="YAML dictionary"):
            _ = ConfigManager.load_config(config_path)

    def test_invalid_values(self, tmp_path: Path) -> None:
        """Schema violations raise ValidationError."""
        config_path = tmp_path / "keysync.yml"
        _ = config_path.write_text("translation:\n  batch_size: -1\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            _ = ConfigManager.load_config(config_path)

    def test_load_or_default(self, tmp_path: Path) -> None:
        """keysync.yml in the base directory is picked up, else defaults apply."""
        defaults = ConfigManager.load_or_default(None, tmp_path)
        assert defaults.paths.source_dir == tmp_path / "src"

        _ = (tmp_path / DEFAULT_CONFIG_FILENAME).write_text(
            "scan:\n  default_namespace: common\n", encoding="utf-8"
        )
        found = ConfigManager.load_or_default(None, tmp_path)
        assert found.scan.default_namespace == "common"

    def test_sample_config_matches_defaults(self, tmp_path: Path) -> None:
        """The generated sample loads back to the default settings."""
        sample_path = tmp_path / "sample" / "keysync.yml"
        ConfigManager.create_sample_config(sample_path)

        loaded = ConfigManager.load_config(sample_path)
        defaults = KeySyncConfig()

        assert loaded.languages == defaults.languages
        assert loaded.scan == defaults.scan
        assert loaded.behavior == defaults.behavior
        assert loaded.translation == defaults.translation
