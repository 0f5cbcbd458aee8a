"""Unit tests for vault.config_loader module."""

from unittest.mock import patch

import pytest
import yaml

from src.vault.config_loader import ConfigLoader
from src.vault.errors import ConfigError, FilesystemError
from src.vault.models import VaultConfig


class TestConfigLoaderLoad:
    """Test cases for ConfigLoader.load() method."""

    def test_load_valid_config_with_all_fields(self, tmp_path):
        """Load valid configuration with all fields specified."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("""
catalog_path: /var/lib/notevault/catalog.yaml
ignored_names:
  - build
  - dist
on_read_error: skip
atomic_move: false
write_access: always
lock_timeout: 5
""")

        result = ConfigLoader.load(str(config_file))

        assert isinstance(result, VaultConfig)
        assert result.catalog_path == "/var/lib/notevault/catalog.yaml"
        assert result.ignored_names == ["build", "dist"]
        assert result.on_read_error == "skip"
        assert result.atomic_move is False
        assert result.write_access == "always"
        assert result.lock_timeout == 5.0

    def test_load_partial_config_uses_defaults(self, tmp_path):
        """Fields not present in the file keep their defaults."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("on_read_error: skip\n")

        result = ConfigLoader.load(str(config_file))

        assert result.on_read_error == "skip"
        assert result.catalog_path == VaultConfig().catalog_path
        assert result.ignored_names == VaultConfig().ignored_names

    def test_missing_file_returns_defaults(self, tmp_path):
        """A missing config file is not an error."""
        assert ConfigLoader.load(str(tmp_path / "missing.yaml")) == VaultConfig()

    @pytest.mark.parametrize("content", ["", "   \n", "# only a comment\n"])
    def test_empty_file_returns_defaults(self, tmp_path, content):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(content)

        assert ConfigLoader.load(str(config_file)) == VaultConfig()

    def test_null_ignored_names_means_none(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("ignored_names:\n")

        assert ConfigLoader.load(str(config_file)).ignored_names == []

    def test_invalid_yaml_syntax(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("ignored_names: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML syntax"):
            ConfigLoader.load(str(config_file))

    def test_non_dictionary_root(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="dictionary"):
            ConfigLoader.load(str(config_file))

    def test_permission_denied(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("atomic_move: true\n")

        with patch('builtins.open', side_effect=PermissionError("denied")):
            with pytest.raises(FilesystemError) as exc_info:
                ConfigLoader.load(str(config_file))

        assert exc_info.value.reason == "Permission denied"


class TestConfigValidation:
    """Field validation in ConfigLoader._parse_config()."""

    @pytest.mark.parametrize("field,value", [
        ("on_read_error", "retry"),
        ("write_access", "sometimes"),
        ("atomic_move", "yes"),
        ("lock_timeout", 0),
        ("lock_timeout", -1),
        ("lock_timeout", "soon"),
        ("ignored_names", "node_modules"),
        ("catalog_path", ""),
        ("catalog_path", 42),
    ])
    def test_invalid_field(self, field, value):
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader._parse_config({field: value})

        assert exc_info.value.config_field == field

    def test_unknown_field(self):
        with pytest.raises(ConfigError, match="Unknown fields: colour"):
            ConfigLoader._parse_config({"colour": "blue"})

    def test_ignored_names_are_strings(self):
        config = ConfigLoader._parse_config({"ignored_names": [2024, "build"]})

        assert config.ignored_names == ["2024", "build"]


class TestConfigLoaderSave:
    """Test cases for ConfigLoader.save() method."""

    def test_save_creates_directory(self, tmp_path):
        config_path = tmp_path / ".notevault" / "config.yaml"
        config = VaultConfig(write_access="never", lock_timeout=2.0)

        ConfigLoader.save(str(config_path), config)

        data = yaml.safe_load(config_path.read_text())
        assert data["write_access"] == "never"
        assert data["lock_timeout"] == 2.0

    def test_save_then_load(self, tmp_path):
        config_path = str(tmp_path / "config.yaml")
        config = VaultConfig(
            catalog_path="catalog.yaml",
            ignored_names=["build"],
            on_read_error="skip",
            atomic_move=False,
        )

        ConfigLoader.save(config_path, config)

        assert ConfigLoader.load(config_path) == config

    def test_save_permission_denied(self, tmp_path):
        with patch('builtins.open', side_effect=PermissionError("denied")):
            with pytest.raises(FilesystemError):
                ConfigLoader.save(str(tmp_path / "config.yaml"), VaultConfig())
