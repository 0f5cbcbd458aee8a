"""Workspace settings read from and written to a YAML file.

This module handles loading and saving workspace configuration from YAML
files. A missing configuration file is not an error: every field has a
default, so a fresh directory works without running any setup.
"""

import os
from typing import Any, Dict

import yaml

from .errors import ConfigError, FilesystemError
from .models import VaultConfig
from .sync_engine import READ_ERROR_POLICIES

DEFAULT_CONFIG_PATH = ".notevault/config.yaml"

WRITE_ACCESS_MODES = ('prompt', 'always', 'never')


class ConfigLoader:
    """Reads, validates and writes VaultConfig as YAML.

    Configuration file structure:
        catalog_path: .notevault/catalog.yaml
        ignored_names:
          - node_modules
          - __pycache__
        on_read_error: abort      # or: skip
        atomic_move: true
        write_access: prompt      # or: always, never
        lock_timeout: 30
    """

    KNOWN_FIELDS = {
        'catalog_path',
        'ignored_names',
        'on_read_error',
        'atomic_move',
        'write_access',
        'lock_timeout',
    }

    @classmethod
    def load(cls, config_path: str = DEFAULT_CONFIG_PATH) -> VaultConfig:
        """Read the settings file and turn it into a VaultConfig.

        Args:
            config_path: Location of the settings file

        Returns:
            VaultConfig (defaults when the file does not exist)

        Raises:
            FilesystemError: If file exists but cannot be read
            ConfigError: If the YAML is malformed or a field is invalid
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            return VaultConfig()
        except PermissionError:
            raise FilesystemError(
                config_path,
                'read',
                'Permission denied'
            )
        except OSError as e:
            raise FilesystemError(
                config_path,
                'read',
                str(e)
            )

        if not content.strip():
            return VaultConfig()

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Invalid YAML syntax: {str(e)}"
            )

        if config_dict is None:
            return VaultConfig()

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def save(cls, config_path: str, config: VaultConfig) -> None:
        """Write config to config_path, creating its directory.

        Args:
            config_path: Location of the settings file
            config: VaultConfig object to save

        Raises:
            FilesystemError: If the directory or file cannot be written
        """
        config_dict = {
            'catalog_path': config.catalog_path,
            'ignored_names': list(config.ignored_names),
            'on_read_error': config.on_read_error,
            'atomic_move': config.atomic_move,
            'write_access': config.write_access,
            'lock_timeout': config.lock_timeout,
        }

        yaml_str = yaml.safe_dump(
            config_dict,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        config_dir = os.path.dirname(config_path)
        if config_dir:
            try:
                os.makedirs(config_dir, exist_ok=True)
            except OSError as e:
                raise FilesystemError(
                    config_dir,
                    'create_directory',
                    str(e)
                )

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except PermissionError:
            raise FilesystemError(
                config_path,
                'write',
                'Permission denied'
            )
        except OSError as e:
            raise FilesystemError(
                config_path,
                'write',
                str(e)
            )

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> VaultConfig:
        """Validate every known field and build the VaultConfig.

        Args:
            config_dict: Mapping loaded from the settings file

        Returns:
            Validated VaultConfig object

        Raises:
            ConfigError: If configuration is invalid
        """
        unknown_fields = set(config_dict.keys()) - cls.KNOWN_FIELDS
        if unknown_fields:
            raise ConfigError(
                f"Unknown fields: {', '.join(sorted(unknown_fields))}"
            )

        defaults = VaultConfig()

        catalog_path = config_dict.get('catalog_path', defaults.catalog_path)
        if not isinstance(catalog_path, str) or not catalog_path.strip():
            raise ConfigError(
                "Field 'catalog_path' must be a non-empty string",
                'catalog_path'
            )

        ignored_names = config_dict.get('ignored_names', defaults.ignored_names)
        if ignored_names is None:
            ignored_names = []
        if not isinstance(ignored_names, list):
            raise ConfigError(
                "Field 'ignored_names' must be a list",
                'ignored_names'
            )
        ignored_names = [str(name) for name in ignored_names]

        on_read_error = str(config_dict.get('on_read_error', defaults.on_read_error))
        if on_read_error not in READ_ERROR_POLICIES:
            raise ConfigError(
                f"Field 'on_read_error' must be one of {', '.join(READ_ERROR_POLICIES)}, "
                f"got '{on_read_error}'",
                'on_read_error'
            )

        atomic_move = config_dict.get('atomic_move', defaults.atomic_move)
        if not isinstance(atomic_move, bool):
            raise ConfigError(
                f"Field 'atomic_move' must be a boolean, got {type(atomic_move).__name__}",
                'atomic_move'
            )

        write_access = str(config_dict.get('write_access', defaults.write_access))
        if write_access not in WRITE_ACCESS_MODES:
            raise ConfigError(
                f"Field 'write_access' must be one of {', '.join(WRITE_ACCESS_MODES)}, "
                f"got '{write_access}'",
                'write_access'
            )

        try:
            lock_timeout = float(config_dict.get('lock_timeout', defaults.lock_timeout))
        except (ValueError, TypeError) as e:
            raise ConfigError(
                f"Invalid field type: {str(e)}",
                'lock_timeout'
            )
        if lock_timeout <= 0:
            raise ConfigError(
                f"Field 'lock_timeout' must be positive, got {lock_timeout}",
                'lock_timeout'
            )

        return VaultConfig(
            catalog_path=catalog_path,
            ignored_names=ignored_names,
            on_read_error=on_read_error,
            atomic_move=atomic_move,
            write_access=write_access,
            lock_timeout=lock_timeout,
        )
