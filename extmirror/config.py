#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path
from typing import Optional

import logging
import sys

import yaml

logger = logging.getLogger("extmirror")


class ConfigLoadError(Exception):
    """Raised when a configuration file exists but cannot be read."""


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. EXTMIRROR_CONFIG environment variable
    2. ~/.extmirror/ directory
    """
    if 'EXTMIRROR_CONFIG' in os.environ:
        path = Path(os.environ['EXTMIRROR_CONFIG'])
        if path.exists():
            return path

    extmirror_dir = Path.home() / '.extmirror'
    for filename in ['config.json', 'config.toml', 'config.yaml', 'config.yml']:
        path = extmirror_dir / filename
        if path.exists() and path.stat().st_size > 10:  # Not empty/trivial
            return path

    # If no file exists, return default path for saving
    return extmirror_dir / 'config.json'


def _read_config_file(config_path: Path) -> dict:
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    if suffix in ['.yaml', '.yml']:
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    with open(config_path, 'r') as f:
        return json.load(f)


def load_config(config_path: Optional[Path] = None):
    """Load configuration from file.

    Args:
        config_path: Explicit file to load; defaults to get_config_path()

    Raises:
        ConfigLoadError: If the file exists but is unreadable or malformed
    """
    config_path = Path(config_path) if config_path else get_config_path()

    config = get_default_config()

    if config_path.exists():
        try:
            file_config = _read_config_file(config_path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            # tomllib.TOMLDecodeError and json.JSONDecodeError are ValueErrors
            raise ConfigLoadError(f"Error loading config from {config_path}: {e}") from e

        if not isinstance(file_config, dict):
            raise ConfigLoadError(f"Config file {config_path} must contain a mapping")
        config = merge_configs(config, file_config)

    config = apply_env_overrides(config)

    # Conventional token variable fills an empty setting
    if not config['github'].get('token') and os.environ.get('GITHUB_TOKEN'):
        config['github']['token'] = os.environ['GITHUB_TOKEN']

    return config


def save_config(config, config_path: Optional[Path] = None):
    """Save configuration to file. Returns the path written."""
    config_path = Path(config_path) if config_path else get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    if config_path.suffix.lower() in ['.yaml', '.yml']:
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
    else:
        if config_path.suffix.lower() != '.json':
            logger.warning(f"Cannot write {config_path.suffix} config, saving as JSON instead.")
            config_path = config_path.with_suffix('.json')
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def get_default_config():
    """Get default configuration."""
    return {
        "general": {
            "temp_dir": "/tmp/extmirror",
        },
        "github": {
            "token": "",
            "owner": "",
            "owner_is_organization": False,
            "api_url": "https://api.github.com",
            "homepage_template": "https://extensions.typo3.org/extension/{key}",
            "ssh_url_template": "git@github.com:{owner}/{key}.git",
            "timeout_seconds": 30,
            "rate_limit": {
                "max_retries": 3,
                "base_delay_seconds": 1,
                "max_delay_seconds": 60,
            }
        },
        "queue": {
            "url": "redis://localhost:6379/0",
            "tube": "extensions",
            "prefix": "extmirror",
            "drain_timeout_seconds": 1,
            "lease_seconds": 3600,
        },
        "upstream": {
            "artifact_base_url": "https://extensions.typo3.org/extension/download",
            "timeout_seconds": 60,
        },
        "git": {
            "branch": "master",
            "check_exit_codes": False,
            "timeout_seconds": 0,
        },
        "worker": {
            "readme_filename": "README.md",
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        },
    }


def configure_logging(config, verbose: bool = False):
    """Configure the extmirror logger from the ``logging`` section."""
    settings = config.get("logging", {})
    level_name = "DEBUG" if verbose else str(settings.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(settings.get("format", "%(levelname)s: %(message)s")))

    logger.handlers = [handler]
    logger.setLevel(level)
    logger.propagate = False
    return logger


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: EXTMIRROR_SECTION_SUBSECTION_KEY
    For example: EXTMIRROR_QUEUE_TUBE=extensions-test
    """
    env_prefix = "EXTMIRROR_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == "EXTMIRROR_CONFIG":
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts_from_key = config_key.split('_')
                if key_parts[i : i + len(config_key_parts_from_key)] == config_key_parts_from_key:
                    if len(config_key_parts_from_key) > best_match_len:
                        best_match_len = len(config_key_parts_from_key)
                        matched_key = config_key

            if matched_key:
                if i + best_match_len == len(key_parts):
                    current_level[matched_key] = typed_value
                    break

                if isinstance(current_level[matched_key], dict):
                    current_level = current_level[matched_key]
                    i += best_match_len
                else:
                    # Path conflict: env var is longer than the config path
                    break
            else:
                break

    return config
