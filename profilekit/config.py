#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import toml
import yaml

from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("profilekit")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']
PROJECT_CONFIG_FILENAMES = ['.profilekit.json', '.profilekit.toml', '.profilekit.yaml', '.profilekit.yml']

COMMIT_TYPES = [
    "feat", "fix", "chore", "docs", "style", "refactor",
    "perf", "test", "build", "ci", "revert", "wip",
]


def get_config_dir() -> Path:
    """Directory holding the user configuration and metrics history."""
    return Path.home() / '.profilekit'


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. PROFILEKIT_CONFIG environment variable
    2. .profilekit.{json,toml,yaml,yml} in the current directory
    3. ~/.profilekit/ directory
    """
    if 'PROFILEKIT_CONFIG' in os.environ:
        path = Path(os.environ['PROFILEKIT_CONFIG']).expanduser()
        if path.exists():
            return path
        logger.warning(f"PROFILEKIT_CONFIG points to a missing file: {path}")

    cwd = Path.cwd()
    for filename in PROJECT_CONFIG_FILENAMES:
        path = cwd / filename
        if path.exists():
            return path

    config_dir = get_config_dir()
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def read_config_file(config_path: Path) -> dict:
    """Parse a config file according to its suffix.

    Raises:
        ConfigError: if the file cannot be parsed or is not a mapping
    """
    suffix = config_path.suffix.lower()
    try:
        if suffix == '.toml':
            with open(config_path, 'rb') as f:
                file_config = tomllib.load(f)
        elif suffix in ('.yaml', '.yml'):
            with open(config_path, 'r', encoding='utf-8') as f:
                file_config = yaml.safe_load(f) or {}
        else:
            with open(config_path, 'r', encoding='utf-8') as f:
                file_config = json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading config from {config_path}: {e}") from e

    if not isinstance(file_config, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping at the top level")
    return file_config


def load_config(path=None):
    """Load configuration: defaults, then file, then environment overrides.

    Args:
        path: Explicit config file (skips the lookup in get_config_path)
    """
    config_path = Path(path).expanduser() if path else get_config_path()

    config = get_default_config()

    if config_path.exists():
        config = merge_configs(config, read_config_file(config_path))
        logger.debug(f"Loaded configuration from {config_path}")
    elif path:
        raise ConfigError(f"Config file not found: {config_path}")

    return apply_env_overrides(config)


def save_config(config, path=None):
    """Save configuration to file, choosing the format from the suffix.

    Returns:
        Path the configuration was written to
    """
    config_path = Path(path).expanduser() if path else get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)
    suffix = config_path.suffix.lower()

    if suffix == '.toml':
        # tomllib is read-only
        with open(config_path, 'w', encoding='utf-8') as f:
            toml.dump(config, f)
    elif suffix in ('.yaml', '.yml'):
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
    else:
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(config, f, indent=2)
            f.write('\n')

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def get_default_config():
    """Get default configuration."""
    return {
        "commit": {
            "types": list(COMMIT_TYPES),
            "max_subject_length": 72,
            "allowed_prefixes": ["Merge ", "Revert ", "Auto-merge"],
            "default_check_count": 20
        },
        "hooks": {
            "format": {
                "command": ["ruff", "format"],
                "patterns": ["*.py"]
            },
            "validate": [
                ["ruff", "check", "."]
            ],
            "pre_push": {
                "check_commits": True
            },
            "timeout_seconds": 600
        },
        "conversions": {
            "timeout_seconds": 300,
            # tool id -> executable path override, e.g. {"ffmpeg": "/opt/bin/ffmpeg"}
            "tools": {}
        },
        "metrics": {
            "directory": "~/.profilekit/metrics",
            "source_directories": ["."],
            "include_extensions": [".py", ".ps1", ".psm1", ".sh", ".js", ".ts", ".toml", ".yaml", ".yml"],
            "exclude_directories": [".git", "node_modules", "__pycache__", ".venv", "venv", "build", "dist"],
            "coverage_file": "coverage.xml",
            "history_limit": 30
        },
        "tests": {
            "runner": ["python", "-m", "pytest"],
            "suites": {
                "unit": "tests/unit",
                "integration": "tests/integration",
                "performance": "tests/performance"
            },
            "results_directory": ".test-results",
            "source_directory": "src",
            "tests_directory": "tests",
            "timeout_seconds": 3600
        },
        "setup": {
            "required_tools": ["git"],
            "optional_tools": ["ffmpeg", "sqlite3", "yq", "iconv", "base64", "xxd", "ruff"],
            "min_versions": {
                "git": "2.9",
                "yq": "4.0"
            }
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        }
    }


def generate_default_config(path=None, force=False):
    """Write the default configuration to disk.

    Returns:
        Path written, or None when a file already exists and force is False
    """
    config_path = Path(path).expanduser() if path else get_config_dir() / 'config.json'
    if config_path.exists() and not force:
        logger.info(f"Configuration already exists at {config_path}")
        return None
    return save_config(get_default_config(), config_path)


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


def _coerce_env_value(value: str, current):
    """Convert an environment string to the type of the value it replaces."""
    if isinstance(current, list):
        return [item.strip() for item in value.split(',') if item.strip()]
    if value.lower() in ('true', 'yes', 'on'):
        return True
    if value.lower() in ('false', 'no', 'off'):
        return False
    if value.isdigit():
        return int(value)
    return value


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: PROFILEKIT_SECTION_SUBSECTION_KEY
    For example: PROFILEKIT_COMMIT_MAX_SUBJECT_LENGTH=100
    List values are comma-separated: PROFILEKIT_SETUP_REQUIRED_TOOLS=git,ffmpeg
    """
    env_prefix = "PROFILEKIT_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == 'PROFILEKIT_CONFIG':
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        current_level = config
        i = 0
        while i < len(key_parts):
            # Longest config key that is a prefix of the remaining parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i : i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if not matched_key:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = _coerce_env_value(value, current_level[matched_key])
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                break

    return config


def configure_logging(config=None, verbose=False, debug=False):
    """Set the package log level from flags or the logging config section."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level_name = str((config or {}).get('logging', {}).get('level', 'INFO')).upper()
        level = getattr(logging, level_name, logging.INFO)
    logger.setLevel(level)
    return level
