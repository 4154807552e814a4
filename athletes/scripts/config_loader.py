#!/usr/bin/env python3
"""
Configuration loader for the fitness dashboard.

Loads settings from config.yaml with environment variable overrides.
"""

import copy
import os
import re
import sys
import threading
import yaml
from pathlib import Path
from typing import Any, Dict, Optional, Set


# Allowlist of environment variables that can be substituted
ALLOWED_ENV_VARS: Set[str] = {
    'FD_DATA_DIR',
    'FD_LOG_FORMAT',
    'FD_LOG_LEVEL',
    'FD_API_KEY',
}

# athletes/scripts -> project root
PROJECT_ROOT: Path = Path(__file__).parent.parent.parent.resolve()

DEFAULTS: Dict[str, Any] = {
    'paths': {
        'data_dir': 'athletes',
    },
    'coach': {
        'plan_dir': 'coach',
        'notes_file': 'coach/session-notes.md',
        'progression_file': 'coach/progression.md',
        'notes_context_chars': 3000,
    },
    'logging': {
        'level': 'INFO',
    },
}


class Config:
    """Dashboard configuration manager."""

    _instance = None
    _config = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                # Double-check locking pattern
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._config is None:
            self._load_config()

    def _load_config(self, config_path: Optional[Path] = None):
        """Load configuration from config.yaml, merged over DEFAULTS."""
        if config_path is None:
            possible_paths = [
                PROJECT_ROOT / 'config.yaml',
                Path.cwd() / 'config.yaml',
                Path.home() / '.fitdash' / 'config.yaml',
            ]
            for path in possible_paths:
                if path.exists():
                    config_path = path
                    break

        if config_path is None:
            self._config = copy.deepcopy(DEFAULTS)
            return

        with open(config_path, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        self._config = self._merge(copy.deepcopy(DEFAULTS), self._process_env_vars(raw_config))

    def reload(self, config_path: Optional[Path] = None):
        """Re-read configuration, optionally from an explicit file."""
        self._load_config(Path(config_path) if config_path else None)

    def _merge(self, base: Dict, override: Dict) -> Dict:
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                base[key] = self._merge(base[key], value)
            else:
                base[key] = value
        return base

    def _process_env_vars(self, obj: Any) -> Any:
        """
        Recursively process environment variable substitutions.

        SECURITY: Only allowlisted environment variables can be substituted.
        """
        if isinstance(obj, str):
            # Pattern: ${VAR_NAME:-default_value} or ${VAR_NAME}
            pattern = r'\$\{([^}:]+)(?::-([^}]*))?\}'

            def replace(match):
                var_name = match.group(1)
                default = match.group(2) or ''

                if var_name not in ALLOWED_ENV_VARS:
                    return default

                return os.environ.get(var_name, default)

            return re.sub(pattern, replace, obj)

        elif isinstance(obj, dict):
            return {k: self._process_env_vars(v) for k, v in obj.items()}

        elif isinstance(obj, list):
            return [self._process_env_vars(item) for item in obj]

        return obj

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Example: config.get('coach.notes_file', 'coach/session-notes.md')
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_path(self, key: str) -> Optional[Path]:
        """
        Get a path configuration, resolving relative paths.

        SECURITY: Validates that paths stay within the project root or the
        user's home directory.
        """
        raw_path = self.get(f'paths.{key}', '')

        if not raw_path:
            return None

        path = Path(os.path.expanduser(raw_path))
        if not path.is_absolute():
            path = PROJECT_ROOT / path

        resolved = path.resolve()

        allowed_roots = [PROJECT_ROOT, Path.home().resolve()]
        if not any(self._is_path_under(resolved, root) for root in allowed_roots):
            # Don't expose the attempted path
            print(f"WARNING: Path for '{key}' is outside allowed directories", file=sys.stderr)
            return None

        return resolved

    def _is_path_under(self, path: Path, root: Path) -> bool:
        """Check if path is under root directory."""
        try:
            path.relative_to(root)
            return True
        except ValueError:
            return False

    @property
    def all(self) -> Dict:
        """Return the full configuration dictionary."""
        return self._config


# Global config instance
config = Config()


def get_config() -> Config:
    """Get the global configuration instance."""
    return config
