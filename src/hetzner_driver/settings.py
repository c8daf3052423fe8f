"""Layered flag defaults: built-in, settings files, environment."""

import os
import logging
from pathlib import Path
from typing import Dict, Any, List, Mapping, Optional, Union

import yaml

from .flags import CREATE_FLAGS, FLAGS_BY_NAME, coerce_flag_value

logger = logging.getLogger(__name__)

PROJECT_SETTINGS_NAMES = [
    'hetzner-driver.yaml',
    '.hetzner-driver.yaml',
]


class SettingsLoader:
    """Collect flag defaults from settings files and the environment.

    Precedence (lowest to highest):
    1. Built-in flag defaults
    2. User settings file ($XDG_CONFIG_HOME/hetzner-driver/config.yaml)
    3. Project settings file (searched upward from the working directory)
    4. HETZNER_* environment variables
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None, cwd: Optional[Path] = None):
        self.environ = os.environ if environ is None else environ
        self.cwd = Path.cwd() if cwd is None else Path(cwd)

    def user_settings_path(self) -> Path:
        xdg_config = self.environ.get('XDG_CONFIG_HOME') or Path.home() / '.config'
        return Path(xdg_config) / 'hetzner-driver' / 'config.yaml'

    def project_settings_path(self) -> Optional[Path]:
        current = self.cwd
        while True:
            for name in PROJECT_SETTINGS_NAMES:
                candidate = current / name
                if candidate.exists():
                    return candidate
            if current == current.parent:
                return None
            current = current.parent

    def load_file(self, path: Union[str, Path]) -> Dict[str, Any]:
        """Load a settings file mapping flag names to values.

        Unknown flag names, invalid values and unreadable files are logged
        and skipped.
        """
        path = Path(path)
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except (yaml.YAMLError, IOError) as e:
            logger.warning(f"Failed to load settings {path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring settings {path}: expected a mapping, got {type(data).__name__}")
            return {}

        settings = {}
        for name, value in data.items():
            flag = FLAGS_BY_NAME.get(str(name))
            if flag is None:
                logger.warning(f"Ignoring unknown flag '{name}' in {path}")
                continue
            try:
                settings[flag.name] = coerce_flag_value(flag, value)
            except ValueError as e:
                logger.warning(f"Ignoring invalid value in {path}: {e}")

        logger.debug(f"Loaded settings from {path}")
        return settings

    def load_env(self) -> Dict[str, Any]:
        settings = {}
        for flag in CREATE_FLAGS:
            value = self.environ.get(flag.env_var)
            if value is None or value == '':
                continue
            try:
                settings[flag.name] = coerce_flag_value(flag, value)
            except ValueError as e:
                logger.warning(f"Ignoring ${flag.env_var}: {e}")
        return settings

    def load(self) -> Dict[str, Any]:
        """Return flag defaults merged in precedence order."""
        result = {flag.name: flag.default_value() for flag in CREATE_FLAGS}

        sources = []
        user_path = self.user_settings_path()
        if user_path.exists():
            sources.append(self.load_file(user_path))

        project_path = self.project_settings_path()
        if project_path:
            sources.append(self.load_file(project_path))

        sources.append(self.load_env())

        for source in sources:
            result.update(source)

        return result

    def get_sources(self) -> List[Dict[str, Any]]:
        """Describe the settings sources for debugging.

        Returns:
            List of dicts with 'source', 'path', and 'exists' keys
        """
        user_path = self.user_settings_path()
        project_path = self.project_settings_path()
        return [
            {'source': 'user', 'path': str(user_path), 'exists': user_path.exists()},
            {'source': 'project', 'path': str(project_path) if project_path else 'N/A',
             'exists': project_path is not None},
        ]


def load_flag_defaults(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Load layered flag defaults for the current environment."""
    return SettingsLoader(environ=environ).load()
