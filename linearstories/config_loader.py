#!/usr/bin/env python3
"""
Configuration loader and validator for linearstories.

Discovers the config file, reads it (YAML, so JSON files work as well),
selects a named context from multi-context files, merges LINEAR_API_KEY from
the environment and reports every problem at once.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml


API_KEY_ENV = 'LINEAR_API_KEY'
LOCAL_CONFIG_NAMES = ('.linearrc.json', '.linearrc.yaml', '.linearrc.yml')
GLOBAL_CONFIG_NAMES = ('config.json', 'config.yaml', 'config.yml')

STRING_FIELDS = ('apiKey', 'defaultTeam', 'defaultProject')


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


@dataclass
class ResolvedConfig:
    api_key: str
    default_team: Optional[str] = None
    default_project: Optional[str] = None
    default_labels: List[str] = field(default_factory=list)


class ConfigLoader:
    """Locate, read and validate a linearstories configuration."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        cwd: Optional[Path] = None,
        context: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
        home: Optional[Path] = None
    ):
        """
        Initialize configuration loader.

        Args:
            config_path: Explicit config file (--config); must exist
            cwd: Directory searched for .linearrc.* (default: current directory)
            context: Context name for multi-context files (--context)
            env: Environment mapping (default: os.environ)
            home: Home directory for ~/.config/linearstories/ (default: $HOME)
        """
        self.env = os.environ if env is None else env
        self.context = context
        self.cwd = Path(cwd) if cwd else Path.cwd()
        self.home = Path(home) if home else Path(self.env.get('HOME') or Path.home())
        self.config_path = self._find_config(Path(config_path) if config_path else None)

    def _find_config(self, explicit: Optional[Path]) -> Optional[Path]:
        """
        Discovery order:
            1. explicit --config path
            2. .linearrc.json / .linearrc.yaml / .linearrc.yml in cwd
            3. ~/.config/linearstories/config.{json,yaml,yml}
        """
        if explicit is not None:
            if not explicit.exists():
                raise ConfigError(f"Config file not found: {explicit}")
            return explicit

        for name in LOCAL_CONFIG_NAMES:
            candidate = self.cwd / name
            if candidate.exists():
                return candidate

        global_dir = self.home / '.config' / 'linearstories'
        for name in GLOBAL_CONFIG_NAMES:
            candidate = global_dir / name
            if candidate.exists():
                return candidate

        # Fine as long as LINEAR_API_KEY is set
        return None

    def _read(self) -> Any:
        if self.config_path is None:
            return {}

        try:
            text = self.config_path.read_text(encoding='utf-8')
        except OSError as e:
            raise ConfigError(f"Failed to read config file: {self.config_path}\nError: {e}")

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Malformed config file: {self.config_path}\nError: {e}")

        return {} if data is None else data

    def _select_context(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        contexts = raw.get('contexts')
        if contexts is None:
            if self.context:
                raise ConfigError(
                    "--context was specified but the config file does not use the multi-context format"
                )
            return raw

        if not isinstance(contexts, list) or not all(isinstance(c, dict) for c in contexts):
            raise ConfigError("Config 'contexts' must be a list of objects")

        names = ', '.join(str(c.get('name')) for c in contexts)
        if not self.context:
            raise ConfigError(
                "Config file contains multiple contexts. Use --context <name> to select one. "
                f"Available contexts: {names}"
            )

        for entry in contexts:
            if entry.get('name') == self.context:
                return entry

        raise ConfigError(f'Context "{self.context}" not found. Available contexts: {names}')

    def _validate(self, config: Dict[str, Any]) -> None:
        """Collect every shape problem and raise them together."""
        errors = []

        for key in STRING_FIELDS:
            value = config.get(key)
            if value is not None and not isinstance(value, str):
                errors.append(f"'{key}' must be a string (got: {type(value).__name__})")

        labels = config.get('defaultLabels')
        if labels is not None:
            if not isinstance(labels, list):
                errors.append("'defaultLabels' must be a list of strings")
            elif not all(isinstance(label, str) for label in labels):
                errors.append("'defaultLabels' entries must all be strings")

        if errors:
            source = self.config_path or 'configuration'
            error_msg = f"Configuration validation failed ({source}):\n\n" + "\n".join(f"  • {e}" for e in errors)
            raise ConfigError(error_msg)

    def load(self) -> ResolvedConfig:
        """
        Load and resolve configuration.

        Returns:
            ResolvedConfig with defaults filled in

        Raises:
            ConfigError: If the file is unreadable or invalid, or no API key is available
        """
        raw = self._read()
        if not isinstance(raw, dict):
            raise ConfigError(f"Config file must contain an object: {self.config_path}")

        config = self._select_context(raw)
        self._validate(config)

        api_key = self.env.get(API_KEY_ENV) or config.get('apiKey')
        if not api_key:
            raise ConfigError(
                f"No API key found. Provide one via the {API_KEY_ENV} environment variable, "
                "or set \"apiKey\" in your config file "
                "(.linearrc.json or ~/.config/linearstories/config.json)."
            )

        return ResolvedConfig(
            api_key=api_key,
            default_team=config.get('defaultTeam') or None,
            default_project=config.get('defaultProject') or None,
            default_labels=list(config.get('defaultLabels') or []),
        )


def load_config(
    config_path: Optional[Path] = None,
    cwd: Optional[Path] = None,
    context: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None
) -> ResolvedConfig:
    """
    Load and validate configuration (convenience function).

    Raises:
        ConfigError: If configuration is invalid or missing
    """
    return ConfigLoader(config_path=config_path, cwd=cwd, context=context, env=env, home=home).load()
