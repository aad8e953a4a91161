"""
Config Loader - Load and validate debiasing configuration from YAML.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, List

from shared.constants import DEFAULT_TOLERANCE, DEFAULT_BATCH_SIZE, DEFAULT_N_JOBS
from shared.logging import get_logger, log_config_validation
from shared.schemas import DebiasingConfig
from debiasing_module.src.exceptions import ConfigurationError

logger = get_logger(__name__)

VALID_DEBIASING_KEYS = {
    'tolerance',
    'max_attempts_per_iteration',
    'max_iterations',
    'random_seed',
    'batch_size',
    'n_jobs',
    'verbose',
}


class ConfigLoader:
    """
    Load and validate debiasing configuration.

    Example:
        >>> loader = ConfigLoader('config.yml')
        >>> config = loader.load()
        >>> errors = loader.validate()
        >>> debiasing_config = loader.to_config()
    """

    def __init__(self, config_path: str):
        """
        Initialize config loader.

        Args:
            config_path: Path to YAML config file
        """
        self.config_path = Path(config_path)
        self.config: Dict[str, Any] = {}

    def load(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            self.config = yaml.safe_load(f) or {}

        if not isinstance(self.config, dict):
            raise ConfigurationError(
                f"Config root must be a mapping, got {type(self.config).__name__}"
            )

        logger.info(f"Loaded config from {self.config_path}")
        return self.config

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        required_sections = ['data', 'debiasing']
        for section in required_sections:
            if section not in self.config:
                errors.append(f"Missing required section: {section}")

        if 'data' in self.config:
            data_config = self.config['data'] or {}
            for key in ('key_column', 'x_column', 'y_column'):
                if not data_config.get(key):
                    errors.append(f"data.{key} is required")

            groups = data_config.get('groups')
            if groups is not None and not isinstance(groups, list):
                errors.append("data.groups must be a list")

        if 'debiasing' in self.config:
            db_config = self.config['debiasing'] or {}
            unknown = sorted(set(db_config) - VALID_DEBIASING_KEYS)
            if unknown:
                errors.append(f"Unknown debiasing settings: {unknown}")

            try:
                float(db_config.get('tolerance', DEFAULT_TOLERANCE))
            except (TypeError, ValueError):
                errors.append(f"debiasing.tolerance must be a number, got {db_config.get('tolerance')!r}")

            for key in ('max_attempts_per_iteration', 'max_iterations', 'random_seed', 'batch_size', 'n_jobs'):
                value = db_config.get(key)
                if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
                    errors.append(f"debiasing.{key} must be an integer, got {value!r}")

        if not errors:
            errors.extend(self.to_config().validate())

        log_config_validation(logger, str(self.config_path), errors)
        return errors

    def to_config(self) -> DebiasingConfig:
        """Build a DebiasingConfig from the loaded sections."""
        data_config = self.config.get('data') or {}
        db_config = self.config.get('debiasing') or {}

        return DebiasingConfig(
            key_column=data_config.get('key_column'),
            x_column=data_config.get('x_column'),
            y_column=data_config.get('y_column'),
            group_column=data_config.get('group_column'),
            groups=data_config.get('groups'),
            # PyYAML reads 1e-5 (no dot) as a string
            tolerance=float(db_config.get('tolerance', DEFAULT_TOLERANCE)),
            max_attempts_per_iteration=db_config.get('max_attempts_per_iteration'),
            max_iterations=db_config.get('max_iterations'),
            random_state=db_config.get('random_seed'),
            batch_size=db_config.get('batch_size', DEFAULT_BATCH_SIZE),
            n_jobs=db_config.get('n_jobs', DEFAULT_N_JOBS),
            verbose=db_config.get('verbose', True),
        )

    def get(self, key: str, default: Any = None) -> Any:
        """Get config value by key (supports dot notation)."""
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def save(self, output_path: str) -> None:
        """Save configuration to file."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w') as f:
            yaml.dump(self.config, f, default_flow_style=False)

        logger.info(f"Saved config to {output_path}")


def load_config(config_path: str) -> DebiasingConfig:
    """
    Convenience function to load and validate config.

    Args:
        config_path: Path to YAML config file

    Returns:
        Validated DebiasingConfig

    Raises:
        ConfigurationError: If configuration is invalid
    """
    loader = ConfigLoader(config_path)
    loader.load()

    errors = loader.validate()
    if errors:
        raise ConfigurationError(f"Invalid configuration: {errors}")

    return loader.to_config()
