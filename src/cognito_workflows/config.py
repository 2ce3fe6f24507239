"""
User pool configuration.

Settings come from environment variables first and from a JSON file in the
user's home directory for anything the environment leaves unset.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / '.cognito-workflows.json'

ENV_VARS = {
    'user_pool_id': 'COGNITO_USER_POOL_ID',
    'client_id': 'COGNITO_CLIENT_ID',
    'region': 'AWS_REGION',
    'endpoint_url': 'COGNITO_ENDPOINT_URL',
}

REQUIRED_FIELDS = ['user_pool_id', 'client_id']


@dataclass(frozen=True)
class UserPoolConfig:
    user_pool_id: str
    client_id: str
    region: Optional[str] = None
    endpoint_url: Optional[str] = None

    def __post_init__(self):
        # Extract region from user pool ID if not provided
        if not self.region:
            if '_' not in self.user_pool_id:
                raise ConfigurationError(
                    f"Cannot infer region from user pool ID '{self.user_pool_id}'"
                )
            object.__setattr__(self, 'region', self.user_pool_id.split('_')[0])

    @classmethod
    def from_dict(cls, data):
        missing_fields = [field for field in REQUIRED_FIELDS if not data.get(field)]
        if missing_fields:
            raise ConfigurationError(f"Missing configuration: {', '.join(missing_fields)}")
        invalid_fields = [field for field in ENV_VARS if data.get(field) and not isinstance(data[field], str)]
        if invalid_fields:
            raise ConfigurationError(f"Configuration values must be strings: {', '.join(invalid_fields)}")
        return cls(
            user_pool_id=data['user_pool_id'],
            client_id=data['client_id'],
            region=data.get('region') or None,
            endpoint_url=data.get('endpoint_url') or None,
        )


def read_settings(config_file=None):
    """Merge environment variables and the config file into a plain dict"""
    config_file = Path(config_file) if config_file else CONFIG_FILE
    config = {key: os.getenv(var) for key, var in ENV_VARS.items()}

    if config_file.exists():
        try:
            with open(config_file, 'r') as f:
                file_config = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Could not load config file {config_file}: {e}") from e

        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Config file {config_file} must hold a JSON object")

        for key, value in file_config.items():
            if not config.get(key):  # Only use file config if env var not set
                config[key] = value

    return config


def load_config(config_file=None) -> UserPoolConfig:
    """Load the user pool configuration from environment variables or config file"""
    return UserPoolConfig.from_dict(read_settings(config_file))


def save_config(config, config_file=None) -> Path:
    """Save configuration to config file"""
    config_file = Path(config_file) if config_file else CONFIG_FILE
    data = {key: value for key, value in config.items() if value}
    with open(config_file, 'w') as f:
        json.dump(data, f, indent=2)
    logger.debug("Saved configuration to %s", config_file)
    return config_file
