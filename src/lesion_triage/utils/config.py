"""
Settings loading for the lesion triage client.
Reads a YAML file and applies environment overrides.
"""

import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationException
from .models import ServerEndpoint

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path(__file__).resolve().parent.parent / "config" / "config.yaml"

ENV_SERVER_URL = "LESION_TRIAGE_SERVER_URL"
ENV_TIMEOUT_MS = "LESION_TRIAGE_TIMEOUT_MS"
ENV_LOG_LEVEL = "LESION_TRIAGE_LOG_LEVEL"

LOG_LEVELS = ('CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG')


class Settings(BaseModel):
    """Client settings"""
    endpoint: ServerEndpoint = Field(default_factory=ServerEndpoint, description="Predict service endpoint")
    health_timeout_millis: int = Field(default=5000, gt=0, description="Deadline for the health check")
    max_image_bytes: int = Field(default=10 * 1024 * 1024, gt=0, description="Largest accepted upload")
    log_level: str = Field(default="INFO", description="Root log level")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = str(v).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationException(f"Configuration file {path} not found", details={'path': str(path)})

    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationException(f"Invalid YAML in {path}: {e}", details={'path': str(path)}) from e

    if not isinstance(data, dict):
        raise ConfigurationException(f"Configuration file {path} must contain a mapping",
                                     details={'path': str(path)})
    return data


def _apply_env(values: Dict[str, Any], environ) -> Dict[str, Any]:
    if environ.get(ENV_SERVER_URL):
        values['endpoint']['base_url'] = environ[ENV_SERVER_URL]
    if environ.get(ENV_TIMEOUT_MS):
        values['endpoint']['timeout_millis'] = environ[ENV_TIMEOUT_MS]
    if environ.get(ENV_LOG_LEVEL):
        values['log_level'] = environ[ENV_LOG_LEVEL]
    return values


def load_settings(path: Optional[Union[str, Path]] = None, environ=None) -> Settings:
    """Load settings from a YAML file.

    Args:
        path: Configuration file; the packaged default when omitted
        environ: Environment mapping used for overrides, os.environ by default

    Returns:
        Validated Settings

    Raises:
        ConfigurationException: If the file is missing or holds invalid values
    """
    config_file = Path(path) if path else DEFAULT_CONFIG_FILE
    environ = os.environ if environ is None else environ
    data = _read_yaml(config_file)

    server = data.get('server') or {}
    upload = data.get('upload') or {}
    values: Dict[str, Any] = {
        'endpoint': {
            'base_url': server.get('url', 'http://localhost:8080'),
            'timeout_millis': server.get('timeout_ms', 30000),
        },
        'health_timeout_millis': server.get('health_timeout_ms', 5000),
        'max_image_bytes': upload.get('max_image_bytes', 10 * 1024 * 1024),
        'log_level': (data.get('logging') or {}).get('level', 'INFO'),
    }
    values = _apply_env(values, environ)

    try:
        settings = Settings(**values)
    except ValidationError as e:
        raise ConfigurationException(f"Invalid configuration in {config_file}: {e}",
                                     details={'path': str(config_file), 'errors': e.errors()}) from e

    logger.debug(f"Loaded settings from {config_file}: {settings.endpoint.base_url} "
                 f"(timeout {settings.endpoint.timeout_millis} ms)")
    return settings
