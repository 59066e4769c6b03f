import json
import os
import uuid
from typing import Dict, Any, Optional

from contract_runner.core.exceptions import ConfigError
from contract_runner.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_ENV_VARS = {
    "base_url": "http://localhost:8080",
    "reader_user": "user",
    "admin_user": "admin",
}


def generate_environment_file(
    output_path: str,
    env_vars: Optional[Dict[str, Any]] = None,
    env_name: str = "Contract Test Environment"
) -> str:
    """
    Generates an environment file holding template variables for a run.

    Args:
        output_path: Path where the environment file should be saved
        env_vars: Dictionary of environment variables to include
        env_name: Name of the environment

    Returns:
        Path to the generated environment file
    """
    if not env_vars:
        env_vars = dict(DEFAULT_ENV_VARS)

    env_data = {
        "id": str(uuid.uuid4()),
        "name": env_name,
        "values": [
            {
                "key": key,
                "value": value,
                "type": "default",
                "enabled": True
            } for key, value in env_vars.items()
        ]
    }

    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(env_data, f, indent=2, ensure_ascii=False)

    logger.info(f"Environment file generated: {output_path}")
    return output_path


def load_environment_file(file_path: str) -> Dict[str, Any]:
    """
    Loads an environment file and returns its contents.

    Raises:
        ConfigError: if the file is missing or not valid JSON
    """
    if not os.path.exists(file_path):
        raise ConfigError(f"Environment file not found: {file_path}")

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            env_data = json.load(f)
    except ValueError as e:
        raise ConfigError(f"Environment file {file_path} is not valid JSON: {e}") from e

    logger.info(f"Environment file loaded: {file_path}")
    return env_data


def extract_env_vars(env_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extracts enabled variables from an environment file data structure.

    Args:
        env_data: Environment file data

    Returns:
        Dictionary of environment variables
    """
    env_vars: Dict[str, Any] = {}

    if not env_data or 'values' not in env_data:
        return env_vars

    for variable in env_data['values']:
        if 'key' in variable and 'value' in variable and variable.get('enabled', True):
            env_vars[variable['key']] = variable['value']

    return env_vars


def parse_env_assignments(assignments: Optional[list]) -> Dict[str, str]:
    """Turn ['key=value', ...] command line assignments into a dictionary"""
    env_vars: Dict[str, str] = {}
    for var_str in assignments or []:
        if '=' not in var_str:
            raise ConfigError(f"Expected key=value, got {var_str!r}")
        key, value = var_str.split('=', 1)
        env_vars[key.strip()] = value
    return env_vars
