"""
Settings file loading.

Reads the .env file into a plain mapping. Validation happens in
stackdeploy.core.validator; nothing here interprets values.
"""

from pathlib import Path
from typing import Dict

from dotenv import dotenv_values

from stackdeploy.exceptions import ConfigError


def load_env_file(env_file: Path) -> Dict[str, str]:
    """
    Load settings from a dotenv file.

    Args:
        env_file: Path to the .env file

    Returns:
        Mapping of setting name to value (keys without a value map to "")

    Raises:
        ConfigError: If the file does not exist
    """
    env_file = Path(env_file)
    if not env_file.is_file():
        raise ConfigError(
            [f"settings file not found: {env_file}"],
            context="Copy .env.example to .env and fill in the values",
        )

    return {key: value or "" for key, value in dotenv_values(env_file).items()}
