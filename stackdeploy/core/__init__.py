"""Settings loading and validation"""

from .config_loader import load_env_file
from .validator import ConfigValidator, check_private_key, parse_bool

__all__ = [
    "load_env_file",
    "ConfigValidator",
    "check_private_key",
    "parse_bool",
]
