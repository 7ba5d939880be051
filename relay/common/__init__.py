"""
Relay Common Module

Shared infrastructure: configuration, the monday.com API client and the
item -> thread correlation store.
"""

from .config import RelayConfig, ConfigError, load_config, validate_config
from .board_client import BoardClient, BoardAPIError
from .correlation import CorrelationStore

__all__ = [
    "RelayConfig",
    "ConfigError",
    "load_config",
    "validate_config",
    "BoardClient",
    "BoardAPIError",
    "CorrelationStore",
]
