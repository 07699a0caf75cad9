"""Static configuration shared across optgen modules."""

from .chips import ChipConfig, find_chip_config, get_chip_config, list_chips

__all__ = [
    "ChipConfig",
    "find_chip_config",
    "get_chip_config",
    "list_chips",
]
