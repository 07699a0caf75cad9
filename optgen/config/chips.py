"""Centralized chip registry.

Known ESP target chips with the facts the option tooling needs about them:
CPU architecture and Rust target triple. The resolver itself treats chip
identifiers as opaque strings; this registry is used at the edges (CLI
validation, template symbols).

Example
-------
>>> from optgen.config import get_chip_config
>>> config = get_chip_config("ESP32C6")
>>> config.architecture
'riscv'
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class ChipConfig:
    """Configuration for a target chip.

    Attributes
    ----------
    name : str
        Canonical chip name (lowercase, e.g. "esp32c6")
    architecture : str
        "xtensa" or "riscv"
    target : str
        Rust target triple used to build for this chip
    aliases : List[str]
        Alternative spellings accepted on input
    """

    name: str
    architecture: str
    target: str
    aliases: List[str] = field(default_factory=list)

    @property
    def is_riscv(self) -> bool:
        return self.architecture == "riscv"


_CHIPS: Dict[str, ChipConfig] = {
    c.name: c
    for c in (
        ChipConfig("esp32", "xtensa", "xtensa-esp32-none-elf"),
        ChipConfig("esp32c2", "riscv", "riscv32imc-unknown-none-elf", ["esp32-c2"]),
        ChipConfig("esp32c3", "riscv", "riscv32imc-unknown-none-elf", ["esp32-c3"]),
        ChipConfig("esp32c6", "riscv", "riscv32imac-unknown-none-elf", ["esp32-c6"]),
        ChipConfig("esp32h2", "riscv", "riscv32imac-unknown-none-elf", ["esp32-h2"]),
        ChipConfig("esp32s2", "xtensa", "xtensa-esp32s2-none-elf", ["esp32-s2"]),
        ChipConfig("esp32s3", "xtensa", "xtensa-esp32s3-none-elf", ["esp32-s3"]),
    )
}


def _normalize(name: str) -> str:
    return name.strip().lower().replace("_", "-")


def find_chip_config(name: str) -> Optional[ChipConfig]:
    """Look up a chip by name or alias (case-insensitive), or None."""
    key = _normalize(name)
    if key in _CHIPS:
        return _CHIPS[key]
    for config in _CHIPS.values():
        if key in config.aliases:
            return config
    return None


def get_chip_config(name: str) -> ChipConfig:
    """Look up a chip by name or alias. Raises KeyError if unknown."""
    config = find_chip_config(name)
    if config is None:
        raise KeyError(f"Unknown chip '{name}'. Known chips: {', '.join(list_chips())}")
    return config


def list_chips() -> List[str]:
    """Canonical names of all known chips."""
    return list(_CHIPS)
