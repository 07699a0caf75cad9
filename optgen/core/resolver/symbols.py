"""Template symbols derived from a resolution.

A project renderer evaluates ``option("...")`` conditions against a flat
symbol list: the selected options, the selection groups they activate, the
chip name and its architecture.
"""

from typing import List, Optional

from ...config.chips import ChipConfig, find_chip_config
from ..schema.model import SchemaModel
from .engine import ResolutionResult


def selection_symbols(
    schema: SchemaModel,
    result: ResolutionResult,
    chip_config: Optional[ChipConfig] = None,
) -> List[str]:
    """
    Build the de-duplicated symbol list for a resolved configuration.

    Args:
        schema: Schema the result was resolved against
        result: Resolution result
        chip_config: Chip facts; looked up from ``result.chip`` if omitted.
            Unknown chips contribute only their name.

    Returns:
        Selected options, then their selection groups, then chip and architecture
    """
    if chip_config is None:
        chip_config = find_chip_config(result.chip)

    symbols: List[str] = []

    def add(symbol: str) -> None:
        if symbol and symbol not in symbols:
            symbols.append(symbol)

    selected = result.selected
    for name in selected:
        add(name)
    for name in selected:
        variant = schema.get_option(name).variant_for(result.chip)
        if variant is not None and variant.selection_group:
            add(variant.selection_group)

    add(chip_config.name if chip_config else result.chip)
    if chip_config is not None:
        add(chip_config.architecture)
    return symbols
