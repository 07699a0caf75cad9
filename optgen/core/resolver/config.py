"""Configuration for option resolution."""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

import yaml


@dataclass(frozen=True)
class ResolverConfig:
    """Configuration for option resolution."""

    report_unknown_requests: bool = True  # UnknownOptionRequested for unmatched names
    report_overridden_requests: bool = True  # Warn when closure turns a requested-off option on
    propagate_category_requirements: bool = True  # Closure follows owning category requires

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResolverConfig":
        """Build from a mapping, rejecting unknown keys.

        Raises
        ------
        ValueError
            If ``data`` contains keys that are not config fields
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown resolver config keys: {', '.join(unknown)}")
        return cls(**{k: bool(v) for k, v in data.items()})

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "ResolverConfig":
        """Load from a YAML file; a top-level ``resolver`` section is honoured."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Resolver config must be a mapping: {path}")
        return cls.from_dict(data.get("resolver", data))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
