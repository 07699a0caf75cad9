"""YAML reader for option schema documents.

Schema files tag their nodes with ``!Option`` and ``!Category``. The reader
turns each tagged mapping into a plain dict with a ``kind`` key, which is
the document shape :func:`optgen.core.schema.load_schema` consumes.
"""

from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path
from typing import Any, Union

import yaml

from ..core.schema.loader import load_schema
from ..core.schema.model import SchemaModel

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_SCHEMA_RESOURCE = "template.yaml"


class SchemaYamlLoader(yaml.SafeLoader):
    """SafeLoader that understands the ``!Option`` / ``!Category`` tags."""


def _tagged_node(kind: str):
    def construct(loader: yaml.SafeLoader, node: yaml.Node) -> dict:
        if not isinstance(node, yaml.MappingNode):
            raise yaml.constructor.ConstructorError(
                None, None, f"!{kind.capitalize()} must tag a mapping", node.start_mark
            )
        data = loader.construct_mapping(node, deep=True)
        data["kind"] = kind
        return data

    return construct


SchemaYamlLoader.add_constructor("!Option", _tagged_node("option"))
SchemaYamlLoader.add_constructor("!Category", _tagged_node("category"))


def parse_schema_document(text: str) -> Any:
    """Parse YAML text into a plain schema document.

    Raises
    ------
    yaml.YAMLError
        If the YAML is malformed or uses unknown tags
    """
    return yaml.load(text, Loader=SchemaYamlLoader)


def load_schema_document(path: PathLike) -> Any:
    """Read and parse a schema YAML file.

    Raises
    ------
    FileNotFoundError
        If the file doesn't exist
    yaml.YAMLError
        If the YAML is malformed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")
    logger.debug("Reading schema document: %s", path)
    with open(path, "r", encoding="utf-8") as f:
        return parse_schema_document(f.read())


def load_default_document() -> Any:
    """Parse the schema bundled with the package (``optgen/data/template.yaml``)."""
    text = (
        resources.files("optgen.data")
        .joinpath(DEFAULT_SCHEMA_RESOURCE)
        .read_text(encoding="utf-8")
    )
    return parse_schema_document(text)


def load_schema_file(path: PathLike) -> SchemaModel:
    """Read, parse and load a schema file into a SchemaModel."""
    return load_schema(load_schema_document(path))


def load_default_schema() -> SchemaModel:
    """Load the bundled schema into a SchemaModel."""
    return load_schema(load_default_document())
