"""Pytest configuration and shared fixtures for optgen tests."""

import sys
from pathlib import Path

import pytest

# Add package to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from optgen.core.graph import build_constraint_graph
from optgen.core.resolver import Resolver
from optgen.core.schema import load_schema
from optgen.io import load_default_document
from tests.fixtures import CYCLE_YAML, SMALL_YAML, create_small_document


# ============================================================================
# Schema Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def template_document():
    """Parsed bundled template (esp-generate options)."""
    return load_default_document()


@pytest.fixture(scope="session")
def template_schema(template_document):
    """SchemaModel of the bundled template, shared read-only across tests."""
    return load_schema(template_document)


@pytest.fixture(scope="session")
def template_graph(template_schema):
    return build_constraint_graph(template_schema)


@pytest.fixture
def resolver(template_schema, template_graph) -> Resolver:
    """Resolver over the bundled template with default config."""
    return Resolver(template_schema, template_graph)


@pytest.fixture
def small_document() -> dict:
    return create_small_document()


@pytest.fixture
def small_schema(small_document):
    return load_schema(small_document)


@pytest.fixture
def small_resolver(small_schema) -> Resolver:
    return Resolver(small_schema)


# ============================================================================
# File Fixtures
# ============================================================================


@pytest.fixture
def small_schema_file(tmp_path) -> Path:
    path = tmp_path / "small.yaml"
    path.write_text(SMALL_YAML)
    return path


@pytest.fixture
def cycle_schema_file(tmp_path) -> Path:
    path = tmp_path / "cycle.yaml"
    path.write_text(CYCLE_YAML)
    return path


@pytest.fixture
def sample_resolver_config(tmp_path) -> Path:
    """Create sample resolver configuration file."""
    import yaml

    config = {
        "resolver": {
            "report_unknown_requests": False,
            "report_overridden_requests": True,
            "propagate_category_requirements": False,
        }
    }

    path = tmp_path / "resolver.yaml"
    with open(path, "w") as f:
        yaml.dump(config, f)

    return path
