"""Test suite for optgen.

Test organization:
- fixtures/: Schema document builders and YAML snippets
- unit/: Unit tests for individual modules

Run tests with:
    pytest tests/
    pytest tests/unit/
    pytest tests/ -v --tb=short
"""
