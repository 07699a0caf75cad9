"""Bundled option schema files."""
