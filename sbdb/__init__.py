"""Markdown knowledge base: YAML schemas, records files, queries, search and integrity hashing."""

__version__ = "0.1.0"