"""Storage abstractions for Helprota."""

from .json_store import JsonDocumentStore

__all__ = ["JsonDocumentStore"]
