"""Helprota: a shared coordination board for helpers, tasks and visits."""

__version__ = "0.1.0"

__all__ = ["__version__"]
