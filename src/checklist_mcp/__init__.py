"""Checklist MCP: hierarchical per-session task lists and work-info snapshots."""

__version__ = "1.2.0"

__all__ = ["__version__"]
