"""Core types and request handling for a multi-model AI chat service."""

__version__ = "0.1.0"

__all__ = ["chat", "client", "config", "locked_map", "server", "web"]