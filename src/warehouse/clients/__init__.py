"""Client directory factory.

Provides get_client_directory() / set_client_directory() to swap implementations.
When ``CLIENT_DIRECTORY_FILE`` is set, the default directory is loaded from it.
"""

import os

from warehouse.clients.memory_adapter import InMemoryClientDirectory
from warehouse.clients.port import ClientDirectory, ClientInfo

_current_directory: ClientDirectory | None = None


def get_client_directory() -> ClientDirectory:
    """Return the active client directory. Defaults to an InMemoryClientDirectory."""
    global _current_directory
    if _current_directory is None:
        path = os.environ.get("CLIENT_DIRECTORY_FILE")
        _current_directory = InMemoryClientDirectory.from_file(path) if path else InMemoryClientDirectory()
    return _current_directory


def set_client_directory(directory: ClientDirectory) -> None:
    """Override the active client directory (useful for tests)."""
    global _current_directory
    _current_directory = directory


def reset_client_directory() -> None:
    """Reset to the default client directory."""
    global _current_directory
    _current_directory = None


__all__ = [
    "ClientDirectory",
    "ClientInfo",
    "InMemoryClientDirectory",
    "get_client_directory",
    "set_client_directory",
    "reset_client_directory",
]
