"""Client directory port.

Client accounts are managed outside this service; monthly billing only needs
the list of active clients.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ClientInfo:
    client_id: str
    name: str
    is_active: bool = True


class ClientDirectory(ABC):
    """Abstract client directory interface."""

    @abstractmethod
    def active_clients(self) -> list[ClientInfo]:
        """Return every active client, in a stable order."""
        ...
