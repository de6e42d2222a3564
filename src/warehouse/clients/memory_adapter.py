"""In-memory client directory for development and testing."""

import json
from pathlib import Path

from warehouse.clients.port import ClientDirectory, ClientInfo


class InMemoryClientDirectory(ClientDirectory):
    def __init__(self, clients: list[ClientInfo] | None = None):
        self._clients: dict[str, ClientInfo] = {}
        for client in clients or []:
            self.add(client)

    @classmethod
    def from_file(cls, path: str | Path) -> "InMemoryClientDirectory":
        """Load clients from a JSON list of ``{"clientId", "name", "isActive"?}`` objects."""
        entries = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls(
            [
                ClientInfo(
                    client_id=str(entry["clientId"]),
                    name=entry["name"],
                    is_active=entry.get("isActive", True),
                )
                for entry in entries
            ]
        )

    def add(self, client: ClientInfo) -> None:
        self._clients[client.client_id] = client

    def register(self, client_id: str, name: str, is_active: bool = True) -> ClientInfo:
        client = ClientInfo(client_id=str(client_id), name=name, is_active=is_active)
        self.add(client)
        return client

    def active_clients(self) -> list[ClientInfo]:
        return sorted(
            (client for client in self._clients.values() if client.is_active),
            key=lambda client: client.name,
        )
