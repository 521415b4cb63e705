from typing import Protocol


class FileStorePort(Protocol):
    def save(self, name: str, data: bytes) -> str:
        """Save bytes and return the stored name."""
        ...

    def get(self, name: str) -> bytes:
        """Retrieve bytes by name. Raises FileNotFoundError."""
        ...

    def clear(self, prefix: str) -> int: ...
