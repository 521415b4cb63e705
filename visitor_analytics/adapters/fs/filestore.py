from pathlib import Path


class FileSystemStore:
    """Byte blobs under one base directory (chart cache)."""

    def __init__(self, base_path: str):
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _safe_path(self, name: str) -> Path:
        target = (self.base_path / name).resolve()
        if not target.is_relative_to(self.base_path):
            raise ValueError(f"Path traversal attempt detected: {name}")
        return target

    def save(self, name: str, data: bytes) -> str:
        target = self._safe_path(name)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        return str(target.relative_to(self.base_path))

    def get(self, name: str) -> bytes:
        target = self._safe_path(name)
        if not target.is_file():
            raise FileNotFoundError(f"File not found: {name}")
        return target.read_bytes()

    def clear(self, prefix: str) -> int:
        """Delete every file under `prefix`. Returns the number removed."""
        root = self._safe_path(prefix)
        if not root.is_dir():
            return 0
        removed = 0
        for path in root.rglob("*"):
            if path.is_file():
                path.unlink()
                removed += 1
        return removed
