from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse

# route prefix under which stored images are published
PUBLIC_PREFIX = "/uploads/images"


@dataclass(frozen=True)
class StoredMedia:
    name: str
    path: Path
    url: str


class LocalMediaStore:
    """
    Image objects on the local filesystem, one flat directory.
    Objects are addressed by their public URL; only the last path segment
    is trusted when mapping back to a file.
    """

    def __init__(self, base_dir: str, public_base_url: str):
        self.base = Path(base_dir)
        self.base.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")

    def new_name(self, original_filename: str | None, field_name: str = "imagem") -> str:
        ext = PurePosixPath(original_filename or "").suffix.lower()
        return f"{field_name}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"

    def put_bytes(self, *, data: bytes, original_filename: str | None) -> StoredMedia:
        name = self.new_name(original_filename)
        path = self.base / name
        path.write_bytes(data)
        return StoredMedia(name=name, path=path, url=self.url_for(name))

    def url_for(self, name: str) -> str:
        return f"{self.public_base_url}{PUBLIC_PREFIX}/{name}"

    def resolve_path(self, url: str) -> Path | None:
        """
        Map a media URL (or bare file name) to its file under the store.
        Returns None for URLs whose last segment cannot name a stored object.
        """
        name = PurePosixPath(urlparse(url).path).name
        if not name or name in (".", ".."):
            return None
        return self.base / name

    def delete(self, url: str) -> bool:
        """
        Remove the object behind url. Returns False if it was already gone.
        OSError propagates; callers decide whether it matters.
        """
        path = self.resolve_path(url)
        if path is None or not path.exists():
            return False
        path.unlink()
        return True

    def list_objects(self) -> list[Path]:
        return [p for p in self.base.iterdir() if p.is_file()]
