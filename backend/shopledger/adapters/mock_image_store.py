import hashlib
from typing import Dict, Optional
from uuid import uuid4

from shopledger.config import settings


class ImageStoreError(Exception):
    pass


class MockImageStore:
    """
    Simple in-process image store.
    upload returns a dict {id, url, thumbnail_url, name}; delete removes by id.
    Stored bytes are kept in memory so tests can inspect them.
    """

    def __init__(self, base_url: str = "https://images.example.local"):
        self.base_url = base_url.rstrip("/")
        self.files: Dict[str, Dict] = {}

    def upload(self, buffer: bytes, name: str, folder: Optional[str] = None) -> Dict:
        if not buffer:
            raise ImageStoreError("Empty file")
        folder = "/" + (folder or "").strip("/")
        file_id = uuid4().hex
        digest = hashlib.sha1(buffer).hexdigest()[:8]
        path = f"{folder.rstrip('/')}/{digest}_{name}"
        self.files[file_id] = {"name": name, "path": path, "size": len(buffer), "data": buffer}
        return {
            "id": file_id,
            "name": name,
            "url": f"{self.base_url}{path}",
            "thumbnail_url": f"{self.base_url}/tr:n-thumbnail{path}",
        }

    def delete(self, file_id: str) -> None:
        if file_id not in self.files:
            raise ImageStoreError(f"File not found: {file_id}")
        del self.files[file_id]

    def health_check(self) -> bool:
        return True


_store: Optional[MockImageStore] = None


def get_image_store() -> MockImageStore:
    """Process-wide store; routes receive it through Depends so tests can override it."""
    global _store
    if _store is None:
        _store = MockImageStore(base_url=settings.IMAGE_STORE_BASE_URL)
    return _store
