"""Receipt file storage.

``ReceiptStorage`` is the backing store, addressed by opaque keys
(``put``/``get``/``delete``). ``ReceiptStore`` layers the upload rules on
top of it: allowed MIME types, the size limit, collision-resistant keys and
the public-relative path that gets persisted on an expense.
"""
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional
from uuid import uuid4

from callbudget.app.config import Settings
from callbudget.app.errors import FileTooLarge, NotFound, StorageFailure, UnsupportedFileType
from callbudget.app.logger import get_logger

logger = get_logger("receipts")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class ReceiptUpload:
    """An uploaded file as received from the client."""
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class StoredReceipt:
    path: str
    filename: str
    content_type: str
    size: int


class ReceiptStorage:
    """Key/value store for receipt bytes."""

    def put(self, key: str, data: bytes) -> None:
        raise NotImplementedError

    def get(self, key: str) -> bytes:
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        """Delete ``key``; returns False when nothing was stored under it."""
        raise NotImplementedError

    def exists(self, key: str) -> bool:
        raise NotImplementedError


class LocalDiskStorage(ReceiptStorage):
    def __init__(self, root: str):
        self.root = Path(root)

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise NotFound(f"Receipt {key} not found")
        return path

    def put(self, key: str, data: bytes) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self._path_for(key).write_bytes(data)

    def get(self, key: str) -> bytes:
        path = self._path_for(key)
        if not path.is_file():
            raise NotFound(f"Receipt {key} not found")
        return path.read_bytes()

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        if not path.exists():
            return False
        path.unlink()
        return True

    def exists(self, key: str) -> bool:
        try:
            return self._path_for(key).is_file()
        except NotFound:
            return False


class ReceiptStore:
    def __init__(
        self,
        storage: ReceiptStorage,
        url_prefix: str = "/uploads",
        max_size: int = 5 * 1024 * 1024,
        allowed_types: Iterable[str] = ("image/jpeg", "image/png", "application/pdf"),
    ):
        self.storage = storage
        self.url_prefix = url_prefix.rstrip("/")
        self.max_size = max_size
        self.allowed_types = set(allowed_types)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReceiptStore":
        return cls(
            LocalDiskStorage(settings.upload_dir),
            url_prefix=settings.upload_url_prefix,
            max_size=settings.max_receipt_size_bytes,
            allowed_types=settings.allowed_receipt_types,
        )

    def check(self, upload: ReceiptUpload) -> None:
        """Reject uploads that break the type or size rules."""
        content_type = (upload.content_type or "").split(";")[0].strip().lower()
        if content_type not in self.allowed_types:
            raise UnsupportedFileType(
                f"Unsupported file type {upload.content_type!r}; allowed: {', '.join(sorted(self.allowed_types))}"
            )
        if upload.size > self.max_size:
            raise FileTooLarge(f"File is {upload.size} bytes; the limit is {self.max_size} bytes")

    def key_for_path(self, path: str) -> str:
        prefix = self.url_prefix + "/"
        return path[len(prefix):] if path.startswith(prefix) else Path(path).name

    def upload(self, upload: ReceiptUpload) -> StoredReceipt:
        self.check(upload)
        original_name = Path(upload.filename or "receipt").name
        key = f"{uuid4()}-{_UNSAFE_CHARS.sub('_', original_name)}"
        try:
            self.storage.put(key, upload.data)
        except OSError as exc:
            logger.error("Failed to store receipt %s: %s", key, exc)
            raise StorageFailure("Failed to upload file", exc) from exc

        logger.info("Stored receipt %s (%d bytes)", key, upload.size)
        return StoredReceipt(
            path=f"{self.url_prefix}/{key}",
            filename=original_name,
            content_type=upload.content_type,
            size=upload.size,
        )

    def read(self, path: str) -> bytes:
        return self.storage.get(self.key_for_path(path))

    def exists(self, path: str) -> bool:
        """True when ``path`` is a public path of a file held by this store."""
        if not path.startswith(self.url_prefix + "/"):
            return False
        key = self.key_for_path(path)
        # Stored keys are flat file names
        if "/" in key or "\\" in key:
            return False
        return self.storage.exists(key)

    def remove(self, path: Optional[str]) -> None:
        """Best-effort delete; a missing file or an I/O error is only logged."""
        if not path:
            return
        key = self.key_for_path(path)
        try:
            if not self.storage.delete(key):
                logger.info("Receipt %s already absent", key)
        except (OSError, NotFound) as exc:
            logger.warning("Could not delete receipt %s: %s", key, exc)

    def replace(
        self,
        old_path: Optional[str],
        upload: ReceiptUpload,
        on_stored: Optional[Callable[[StoredReceipt], None]] = None,
    ) -> StoredReceipt:
        """Upload ``upload`` and then drop ``old_path``.

        ``on_stored`` runs between the two steps (typically persisting the
        new path). If it raises, the new file is removed and the old one is
        left untouched.
        """
        stored = self.upload(upload)
        if on_stored is not None:
            try:
                on_stored(stored)
            except Exception:
                self.remove(stored.path)
                raise
        if old_path and old_path != stored.path:
            self.remove(old_path)
        return stored
