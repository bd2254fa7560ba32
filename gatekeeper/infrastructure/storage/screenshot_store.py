"""Local filesystem storage for payment screenshots."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from ...domain.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES: Dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


@dataclass(frozen=True, slots=True)
class ScreenshotUpload:
    data: bytes
    filename: Optional[str] = None
    content_type: Optional[str] = None


class LocalScreenshotStore:
    """Writes uploaded payment proofs under a single directory.

    The returned reference is the stored path as a string; callers keep it
    verbatim and only hand it back to this store.
    """

    def __init__(self, root: Path, max_bytes: int) -> None:
        self._root = root
        self._max_bytes = max_bytes
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def is_ready(self) -> bool:
        return self._root.is_dir()

    def save(self, data: bytes, filename: Optional[str], content_type: Optional[str]) -> str:
        if not data:
            raise ValidationError("Payment screenshot file is empty")
        if len(data) > self._max_bytes:
            raise ValidationError(
                f"Payment screenshot exceeds the {self._max_bytes // (1024 * 1024)} MB limit"
            )
        suffix = self._resolve_suffix(filename, content_type)
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        target = self._root / f"payment-{stamp}-{secrets.token_hex(8)}{suffix}"
        target.write_bytes(data)
        logger.debug("Stored payment screenshot at %s (%d bytes)", target, len(data))
        return str(target)

    def resolve(self, reference: str) -> Optional[Path]:
        path = Path(reference).resolve()
        try:
            path.relative_to(self._root.resolve())
        except ValueError:
            logger.warning("Refusing to resolve screenshot outside upload root: %s", reference)
            return None
        return path if path.is_file() else None

    def delete(self, reference: str) -> bool:
        path = self.resolve(reference)
        if path is None:
            return False
        try:
            path.unlink()
        except OSError as exc:
            logger.warning("Unable to remove screenshot %s: %s", reference, exc)
            return False
        return True

    @staticmethod
    def _resolve_suffix(filename: Optional[str], content_type: Optional[str]) -> str:
        extension = Path(filename or "").suffix.lower()
        media_type = (content_type or "").split(";")[0].strip().lower()
        if media_type in ALLOWED_CONTENT_TYPES and (not extension or extension in ALLOWED_EXTENSIONS):
            return extension or ALLOWED_CONTENT_TYPES[media_type]
        if not media_type and extension in ALLOWED_EXTENSIONS:
            return extension
        raise ValidationError("Only image files (jpeg, png, gif, webp) are allowed")
