"""
Document store: a flat bucket of uploaded bill files keyed by filename.
"""
from __future__ import annotations

import logging
import os

from app.exceptions import StoreError

logger = logging.getLogger(__name__)


class LocalDocumentStore:
    """Directory-backed bucket. Sub-directories are ignored."""

    def __init__(self, root: str):
        self.root = root

    def _path(self, filename: str) -> str:
        name = os.path.basename(filename)
        if not name or name != filename:
            raise StoreError(f"Invalid object name: {filename!r}")
        return os.path.join(self.root, name)

    def list(self) -> list[str]:
        try:
            names = os.listdir(self.root)
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StoreError(f"Failed to list bucket {self.root}: {e}") from e
        return sorted(
            n for n in names
            if os.path.isfile(os.path.join(self.root, n)) and not n.startswith(".")
        )

    def download(self, filename: str) -> bytes:
        try:
            with open(self._path(filename), "rb") as fh:
                return fh.read()
        except OSError as e:
            raise StoreError(f"Failed to download {filename}: {e}") from e

    def delete(self, filename: str) -> None:
        try:
            os.remove(self._path(filename))
        except FileNotFoundError:
            logger.debug("Already gone: %s", filename)
        except OSError as e:
            raise StoreError(f"Failed to delete {filename}: {e}") from e
