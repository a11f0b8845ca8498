"""
Filesystem-backed paste storage.

Each paste is one file directly under the storage root, named by its
identifier. Files are created exclusively and never rewritten.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List

from paste_errors import InvalidPasteId, PasteExistsError, PasteNotFound, StorageError

logger = logging.getLogger("pastebinit")


@dataclass(frozen=True)
class PasteEntry:
    """One row of the storage listing"""

    name: str
    modified: datetime
    size: int


class PasteStore:
    """Maps identifiers to byte content inside a single flat directory"""

    def __init__(self, root):
        try:
            Path(root).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"creating storage directory {root} failed: {e}") from e
        self.root = Path(root).resolve()

    def _path_for(self, paste_id: str) -> Path:
        """Resolve an identifier to a file that is a direct child of the root"""
        if not isinstance(paste_id, str) or not paste_id:
            raise InvalidPasteId("invalid paste id")
        if paste_id in (".", "..") or any(c in paste_id for c in ("/", "\\", "\0")):
            raise InvalidPasteId(f"invalid paste id: {paste_id!r}")

        path = (self.root / paste_id).resolve()
        # Symlinks or platform quirks must not lead out of the root either
        if path.parent != self.root:
            raise InvalidPasteId(f"invalid paste id: {paste_id!r}")
        return path

    def create(self, paste_id: str, data: bytes) -> None:
        """Store data under a new identifier, refusing to overwrite"""
        path = self._path_for(paste_id)
        try:
            with open(path, "xb") as f:
                f.write(data)
        except FileExistsError as e:
            raise PasteExistsError(f"paste {paste_id} already exists") from e
        except OSError as e:
            logger.error(f"Writing paste {paste_id} failed: {e}")
            raise StorageError(f"writing paste {paste_id} failed") from e

    def read(self, paste_id: str) -> bytes:
        """Return the exact bytes stored under paste_id"""
        path = self._path_for(paste_id)
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError as e:
            raise PasteNotFound(f"no such paste: {paste_id}") from e
        except IsADirectoryError as e:
            raise PasteNotFound(f"no such paste: {paste_id}") from e
        except OSError as e:
            logger.error(f"Reading paste {paste_id} failed: {e}")
            raise StorageError(f"reading paste {paste_id} failed") from e

    def list(self) -> List[PasteEntry]:
        """Snapshot of all stored pastes, sorted by name"""
        entries = []
        try:
            with os.scandir(self.root) as it:
                for dirent in it:
                    try:
                        if not dirent.is_file(follow_symlinks=False):
                            continue
                        st = dirent.stat(follow_symlinks=False)
                    except FileNotFoundError:
                        # Removed while scanning
                        continue
                    entries.append(PasteEntry(
                        name=dirent.name,
                        modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
                        size=st.st_size,
                    ))
        except OSError as e:
            logger.error(f"Listing storage directory failed: {e}")
            raise StorageError("listing pastes failed") from e

        entries.sort(key=lambda entry: entry.name)
        return entries

    def save(self, data: bytes, generate: Callable[[], str], retries: int = 3) -> str:
        """
        Store data under a freshly generated identifier.

        Args:
            data: Paste content
            generate: Zero-argument identifier factory
            retries: Extra attempts after an identifier collision

        Returns:
            The identifier the data was stored under

        Raises:
            StorageError: If every attempt collided or the write failed
            RandomnessFailure: If the identifier factory failed
        """
        for attempt in range(retries + 1):
            paste_id = generate()
            try:
                self.create(paste_id, data)
                return paste_id
            except PasteExistsError:
                logger.warning(f"Paste id collision on {paste_id} (attempt {attempt + 1})")
        raise StorageError("could not allocate a unique paste id")
