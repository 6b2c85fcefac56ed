"""Named-blob primitive on top of a directory tree.

Blob names are relative POSIX paths such as ``master_items/abc.json`` or
``images/receipts/1712345678901.jpg``. Every OSError is surfaced as
StorageError; nothing here retries.
"""
import os
import shutil
import tempfile
import logging
from pathlib import Path, PurePosixPath
from typing import List, Union

from shoplist.utilities.errors import NotFound, StorageError

logger = logging.getLogger(__name__)


class DirectoryBlobStore:
    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def _resolve(self, name: str) -> Path:
        pure = PurePosixPath(name)
        if not name or pure.is_absolute() or '..' in pure.parts:
            raise StorageError(f"Invalid blob name: {name!r}")
        return self.root.joinpath(*pure.parts)

    def path(self, name: str) -> Path:
        return self._resolve(name)

    def ensure_dir(self, prefix: str = "") -> None:
        target = self._resolve(prefix) if prefix else self.root
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create directory {target}: {e}") from e

    def exists(self, name: str) -> bool:
        return self._resolve(name).is_file()

    def read(self, name: str) -> bytes:
        target = self._resolve(name)
        try:
            return target.read_bytes()
        except FileNotFoundError:
            raise NotFound("blob", name)
        except OSError as e:
            raise StorageError(f"Cannot read {name}: {e}") from e

    def write(self, name: str, data: bytes) -> None:
        '''Atomic write: a temp file in the same directory is moved over the target.'''
        target = self._resolve(name)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(target.parent), prefix=".blob_", suffix=target.suffix)
        except OSError as e:
            raise StorageError(f"Cannot write {name}: {e}") from e
        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(data)
            shutil.move(tmp_path, str(target))
        except OSError as e:
            raise StorageError(f"Cannot write {name}: {e}") from e
        finally:
            if os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    logger.warning("Could not remove temp file %s", tmp_path)

    def delete(self, name: str) -> bool:
        '''Remove a blob; returns False (not an error) when it is already gone.'''
        target = self._resolve(name)
        try:
            target.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Cannot delete {name}: {e}") from e

    def list(self, prefix: str = "") -> List[str]:
        '''Names of the files directly under ``prefix`` (hidden temp files excluded).'''
        base = self._resolve(prefix) if prefix else self.root
        if not base.is_dir():
            return []
        try:
            entries = sorted(base.iterdir())
        except OSError as e:
            raise StorageError(f"Cannot list {prefix or base}: {e}") from e
        names = []
        for entry in entries:
            if entry.is_file() and not entry.name.startswith('.'):
                names.append(f"{prefix}/{entry.name}" if prefix else entry.name)
        return names
