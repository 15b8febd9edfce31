"""
Local JSON Folder Storage Implementation

DESIGN DECISION: Every concern gets its own JSON file, and transactions
get one file per month, because:
1. Users can open, back up and diff their data with any text editor
2. A corrupted file only loses that file's data
3. No database setup required

TRADEOFFS:
- No transactions across files (cross-document writes are ordered carefully)
- No indexes (lookups by id scan the month files; fine for one household)

Writes go to a temporary file in the same folder which is then moved over
the target with os.replace, so a crash mid-write leaves either the old or
the new document, never half of one.
"""

import copy
import json
import os
import re
import shutil
import tempfile
from contextlib import suppress
from pathlib import Path, PurePosixPath
from typing import Any, Union

import structlog

from finance_tracker.services.storage.interface import (
    DocumentNameError,
    DocumentStoreInterface,
    StorageWriteError,
)


logger = structlog.get_logger(__name__)

DATA_FOLDER = "data"


class _UseDefault:
    """Parse outcome meaning "the content is unusable, fall back"."""

    def __repr__(self) -> str:
        return "USE_DEFAULT"


USE_DEFAULT = _UseDefault()


def parse_document(raw: str) -> Union[Any, _UseDefault]:
    """
    Decode a document body.

    Returns the decoded value, or USE_DEFAULT when the text is not JSON.
    """
    if not raw.strip():
        return USE_DEFAULT
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return USE_DEFAULT


def _same_shape(value: Any, default: Any) -> bool:
    # A settings object must stay an object, a list must stay a list
    if isinstance(default, list):
        return isinstance(value, list)
    if isinstance(default, dict):
        return isinstance(value, dict)
    return True


class JsonDocumentStore(DocumentStoreInterface):
    """
    Document store backed by a folder of UTF-8 JSON files.

    Layout:
        <root>/settings.json, goals.json, ...
        <root>/data/<YYYY-MM>.json
    """

    def __init__(self, root: Path, indent: int = 2):
        self._root = Path(root)
        self._indent = indent

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, name: str) -> Path:
        """Map a document name to a path, refusing anything outside the root."""
        relative = PurePosixPath(name)
        if (
            not name
            or relative.is_absolute()
            or any(part in ("..", "") for part in relative.parts)
        ):
            raise DocumentNameError(f"Invalid document name: {name!r}")
        return self._root.joinpath(*relative.parts)

    async def ensure_dirs(self) -> None:
        try:
            (self._root / DATA_FOLDER).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageWriteError(f"Failed to create data folder {self._root}: {e}") from e

    async def read(self, name: str, default: Any) -> Any:
        path = self._resolve(name)
        try:
            await self.ensure_dirs()
        except StorageWriteError as e:
            logger.warning("data_folder_unavailable", error=str(e))

        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("document_missing", document=name)
            return copy.deepcopy(default)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("document_unreadable", document=name, error=str(e))
            return copy.deepcopy(default)

        value = parse_document(raw)
        if value is USE_DEFAULT:
            logger.warning("document_corrupt", document=name)
            return copy.deepcopy(default)
        if not _same_shape(value, default):
            logger.warning(
                "document_unexpected_shape",
                document=name,
                found=type(value).__name__,
            )
            return copy.deepcopy(default)
        return value

    async def write(self, name: str, value: Any) -> None:
        path = self._resolve(name)
        await self.ensure_dirs()

        try:
            payload = json.dumps(value, indent=self._indent, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise StorageWriteError(f"Document {name} is not JSON-serializable: {e}") from e

        tmp_path = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{path.name}.",
                suffix=".tmp",
                dir=path.parent,
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path:
                with suppress(OSError):
                    os.unlink(tmp_path)
            raise StorageWriteError(f"Failed to write {name}: {e}") from e

        logger.debug("document_written", document=name, bytes=len(payload))

    async def list_documents(self, folder: str, pattern: re.Pattern) -> list[str]:
        directory = self._resolve(folder)
        try:
            names = [entry.name for entry in directory.iterdir() if entry.is_file()]
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.warning("folder_unreadable", folder=folder, error=str(e))
            return []
        return sorted(name for name in names if pattern.fullmatch(name))

    async def exists(self, name: str) -> bool:
        return self._resolve(name).is_file()

    async def rename(self, name: str, new_name: str) -> None:
        source = self._resolve(name)
        target = self._resolve(new_name)
        try:
            os.replace(source, target)
        except OSError as e:
            raise StorageWriteError(f"Failed to rename {name} to {new_name}: {e}") from e

    async def clear(self) -> int:
        removed = 0
        if self._root.exists():
            removed = sum(1 for entry in self._root.rglob("*") if entry.is_file())
            try:
                shutil.rmtree(self._root)
            except OSError as e:
                raise StorageWriteError(f"Failed to remove {self._root}: {e}") from e
        await self.ensure_dirs()
        return removed
